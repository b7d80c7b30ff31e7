"""App lifecycle and URL tools for MCP server."""

import logging
from pathlib import Path
from typing import Any, Dict

from ..decorators import timeout_wrapper
from ..error_handler import (
    SimulatorMCPError,
    create_success_response,
    format_error_response,
)
from ..tool_models import (
    AppContainerParams,
    AppInstallParams,
    AppLaunchParams,
    AppParams,
    OpenUrlParams,
)
from ..validation import (
    BundleIdValidator,
    create_validation_error_response,
    log_validation_attempt,
)

logger = logging.getLogger(__name__)

# Module-level components storage
_components = {}


def _validate_bundle_id(operation: str, bundle_id: str):
    validation_result = BundleIdValidator.validate_bundle_id(bundle_id)
    if not validation_result.is_valid:
        log_validation_attempt(
            operation, {"bundle_id": bundle_id}, validation_result, logger
        )
        return None, create_validation_error_response(validation_result, operation)
    return validation_result.sanitized_value, None


@timeout_wrapper()
async def app_install(params: AppInstallParams) -> Dict[str, Any]:
    """Install a simulator `.app` bundle."""
    try:
        resolver = _components.get("resolver")
        simctl_manager = _components.get("simctl_manager")
        if not resolver or not simctl_manager:
            return {"success": False, "error": "simctl manager not initialized"}

        resolution = await resolver.resolve(udid=params.udid)
        app_path = await simctl_manager.install_app(resolution.udid, params.app_path)
        return create_success_response(
            {"udid": resolution.udid, "app": app_path},
            [f"Installed: {Path(app_path).name}"],
        )
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"App install failed: {e}")
        return {"success": False, "error": str(e)}


@timeout_wrapper()
async def app_launch(params: AppLaunchParams) -> Dict[str, Any]:
    """Launch an installed app by bundle identifier.

    Common combos:
    - `app_launch` → `ui_summary` → `ui_tap`.
    """
    try:
        resolver = _components.get("resolver")
        simctl_manager = _components.get("simctl_manager")
        if not resolver or not simctl_manager:
            return {"success": False, "error": "simctl manager not initialized"}

        bundle_id, error = _validate_bundle_id("app_launch", params.bundle_id)
        if error:
            return error

        resolution = await resolver.resolve(udid=params.udid)
        result = await simctl_manager.launch_app(resolution.udid, bundle_id, params.args)
        return {
            "success": result["ok"],
            "udid": resolution.udid,
            "bundle_id": bundle_id,
            "pid": result["pid"],
            "stderr": result["stderr"],
            "summary": [
                f"Launch: {bundle_id}",
                f"PID: {result['pid']}" if result["pid"] else "No PID returned",
            ],
        }
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"App launch failed: {e}")
        return {"success": False, "error": str(e)}


@timeout_wrapper()
async def app_terminate(params: AppParams) -> Dict[str, Any]:
    """Terminate a running app."""
    try:
        resolver = _components.get("resolver")
        simctl_manager = _components.get("simctl_manager")
        if not resolver or not simctl_manager:
            return {"success": False, "error": "simctl manager not initialized"}

        bundle_id, error = _validate_bundle_id("app_terminate", params.bundle_id)
        if error:
            return error

        resolution = await resolver.resolve(udid=params.udid)
        result = await simctl_manager.terminate_app(resolution.udid, bundle_id)
        return create_success_response(
            {"udid": resolution.udid, "bundle_id": bundle_id, "terminate": result},
            [f"Terminate: {bundle_id}"],
        )
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"App terminate failed: {e}")
        return {"success": False, "error": str(e)}


@timeout_wrapper()
async def app_uninstall(params: AppParams) -> Dict[str, Any]:
    """Uninstall an app by bundle identifier."""
    try:
        resolver = _components.get("resolver")
        simctl_manager = _components.get("simctl_manager")
        if not resolver or not simctl_manager:
            return {"success": False, "error": "simctl manager not initialized"}

        bundle_id, error = _validate_bundle_id("app_uninstall", params.bundle_id)
        if error:
            return error

        resolution = await resolver.resolve(udid=params.udid)
        result = await simctl_manager.uninstall_app(resolution.udid, bundle_id)
        return create_success_response(
            {"udid": resolution.udid, "bundle_id": bundle_id, "uninstall": result},
            [f"Uninstalled: {bundle_id}"],
        )
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"App uninstall failed: {e}")
        return {"success": False, "error": str(e)}


@timeout_wrapper()
async def app_container(params: AppContainerParams) -> Dict[str, Any]:
    """Locate an installed app's data or bundle container on disk.

    Useful for inspecting files an app wrote (`container="data"`) or the
    installed bundle itself (`container="app"`).
    """
    try:
        resolver = _components.get("resolver")
        simctl_manager = _components.get("simctl_manager")
        if not resolver or not simctl_manager:
            return {"success": False, "error": "simctl manager not initialized"}

        bundle_id, error = _validate_bundle_id("app_container", params.bundle_id)
        if error:
            return error

        resolution = await resolver.resolve(udid=params.udid)
        path = await simctl_manager.get_app_container(
            resolution.udid, bundle_id, params.container
        )
        return create_success_response(
            {
                "udid": resolution.udid,
                "bundle_id": bundle_id,
                "container": params.container,
                "path": path,
            },
            [f"Container ({params.container}): {path}"],
        )
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"App container lookup failed: {e}")
        return {"success": False, "error": str(e)}


@timeout_wrapper()
async def open_url(params: OpenUrlParams) -> Dict[str, Any]:
    """Open a URL or deep link in the simulator."""
    try:
        resolver = _components.get("resolver")
        simctl_manager = _components.get("simctl_manager")
        if not resolver or not simctl_manager:
            return {"success": False, "error": "simctl manager not initialized"}

        if not params.url.strip():
            return {
                "success": False,
                "error": "Missing url",
                "error_code": "INVALID_PARAMETER",
            }

        resolution = await resolver.resolve(udid=params.udid)
        await simctl_manager.open_url(resolution.udid, params.url)
        return create_success_response(
            {"udid": resolution.udid, "url": params.url}, [f"Open URL: {params.url}"]
        )
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"Open URL failed: {e}")
        return {"success": False, "error": str(e)}


def register_app_tools(mcp, components):
    """Register app lifecycle tools with the MCP server.

    Args:
        mcp: FastMCP server instance
        components: Dictionary containing initialized components
    """
    global _components
    _components = components

    mcp.tool(description="Install a .app bundle onto the target simulator.")(app_install)

    mcp.tool(
        description="Launch an app by bundle id with optional launch arguments."
    )(app_launch)

    mcp.tool(description="Terminate a running app by bundle id.")(app_terminate)

    mcp.tool(description="Uninstall an app by bundle id.")(app_uninstall)

    mcp.tool(
        description="Get the filesystem path of an app's data or app container."
    )(app_container)

    mcp.tool(description="Open a URL or custom-scheme deep link.")(open_url)
