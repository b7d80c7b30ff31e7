"""Simulator management tools for MCP server."""

import logging
from typing import Any, Dict

from ..decorators import timeout_wrapper
from ..error_handler import (
    SimulatorMCPError,
    create_success_response,
    format_error_response,
)
from ..tool_models import BootParams, DeviceSelectionParams, DeviceTargetParams
from ..validation import (
    DeviceIdValidator,
    create_validation_error_response,
    log_validation_attempt,
)

logger = logging.getLogger(__name__)

# Module-level components reference
_components = {}


@timeout_wrapper()
async def health_check() -> Dict[str, Any]:
    """Check the host for macOS, xcrun, simctl and idb.

    When to use:
    - First call in a session, or when simctl commands fail unexpectedly.
    """
    try:
        simctl_manager = _components.get("simctl_manager")
        if not simctl_manager:
            return {"success": False, "error": "simctl manager not initialized"}

        report = await simctl_manager.check_environment()
        return {
            "success": report["ok"],
            "checks": report["checks"],
            "summary": report["summary"],
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return {"success": False, "error": str(e)}


@timeout_wrapper()
async def list_devices() -> Dict[str, Any]:
    """List simulators with their runtimes and states.

    Common combos:
    - `list_devices` → `select_device` → `boot_device`.
    """
    try:
        simctl_manager = _components.get("simctl_manager")
        if not simctl_manager:
            return {"success": False, "error": "simctl manager not initialized"}

        devices = await simctl_manager.list_devices()
        available = [d for d in devices if d.available]
        booted = [d for d in available if d.is_booted]

        summary = [f"Available: {len(available)}", f"Booted: {len(booted)}"]
        summary.extend(f"- {d.name} ({d.runtime_name}) {d.udid}" for d in booted)

        return create_success_response(
            {
                "devices": [d.to_dict() for d in devices],
                "count": len(devices),
                "available_count": len(available),
                "booted": [d.to_dict() for d in booted],
            },
            summary,
        )
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"List devices failed: {e}")
        return {"success": False, "error": str(e)}


@timeout_wrapper()
async def select_device(params: DeviceSelectionParams) -> Dict[str, Any]:
    """Pick a simulator by name/runtime and remember it for later calls.

    Tips:
    - Omit both filters to pick the best available device (booted first,
      then newest runtime).
    - Set `boot` to have it ready in one step; it waits for Booted unless
      `wait` is false.
    """
    try:
        resolver = _components.get("resolver")
        simctl_manager = _components.get("simctl_manager")
        if not resolver or not simctl_manager:
            return {"success": False, "error": "Device resolver not initialized"}

        resolution = await resolver.select(name=params.name, runtime=params.runtime)
        device = resolution.device
        response = create_success_response(
            {"selected": device.to_dict()},
            [f"Selected: {device.name} ({device.runtime_name})", f"UDID: {device.udid}"],
        )

        if params.boot:
            boot = await simctl_manager.boot(device.udid)
            response["boot"] = boot
            if params.wait:
                wait = await simctl_manager.wait_for_booted(device.udid)
                response["wait"] = wait
                if not wait["ok"]:
                    response["success"] = False
                    response["error"] = wait.get("error")
                    response["error_code"] = "COMMAND_TIMEOUT"
                response["summary"].append(
                    "Booted" if wait["ok"] else f"Boot wait: {wait.get('error')}"
                )

        return response
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"Select device failed: {e}")
        return {"success": False, "error": str(e)}


@timeout_wrapper()
async def boot_device(params: BootParams) -> Dict[str, Any]:
    """Boot a simulator and, unless `wait` is false, wait until it reports Booted."""
    try:
        resolver = _components.get("resolver")
        simctl_manager = _components.get("simctl_manager")
        if not resolver or not simctl_manager:
            return {"success": False, "error": "Device resolver not initialized"}

        if params.udid:
            validation_result = DeviceIdValidator.validate_device_id(params.udid)
            if not validation_result.is_valid:
                log_validation_attempt(
                    "boot_device", {"udid": params.udid}, validation_result, logger
                )
                return create_validation_error_response(validation_result, "boot")

        resolution = await resolver.resolve(udid=params.udid)
        boot = await simctl_manager.boot(resolution.udid)
        response = create_success_response(
            {"udid": resolution.udid, "source": resolution.source, "boot": boot},
            [f"Boot requested: {resolution.udid}"],
        )

        if params.wait:
            wait = await simctl_manager.wait_for_booted(resolution.udid, params.timeout)
            response["wait"] = wait
            if not wait["ok"]:
                response["success"] = False
                response["error"] = wait.get("error")
                response["error_code"] = "COMMAND_TIMEOUT"
            response["summary"].append(
                "Booted" if wait["ok"] else f"Boot wait: {wait.get('error')}"
            )

        return response
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"Boot device failed: {e}")
        return {"success": False, "error": str(e)}


@timeout_wrapper()
async def shutdown_device(params: DeviceTargetParams) -> Dict[str, Any]:
    """Shut down a simulator."""
    try:
        resolver = _components.get("resolver")
        simctl_manager = _components.get("simctl_manager")
        if not resolver or not simctl_manager:
            return {"success": False, "error": "Device resolver not initialized"}

        resolution = await resolver.resolve(udid=params.udid)
        result = await simctl_manager.shutdown(resolution.udid)
        return create_success_response(
            {"udid": resolution.udid, "shutdown": result},
            [f"Shutdown requested: {resolution.udid}"],
        )
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"Shutdown device failed: {e}")
        return {"success": False, "error": str(e)}


def register_device_tools(mcp, components):
    """Register simulator management tools with the MCP server.

    Args:
        mcp: FastMCP server instance
        components: Dictionary containing initialized components
    """
    global _components
    _components = components

    mcp.tool(
        description="Check macOS, xcrun, simctl and idb availability."
    )(health_check)

    mcp.tool(
        description="List simulators with runtime, state and availability."
    )(list_devices)

    mcp.tool(
        description="Select a simulator by name/runtime substring and remember it; optionally boot."
    )(select_device)

    mcp.tool(
        description="Boot the target simulator and wait until it is Booted (set wait=false to return at once)."
    )(boot_device)

    mcp.tool(description="Shut down the target simulator.")(shutdown_device)
