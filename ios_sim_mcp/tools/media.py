"""Media capture tools for MCP server."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from ..decorators import timeout_wrapper
from ..error_handler import (
    SimulatorMCPError,
    create_success_response,
    format_error_response,
)
from ..tool_models import ScreenshotParams

logger = logging.getLogger(__name__)

# Module-level components storage
_components = {}

DEFAULT_SCREENSHOT_DIR = "screenshots"


def default_screenshot_path() -> str:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return str(Path(DEFAULT_SCREENSHOT_DIR) / f"screenshot_{timestamp}.png")


@timeout_wrapper()
async def take_screenshot(params: ScreenshotParams) -> Dict[str, Any]:
    """Capture a PNG screenshot of the simulator screen.

    When to use:
    - Before/after an action to verify UI changes or for reporting.
    """
    try:
        resolver = _components.get("resolver")
        simctl_manager = _components.get("simctl_manager")
        if not resolver or not simctl_manager:
            return {"success": False, "error": "simctl manager not initialized"}

        resolution = await resolver.resolve(udid=params.udid)
        out_path = await simctl_manager.screenshot(
            resolution.udid, params.out or default_screenshot_path()
        )
        return create_success_response(
            {"udid": resolution.udid, "out": out_path}, [f"Screenshot: {out_path}"]
        )
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"Take screenshot failed: {e}")
        return {"success": False, "error": str(e)}


def register_media_tools(mcp, components):
    """Register media capture tools with the MCP server.

    Args:
        mcp: FastMCP server instance
        components: Dictionary containing initialized components
    """
    global _components
    _components = components

    mcp.tool(
        description="Capture a PNG screenshot (default ./screenshots/screenshot_<ts>.png)."
    )(take_screenshot)
