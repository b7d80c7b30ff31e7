"""Main MCP server implementation for iOS Simulator automation."""

import asyncio
import logging

from mcp.server.fastmcp import FastMCP

from .initialization import initialize_components

# Import tool registration functions
from .tools.apps import register_app_tools
from .tools.device import register_device_tools
from .tools.interaction import register_interaction_tools
from .tools.media import register_media_tools
from .tools.ui import register_ui_tools

# Re-export tool functions for testing
from .tools.apps import (  # noqa: F401
    app_container,
    app_install,
    app_launch,
    app_terminate,
    app_uninstall,
    open_url,
)
from .tools.device import (  # noqa: F401
    boot_device,
    health_check,
    list_devices,
    select_device,
    shutdown_device,
)
from .tools.interaction import ui_button, ui_tap, ui_type  # noqa: F401
from .tools.media import take_screenshot  # noqa: F401
from .tools.ui import ui_find, ui_summary, ui_tree  # noqa: F401

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("ios-sim-mcp")

# Component storage
components = {}


async def init_and_register() -> None:
    """Initialize components and register all MCP tools."""
    global components

    components = await initialize_components()

    register_device_tools(mcp, components)
    register_ui_tools(mcp, components)
    register_interaction_tools(mcp, components)
    register_app_tools(mcp, components)
    register_media_tools(mcp, components)

    logger.info("All MCP tools registered successfully")


def main() -> None:
    """Run the MCP server."""
    logger.info("Starting iOS Simulator MCP server...")

    # Initialize components and register tools before starting server
    async def init_and_run() -> None:
        await init_and_register()
        await mcp.run_stdio_async()

    asyncio.run(init_and_run())


if __name__ == "__main__":
    main()
