"""Configuration constants for the iOS Simulator MCP server."""

import logging
import os
from pathlib import Path
from typing import Optional

# Configure logging to stderr (not stdout for STDIO transport)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

# Timeout configuration for MCP tools (in seconds)
TOOL_TIMEOUTS = {
    # Device management tools
    "health_check": 20,
    "list_devices": 15,
    "select_device": 150,
    "boot_device": 150,
    "shutdown_device": 30,
    # UI tools
    "ui_summary": 20,
    "ui_tree": 20,
    "ui_find": 20,
    # Interaction tools
    "ui_tap": 25,
    "ui_type": 15,
    "ui_button": 10,
    # App tools
    "app_install": 120,
    "app_launch": 30,
    "app_terminate": 15,
    "app_uninstall": 30,
    "app_container": 15,
    "open_url": 15,
    # Media tools
    "take_screenshot": 20,
}

DEFAULT_TOOL_TIMEOUT = 30  # Default timeout for tools not in the list

# Device resolution hints used when nothing else narrows the choice
DEFAULT_DEVICE_NAME_HINT = "iPhone"
DEFAULT_RUNTIME_HINT = "iOS"

# Boot waiting
DEFAULT_BOOT_TIMEOUT = 120
BOOT_POLL_INTERVAL = 1.0

# simctl get_app_container types
APP_CONTAINER_TYPES = ("data", "app")

# UI matching
CONFIDENCE_FLOOR = 50
DEFAULT_FIND_LIMIT = 20
DEFAULT_SUMMARY_LIMIT = 12
MAX_RESULT_LIMIT = 200

# Preference storage
STATE_FILE_ENV_VAR = "IOS_SIM_STATE_FILE"
DEFAULT_STATE_FILENAME = ".ios-sim-state.json"


def resolve_state_file(explicit_path: Optional[str] = None) -> Path:
    """Return the preference file location.

    Precedence: explicit path, then the IOS_SIM_STATE_FILE environment
    variable, then ``.ios-sim-state.json`` in the working directory.
    """
    if explicit_path:
        return Path(explicit_path)
    env_path = os.environ.get(STATE_FILE_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.cwd() / DEFAULT_STATE_FILENAME
