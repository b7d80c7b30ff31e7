"""Component initialization for MCP server."""

import logging
from typing import Any, Dict, Optional

from .accessibility import IdbClient
from .device_resolver import DeviceResolver
from .preference_store import PreferenceStore
from .simctl_manager import SimctlManager
from .ui_matcher import ElementMatcher

logger = logging.getLogger(__name__)


async def initialize_components(state_file: Optional[str] = None) -> Dict[str, Any]:
    """Initialize all server components.

    Args:
        state_file: Preference file override; defaults to IOS_SIM_STATE_FILE
            or ./.ios-sim-state.json

    Returns:
        Dictionary containing all initialized components
    """
    try:
        simctl_manager = SimctlManager()
        idb_client = IdbClient()
        preference_store = PreferenceStore(state_file)
        resolver = DeviceResolver(simctl_manager, preference_store)
        matcher = ElementMatcher()

        preference = preference_store.load()
        if preference.device_id:
            logger.info(
                f"Preferred simulator: {preference.display_name} ({preference.device_id})"
            )
        else:
            logger.info(f"No preferred simulator recorded in {preference_store.path}")

        if not idb_client.is_available():
            logger.warning("idb not found; UI automation tools will be unavailable")

        logger.info("All components initialized successfully")

        return {
            "simctl_manager": simctl_manager,
            "idb_client": idb_client,
            "preference_store": preference_store,
            "resolver": resolver,
            "matcher": matcher,
        }

    except Exception as e:
        logger.error(f"Component initialization failed: {e}")
        raise
