"""Mock infrastructure for iOS Simulator MCP Server testing."""

from .simctl_mock import (
    MockSimctlCatalog,
    MockUISnapshots,
    create_mock_idb_client,
    create_mock_simctl_manager,
    make_device,
)

__all__ = [
    "MockSimctlCatalog",
    "MockUISnapshots",
    "create_mock_idb_client",
    "create_mock_simctl_manager",
    "make_device",
]
