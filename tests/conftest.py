"""Test configuration and fixtures for iOS Simulator MCP Server tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator

import pytest

from ios_sim_mcp.accessibility import parse_snapshot
from ios_sim_mcp.device_resolver import DeviceResolver
from ios_sim_mcp.preference_store import PreferenceRecord, PreferenceStore
from ios_sim_mcp.ui_matcher import ElementMatcher
from tests.mocks.simctl_mock import (
    UDID_IPHONE_SE_172,
    MockSimctlCatalog,
    MockUISnapshots,
    create_mock_idb_client,
    create_mock_simctl_manager,
)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def state_file(temp_dir) -> Path:
    return temp_dir / "state" / ".ios-sim-state.json"


@pytest.fixture
def preference_store(state_file) -> PreferenceStore:
    """Empty store backed by a temp file."""
    return PreferenceStore(state_file)


@pytest.fixture
def saved_preference_store(preference_store) -> PreferenceStore:
    """Store holding a preference for the iPhone SE."""
    preference_store.save(
        PreferenceRecord.for_device(UDID_IPHONE_SE_172, "iPhone SE (3rd generation)", "iOS 17.2")
    )
    return preference_store


@pytest.fixture
def mock_simctl_manager():
    """Mock simctl manager over a catalog where every device is shut down."""
    return create_mock_simctl_manager(MockSimctlCatalog.all_shutdown())


@pytest.fixture
def resolver(mock_simctl_manager, preference_store) -> DeviceResolver:
    return DeviceResolver(mock_simctl_manager, preference_store)


@pytest.fixture
def matcher() -> ElementMatcher:
    return ElementMatcher()


@pytest.fixture
def login_elements():
    return parse_snapshot(MockUISnapshots.login_screen())


@pytest.fixture
def mock_idb_client():
    return create_mock_idb_client(MockUISnapshots.login_screen())


@pytest.fixture
def mock_server_components(
    mock_simctl_manager, mock_idb_client, preference_store, resolver, matcher
) -> Dict[str, Any]:
    """Component dict as built by initialize_components, with external tools mocked."""
    return {
        "simctl_manager": mock_simctl_manager,
        "idb_client": mock_idb_client,
        "preference_store": preference_store,
        "resolver": resolver,
        "matcher": matcher,
    }
