"""Tests for simulator ranking and resolution."""

import pytest

from ios_sim_mcp.device_resolver import (
    DeviceResolver,
    compare_devices,
    compare_versions,
    filter_devices,
    parse_version,
    pick_best_device,
    rank_devices,
)
from ios_sim_mcp.error_handler import ErrorCode, InvalidIdentifierError, NoMatchError
from ios_sim_mcp.preference_store import PreferenceRecord
from ios_sim_mcp.simctl_manager import DeviceState
from tests.mocks.simctl_mock import (
    UDID_IPAD_172,
    UDID_IPHONE_15_170,
    UDID_IPHONE_15_172,
    UDID_IPHONE_SE_172,
    UDID_WATCH,
    MockSimctlCatalog,
    create_mock_simctl_manager,
    make_device,
)

UDID_A = "AAAAAAAA-0000-0000-0000-000000000001"
UDID_B = "BBBBBBBB-0000-0000-0000-000000000002"
UDID_C = "CCCCCCCC-0000-0000-0000-000000000003"


class TestVersionParsing:
    """Test dotted runtime version handling."""

    def test_parse_simple_versions(self):
        assert parse_version("17.2") == (17, 2)
        assert parse_version("17.0.1") == (17, 0, 1)

    def test_parse_empty_version(self):
        assert parse_version("") == (0,)
        assert parse_version(None) == (0,)

    def test_non_numeric_component_poisons_version(self):
        assert parse_version("17.a") == (-1,)
        assert parse_version("beta") == (-1,)

    def test_blank_component_is_zero(self):
        assert parse_version("17.") == (17, 0)
        assert parse_version("17..1") == (17, 0, 1)
        assert compare_versions("17.", "16.4") == 1

    def test_missing_components_are_zero(self):
        assert compare_versions("17", "17.0") == 0
        assert compare_versions("17.0.1", "17") == 1
        assert compare_versions("16.4", "17.0") == -1

    def test_unparseable_sorts_below_everything(self):
        assert compare_versions("garbage", "1.0") == -1


class TestRanking:
    """Test the default device comparator."""

    def test_booted_beats_shutdown(self):
        shutdown_new = make_device(UDID_A, runtime_version="17.2")
        booted_old = make_device(UDID_B, runtime_version="16.4", state=DeviceState.BOOTED)

        best = pick_best_device([shutdown_new, booted_old])

        assert best.udid == UDID_B

    def test_newer_runtime_wins_among_shutdown(self):
        older = make_device(UDID_A, runtime_version="17.0")
        newer = make_device(UDID_B, runtime_version="17.2")

        assert pick_best_device([older, newer]).udid == UDID_B
        assert pick_best_device([newer, older]).udid == UDID_B

    def test_point_release_beats_major(self):
        major = make_device(UDID_A, runtime_version="17")
        point = make_device(UDID_B, runtime_version="17.0.1")

        assert pick_best_device([major, point]).udid == UDID_B

    def test_name_ascending_breaks_version_tie(self):
        se = make_device(UDID_A, name="iPhone SE (3rd generation)")
        fifteen = make_device(UDID_B, name="iPhone 15")

        assert pick_best_device([se, fifteen]).udid == UDID_B

    def test_full_tie_keeps_catalog_order(self):
        first = make_device(UDID_A)
        second = make_device(UDID_B)

        assert pick_best_device([first, second]).udid == UDID_A
        assert pick_best_device([second, first]).udid == UDID_B

    def test_ranking_is_deterministic(self):
        devices = [
            make_device(UDID_A, name="iPad Air", runtime_version="17.0"),
            make_device(UDID_B, name="iPhone 15", runtime_version="17.2"),
            make_device(UDID_C, name="iPhone 14", runtime_version="17.2", state=DeviceState.BOOTED),
        ]

        ranked = [d.udid for d in rank_devices(devices)]

        assert ranked == [UDID_C, UDID_B, UDID_A]
        assert [d.udid for d in rank_devices(list(reversed(devices)))] == ranked

    def test_compare_devices_is_antisymmetric(self):
        a = make_device(UDID_A, runtime_version="17.0")
        b = make_device(UDID_B, runtime_version="17.2")

        assert compare_devices(a, b) == -compare_devices(b, a)

    def test_custom_comparator(self):
        older = make_device(UDID_A, runtime_version="17.0")
        newer = make_device(UDID_B, runtime_version="17.2")

        def oldest_first(a, b):
            return compare_versions(a.runtime_version, b.runtime_version)

        assert pick_best_device([newer, older], comparator=oldest_first).udid == UDID_A


class TestFiltering:
    """Test name/runtime filters and eligibility."""

    def test_drops_unavailable_and_malformed(self):
        devices = [
            make_device(UDID_A, available=False),
            make_device("not-a-uuid"),
            make_device(None),
            make_device(UDID_B),
        ]

        assert [d.udid for d in filter_devices(devices)] == [UDID_B]

    def test_name_filter_is_case_and_whitespace_insensitive(self):
        devices = [
            make_device(UDID_A, name="iPhone  15 Pro"),
            make_device(UDID_B, name="iPad Air"),
        ]

        assert [d.udid for d in filter_devices(devices, name="iphone 15")] == [UDID_A]

    def test_runtime_filter_matches_name_or_identifier(self):
        devices = [
            make_device(UDID_A, runtime_version="17.2"),
            make_device(UDID_B, runtime_version="16.4"),
        ]

        assert [d.udid for d in filter_devices(devices, runtime="iOS 17")] == [UDID_A]
        assert [d.udid for d in filter_devices(devices, runtime="iOS-16-4")] == [UDID_B]

    def test_no_candidates_returns_none(self):
        assert pick_best_device([]) is None
        assert pick_best_device([make_device(UDID_A)], name="Pixel") is None


class TestDeviceResolver:
    """Test the resolution order."""

    @pytest.mark.asyncio
    async def test_explicit_udid_accepted_without_catalog(self, resolver, mock_simctl_manager):
        result = await resolver.resolve(udid=UDID_A)

        assert result.udid == UDID_A
        assert result.source == "explicit"
        mock_simctl_manager.list_devices.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_explicit_malformed_udid(self, resolver, mock_simctl_manager):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            await resolver.resolve(udid="not-a-udid")

        assert exc_info.value.error_code is ErrorCode.INVALID_IDENTIFIER
        mock_simctl_manager.list_devices.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_preference_short_circuits_catalog(
        self, mock_simctl_manager, saved_preference_store
    ):
        resolver = DeviceResolver(mock_simctl_manager, saved_preference_store)

        result = await resolver.resolve()

        assert result.udid == UDID_IPHONE_SE_172
        assert result.source == "preference"
        mock_simctl_manager.list_devices.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_filters_bypass_preference(self, mock_simctl_manager, saved_preference_store):
        resolver = DeviceResolver(mock_simctl_manager, saved_preference_store)

        result = await resolver.resolve(name="iPad")

        assert result.udid == UDID_IPAD_172
        assert result.source == "filtered"

    @pytest.mark.asyncio
    async def test_malformed_preference_is_ignored(self, mock_simctl_manager, preference_store):
        preference_store.save(PreferenceRecord(device_id="garbage", display_name="x"))
        resolver = DeviceResolver(mock_simctl_manager, preference_store)

        result = await resolver.resolve()

        assert result.source == "default_hints"
        mock_simctl_manager.list_devices.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_runtime_filter(self, resolver):
        result = await resolver.resolve(runtime="17.0")

        assert result.udid == UDID_IPHONE_15_170
        assert result.device.runtime_name == "iOS 17.0"

    @pytest.mark.asyncio
    async def test_no_match_echoes_filters(self, resolver):
        with pytest.raises(NoMatchError) as exc_info:
            await resolver.resolve(name="Pixel", runtime="Android")

        assert exc_info.value.details == {"name": "Pixel", "runtime": "Android"}

    @pytest.mark.asyncio
    async def test_single_booted_device_wins(self, preference_store):
        manager = create_mock_simctl_manager(MockSimctlCatalog.one_booted(UDID_IPHONE_15_170))
        resolver = DeviceResolver(manager, preference_store)

        result = await resolver.resolve()

        assert result.udid == UDID_IPHONE_15_170
        assert result.source == "single_booted"

    @pytest.mark.asyncio
    async def test_single_booted_non_iphone_wins(self, preference_store):
        manager = create_mock_simctl_manager(MockSimctlCatalog.one_booted(UDID_IPAD_172))
        resolver = DeviceResolver(manager, preference_store)

        result = await resolver.resolve()

        assert result.udid == UDID_IPAD_172
        assert result.source == "single_booted"

    @pytest.mark.asyncio
    async def test_default_hints_when_nothing_booted(self, resolver):
        result = await resolver.resolve()

        assert result.udid == UDID_IPHONE_15_172
        assert result.source == "default_hints"

    @pytest.mark.asyncio
    async def test_default_hints_prefer_booted_when_several_booted(self, preference_store):
        manager = create_mock_simctl_manager(MockSimctlCatalog.two_booted())
        resolver = DeviceResolver(manager, preference_store)

        result = await resolver.resolve()

        assert result.udid == UDID_IPHONE_15_170
        assert result.source == "default_hints"

    @pytest.mark.asyncio
    async def test_ranked_fallback_without_iphones(self, preference_store):
        manager = create_mock_simctl_manager(MockSimctlCatalog.watch_only())
        resolver = DeviceResolver(manager, preference_store)

        result = await resolver.resolve()

        assert result.udid == UDID_WATCH
        assert result.source == "ranked"

    @pytest.mark.asyncio
    async def test_empty_catalog_raises_no_match(self, preference_store):
        manager = create_mock_simctl_manager(MockSimctlCatalog.empty())
        resolver = DeviceResolver(manager, preference_store)

        with pytest.raises(NoMatchError) as exc_info:
            await resolver.resolve()

        assert exc_info.value.details["state_file"] == str(preference_store.path)

    @pytest.mark.asyncio
    async def test_repeated_resolution_is_stable(self, resolver):
        first = await resolver.resolve(name="iPhone")
        second = await resolver.resolve(name="iPhone")

        assert first.udid == second.udid == UDID_IPHONE_15_172

    @pytest.mark.asyncio
    async def test_select_persists_preference(self, resolver, preference_store):
        result = await resolver.select(name="SE")

        assert result.source == "selected"
        assert result.udid == UDID_IPHONE_SE_172

        stored = preference_store.load()
        assert stored.device_id == UDID_IPHONE_SE_172
        assert stored.display_name == "iPhone SE (3rd generation)"
        assert stored.runtime_name == "iOS 17.2"
        assert stored.updated_at is not None

    @pytest.mark.asyncio
    async def test_select_without_match_leaves_store_untouched(self, resolver, preference_store):
        with pytest.raises(NoMatchError):
            await resolver.select(name="Pixel")

        assert preference_store.load().is_empty
        assert not preference_store.path.exists()
