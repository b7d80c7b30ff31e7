"""Tests for the envelope-returning core functions."""

from unittest.mock import patch

import pytest

from ios_sim_mcp.api import (
    find_all_ui_matches,
    find_best_ui_match,
    load_preference,
    resolve_device,
    save_preference,
)
from ios_sim_mcp.preference_store import PreferenceRecord
from tests.mocks.simctl_mock import UDID_IPHONE_15_172, MockUISnapshots

UDID = "5A1B2C3D-4E5F-6789-ABCD-0123456789EF"


class TestResolveDevice:
    @pytest.mark.asyncio
    async def test_success_envelope(self, resolver):
        response = await resolve_device(resolver)

        assert response["success"] is True
        assert response["udid"] == UDID_IPHONE_15_172
        assert response["source"] == "default_hints"
        assert response["device"]["name"] == "iPhone 15"
        assert response["summary"][0] == "Device: iPhone 15 (iOS 17.2)"

    @pytest.mark.asyncio
    async def test_explicit_has_no_device(self, resolver):
        response = await resolve_device(resolver, udid=UDID)

        assert response["source"] == "explicit"
        assert "device" not in response

    @pytest.mark.asyncio
    async def test_invalid_identifier_envelope(self, resolver):
        response = await resolve_device(resolver, udid="nope")

        assert response["success"] is False
        assert response["error_code"] == "INVALID_IDENTIFIER"

    @pytest.mark.asyncio
    async def test_no_match_envelope(self, resolver):
        response = await resolve_device(resolver, name="Pixel")

        assert response["error_code"] == "NO_MATCH"
        assert response["details"]["name"] == "Pixel"


class TestUIMatchEnvelopes:
    def test_best_match_from_raw_nodes(self):
        response = find_best_ui_match("Log in", MockUISnapshots.login_screen())

        assert response["success"] is True
        assert response["match"]["centre"] == {"x": 120.0, "y": 625.0}

    def test_best_match_failure(self):
        response = find_best_ui_match("xyz-no-such-label", MockUISnapshots.login_screen())

        assert response["success"] is False
        assert response["error_code"] == "NO_CONFIDENT_MATCH"
        assert response["details"] == {"query": "xyz-no-such-label", "best_score": 0}

    def test_find_all_limit_and_total(self):
        response = find_all_ui_matches("password", MockUISnapshots.login_screen(), limit=0)

        assert response["total_matches"] == 2
        assert len(response["matches"]) == 1
        assert response["summary"][0] == "Matches: 2"

    def test_find_all_oversized_limit_clamps_to_ceiling(self):
        response = find_all_ui_matches("password", MockUISnapshots.login_screen(), limit=10**400)

        assert response["success"] is True
        assert response["total_matches"] == 2
        assert len(response["matches"]) == 2

    def test_find_all_empty_snapshot(self):
        response = find_all_ui_matches("anything", None)

        assert response["success"] is True
        assert response["matches"] == []


class TestPreferenceEnvelopes:
    def test_load_empty(self, preference_store):
        response = load_preference(preference_store)

        assert response["success"] is True
        assert response["empty"] is True
        assert response["preference"]["udid"] is None

    def test_save_then_load(self, preference_store):
        record = PreferenceRecord.for_device(UDID, "iPhone 15", "iOS 17.2")

        saved = save_preference(preference_store, record)
        loaded = load_preference(preference_store)

        assert saved["success"] is True
        assert loaded["preference"] == record.to_document()

    def test_save_failure_is_reported(self, preference_store):
        with patch.object(preference_store, "save", side_effect=PermissionError("read-only")):
            response = save_preference(preference_store, PreferenceRecord(device_id=UDID))

        assert response["success"] is False
        assert "read-only" in response["error"]
