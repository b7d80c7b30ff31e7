"""Envelope-returning entry points for device resolution and UI matching.

These never raise for expected conditions (bad udid, no match, low-confidence
match, unreadable preference file); they answer with ``success: False`` and an
``error_code`` instead.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .accessibility import AccessibilityElement
from .config import DEFAULT_FIND_LIMIT
from .device_resolver import DeviceResolver
from .error_handler import (
    SimulatorMCPError,
    create_success_response,
    format_error_response,
)
from .preference_store import PreferenceRecord, PreferenceStore
from .ui_matcher import ElementMatcher
from .validation import LimitValidator

logger = logging.getLogger(__name__)

Snapshot = Iterable[Union[AccessibilityElement, Mapping[str, Any]]]

_default_matcher = ElementMatcher()


def _elements(snapshot: Snapshot) -> List[AccessibilityElement]:
    """Accept parsed elements or raw describe-all nodes."""
    elements = []
    for item in snapshot or []:
        if isinstance(item, AccessibilityElement):
            elements.append(item)
        elif isinstance(item, Mapping):
            elements.append(AccessibilityElement.from_raw(item))
    return elements


async def resolve_device(
    resolver: DeviceResolver,
    udid: Optional[str] = None,
    name: Optional[str] = None,
    runtime: Optional[str] = None,
) -> Dict[str, Any]:
    try:
        resolution = await resolver.resolve(udid=udid, name=name, runtime=runtime)
    except SimulatorMCPError as e:
        return format_error_response(e)

    summary = [f"UDID: {resolution.udid}", f"Source: {resolution.source}"]
    if resolution.device is not None:
        summary.insert(
            0, f"Device: {resolution.device.name} ({resolution.device.runtime_name})"
        )
    return create_success_response(resolution.to_dict(), summary)


def find_best_ui_match(
    query: str, snapshot: Snapshot, matcher: Optional[ElementMatcher] = None
) -> Dict[str, Any]:
    matcher = matcher or _default_matcher
    try:
        best = matcher.find_best(query, _elements(snapshot))
    except SimulatorMCPError as e:
        return format_error_response(e)
    return create_success_response(
        {"query": query, "match": best.to_dict()},
        [f"Best: {best.score} {best.kind}: {best.label}"],
    )


def find_all_ui_matches(
    query: str,
    snapshot: Snapshot,
    limit: Any = DEFAULT_FIND_LIMIT,
    matcher: Optional[ElementMatcher] = None,
) -> Dict[str, Any]:
    matcher = matcher or _default_matcher
    ranked = matcher.rank(query, _elements(snapshot))
    trimmed = ranked[: LimitValidator.clamp_limit(limit, DEFAULT_FIND_LIMIT)]

    summary = [f"Matches: {len(ranked)}"]
    summary.extend(f"{m.score} {m.kind}: {m.label}" for m in trimmed[:10])
    return create_success_response(
        {
            "query": query,
            "matches": [m.to_dict() for m in trimmed],
            "total_matches": len(ranked),
        },
        summary,
    )


def load_preference(store: PreferenceStore) -> Dict[str, Any]:
    record = store.load()
    return create_success_response(
        {
            "preference": record.to_document(),
            "empty": record.is_empty,
            "state_file": str(store.path),
        }
    )


def save_preference(store: PreferenceStore, record: PreferenceRecord) -> Dict[str, Any]:
    try:
        store.save(record)
    except OSError as e:
        logger.error(f"Failed to save preference to {store.path}: {e}")
        return {
            "success": False,
            "error": f"Failed to save preference: {e}",
            "error_code": "COMMAND_FAILED",
            "state_file": str(store.path),
        }
    return create_success_response(
        {"preference": record.to_document(), "state_file": str(store.path)},
        [f"Saved: {record.device_id}"],
    )
