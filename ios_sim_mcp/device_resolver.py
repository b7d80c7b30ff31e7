"""Resolve which simulator a command targets.

Resolution order:
1. Explicit udid, accepted on format alone (no existence check).
2. Without filters, the persisted preference when it holds a well-formed udid.
3. With name/runtime filters, the best-ranked catalog device that matches.
4. Otherwise: the single booted device, then the best device matching the
   default hints, then the best device overall.

Ranking is a plain comparator so callers can substitute their own tie-breaks.
The default puts booted devices first, then newer runtimes, then names in
ascending order. Python's sort is stable, so equal devices keep catalog
order and every non-empty candidate set has exactly one winner.
"""

import functools
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from .config import DEFAULT_DEVICE_NAME_HINT, DEFAULT_RUNTIME_HINT
from .error_handler import InvalidIdentifierError, NoMatchError
from .preference_store import PreferenceRecord, PreferenceStore
from .simctl_manager import DeviceRecord, SimctlManager
from .validation import DeviceIdValidator

logger = logging.getLogger(__name__)

DeviceComparator = Callable[[DeviceRecord, DeviceRecord], int]


def normalise(text: Optional[str]) -> str:
    """Case-fold and collapse whitespace."""
    return " ".join(str(text or "").split()).casefold()


def parse_version(version: Optional[str]) -> Tuple[int, ...]:
    """Parse a dotted version; blank parts are 0, other non-numeric parts give ``(-1,)``."""
    text = str(version or "").strip()
    if not text:
        return (0,)
    parts = []
    for part in text.split("."):
        if not part.strip():
            parts.append(0)
            continue
        try:
            parts.append(int(part))
        except ValueError:
            return (-1,)
    return tuple(parts)


def compare_versions(a: Optional[str], b: Optional[str]) -> int:
    """Compare dotted versions, padding the shorter one with zeros."""
    pa, pb = parse_version(a), parse_version(b)
    width = max(len(pa), len(pb))
    pa = pa + (0,) * (width - len(pa))
    pb = pb + (0,) * (width - len(pb))
    return (pa > pb) - (pa < pb)


def compare_devices(a: DeviceRecord, b: DeviceRecord) -> int:
    """Default ranking: booted, then newer runtime, then name."""
    if a.is_booted != b.is_booted:
        return -1 if a.is_booted else 1

    version_cmp = compare_versions(a.runtime_version, b.runtime_version)
    if version_cmp:
        return -version_cmp

    return (a.name > b.name) - (a.name < b.name)


def filter_devices(
    devices: Iterable[DeviceRecord],
    name: Optional[str] = None,
    runtime: Optional[str] = None,
) -> List[DeviceRecord]:
    """Keep well-formed, available devices matching the optional filters."""
    candidates = [
        d for d in devices if DeviceIdValidator.looks_like_udid(d.udid) and d.available
    ]

    if name:
        query = normalise(name)
        candidates = [d for d in candidates if query in normalise(d.name)]

    if runtime:
        query = normalise(runtime)
        candidates = [
            d
            for d in candidates
            if query in normalise(d.runtime_name) or query in normalise(d.runtime_id)
        ]

    return candidates


def rank_devices(
    devices: Iterable[DeviceRecord], comparator: DeviceComparator = compare_devices
) -> List[DeviceRecord]:
    return sorted(devices, key=functools.cmp_to_key(comparator))


def pick_best_device(
    devices: Iterable[DeviceRecord],
    name: Optional[str] = None,
    runtime: Optional[str] = None,
    comparator: DeviceComparator = compare_devices,
) -> Optional[DeviceRecord]:
    """Return the top-ranked device after filtering, or None."""
    ranked = rank_devices(filter_devices(devices, name, runtime), comparator)
    return ranked[0] if ranked else None


@dataclass(frozen=True)
class DeviceResolution:
    """Outcome of a successful resolution."""

    udid: str
    source: str
    device: Optional[DeviceRecord] = None

    def to_dict(self):
        data = {"udid": self.udid, "source": self.source}
        if self.device is not None:
            data["device"] = self.device.to_dict()
        return data


class DeviceResolver:
    """Turns optional udid/name/runtime hints into one concrete UDID."""

    def __init__(
        self,
        simctl_manager: SimctlManager,
        preference_store: PreferenceStore,
        comparator: DeviceComparator = compare_devices,
        name_hint: str = DEFAULT_DEVICE_NAME_HINT,
        runtime_hint: str = DEFAULT_RUNTIME_HINT,
    ) -> None:
        self.simctl_manager = simctl_manager
        self.preference_store = preference_store
        self.comparator = comparator
        self.name_hint = name_hint
        self.runtime_hint = runtime_hint

    async def resolve(
        self,
        udid: Optional[str] = None,
        name: Optional[str] = None,
        runtime: Optional[str] = None,
    ) -> DeviceResolution:
        """Resolve to exactly one UDID or raise InvalidIdentifierError/NoMatchError."""
        if udid:
            if not DeviceIdValidator.looks_like_udid(udid):
                raise InvalidIdentifierError(
                    "Invalid udid (expected UUID)", details={"udid": udid}
                )
            return DeviceResolution(udid=udid, source="explicit")

        if not name and not runtime:
            preference = self.preference_store.load()
            if DeviceIdValidator.looks_like_udid(preference.device_id):
                logger.debug(f"Using preferred simulator {preference.device_id}")
                return DeviceResolution(udid=preference.device_id, source="preference")

        devices = await self.simctl_manager.list_devices()

        if name or runtime:
            best = pick_best_device(devices, name, runtime, self.comparator)
            if best is None:
                raise NoMatchError(
                    "No simulator matched selection.",
                    details={"name": name, "runtime": runtime},
                )
            return DeviceResolution(udid=best.udid, source="filtered", device=best)

        return self._fallback(devices)

    def _fallback(self, devices: List[DeviceRecord]) -> DeviceResolution:
        booted = [d for d in devices if d.is_booted and d.available]
        if len(booted) == 1 and DeviceIdValidator.looks_like_udid(booted[0].udid):
            return DeviceResolution(
                udid=booted[0].udid, source="single_booted", device=booted[0]
            )

        best = pick_best_device(devices, self.name_hint, self.runtime_hint, self.comparator)
        if best is not None:
            return DeviceResolution(udid=best.udid, source="default_hints", device=best)

        best = pick_best_device(devices, comparator=self.comparator)
        if best is not None:
            return DeviceResolution(udid=best.udid, source="ranked", device=best)

        raise NoMatchError(
            "Could not resolve a simulator UDID. Use select_device or pass udid.",
            details={"state_file": str(self.preference_store.path)},
        )

    async def select(
        self, name: Optional[str] = None, runtime: Optional[str] = None
    ) -> DeviceResolution:
        """Pick the best match for the filters and persist it as the preference."""
        devices = await self.simctl_manager.list_devices()
        picked = pick_best_device(devices, name, runtime, self.comparator)
        if picked is None:
            raise NoMatchError(
                "No simulator matched selection.",
                details={"name": name, "runtime": runtime},
            )

        self.preference_store.save(
            PreferenceRecord.for_device(picked.udid, picked.name, picked.runtime_name)
        )
        logger.info(f"Selected simulator {picked.name} ({picked.runtime_name}) {picked.udid}")
        return DeviceResolution(udid=picked.udid, source="selected", device=picked)
