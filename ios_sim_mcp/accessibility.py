"""Accessibility snapshots and input synthesis through idb."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .command_runner import run_command, which
from .error_handler import AutomationUnavailableError, CommandError
from .validation import to_number

logger = logging.getLogger(__name__)

IDB_INSTALL_HINT = (
    "idb not found. Install for UI automation: `brew install idb-companion` "
    "+ `python3 -m pip install fb-idb`"
)


@dataclass(frozen=True)
class Frame:
    """Element bounds in screen points."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["Frame"]:
        """Build a frame only when all four components are finite numbers."""
        if not isinstance(raw, Mapping):
            return None
        values = [to_number(raw.get(key)) for key in ("x", "y", "width", "height")]
        if any(value is None for value in values):
            return None
        return cls(*values)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


@dataclass(frozen=True)
class AccessibilityElement:
    """One node of an ``idb ui describe-all`` snapshot."""

    kind: Optional[str] = None
    role_description: Optional[str] = None
    accessibility_label: Optional[str] = None
    title: Optional[str] = None
    value: Optional[str] = None
    enabled: bool = True
    frame: Optional[Frame] = None
    raw_frame: Any = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_raw(cls, node: Mapping[str, Any]) -> "AccessibilityElement":
        return cls(
            kind=_text(node.get("type")),
            role_description=_text(node.get("role_description")) or _text(node.get("role")),
            accessibility_label=_text(node.get("AXLabel")),
            title=_text(node.get("title")),
            value=_text(node.get("AXValue")),
            enabled=node.get("enabled") is not False,
            frame=Frame.from_raw(node.get("frame")),
            raw_frame=node.get("frame"),
            raw=node,
        )


def parse_snapshot(nodes: Any) -> List[AccessibilityElement]:
    """Convert raw describe-all output into elements, keeping snapshot order."""
    if not isinstance(nodes, list):
        return []
    return [AccessibilityElement.from_raw(node) for node in nodes if isinstance(node, Mapping)]


class IdbClient:
    """Thin wrapper around the idb CLI."""

    def __init__(self, command_timeout: float = 20, binary: str = "idb") -> None:
        self.command_timeout = command_timeout
        self.binary = binary

    def is_available(self) -> bool:
        return which(self.binary) is not None

    def ensure_available(self) -> None:
        """Raise AutomationUnavailableError when idb is not installed."""
        if not self.is_available():
            raise AutomationUnavailableError(IDB_INSTALL_HINT, details={"missing": self.binary})

    async def _run(self, args: List[str]) -> Dict[str, Any]:
        self.ensure_available()
        result = await run_command(
            [self.binary, *args], timeout=self.command_timeout, allow_nonzero=True
        )
        if not result["success"]:
            raise CommandError(
                result.get("error", "idb command failed"),
                details={"command": result.get("command")},
            )
        return result

    async def describe_all(self, udid: str) -> List[Dict[str, Any]]:
        """Return the raw accessibility nodes for the device's current screen."""
        result = await self._run(["ui", "describe-all", "--udid", udid, "--json"])
        stdout = result["stdout"].strip()
        if not stdout:
            return []
        try:
            nodes = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise CommandError(
                "Expected JSON from: idb ui describe-all",
                details={"parse_error": str(e), "stderr": result["stderr"].strip() or None},
            ) from e
        if not isinstance(nodes, list):
            logger.warning("idb describe-all returned a non-list document; treating as empty")
            return []
        return nodes

    async def snapshot(self, udid: str) -> List[AccessibilityElement]:
        return parse_snapshot(await self.describe_all(udid))

    async def tap(self, udid: str, x: float, y: float) -> Dict[str, Any]:
        result = await self._run(["ui", "tap", _coord(x), _coord(y), "--udid", udid, "--json"])
        return {"ok": result["returncode"] == 0}

    async def type_text(self, udid: str, text: str) -> Dict[str, Any]:
        result = await self._run(["text", str(text), "--udid", udid, "--json"])
        return {"ok": result["returncode"] == 0}

    async def press_button(self, udid: str, button: str) -> Dict[str, Any]:
        result = await self._run(["ui", "button", button, "--udid", udid, "--json"])
        return {"ok": result["returncode"] == 0}


def _coord(value: float) -> str:
    """Format a coordinate without a trailing ``.0`` for whole numbers."""
    number = float(value)
    return str(int(number)) if number.is_integer() else str(number)
