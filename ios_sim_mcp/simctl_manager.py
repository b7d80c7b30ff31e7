"""simctl manager for iOS Simulator catalog and lifecycle commands."""

import asyncio
import json
import logging
import sys
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Sequence

from .command_runner import run_command, which
from .config import APP_CONTAINER_TYPES, BOOT_POLL_INTERVAL, DEFAULT_BOOT_TIMEOUT
from .error_handler import CommandError, ErrorCode, SimulatorMCPError
from .timeout import remaining_time

logger = logging.getLogger(__name__)


class DeviceState(Enum):
    """Simulator state as reported by simctl."""

    SHUTDOWN = "Shutdown"
    BOOTING = "Booting"
    BOOTED = "Booted"
    SHUTTING_DOWN = "ShuttingDown"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Any) -> "DeviceState":
        """Map simctl's state text ("Shutting Down", "Booted", ...) to a member."""
        key = "".join(str(value or "").split()).lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        return cls.UNKNOWN


@dataclass(frozen=True)
class DeviceRecord:
    """One simulator joined with its runtime."""

    udid: Optional[str]
    name: str
    runtime_id: str
    runtime_name: str
    runtime_version: str
    runtime_available: bool
    state: DeviceState
    available: bool
    availability_error: Optional[str] = None

    @property
    def is_booted(self) -> bool:
        return self.state is DeviceState.BOOTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "udid": self.udid,
            "name": self.name,
            "runtime": self.runtime_name,
            "runtime_id": self.runtime_id,
            "runtime_version": self.runtime_version,
            "state": self.state.value,
            "available": self.available,
            "availability_error": self.availability_error,
        }


def flatten_devices(catalog: Optional[Dict[str, Any]]) -> List[DeviceRecord]:
    """Join ``simctl list --json`` device entries to their runtimes.

    The catalog keys devices by runtime identifier; runtimes missing from the
    ``runtimes`` list fall back to the identifier as their name.
    """
    catalog = catalog if isinstance(catalog, dict) else {}
    runtimes = catalog.get("runtimes")
    runtime_by_id: Dict[str, Dict[str, Any]] = {}
    for runtime in runtimes if isinstance(runtimes, list) else []:
        if isinstance(runtime, dict) and runtime.get("identifier"):
            runtime_by_id[runtime["identifier"]] = runtime

    devices_by_runtime = catalog.get("devices")
    if not isinstance(devices_by_runtime, dict):
        return []

    records = []
    for runtime_id, entries in devices_by_runtime.items():
        runtime = runtime_by_id.get(runtime_id, {})
        for entry in entries if isinstance(entries, list) else []:
            if not isinstance(entry, dict):
                continue
            records.append(
                DeviceRecord(
                    udid=entry.get("udid"),
                    name=str(entry.get("name") or ""),
                    runtime_id=runtime_id,
                    runtime_name=runtime.get("name") or runtime_id,
                    runtime_version=str(runtime.get("version") or ""),
                    runtime_available=runtime.get("isAvailable") is not False,
                    state=DeviceState.parse(entry.get("state")),
                    available=entry.get("isAvailable") is not False,
                    availability_error=entry.get("availabilityError") or None,
                )
            )
    return records


class SimctlCommands:
    """Argument templates for xcrun simctl."""

    LIST_JSON: ClassVar[List[str]] = ["xcrun", "simctl", "list", "--json"]
    FIND_SIMCTL: ClassVar[List[str]] = ["xcrun", "--find", "simctl"]
    BOOT: ClassVar[List[str]] = ["xcrun", "simctl", "boot", "{udid}"]
    SHUTDOWN: ClassVar[List[str]] = ["xcrun", "simctl", "shutdown", "{udid}"]
    SCREENSHOT: ClassVar[List[str]] = [
        "xcrun", "simctl", "io", "{udid}", "screenshot", "{path}",
    ]
    OPEN_URL: ClassVar[List[str]] = ["xcrun", "simctl", "openurl", "{udid}", "{url}"]
    INSTALL: ClassVar[List[str]] = ["xcrun", "simctl", "install", "{udid}", "{path}"]
    LAUNCH: ClassVar[List[str]] = ["xcrun", "simctl", "launch", "{udid}", "{bundle_id}"]
    TERMINATE: ClassVar[List[str]] = [
        "xcrun", "simctl", "terminate", "{udid}", "{bundle_id}",
    ]
    UNINSTALL: ClassVar[List[str]] = [
        "xcrun", "simctl", "uninstall", "{udid}", "{bundle_id}",
    ]
    APP_CONTAINER: ClassVar[List[str]] = [
        "xcrun", "simctl", "get_app_container", "{udid}", "{bundle_id}", "{container}",
    ]

    @staticmethod
    def build(template: Sequence[str], **values: Any) -> List[str]:
        """Substitute placeholders argument by argument (no shell involved)."""
        return [part.format(**values) if "{" in part else part for part in template]


class SimctlManager:
    """Runs simctl commands and normalises the device catalog."""

    def __init__(self, command_timeout: float = 30) -> None:
        self.command_timeout = command_timeout

    async def _run(
        self, args: List[str], allow_nonzero: bool = False, timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        result = await run_command(
            args, timeout=timeout or self.command_timeout, allow_nonzero=allow_nonzero
        )
        if not result["success"]:
            code = (
                ErrorCode.COMMAND_TIMEOUT if result.get("timed_out") else ErrorCode.COMMAND_FAILED
            )
            raise CommandError(
                result.get("error", "simctl command failed"),
                details={
                    "command": result.get("command"),
                    "stderr": (result.get("stderr") or "").strip() or None,
                },
                error_code=code,
            )
        return result

    async def list_catalog(self) -> Dict[str, Any]:
        """Return the raw ``simctl list --json`` document."""
        result = await self._run(list(SimctlCommands.LIST_JSON))
        stdout = result["stdout"].strip()
        if not stdout:
            return {}
        try:
            catalog = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise CommandError(
                "Expected JSON from: xcrun simctl list --json",
                details={"parse_error": str(e)},
            ) from e
        return catalog if isinstance(catalog, dict) else {}

    async def list_devices(self) -> List[DeviceRecord]:
        """Fetch the catalog and flatten it into device records."""
        return flatten_devices(await self.list_catalog())

    async def find_device(self, udid: str) -> Optional[DeviceRecord]:
        for device in await self.list_devices():
            if device.udid == udid:
                return device
        return None

    async def boot(self, udid: str) -> Dict[str, Any]:
        """Boot a simulator. Booting an already-booted device exits non-zero."""
        result = await self._run(
            SimctlCommands.build(SimctlCommands.BOOT, udid=udid), allow_nonzero=True
        )
        return {
            "ok": result["returncode"] == 0,
            "returncode": result["returncode"],
            "stderr": result["stderr"].strip() or None,
        }

    async def wait_for_booted(
        self, udid: str, timeout: float = DEFAULT_BOOT_TIMEOUT
    ) -> Dict[str, Any]:
        """Poll the catalog until the device reports Booted or time runs out.

        The wait never outlives the calling tool's deadline.
        """
        budget = min(max(1.0, float(timeout)), remaining_time(default=timeout))
        deadline = time.monotonic() + budget
        while True:
            device = await self.find_device(udid)
            if device is not None and device.is_booted:
                return {"ok": True, "state": device.state.value}
            if time.monotonic() + BOOT_POLL_INTERVAL > deadline:
                break
            await asyncio.sleep(BOOT_POLL_INTERVAL)
        logger.warning(f"Timed out after {budget:.1f}s waiting for {udid} to boot")
        return {"ok": False, "error": "timeout waiting for Booted"}

    async def shutdown(self, udid: str) -> Dict[str, Any]:
        result = await self._run(
            SimctlCommands.build(SimctlCommands.SHUTDOWN, udid=udid), allow_nonzero=True
        )
        return {"ok": result["returncode"] == 0, "returncode": result["returncode"]}

    async def screenshot(self, udid: str, out_path: str) -> str:
        path = Path(out_path).expanduser().resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        await self._run(
            SimctlCommands.build(SimctlCommands.SCREENSHOT, udid=udid, path=str(path))
        )
        return str(path)

    async def open_url(self, udid: str, url: str) -> None:
        await self._run(SimctlCommands.build(SimctlCommands.OPEN_URL, udid=udid, url=url))

    async def install_app(self, udid: str, app_path: str) -> str:
        path = Path(app_path).expanduser().resolve()
        if not path.exists():
            raise SimulatorMCPError(
                "App path does not exist",
                details={"app": str(path)},
                error_code=ErrorCode.INVALID_PARAMETER,
            )
        await self._run(
            SimctlCommands.build(SimctlCommands.INSTALL, udid=udid, path=str(path)),
            timeout=max(self.command_timeout, 120),
        )
        return str(path)

    async def launch_app(
        self, udid: str, bundle_id: str, args: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        command = SimctlCommands.build(
            SimctlCommands.LAUNCH, udid=udid, bundle_id=bundle_id
        ) + [str(arg) for arg in args or []]
        result = await self._run(command, allow_nonzero=True)
        stdout = result["stdout"].strip()
        # simctl prints "<bundle_id>: <pid>"
        pid = stdout.rsplit(":", 1)[-1].strip() if stdout else None
        return {
            "ok": result["returncode"] == 0,
            "pid": pid or None,
            "stderr": result["stderr"].strip() or None,
        }

    async def terminate_app(self, udid: str, bundle_id: str) -> Dict[str, Any]:
        result = await self._run(
            SimctlCommands.build(SimctlCommands.TERMINATE, udid=udid, bundle_id=bundle_id),
            allow_nonzero=True,
        )
        return {"ok": result["returncode"] == 0, "returncode": result["returncode"]}

    async def uninstall_app(self, udid: str, bundle_id: str) -> Dict[str, Any]:
        """Uninstall an app. Removing an app that is not installed exits non-zero."""
        result = await self._run(
            SimctlCommands.build(SimctlCommands.UNINSTALL, udid=udid, bundle_id=bundle_id),
            allow_nonzero=True,
        )
        return {
            "ok": result["returncode"] == 0,
            "returncode": result["returncode"],
            "stderr": result["stderr"].strip() or None,
        }

    async def get_app_container(
        self, udid: str, bundle_id: str, container: str = "data"
    ) -> str:
        """Return the filesystem path of an installed app's `data` or `app` container."""
        if container not in APP_CONTAINER_TYPES:
            raise SimulatorMCPError(
                "Invalid container type (expected data|app)",
                details={"container": container},
                error_code=ErrorCode.INVALID_PARAMETER,
            )
        result = await self._run(
            SimctlCommands.build(
                SimctlCommands.APP_CONTAINER,
                udid=udid,
                bundle_id=bundle_id,
                container=container,
            )
        )
        return result["stdout"].strip()

    async def check_environment(self) -> Dict[str, Any]:
        """Check macOS, xcrun, simctl and (optionally) idb."""
        checks: List[Dict[str, Any]] = []

        xcrun_path = which("xcrun")
        checks.append({"name": "xcrun", "ok": bool(xcrun_path), "path": xcrun_path})

        if sys.platform != "darwin":
            return {
                "ok": False,
                "checks": checks,
                "summary": [
                    "Not running on macOS.",
                    "Run this server on a macOS host with Xcode tools installed.",
                ],
            }
        if not xcrun_path:
            return {
                "ok": False,
                "checks": checks,
                "summary": [
                    "xcrun not found in PATH.",
                    "Install Xcode Command Line Tools or full Xcode.",
                ],
            }

        found = await run_command(list(SimctlCommands.FIND_SIMCTL), timeout=10)
        if found["success"]:
            checks.append({"name": "simctl", "ok": True, "path": found["stdout"].strip()})
        else:
            checks.append(
                {"name": "simctl", "ok": False, "error": found.get("stderr") or found.get("error")}
            )

        try:
            devices = await self.list_devices()
            booted = [d for d in devices if d.is_booted and d.available]
            checks.append(
                {
                    "name": "simctl list",
                    "ok": True,
                    "device_count": len(devices),
                    "booted_count": len(booted),
                }
            )
        except SimulatorMCPError as e:
            checks.append({"name": "simctl list", "ok": False, "error": e.message})

        idb_path = which("idb")
        checks.append({"name": "idb", "ok": bool(idb_path), "path": idb_path, "optional": True})

        ok = all(check["ok"] or check.get("optional") for check in checks)
        summary = ["Environment OK (idb optional)." if ok else "Environment check failed."]
        for check in checks:
            mark = "ok" if check["ok"] else ("optional" if check.get("optional") else "missing")
            path = f" ({check['path']})" if check.get("path") else ""
            summary.append(f"[{mark}] {check['name']}{path}")
        if not idb_path:
            summary.append(
                "Install idb for UI automation: brew install idb-companion; pip install fb-idb"
            )

        return {"ok": ok, "checks": checks, "summary": summary}
