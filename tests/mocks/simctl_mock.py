"""Canned simctl catalogs and idb snapshots for testing without Xcode."""

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, Mock

from ios_sim_mcp.accessibility import IdbClient, parse_snapshot
from ios_sim_mcp.error_handler import AutomationUnavailableError
from ios_sim_mcp.simctl_manager import (
    DeviceRecord,
    DeviceState,
    SimctlManager,
    flatten_devices,
)

IOS_17_0 = "com.apple.CoreSimulator.SimRuntime.iOS-17-0"
IOS_17_2 = "com.apple.CoreSimulator.SimRuntime.iOS-17-2"
IOS_17_0_1 = "com.apple.CoreSimulator.SimRuntime.iOS-17-0-1"
WATCH_10_2 = "com.apple.CoreSimulator.SimRuntime.watchOS-10-2"

UDID_IPHONE_15_172 = "11111111-1111-1111-1111-111111111111"
UDID_IPHONE_15_170 = "22222222-2222-2222-2222-222222222222"
UDID_IPAD_172 = "33333333-3333-3333-3333-333333333333"
UDID_IPHONE_SE_172 = "44444444-4444-4444-4444-444444444444"
UDID_WATCH = "55555555-5555-5555-5555-555555555555"
UDID_UNAVAILABLE = "66666666-6666-6666-6666-666666666666"


class MockSimctlCatalog:
    """Builders for ``xcrun simctl list --json`` documents."""

    RUNTIMES = [
        {"identifier": IOS_17_0, "name": "iOS 17.0", "version": "17.0", "isAvailable": True},
        {"identifier": IOS_17_2, "name": "iOS 17.2", "version": "17.2", "isAvailable": True},
        {
            "identifier": IOS_17_0_1,
            "name": "iOS 17.0.1",
            "version": "17.0.1",
            "isAvailable": True,
        },
        {
            "identifier": WATCH_10_2,
            "name": "watchOS 10.2",
            "version": "10.2",
            "isAvailable": True,
        },
    ]

    @staticmethod
    def device(
        udid: str, name: str, state: str = "Shutdown", available: bool = True
    ) -> Dict[str, Any]:
        entry = {"udid": udid, "name": name, "state": state, "isAvailable": available}
        if not available:
            entry["availabilityError"] = "runtime profile not found"
        return entry

    @classmethod
    def catalog(cls, devices: Dict[str, List[Dict[str, Any]]]) -> Dict[str, Any]:
        return {"runtimes": list(cls.RUNTIMES), "devices": devices}

    @classmethod
    def all_shutdown(cls) -> Dict[str, Any]:
        return cls.catalog(
            {
                IOS_17_0: [cls.device(UDID_IPHONE_15_170, "iPhone 15")],
                IOS_17_2: [
                    cls.device(UDID_IPHONE_15_172, "iPhone 15"),
                    cls.device(UDID_IPAD_172, "iPad Pro (11-inch)"),
                    cls.device(UDID_IPHONE_SE_172, "iPhone SE (3rd generation)"),
                    cls.device(UDID_UNAVAILABLE, "iPhone 15 Plus", available=False),
                ],
                WATCH_10_2: [cls.device(UDID_WATCH, "Apple Watch Series 9 (45mm)")],
            }
        )

    @classmethod
    def one_booted(cls, udid: str = UDID_IPHONE_15_170) -> Dict[str, Any]:
        catalog = cls.all_shutdown()
        for entries in catalog["devices"].values():
            for entry in entries:
                if entry["udid"] == udid:
                    entry["state"] = "Booted"
        return catalog

    @classmethod
    def two_booted(cls) -> Dict[str, Any]:
        catalog = cls.one_booted(UDID_IPHONE_15_170)
        for entry in catalog["devices"][IOS_17_2]:
            if entry["udid"] == UDID_IPAD_172:
                entry["state"] = "Booted"
        return catalog

    @classmethod
    def watch_only(cls) -> Dict[str, Any]:
        return cls.catalog(
            {WATCH_10_2: [cls.device(UDID_WATCH, "Apple Watch Series 9 (45mm)")]}
        )

    @classmethod
    def empty(cls) -> Dict[str, Any]:
        return cls.catalog({})


def make_device(
    udid: Optional[str],
    name: str = "iPhone 15",
    runtime_version: str = "17.2",
    state: DeviceState = DeviceState.SHUTDOWN,
    available: bool = True,
    runtime_name: Optional[str] = None,
) -> DeviceRecord:
    """Build a DeviceRecord directly for ranking tests."""
    return DeviceRecord(
        udid=udid,
        name=name,
        runtime_id=f"com.apple.CoreSimulator.SimRuntime.iOS-{runtime_version.replace('.', '-')}",
        runtime_name=runtime_name or f"iOS {runtime_version}",
        runtime_version=runtime_version,
        runtime_available=True,
        state=state,
        available=available,
    )


class MockUISnapshots:
    """Raw ``idb ui describe-all --json`` node lists."""

    @staticmethod
    def node(
        label: Optional[str] = None,
        kind: str = "Button",
        frame: Any = None,
        enabled: bool = True,
        **extra: Any,
    ) -> Dict[str, Any]:
        node: Dict[str, Any] = {"type": kind, "enabled": enabled}
        if label is not None:
            node["AXLabel"] = label
        if frame is not None:
            node["frame"] = frame
        node.update(extra)
        return node

    @classmethod
    def login_screen(cls) -> List[Dict[str, Any]]:
        return [
            cls.node("Welcome back", kind="StaticText", frame={"x": 20, "y": 80, "width": 350, "height": 30}),
            cls.node(
                "Email",
                kind="TextField",
                frame={"x": 20, "y": 200, "width": 350, "height": 44},
            ),
            cls.node(
                "Password",
                kind="SecureTextField",
                frame={"x": 20, "y": 260, "width": 350, "height": 44},
            ),
            cls.node("Log in", frame={"x": 20, "y": 600, "width": 200, "height": 50}),
            cls.node(
                "Forgot password?",
                kind="Link",
                frame={"x": 20, "y": 680, "width": 200, "height": 30},
            ),
            cls.node("Sign up", enabled=False, frame={"x": 20, "y": 740, "width": 200, "height": 44}),
        ]

    @classmethod
    def frameless_best(cls) -> List[Dict[str, Any]]:
        """Exact match lacks a frame; a weaker framed match follows."""
        return [
            cls.node("Continue"),
            cls.node(
                "Continue as guest",
                frame={"x": 0, "y": 400, "width": 300, "height": 40},
            ),
        ]

    @classmethod
    def settings_list(cls) -> List[Dict[str, Any]]:
        return [
            cls.node("General", kind="Cell", frame={"x": 0, "y": 100, "width": 390, "height": 44}),
            cls.node("Privacy", kind="Cell", frame={"x": 0, "y": 144, "width": 390, "height": 44}),
            cls.node(
                None,
                kind="Switch",
                frame={"x": 300, "y": 200, "width": 50, "height": 30},
                role_description="switch",
                title="Airplane Mode",
            ),
            cls.node("Settings", kind="Heading", frame={"x": 0, "y": 40, "width": 390, "height": 40}),
        ]


def create_mock_simctl_manager(catalog: Optional[Dict[str, Any]] = None) -> AsyncMock:
    """AsyncMock SimctlManager whose list_devices flattens `catalog`."""
    manager = AsyncMock(spec=SimctlManager)
    devices = flatten_devices(catalog if catalog is not None else MockSimctlCatalog.all_shutdown())
    manager.list_devices.return_value = devices
    manager.boot.return_value = {"ok": True, "returncode": 0, "stderr": None}
    manager.wait_for_booted.return_value = {"ok": True, "state": "Booted"}
    manager.shutdown.return_value = {"ok": True, "returncode": 0}
    manager.open_url.return_value = None
    manager.terminate_app.return_value = {"ok": True, "returncode": 0}
    manager.launch_app.return_value = {"ok": True, "pid": "4321", "stderr": None}
    manager.uninstall_app.return_value = {"ok": True, "returncode": 0, "stderr": None}
    manager.get_app_container.return_value = (
        "/Users/dev/Library/Developer/CoreSimulator/Devices/data/Containers/Data/Application/ABC"
    )
    return manager


def create_mock_idb_client(
    snapshot: Optional[List[Dict[str, Any]]] = None, available: bool = True
) -> Mock:
    """IdbClient double with real availability semantics."""
    client = Mock(spec=IdbClient)
    client.is_available.return_value = available
    if available:
        client.ensure_available.return_value = None
    else:
        client.ensure_available.side_effect = AutomationUnavailableError(
            "idb not found", details={"missing": "idb"}
        )
    nodes = snapshot if snapshot is not None else MockUISnapshots.login_screen()
    client.describe_all = AsyncMock(return_value=nodes)
    client.snapshot = AsyncMock(return_value=parse_snapshot(nodes))
    client.tap = AsyncMock(return_value={"ok": True})
    client.type_text = AsyncMock(return_value={"ok": True})
    client.press_button = AsyncMock(return_value={"ok": True})
    return client
