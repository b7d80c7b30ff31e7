"""Pydantic models for MCP tool parameters."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .config import DEFAULT_BOOT_TIMEOUT, DEFAULT_FIND_LIMIT, DEFAULT_SUMMARY_LIMIT

_UDID_DESCRIPTION = (
    "Simulator UDID. Omit to use the selected simulator, the single booted one, "
    "or the best available iPhone"
)


class DeviceSelectionParams(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"name": "iPhone 15", "runtime": "iOS 17"},
                {"name": "iPad", "boot": True},
                {"name": "iPhone SE", "boot": True, "wait": False},
                {},
            ]
        }
    )
    name: Optional[str] = Field(
        default=None, description="Case-insensitive substring of the device name"
    )
    runtime: Optional[str] = Field(
        default=None,
        description="Case-insensitive substring of the runtime name or identifier",
    )
    boot: bool = Field(default=False, description="Boot the selected simulator")
    wait: bool = Field(
        default=True, description="When booting, wait until it reports Booted"
    )


class DeviceTargetParams(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"udid": "5A1B2C3D-4E5F-6789-ABCD-0123456789EF"},
                {"udid": None},
            ]
        }
    )
    udid: Optional[str] = Field(default=None, description=_UDID_DESCRIPTION)


class BootParams(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {},
                {"wait": False},
                {"udid": "5A1B2C3D-4E5F-6789-ABCD-0123456789EF", "timeout": 60},
            ]
        }
    )
    udid: Optional[str] = Field(default=None, description=_UDID_DESCRIPTION)
    wait: bool = Field(default=True, description="Wait until the device is Booted")
    timeout: float = Field(
        default=DEFAULT_BOOT_TIMEOUT,
        ge=1,
        description="Seconds to wait for Booted when wait is set",
    )


class UISummaryParams(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={"examples": [{"limit": 12}, {"limit": 40}]}
    )
    limit: int = Field(
        default=DEFAULT_SUMMARY_LIMIT,
        description="Interactive elements to list (clamped to 1..200)",
    )
    udid: Optional[str] = Field(default=None, description=_UDID_DESCRIPTION)


class UIFindParams(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"query": "Log in"},
                {"query": "password", "limit": 5},
            ]
        }
    )
    query: str = Field(description="Label text to look for")
    limit: int = Field(
        default=DEFAULT_FIND_LIMIT,
        description="Maximum matches to return (clamped to 1..200)",
    )
    udid: Optional[str] = Field(default=None, description=_UDID_DESCRIPTION)


class UITapParams(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"query": "Continue"},
                {"x": 200, "y": 640},
            ]
        }
    )
    query: Optional[str] = Field(
        default=None, description="Label of the element to tap"
    )
    x: Optional[float] = Field(default=None, description="X coordinate in points")
    y: Optional[float] = Field(default=None, description="Y coordinate in points")
    udid: Optional[str] = Field(default=None, description=_UDID_DESCRIPTION)


class UITypeParams(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={"examples": [{"text": "hello@example.com"}]}
    )
    text: str = Field(description="Text to type into the focused field")
    udid: Optional[str] = Field(default=None, description=_UDID_DESCRIPTION)


class UIButtonParams(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={"examples": [{"name": "HOME"}, {"name": "LOCK"}]}
    )
    name: str = Field(
        description="Hardware button: HOME, LOCK, SIRI, SIDE_BUTTON or APPLE_PAY"
    )
    udid: Optional[str] = Field(default=None, description=_UDID_DESCRIPTION)


class AppInstallParams(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={"examples": [{"app_path": "build/MyApp.app"}]}
    )
    app_path: str = Field(description="Path to a simulator .app bundle")
    udid: Optional[str] = Field(default=None, description=_UDID_DESCRIPTION)


class AppParams(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={"examples": [{"bundle_id": "com.apple.Preferences"}]}
    )
    bundle_id: str = Field(description="App bundle identifier")
    udid: Optional[str] = Field(default=None, description=_UDID_DESCRIPTION)


class AppContainerParams(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"bundle_id": "com.example.App"},
                {"bundle_id": "com.example.App", "container": "app"},
            ]
        }
    )
    bundle_id: str = Field(description="App bundle identifier")
    container: str = Field(
        default="data", description="Container to locate: data or app"
    )
    udid: Optional[str] = Field(default=None, description=_UDID_DESCRIPTION)


class AppLaunchParams(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"bundle_id": "com.apple.mobilesafari"},
                {"bundle_id": "com.example.App", "args": ["-UITests", "YES"]},
            ]
        }
    )
    bundle_id: str = Field(description="App bundle identifier")
    args: List[str] = Field(
        default_factory=list, description="Launch arguments passed to the app"
    )
    udid: Optional[str] = Field(default=None, description=_UDID_DESCRIPTION)


class OpenUrlParams(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"url": "https://example.com"},
                {"url": "myapp://settings"},
            ]
        }
    )
    url: str = Field(description="URL or custom-scheme deep link")
    udid: Optional[str] = Field(default=None, description=_UDID_DESCRIPTION)


class ScreenshotParams(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"out": "screenshots/home.png"},
                {"out": None},
            ]
        }
    )
    out: Optional[str] = Field(
        default=None,
        description="Output PNG path; defaults to a timestamped file in ./screenshots",
    )
    udid: Optional[str] = Field(default=None, description=_UDID_DESCRIPTION)
