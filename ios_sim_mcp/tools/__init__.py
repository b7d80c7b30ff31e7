"""MCP tools for iOS Simulator automation."""

from . import apps, device, interaction, media, ui

__all__ = ["device", "ui", "interaction", "apps", "media"]
