"""iOS Simulator MCP server: device resolution and accessibility-driven UI automation."""

__version__ = "0.1.0"
