"""Accessibility inspection tools for MCP server."""

import logging
from typing import Any, Dict

from ..api import find_all_ui_matches
from ..config import DEFAULT_SUMMARY_LIMIT
from ..error_handler import (
    SimulatorMCPError,
    create_success_response,
    format_error_response,
)
from ..decorators import timeout_wrapper
from ..tool_models import DeviceTargetParams, UIFindParams, UISummaryParams
from ..validation import (
    LimitValidator,
    QueryValidator,
    create_validation_error_response,
    log_validation_attempt,
)

logger = logging.getLogger(__name__)

# Module-level components storage
_components = {}


def _ui_components():
    resolver = _components.get("resolver")
    idb_client = _components.get("idb_client")
    matcher = _components.get("matcher")
    if not resolver or not idb_client or not matcher:
        return None
    return resolver, idb_client, matcher


@timeout_wrapper()
async def ui_summary(params: UISummaryParams) -> Dict[str, Any]:
    """Summarize the current screen: element counts and the first interactive elements.

    When to use:
    - Before tapping, to see what labels are on screen.

    Common combos:
    - `ui_summary` → `ui_tap(query=...)` → `ui_summary`.
    """
    try:
        parts = _ui_components()
        if not parts:
            return {"success": False, "error": "UI components not initialized"}
        resolver, idb_client, matcher = parts

        resolution = await resolver.resolve(udid=params.udid)
        idb_client.ensure_available()
        elements = await idb_client.snapshot(resolution.udid)

        limit = LimitValidator.clamp_limit(params.limit, DEFAULT_SUMMARY_LIMIT)
        report = matcher.summarise(elements, limit)
        summary = report.pop("summary")
        return create_success_response({"udid": resolution.udid, **report}, summary)
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"UI summary failed: {e}")
        return {"success": False, "error": str(e)}


@timeout_wrapper()
async def ui_tree(params: DeviceTargetParams) -> Dict[str, Any]:
    """Return the raw accessibility tree from `idb ui describe-all`.

    Tip:
    - Large; prefer `ui_summary` or `ui_find` unless you need every node.
    """
    try:
        parts = _ui_components()
        if not parts:
            return {"success": False, "error": "UI components not initialized"}
        resolver, idb_client, _ = parts

        resolution = await resolver.resolve(udid=params.udid)
        idb_client.ensure_available()
        nodes = await idb_client.describe_all(resolution.udid)
        return create_success_response(
            {"udid": resolution.udid, "elements": nodes, "count": len(nodes)},
            [f"UI elements: {len(nodes)}"],
        )
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"UI tree failed: {e}")
        return {"success": False, "error": str(e)}


@timeout_wrapper()
async def ui_find(params: UIFindParams) -> Dict[str, Any]:
    """Rank interactive elements by how well their labels match `query`."""
    try:
        parts = _ui_components()
        if not parts:
            return {"success": False, "error": "UI components not initialized"}
        resolver, idb_client, matcher = parts

        validation_result = QueryValidator.validate_query(params.query)
        if not validation_result.is_valid:
            log_validation_attempt(
                "ui_find", {"query": params.query}, validation_result, logger
            )
            return create_validation_error_response(validation_result, "ui_find")

        resolution = await resolver.resolve(udid=params.udid)
        idb_client.ensure_available()
        elements = await idb_client.snapshot(resolution.udid)

        response = find_all_ui_matches(params.query, elements, params.limit, matcher)
        response["udid"] = resolution.udid
        return response
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"UI find failed: {e}")
        return {"success": False, "error": str(e)}


def register_ui_tools(mcp, components):
    """Register accessibility inspection tools with the MCP server.

    Args:
        mcp: FastMCP server instance
        components: Dictionary containing initialized components
    """
    global _components
    _components = components

    mcp.tool(
        description="Summarize on-screen elements: counts by type and top interactive labels."
    )(ui_summary)

    mcp.tool(
        description="Dump the full accessibility tree (idb ui describe-all)."
    )(ui_tree)

    mcp.tool(
        description="Find interactive elements whose labels match a query, best first."
    )(ui_find)
