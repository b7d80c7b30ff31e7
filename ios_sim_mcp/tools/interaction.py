"""Input synthesis tools for MCP server."""

import logging
from typing import Any, Dict

from ..decorators import timeout_wrapper
from ..error_handler import (
    SimulatorMCPError,
    create_success_response,
    format_error_response,
)
from ..tool_models import UIButtonParams, UITapParams, UITypeParams
from ..validation import (
    ButtonValidator,
    CoordinateValidator,
    QueryValidator,
    create_validation_error_response,
    log_validation_attempt,
)

logger = logging.getLogger(__name__)

# Module-level components storage
_components = {}


@timeout_wrapper()
async def ui_tap(params: UITapParams) -> Dict[str, Any]:
    """Tap by label (`query`) or by explicit `x`/`y` coordinates.

    When to use:
    - `query` when you know the visible label; the best interactive match
      scoring at least 50 is tapped at its centre.
    - `x`/`y` when you already have coordinates; no snapshot is taken.

    Common combos:
    - `ui_find` → `ui_tap(query=...)`.
    """
    try:
        resolver = _components.get("resolver")
        idb_client = _components.get("idb_client")
        matcher = _components.get("matcher")
        if not resolver or not idb_client or not matcher:
            return {"success": False, "error": "Interaction components not initialized"}

        use_coordinates = params.x is not None or params.y is not None
        if use_coordinates:
            validation_result = CoordinateValidator.validate_coordinate_pair(
                params.x, params.y
            )
            operation_params = {"x": params.x, "y": params.y}
        else:
            validation_result = QueryValidator.validate_query(params.query)
            operation_params = {"query": params.query}

        if not validation_result.is_valid:
            log_validation_attempt("ui_tap", operation_params, validation_result, logger)
            return create_validation_error_response(validation_result, "ui_tap")
        if validation_result.warnings:
            log_validation_attempt("ui_tap", operation_params, validation_result, logger)

        resolution = await resolver.resolve(udid=params.udid)
        idb_client.ensure_available()

        if use_coordinates:
            point = validation_result.sanitized_value
            target = {"kind": "coordinate", **point}
            label = f"{point['x']:g},{point['y']:g}"
        else:
            elements = await idb_client.snapshot(resolution.udid)
            best = matcher.find_best(params.query, elements)
            point = best.centre
            target = best.to_dict()
            label = best.label

        await idb_client.tap(resolution.udid, point["x"], point["y"])
        return create_success_response(
            {"udid": resolution.udid, "tapped": target, "point": point},
            [f"Tap: {label}"],
        )
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"UI tap failed: {e}")
        return {"success": False, "error": str(e)}


@timeout_wrapper()
async def ui_type(params: UITypeParams) -> Dict[str, Any]:
    """Type text into the focused field.

    Tip:
    - Tap the field first with `ui_tap`.
    """
    try:
        resolver = _components.get("resolver")
        idb_client = _components.get("idb_client")
        if not resolver or not idb_client:
            return {"success": False, "error": "Interaction components not initialized"}

        resolution = await resolver.resolve(udid=params.udid)
        idb_client.ensure_available()
        await idb_client.type_text(resolution.udid, params.text)
        return create_success_response(
            {"udid": resolution.udid, "length": len(params.text)}, ["Typed text"]
        )
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"UI type failed: {e}")
        return {"success": False, "error": str(e)}


@timeout_wrapper()
async def ui_button(params: UIButtonParams) -> Dict[str, Any]:
    """Press a hardware button (HOME, LOCK, SIRI, SIDE_BUTTON, APPLE_PAY)."""
    try:
        resolver = _components.get("resolver")
        idb_client = _components.get("idb_client")
        if not resolver or not idb_client:
            return {"success": False, "error": "Interaction components not initialized"}

        validation_result = ButtonValidator.validate_button(params.name)
        if not validation_result.is_valid:
            log_validation_attempt(
                "ui_button", {"name": params.name}, validation_result, logger
            )
            return create_validation_error_response(validation_result, "ui_button")

        button = validation_result.sanitized_value
        resolution = await resolver.resolve(udid=params.udid)
        idb_client.ensure_available()
        await idb_client.press_button(resolution.udid, button)
        return create_success_response(
            {"udid": resolution.udid, "button": button}, [f"Button: {button}"]
        )
    except SimulatorMCPError as e:
        return format_error_response(e)
    except Exception as e:
        logger.error(f"UI button failed: {e}")
        return {"success": False, "error": str(e)}


def register_interaction_tools(mcp, components):
    """Register input synthesis tools with the MCP server.

    Args:
        mcp: FastMCP server instance
        components: Dictionary containing initialized components
    """
    global _components
    _components = components

    mcp.tool(
        description="Tap the best label match for a query (score >= 50) or explicit x/y."
    )(ui_tap)

    mcp.tool(description="Type text into the focused field via idb.")(ui_type)

    mcp.tool(
        description="Press a hardware button: HOME, LOCK, SIRI, SIDE_BUTTON, APPLE_PAY."
    )(ui_button)
