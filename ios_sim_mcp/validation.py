"""Input validation for iOS Simulator MCP tools.

Validators return a ValidationResult rather than raising, so tools can log
the attempt and answer with a structured error response.
"""

import logging
import math
import re
from typing import Any, Dict, List, Optional

from .config import MAX_RESULT_LIMIT

logger = logging.getLogger(__name__)


class ValidationResult:
    """Validation result with detailed feedback."""

    def __init__(
        self,
        is_valid: bool,
        sanitized_value: Any = None,
        errors: Optional[List[str]] = None,
        warnings: Optional[List[str]] = None,
    ):
        self.is_valid = is_valid
        self.sanitized_value = sanitized_value
        self.errors = errors or []
        self.warnings = warnings or []

    def add_error(self, error: str):
        """Add validation error."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str):
        """Add validation warning."""
        self.warnings.append(warning)


class DeviceIdValidator:
    """Validates simulator UDIDs."""

    UDID_PATTERN = re.compile(
        r"^[0-9A-Fa-f]{8}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{12}$"
    )

    @staticmethod
    def looks_like_udid(value: Any) -> bool:
        """Return True if `value` is a string in canonical UUID form."""
        return isinstance(value, str) and bool(
            DeviceIdValidator.UDID_PATTERN.match(value)
        )

    @staticmethod
    def validate_device_id(device_id: Any) -> ValidationResult:
        """Validate simulator UDID format."""
        result = ValidationResult(True)

        if not isinstance(device_id, str):
            result.add_error(
                f"Device ID must be string, got {type(device_id).__name__}"
            )
            return result

        if not DeviceIdValidator.looks_like_udid(device_id):
            result.add_error(f"Invalid udid (expected UUID): {device_id}")
            return result

        result.sanitized_value = device_id
        return result


class BundleIdValidator:
    """Validates app bundle identifiers."""

    BUNDLE_ID_PATTERN = re.compile(r"^[A-Za-z0-9.-]+$")

    @staticmethod
    def validate_bundle_id(bundle_id: Any) -> ValidationResult:
        """Validate bundle identifier such as ``com.example.App``."""
        result = ValidationResult(True)

        if not isinstance(bundle_id, str) or not bundle_id.strip():
            result.add_error("Missing bundle_id")
            return result

        bundle_id = bundle_id.strip()
        if not BundleIdValidator.BUNDLE_ID_PATTERN.match(bundle_id) or (
            "." not in bundle_id
        ):
            result.add_error(f"Invalid bundle_id: {bundle_id}")
            return result

        result.sanitized_value = bundle_id
        return result


def to_number(value: Any) -> Optional[float]:
    """Coerce ints, floats and numeric strings to a finite float, else None."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            number = float(value.strip())
        else:
            return None
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


class CoordinateValidator:
    """Validates explicit tap coordinates."""

    @staticmethod
    def validate_coordinate_pair(x: Any, y: Any) -> ValidationResult:
        """Both coordinates must be finite numbers."""
        result = ValidationResult(True)

        px = to_number(x)
        py = to_number(y)
        if px is None or py is None:
            result.add_error(f"Invalid x/y (expected numbers): x={x!r}, y={y!r}")
            return result

        if px < 0 or py < 0:
            result.add_warning(f"Negative coordinate ({px}, {py}) is off-screen")

        result.sanitized_value = {"x": px, "y": py}
        return result


class QueryValidator:
    """Validates free-text UI queries."""

    @staticmethod
    def validate_query(query: Any) -> ValidationResult:
        result = ValidationResult(True)

        if not isinstance(query, str) or not query.strip():
            result.add_error("Missing query")
            return result

        if len(query) > 500:
            result.add_warning(f"Query is very long ({len(query)} characters)")

        result.sanitized_value = query
        return result


class LimitValidator:
    """Clamps result limits into the supported window."""

    @staticmethod
    def clamp_limit(
        limit: Any, default: int, ceiling: int = MAX_RESULT_LIMIT
    ) -> int:
        """Clamp `limit` to ``1..ceiling``; unusable values become `default`."""
        if isinstance(limit, int) and not isinstance(limit, bool):
            return max(1, min(ceiling, limit))
        number = to_number(limit)
        if number is None:
            number = default
        return max(1, min(ceiling, int(number)))


class ButtonValidator:
    """Validates simulator hardware button names."""

    VALID_BUTTONS = {"HOME", "LOCK", "SIRI", "SIDE_BUTTON", "APPLE_PAY"}

    @staticmethod
    def validate_button(name: Any) -> ValidationResult:
        result = ValidationResult(True)

        if not isinstance(name, str) or not name.strip():
            result.add_error(
                "Missing button name: " + "|".join(sorted(ButtonValidator.VALID_BUTTONS))
            )
            return result

        button = name.strip().upper()
        if button not in ButtonValidator.VALID_BUTTONS:
            result.add_error(
                f"Invalid button: {name}. Valid: "
                + ", ".join(sorted(ButtonValidator.VALID_BUTTONS))
            )
            return result

        result.sanitized_value = button
        return result


def create_validation_error_response(
    validation_result: ValidationResult, operation: str = "operation"
) -> Dict[str, Any]:
    """Create standardized error response for validation failures."""
    return {
        "success": False,
        "error": f"Validation failed for {operation}",
        "error_code": "INVALID_PARAMETER",
        "errors": validation_result.errors,
        "warnings": validation_result.warnings,
        "summary": list(validation_result.errors),
    }


def log_validation_attempt(
    operation: str,
    params: Dict[str, Any],
    result: ValidationResult,
    logger: logging.Logger,
):
    """Log validation attempts."""
    if not result.is_valid:
        logger.warning(
            f"Validation failed for {operation}: {result.errors}. "
            f"Parameters: {params}"
        )
    elif result.warnings:
        logger.info(
            f"Validation warnings for {operation}: {result.warnings}. "
            f"Parameters: {params}"
        )
    else:
        logger.debug(f"Validation passed for {operation}")


__all__ = [
    "ValidationResult",
    "DeviceIdValidator",
    "BundleIdValidator",
    "CoordinateValidator",
    "QueryValidator",
    "LimitValidator",
    "ButtonValidator",
    "to_number",
    "create_validation_error_response",
    "log_validation_attempt",
]
