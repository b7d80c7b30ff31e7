"""Error model and result envelopes for the iOS Simulator MCP server.

Every tool answers with a plain dict envelope. Successful calls carry
``"success": True`` plus their payload; failures carry ``"success": False``,
a human message, a machine-readable ``error_code`` and recovery hints. Both
may include ``"summary"``, a short list of lines an agent can show as-is.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """Standardized error codes."""

    # Resolution and matching
    INVALID_IDENTIFIER = "INVALID_IDENTIFIER"
    NO_MATCH = "NO_MATCH"
    NO_CONFIDENT_MATCH = "NO_CONFIDENT_MATCH"
    AUTOMATION_UNAVAILABLE = "AUTOMATION_UNAVAILABLE"
    STORAGE_UNREADABLE = "STORAGE_UNREADABLE"

    # Host environment and external commands
    PLATFORM_UNSUPPORTED = "PLATFORM_UNSUPPORTED"
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    COMMAND_FAILED = "COMMAND_FAILED"
    COMMAND_TIMEOUT = "COMMAND_TIMEOUT"

    # Tool plumbing
    INVALID_PARAMETER = "INVALID_PARAMETER"
    OPERATION_TIMEOUT = "OPERATION_TIMEOUT"
    TOOL_EXECUTION_ERROR = "TOOL_EXECUTION_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class SimulatorMCPError(Exception):
    """Base exception for expected, non-retriable failures."""

    error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recovery_suggestions: Optional[List[str]] = None,
        error_code: Optional[ErrorCode] = None,
    ):
        if error_code is not None:
            self.error_code = error_code
        self.message = message
        self.details = details or {}
        self.recovery_suggestions = recovery_suggestions or []
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "error_code": self.error_code.value,
            "message": self.message,
            "details": self.details,
            "recovery_suggestions": self.recovery_suggestions,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        return f"[{self.error_code.value}] {self.message}"


class InvalidIdentifierError(SimulatorMCPError):
    """A supplied UDID is not in canonical UUID form."""

    error_code = ErrorCode.INVALID_IDENTIFIER


class NoMatchError(SimulatorMCPError):
    """No simulator survived the resolution filters."""

    error_code = ErrorCode.NO_MATCH


class NoConfidentMatchError(SimulatorMCPError):
    """The best UI candidate scored below the confidence floor."""

    error_code = ErrorCode.NO_CONFIDENT_MATCH

    def __init__(self, message: str, query: str, best_score: int, **kwargs: Any):
        details = {"query": query, "best_score": best_score}
        details.update(kwargs.pop("details", {}) or {})
        super().__init__(message, details=details, **kwargs)
        self.query = query
        self.best_score = best_score


class AutomationUnavailableError(SimulatorMCPError):
    """idb is not installed on this host."""

    error_code = ErrorCode.AUTOMATION_UNAVAILABLE


class CommandError(SimulatorMCPError):
    """An external command failed or could not be started."""

    error_code = ErrorCode.COMMAND_FAILED


RECOVERY_SUGGESTIONS = {
    ErrorCode.INVALID_IDENTIFIER: [
        "Pass a simulator UDID in UUID form (8-4-4-4-12 hex digits)",
        "Run list_devices to see valid UDIDs",
        "Omit udid to use the selected or best available simulator",
    ],
    ErrorCode.NO_MATCH: [
        "Relax the name or runtime filter",
        "Run list_devices to see available simulators",
        "Check that the runtime is installed in Xcode",
    ],
    ErrorCode.NO_CONFIDENT_MATCH: [
        "Use ui_summary or ui_tree to see on-screen labels",
        "Refine the query to match a visible label",
        "Tap by coordinates with x and y",
    ],
    ErrorCode.AUTOMATION_UNAVAILABLE: [
        "Install idb: brew install idb-companion",
        "Install the idb client: python3 -m pip install fb-idb",
    ],
    ErrorCode.PLATFORM_UNSUPPORTED: [
        "Run the server on a macOS host with Xcode installed",
    ],
    ErrorCode.TOOL_NOT_FOUND: [
        "Install Xcode Command Line Tools or full Xcode",
        "Verify xcrun is on PATH",
    ],
    ErrorCode.COMMAND_FAILED: [
        "Check that the simulator is booted",
        "Run health_check to verify the environment",
    ],
    ErrorCode.COMMAND_TIMEOUT: [
        "Check that the simulator is responsive",
        "Retry with a longer timeout",
    ],
}


def get_recovery_suggestions(error_code: ErrorCode) -> List[str]:
    """Get recovery suggestions for an error code."""
    return list(RECOVERY_SUGGESTIONS.get(error_code, []))


def create_success_response(
    data: Dict[str, Any], summary: Optional[List[str]] = None
) -> Dict[str, Any]:
    """Create standardized success response format."""
    response: Dict[str, Any] = {"success": True}
    response.update(data)
    if summary:
        response["summary"] = summary
    return response


def format_error_response(
    error: SimulatorMCPError, context: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Format a SimulatorMCPError into a standardized response."""
    recovery_suggestions = error.recovery_suggestions or get_recovery_suggestions(
        error.error_code
    )

    response: Dict[str, Any] = {
        "success": False,
        "error": error.message,
        "error_code": error.error_code.value,
        "timestamp": error.timestamp.isoformat(),
        "recovery_suggestions": recovery_suggestions,
        "details": error.details,
        "summary": [error.message],
    }

    if context:
        response["context"] = context

    logger.warning(f"[{error.error_code.value}] {error.message}")
    return response

