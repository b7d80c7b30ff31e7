"""Deadline helpers shared by MCP tools and the commands they run.

A tool starts one deadline window; anything running inside it (simctl/idb
invocations, boot polling) asks how much of the budget is left instead of
carrying its own fixed timeout.
"""

from __future__ import annotations

import contextvars
import time
from contextlib import asynccontextmanager
from typing import Optional


_deadline_ts: contextvars.ContextVar[Optional[float]] = contextvars.ContextVar(
    "ios_sim_mcp_deadline_ts", default=None
)

_MIN_BUDGET = 0.05


def has_deadline() -> bool:
    """Return True if a deadline is active in the current context."""
    return _deadline_ts.get() is not None


def remaining_time(min_floor: float = _MIN_BUDGET, default: float = 60.0) -> float:
    """Seconds left before the active deadline, or `default` without one."""
    deadline = _deadline_ts.get()
    if deadline is None:
        return max(min_floor, float(default))
    return max(min_floor, deadline - time.monotonic())


def clamp_to_deadline(timeout: float) -> float:
    """Shrink `timeout` so it never outlives the active deadline."""
    if not has_deadline():
        return float(timeout)
    return max(0.1, min(float(timeout), remaining_time()))


@asynccontextmanager
async def start_deadline(total_seconds: float):
    """Open a deadline window for the current task.

    Pair with ``asyncio.timeout(total_seconds)`` for enforcement.
    """
    budget = max(_MIN_BUDGET, float(total_seconds))
    token = _deadline_ts.set(time.monotonic() + budget)
    try:
        yield
    finally:
        _deadline_ts.reset(token)
