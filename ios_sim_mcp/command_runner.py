"""Async execution of xcrun/idb commands."""

import asyncio
import logging
import shutil
from typing import Any, Dict, List, Optional, Sequence

from .timeout import clamp_to_deadline

logger = logging.getLogger(__name__)


def which(binary: str) -> Optional[str]:
    """Return the full path of `binary` on PATH, or None."""
    return shutil.which(binary)


async def run_command(
    args: Sequence[str],
    timeout: float = 30,
    stdin: Optional[str] = None,
    allow_nonzero: bool = False,
) -> Dict[str, Any]:
    """
    Run a command without a shell and capture its output.

    Returns a result dict; never raises for process failures. ``success`` is
    True on exit code 0, or on any exit code when ``allow_nonzero`` is set.
    """
    cmd_parts: List[str] = [str(part) for part in args]
    command = " ".join(cmd_parts)

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd_parts,
            stdin=asyncio.subprocess.PIPE if stdin is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError, OSError) as e:
        return {
            "success": False,
            "error": f"Command execution failed: {str(e)}",
            "command": command,
        }

    effective_timeout = clamp_to_deadline(timeout)
    input_bytes = stdin.encode("utf-8") if stdin is not None else None

    try:
        async with asyncio.timeout(effective_timeout):
            stdout, stderr = await process.communicate(input_bytes)
    except (asyncio.TimeoutError, TimeoutError):
        try:
            process.kill()
        except ProcessLookupError:
            pass
        try:
            async with asyncio.timeout(1.0):
                await process.communicate()
        except (asyncio.TimeoutError, TimeoutError):
            logger.warning(f"Process did not exit after kill: {command}")
        return {
            "success": False,
            "error": f"Command timed out after {effective_timeout} seconds",
            "timed_out": True,
            "command": command,
        }

    returncode = process.returncode
    result = {
        "success": returncode == 0 or allow_nonzero,
        "stdout": stdout.decode("utf-8", errors="replace") if stdout else "",
        "stderr": stderr.decode("utf-8", errors="replace") if stderr else "",
        "returncode": returncode,
        "command": command,
    }
    if not result["success"]:
        result["error"] = f"Command failed: {command} (exit {returncode})"
        logger.debug(f"{result['error']}: {result['stderr'].strip()}")
    return result
