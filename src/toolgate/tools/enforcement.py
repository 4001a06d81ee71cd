"""Gate enforcement shared by agent tool functions.

Each helper returns ``None`` when the action may proceed, otherwise a
``ToolReturn`` with blocked metadata that the tool hands straight back to the
model instead of running.

Dependencies: errors, tools.tool_guard
Wired in: agent tool functions (file read/write, shell, fetch)
"""

from __future__ import annotations

import os

from pydantic_ai.messages import ToolReturn

from toolgate.errors import ToolExecutionError
from toolgate.tools.tool_guard import ToolGuard


def blocked_return(error: ToolExecutionError) -> ToolReturn:
    """Convert a gate denial into a ``ToolReturn`` with structured metadata."""
    return ToolReturn(
        return_value=f"Blocked: {error}",
        metadata={
            "blocked": True,
            "tool": error.tool_name,
            "reason": str(error),
            "code": error.code.value,
            "recoverable": error.recoverable,
            "retryable": error.retryable,
        },
    )


def enforce_path(
    guard: ToolGuard,
    tool: str,
    path: str | os.PathLike[str],
    operation: str = "read",
) -> ToolReturn | None:
    """Check a file path before a read or write."""
    try:
        guard.check_path(tool, path, operation)
    except ToolExecutionError as exc:
        return blocked_return(exc)
    return None


def enforce_command(guard: ToolGuard, tool: str, command: str) -> ToolReturn | None:
    """Check a shell command before spawning it."""
    try:
        guard.check_command(tool, command)
    except ToolExecutionError as exc:
        return blocked_return(exc)
    return None


async def enforce_url(guard: ToolGuard, tool: str, url: str) -> ToolReturn | None:
    """Check an outbound URL before fetching it."""
    try:
        await guard.check_url(tool, url)
    except ToolExecutionError as exc:
        return blocked_return(exc)
    return None
