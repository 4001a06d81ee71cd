"""Executor-facing gate checks for agent tools.

Public API: ToolGuard, blocked_return, enforce_command, enforce_path, enforce_url
Internal: enforcement, tool_guard
"""

from toolgate.tools.enforcement import blocked_return, enforce_command, enforce_path, enforce_url
from toolgate.tools.tool_guard import ToolGuard

__all__ = [
    "ToolGuard",
    "blocked_return",
    "enforce_command",
    "enforce_path",
    "enforce_url",
]
