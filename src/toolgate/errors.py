"""Typed errors raised by the tool executor when the gate denies an action.

Dependencies: (none — leaf module)
Wired in: tools/tool_guard.py, tools/enforcement.py
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Stable machine-readable error codes."""

    TOOL_EXECUTION_FAILED = "TOOL_EXECUTION_FAILED"
    TOOL_PERMISSION_DENIED = "TOOL_PERMISSION_DENIED"
    VALIDATION_OUT_OF_RANGE = "VALIDATION_OUT_OF_RANGE"


class ToolExecutionError(RuntimeError):
    """A tool call failed or was refused before it ran."""

    def __init__(
        self,
        message: str,
        *,
        tool_name: str,
        tool_input: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.TOOL_EXECUTION_FAILED,
        recoverable: bool = True,
        retryable: bool = False,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message)
        self.tool_name = tool_name
        self.tool_input = dict(tool_input or {})
        self.code = code
        self.recoverable = recoverable
        self.retryable = retryable
        self.suggestion = suggestion

    def to_dict(self) -> dict[str, Any]:
        """Serialise for tool results and logs."""
        data: dict[str, Any] = {
            "message": str(self),
            "tool": self.tool_name,
            "input": self.tool_input,
            "code": self.code.value,
            "recoverable": self.recoverable,
            "retryable": self.retryable,
        }
        if self.suggestion:
            data["suggestion"] = self.suggestion
        return data


def tool_error(
    tool_name: str,
    message: str,
    *,
    code: ErrorCode = ErrorCode.TOOL_EXECUTION_FAILED,
    tool_input: dict[str, Any] | None = None,
    recoverable: bool = True,
    retryable: bool = False,
    suggestion: str | None = None,
) -> ToolExecutionError:
    """General-purpose factory; recoverable and not retryable by default."""
    return ToolExecutionError(
        message,
        tool_name=tool_name,
        tool_input=tool_input,
        code=code,
        recoverable=recoverable,
        retryable=retryable,
        suggestion=suggestion,
    )


def tool_permission_denied(
    tool_name: str,
    reason: str,
    tool_input: dict[str, Any] | None = None,
) -> ToolExecutionError:
    """The gate refused the action. Never recoverable, never retryable."""
    return tool_error(
        tool_name,
        reason,
        code=ErrorCode.TOOL_PERMISSION_DENIED,
        tool_input=tool_input,
        recoverable=False,
        retryable=False,
    )


def tool_validation_error(
    tool_name: str,
    message: str,
    tool_input: dict[str, Any] | None = None,
) -> ToolExecutionError:
    """The tool input itself is malformed (e.g. an unparseable URL)."""
    return tool_error(
        tool_name,
        message,
        code=ErrorCode.VALIDATION_OUT_OF_RANGE,
        tool_input=tool_input,
        recoverable=False,
        retryable=False,
    )
