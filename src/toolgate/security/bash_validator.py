"""Heuristic denylist for shell commands proposed by the model.

This is defense-in-depth, not a shell parser. A Turing-complete shell grammar
cannot be enumerated by patterns, so anything this module lets through must
still run under process-level isolation (namespaces, seccomp, containers).
The rules only catch the well-known destructive and code-injection shapes.

Dependencies: (none — leaf module)
Wired in: tools/tool_guard.py
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

_log = logging.getLogger(__name__)


class Violation(Enum):
    """Which denylist rule rejected a command."""

    EMPTY = "empty"
    FORK_BOMB = "fork_bomb"
    ROOT_DELETE = "root_delete"
    DEVICE_WRITE = "device_write"
    PIPE_TO_SHELL = "pipe_to_shell"
    EVAL = "eval"
    DISK_OVERWRITE = "disk_overwrite"
    FILESYSTEM_CREATE = "filesystem_create"
    COMMAND_SUBSTITUTION = "command_substitution"
    BACKTICK_SUBSTITUTION = "backtick_substitution"


@dataclass(frozen=True)
class CommandVerdict:
    """Outcome of a shell command check."""

    allowed: bool
    reason: str | None = None
    violation: Violation | None = None


@dataclass(frozen=True)
class _Rule:
    violation: Violation
    pattern: re.Pattern[str]
    reason: str


# Start of a simple command: line start or a chain/pipe/grouping operator,
# then any wrappers or VAR=value assignments, then an optional directory.
_WRAPPERS = r"(?:sudo|exec|command|builtin|nice|nohup|time|env|xargs|timeout|stdbuf)"
_CMD = (
    r"(?:^|[;&|(){}\n])\s*"
    r"(?:" + _WRAPPERS + r"(?:\s+-[\w-]+(?:[= ][^\s-]\S*)?)*\s+(?:\d+[smhd]?\s+)?|\w+=\S*\s+)*"
    r"(?:/[\w/.-]*/)?"
)

_SHELLS = r"(?:ba|z|k|c|tc|da|fi)?sh"

_RULES: tuple[_Rule, ...] = (
    _Rule(
        Violation.FORK_BOMB,
        re.compile(r"(\S+)\s*\(\s*\)\s*\{[^}]*\1\s*\|\s*\1\s*&[^}]*\}\s*;?\s*\1"),
        "Fork bomb detected",
    ),
    _Rule(
        Violation.ROOT_DELETE,
        re.compile(
            _CMD + r"rm\s+(?:-{1,2}[\w-]+\s+)*(?:-[a-z]*r[a-z]*|--recursive)"
            r"\s+(?:-{1,2}[\w-]+\s+)*[\"']?/\*?[\"']?(?:\s|$|[;&|])",
            re.IGNORECASE,
        ),
        "Recursive delete of root filesystem",
    ),
    _Rule(
        Violation.DEVICE_WRITE,
        re.compile(r">\s*/dev/(?:sd|hd|vd|xvd|nvme|mmcblk|disk|rdisk|mapper/|md)\w*", re.IGNORECASE),
        "Direct disk device write",
    ),
    _Rule(
        Violation.PIPE_TO_SHELL,
        re.compile(
            r"(?<!\|)\|(?!\|)\s*(?:sudo\s+)?(?:env\s+)?(?:/[\w/]*/)?" + _SHELLS + r"\b",
            re.IGNORECASE,
        ),
        "Piping to shell interpreter",
    ),
    _Rule(
        Violation.EVAL,
        re.compile(_CMD + r"eval\b", re.IGNORECASE),
        "Eval command execution",
    ),
    _Rule(
        Violation.DISK_OVERWRITE,
        re.compile(_CMD + r"dd\s+.*\b(?:if|of)=", re.IGNORECASE),
        "Disk overwrite utility (dd)",
    ),
    _Rule(
        Violation.FILESYSTEM_CREATE,
        re.compile(_CMD + r"mkfs(?:\.\w+)?\b", re.IGNORECASE),
        "Filesystem creation utility (mkfs)",
    ),
    _Rule(
        Violation.COMMAND_SUBSTITUTION,
        re.compile(r"\$\(|<\(|>\("),
        "Command substitution is not allowed",
    ),
    _Rule(
        Violation.BACKTICK_SUBSTITUTION,
        re.compile(r"`"),
        "Backtick command substitution is not allowed",
    ),
)


def validate_bash_command(command: str) -> CommandVerdict:
    """Check *command* against the denylist; the first matching rule wins."""
    stripped = command.strip()
    if not stripped:
        return CommandVerdict(allowed=False, reason="Empty command", violation=Violation.EMPTY)

    collapsed = re.sub(r"[ \t]+", " ", stripped)
    for rule in _RULES:
        if rule.pattern.search(collapsed):
            _log.debug("command denied (%s): %r", rule.violation.value, command)
            return CommandVerdict(allowed=False, reason=rule.reason, violation=rule.violation)
    return CommandVerdict(allowed=True)
