"""Path safety validation for agent file operations.

A path is allowed only when its fully resolved (symlink-followed) form stays
under one of the allow roots and neither the requested form nor the resolved
form hits a protected path rule or a protected filename pattern.

Dependencies: (none — leaf module)
Wired in: tools/tool_guard.py
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

_log = logging.getLogger(__name__)

Operation = Literal["read", "write"]

_OPERATIONS: frozenset[str] = frozenset({"read", "write"})

# Relative to the home directory, expanded on every call so HOME overrides apply.
_HOME_RULES: tuple[str, ...] = (
    ".ssh",
    ".gnupg",
    ".aws",
    ".azure",
    ".config/gcloud",
    ".kube/config",
    ".docker/config.json",
    ".npmrc",
    ".pypirc",
    ".netrc",
    ".git-credentials",
    ".vault-token",
    ".pgpass",
    ".secrets",
    ".bash_history",
    ".zsh_history",
)

_SYSTEM_RULES: tuple[str, ...] = (
    "/etc/passwd",
    "/etc/shadow",
    "/etc/gshadow",
    "/etc/sudoers",
    "/etc/ssh",
)

_DATA_SUFFIX = r"(\.(json|ya?ml|toml|ini|cfg|conf|txt|env|xml|properties))?"

_PROTECTED_NAME_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\.env(\..+)?",
        r"id_(rsa|dsa|ecdsa|ed25519)(_[\w-]+)?",
        r"([\w.-]*[_.-])?credentials?" + _DATA_SUFFIX,
        r"([\w.-]*[_.-])?secrets?" + _DATA_SUFFIX,
        r".+\.(pem|key|p12|pfx|jks|keystore)",
        r"authorized_keys2?",
        r"\.(netrc|pgpass|git-credentials|vault-token|pypirc)",
    )
)

_CONSTRUCTION_TOKEN = object()


class ValidatedPath:
    """A resolved path that passed validation.

    Only this module creates instances, so code that receives a
    ``ValidatedPath`` knows the path went through :func:`is_path_safe`.
    """

    __slots__ = ("_operation", "_path")

    def __init__(self, path: Path, operation: Operation, *, _token: object = None) -> None:
        if _token is not _CONSTRUCTION_TOKEN:
            raise TypeError("ValidatedPath is only created by the path validator.")
        self._path = path
        self._operation = operation

    @property
    def path(self) -> Path:
        """Resolved absolute path."""
        return self._path

    @property
    def operation(self) -> Operation:
        """Operation the path was validated for."""
        return self._operation

    def __fspath__(self) -> str:
        return str(self._path)

    def __str__(self) -> str:
        return str(self._path)

    def __repr__(self) -> str:
        return f"ValidatedPath({str(self._path)!r}, {self._operation!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidatedPath):
            return NotImplemented
        return self._path == other._path and self._operation == other._operation

    def __hash__(self) -> int:
        return hash((self._path, self._operation))


@dataclass(frozen=True)
class ValidationVerdict:
    """Outcome of a path check. ``path`` is set only when allowed."""

    allowed: bool
    reason: str | None = None
    path: ValidatedPath | None = None


def _deny(reason: str) -> ValidationVerdict:
    _log.debug("path denied: %s", reason)
    return ValidationVerdict(allowed=False, reason=reason)


def home_dir() -> Path:
    """Return the home directory, honouring ``HOME`` / ``USERPROFILE`` overrides."""
    for var in ("HOME", "USERPROFILE"):
        raw = os.environ.get(var)
        if raw:
            return Path(raw)
    return Path.home()


def expand_home(path: str) -> str:
    """Expand a leading ``~`` to the home directory. ``~user`` is left alone."""
    if path == "~":
        return str(home_dir())
    if path.startswith(("~/", "~" + os.sep)):
        return str(home_dir() / path[2:])
    return path


def _normalize(path: str | os.PathLike[str], cwd: Path) -> Path:
    expanded = expand_home(os.fspath(path))
    return Path(os.path.normpath(os.path.join(cwd, expanded)))


def _protected_rules() -> tuple[Path, ...]:
    """Absolute protected paths, both lexical and symlink-resolved."""
    home = Path(os.path.normpath(home_dir()))
    lexical = [home / rule for rule in _HOME_RULES]
    lexical.extend(Path(rule) for rule in _SYSTEM_RULES)
    rules: list[Path] = []
    for rule in lexical:
        if rule not in rules:
            rules.append(rule)
        try:
            resolved = rule.resolve()
        except (OSError, RuntimeError):
            continue
        if resolved not in rules:
            rules.append(resolved)
    return tuple(rules)


def _matching_rule(path: Path, rules: tuple[Path, ...]) -> Path | None:
    for rule in rules:
        if path.is_relative_to(rule):
            return rule
    return None


def is_protected_name(name: str) -> bool:
    """Return whether *name* matches a filename blocked in every directory."""
    return any(pattern.fullmatch(name) for pattern in _PROTECTED_NAME_PATTERNS)


def _protection_reason(path: Path, rules: tuple[Path, ...]) -> str | None:
    rule = _matching_rule(path, rules)
    if rule is not None:
        return f"Access to protected path denied: {rule}"
    if is_protected_name(path.name):
        return f"Access to protected name denied: {path.name}"
    return None


def _resolve(path: Path) -> Path | None:
    """Follow symlinks; a missing tail stays lexical. Failures return ``None``."""
    try:
        return path.resolve(strict=False)
    except (OSError, RuntimeError, ValueError):
        return None


def _resolve_roots(cwd: Path, allowed_paths: Iterable[str | os.PathLike[str]]) -> tuple[Path, ...]:
    roots: list[Path] = []
    for raw in (cwd, *allowed_paths):
        resolved = _resolve(_normalize(raw, cwd))
        if resolved is not None and resolved not in roots:
            roots.append(resolved)
    return tuple(roots)


def is_path_safe(
    path: str | os.PathLike[str],
    operation: str = "read",
    *,
    cwd: str | os.PathLike[str] | None = None,
    allowed_paths: Iterable[str | os.PathLike[str]] | None = None,
) -> ValidationVerdict:
    """Decide whether *path* may be read or written.

    Relative paths are taken relative to *cwd* (default: the process working
    directory). The allow roots are *cwd* plus *allowed_paths*. Never raises
    for unsafe input; every doubt is reported as a denial.
    """
    if operation not in _OPERATIONS:
        return _deny(f"Unsupported operation: {operation}")
    if not os.fspath(path).strip():
        return _deny("Empty path")
    if "\x00" in os.fspath(path):
        return _deny("Path contains a NUL byte")

    base = Path(os.path.normpath(os.path.abspath(expand_home(os.fspath(cwd or os.getcwd())))))
    rules = _protected_rules()

    normalized = _normalize(path, base)
    reason = _protection_reason(normalized, rules)
    if reason is not None:
        return _deny(reason)

    roots = _resolve_roots(base, allowed_paths or ())
    resolved = _resolve(normalized)
    if resolved is None:
        return _deny(f"Unable to resolve path: {normalized}")

    if not any(resolved.is_relative_to(root) for root in roots):
        return _deny(f"Path is outside allowed directories: {resolved}")

    reason = _protection_reason(resolved, rules)
    if reason is not None:
        return _deny(reason)

    op: Operation = "write" if operation == "write" else "read"
    return ValidationVerdict(
        allowed=True,
        path=ValidatedPath(resolved, op, _token=_CONSTRUCTION_TOKEN),
    )


def _dedupe_paths(paths: tuple[Path, ...]) -> tuple[Path, ...]:
    deduped: list[Path] = []
    for path in paths:
        if path not in deduped:
            deduped.append(path)
    return tuple(deduped)


@dataclass(frozen=True)
class PathValidator:
    """Path checks bound to one workspace root plus extra allowed roots."""

    workspace_root: Path
    allowed_roots: tuple[Path, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        workspace = Path(expand_home(str(self.workspace_root))).resolve()
        extras = tuple(Path(expand_home(str(path))).resolve() for path in self.allowed_roots)
        object.__setattr__(self, "workspace_root", workspace)
        object.__setattr__(self, "allowed_roots", _dedupe_paths((workspace, *extras)))

    def check(
        self,
        path: str | os.PathLike[str],
        operation: str = "read",
        *,
        base_dir: str | os.PathLike[str] | None = None,
    ) -> ValidationVerdict:
        """Validate *path*; relative values resolve against *base_dir* or the workspace root."""
        cwd = self.workspace_root
        if base_dir is not None:
            resolved_base = self._resolve_base_dir(base_dir)
            if resolved_base is None:
                return _deny(f"Base directory escapes allowed roots: {base_dir}")
            cwd = resolved_base
        return is_path_safe(
            path,
            operation,
            cwd=cwd,
            allowed_paths=self.allowed_roots,
        )

    def is_allowed(self, path: str | os.PathLike[str]) -> bool:
        """Return whether *path* stays under one of the allowlist roots."""
        resolved = _resolve(_normalize(path, self.workspace_root))
        if resolved is None:
            return False
        return any(resolved.is_relative_to(root) for root in self.allowed_roots)

    def _resolve_base_dir(self, base_dir: str | os.PathLike[str]) -> Path | None:
        resolved = _resolve(_normalize(base_dir, self.workspace_root))
        if resolved is None or not any(resolved.is_relative_to(root) for root in self.allowed_roots):
            return None
        return resolved
