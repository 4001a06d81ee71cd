"""Executor-side composition of the three sandbox validators.

A ``ToolGuard`` is what the tool executor calls right before touching the
filesystem, spawning a shell or opening a connection. Each check either
returns (allowed) or raises ``ToolExecutionError`` after recording a
``SecurityEvent``. An unexpected exception inside a validator is treated as a
denial.

Dependencies: config, errors, infra.audit_log, security.*
Wired in: tools/enforcement.py
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from urllib.parse import urlsplit

from toolgate.config import GateConfig
from toolgate.errors import ToolExecutionError, tool_permission_denied, tool_validation_error
from toolgate.infra.audit_log import EventType, SecurityEvent, SecurityLogger, Severity
from toolgate.security.bash_validator import Violation, validate_bash_command
from toolgate.security.network_validator import (
    DnsResolver,
    is_private_host_or_resolved,
    normalize_hostname,
)
from toolgate.security.path_validator import ValidatedPath, is_path_safe

_log = logging.getLogger(__name__)

_CRITICAL_VIOLATIONS: frozenset[Violation] = frozenset(
    {
        Violation.FORK_BOMB,
        Violation.ROOT_DELETE,
        Violation.DEVICE_WRITE,
        Violation.DISK_OVERWRITE,
        Violation.FILESYSTEM_CREATE,
    }
)


class ToolGuard:
    """Gate tool actions and log every denial."""

    def __init__(
        self,
        config: GateConfig | None = None,
        *,
        cwd: str | os.PathLike[str] | None = None,
        logger: SecurityLogger | None = None,
        resolver: DnsResolver | None = None,
        session_id: str | None = None,
    ) -> None:
        self._config = config or GateConfig()
        self._cwd = Path(cwd) if cwd is not None else None
        self._logger = logger or SecurityLogger(self._config.security_log_path)
        self._resolver = resolver
        self._session_id = session_id

    @property
    def config(self) -> GateConfig:
        return self._config

    @property
    def logger(self) -> SecurityLogger:
        return self._logger

    def _deny(
        self,
        tool: str,
        *,
        event_type: EventType,
        severity: Severity,
        field: str,
        value: str,
        reason: str,
    ) -> ToolExecutionError:
        self._logger.log(
            SecurityEvent(
                event_type=event_type,
                severity=severity,
                details={"tool": tool, field: value, "reason": reason},
                session_id=self._session_id,
            )
        )
        return tool_permission_denied(tool, reason, {field: value})

    def check_path(
        self,
        tool: str,
        path: str | os.PathLike[str],
        operation: str = "read",
    ) -> ValidatedPath:
        """Return the validated path or raise ``ToolExecutionError``."""
        raw = os.fspath(path)
        try:
            verdict = is_path_safe(
                raw,
                operation,
                cwd=self._cwd,
                allowed_paths=self._config.allowed_paths,
            )
        except Exception:  # noqa: BLE001
            _log.exception("Path validation raised for %r", raw)
            raise self._deny(
                tool,
                event_type="path_violation",
                severity="high",
                field="path",
                value=raw,
                reason="Path validation failed",
            ) from None

        if not verdict.allowed or verdict.path is None:
            raise self._deny(
                tool,
                event_type="path_violation",
                severity="high",
                field="path",
                value=raw,
                reason=verdict.reason or "Path not allowed",
            )
        return verdict.path

    def check_command(self, tool: str, command: str) -> None:
        """Raise ``ToolExecutionError`` when *command* hits the denylist."""
        try:
            verdict = validate_bash_command(command)
        except Exception:  # noqa: BLE001
            _log.exception("Command validation raised for %r", command)
            raise self._deny(
                tool,
                event_type="blocked_command",
                severity="high",
                field="command",
                value=command,
                reason="Command validation failed",
            ) from None

        if not verdict.allowed:
            severity: Severity = (
                "critical" if verdict.violation in _CRITICAL_VIOLATIONS else "high"
            )
            raise self._deny(
                tool,
                event_type="blocked_command",
                severity=severity,
                field="command",
                value=command,
                reason=verdict.reason or "Command not allowed",
            )

    async def check_host(self, tool: str, host: str) -> None:
        """Raise ``ToolExecutionError`` when *host* is, or resolves to, a private address."""
        try:
            private = await is_private_host_or_resolved(
                host,
                resolver=self._resolver,
                timeout=self._config.dns_timeout_seconds,
            )
        except Exception:  # noqa: BLE001
            _log.exception("Host validation raised for %r", host)
            private = True

        if private:
            raise self._deny(
                tool,
                event_type="validation_failure",
                severity="high",
                field="host",
                value=host,
                reason=f"Blocked private or internal host: {normalize_hostname(host) or host}",
            )

    async def check_url(self, tool: str, url: str) -> str:
        """Validate *url*'s scheme and host; return the normalized host."""
        try:
            parts = urlsplit(url.strip())
            hostname = parts.hostname
        except ValueError:
            raise tool_validation_error(tool, f"Invalid URL: {url}", {"url": url}) from None

        scheme = parts.scheme.lower()
        if scheme not in self._config.allowed_url_schemes:
            raise self._deny(
                tool,
                event_type="validation_failure",
                severity="medium",
                field="url",
                value=url,
                reason=f"URL scheme not allowed: {scheme or '(none)'}",
            )
        if not hostname:
            raise tool_validation_error(tool, f"URL has no host: {url}", {"url": url})

        await self.check_host(tool, hostname)
        return normalize_hostname(hostname)
