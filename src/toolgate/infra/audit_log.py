"""Append-only security event log for gate denials.

Dependencies: (none — leaf module)
Wired in: tools/tool_guard.py
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from threading import Lock
from typing import Any, Literal

from pydantic import BaseModel, Field

_log = logging.getLogger(__name__)

EventType = Literal["blocked_command", "path_violation", "validation_failure"]
Severity = Literal["low", "medium", "high", "critical"]

_LOUD_SEVERITIES: frozenset[str] = frozenset({"high", "critical"})
_DEFAULT_MAX_EVENTS = 1000


class SecurityEvent(BaseModel):
    """One denial recorded by the tool executor."""

    event_type: EventType
    severity: Severity
    details: dict[str, Any] = Field(default_factory=dict)
    session_id: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class SecurityLogger:
    """Keep recent events in memory and append each one to *log_path* as JSON."""

    def __init__(self, log_path: Path | None = None, *, max_events: int = _DEFAULT_MAX_EVENTS) -> None:
        if max_events <= 0:
            raise ValueError("max_events must be > 0.")
        self._log_path = log_path
        self._max_events = max_events
        self._events: list[SecurityEvent] = []
        self._lock = Lock()

    @property
    def log_path(self) -> Path | None:
        return self._log_path

    def log(self, event: SecurityEvent) -> None:
        """Record *event*. File write failures are logged, never raised."""
        with self._lock:
            self._events.append(event)
            if len(self._events) > self._max_events:
                del self._events[: len(self._events) - self._max_events]

        level = logging.WARNING if event.severity in _LOUD_SEVERITIES else logging.INFO
        _log.log(
            level,
            "security event %s (%s) session=%s details=%s",
            event.event_type,
            event.severity,
            event.session_id,
            event.details,
        )

        if self._log_path is not None:
            self._append(event, self._log_path)

    def _append(self, event: SecurityEvent, log_path: Path) -> None:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            with self._lock, log_path.open("a", encoding="utf-8") as fh:
                fh.write(event.model_dump_json() + "\n")
        except OSError:
            _log.exception("Failed to write security event to %s", log_path)

    def get_events(
        self,
        *,
        event_type: EventType | None = None,
        severity: Severity | None = None,
    ) -> list[SecurityEvent]:
        """Return a copy of recorded events, optionally filtered."""
        with self._lock:
            events = list(self._events)
        if event_type is not None:
            events = [e for e in events if e.event_type == event_type]
        if severity is not None:
            events = [e for e in events if e.severity == severity]
        return events

    def clear(self) -> None:
        """Drop in-memory events; the file log is append-only and untouched."""
        with self._lock:
            self._events.clear()


def read_events(log_path: Path) -> list[SecurityEvent]:
    """Load events previously appended to *log_path*. Missing file → empty list."""
    if not log_path.is_file():
        return []
    events: list[SecurityEvent] = []
    for line in log_path.read_text(encoding="utf-8").splitlines():
        if line.strip():
            events.append(SecurityEvent.model_validate_json(line))
    return events
