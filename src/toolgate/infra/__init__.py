"""Low-level infrastructure and plumbing.

Public API: SecurityEvent, SecurityLogger, read_events
Internal: audit_log
"""

from toolgate.infra.audit_log import SecurityEvent, SecurityLogger, read_events

__all__ = [
    "SecurityEvent",
    "SecurityLogger",
    "read_events",
]
