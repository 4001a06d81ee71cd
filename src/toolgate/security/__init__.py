"""Stateless validators that gate tool actions before any side effect.

Public API: CommandVerdict, DnsResolver, IpClassification, PathValidator,
    SystemResolver, ValidatedPath, ValidationVerdict, Violation,
    is_path_safe, is_private_host, is_private_host_or_resolved,
    validate_bash_command
Internal: bash_validator, network_validator, path_validator
"""

from toolgate.security.bash_validator import CommandVerdict, Violation, validate_bash_command
from toolgate.security.network_validator import (
    DnsResolver,
    IpClassification,
    SystemResolver,
    is_private_host,
    is_private_host_or_resolved,
)
from toolgate.security.path_validator import (
    PathValidator,
    ValidatedPath,
    ValidationVerdict,
    is_path_safe,
)

__all__ = [
    "CommandVerdict",
    "DnsResolver",
    "IpClassification",
    "PathValidator",
    "SystemResolver",
    "ValidatedPath",
    "ValidationVerdict",
    "Violation",
    "is_path_safe",
    "is_private_host",
    "is_private_host_or_resolved",
    "validate_bash_command",
]
