"""Gate configuration loading and TOML parsing.

Settings live in the ``[security]`` table of a TOML file. When the file or
the table is missing, defaults apply.

```toml
[security]
allowed_paths = ["~/shared-data"]
dns_timeout_seconds = 3.0
security_log_path = "~/.toolgate/security.log"
allowed_url_schemes = ["https"]
```

Dependencies: security.path_validator
Wired in: tools/tool_guard.py
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import cast

from toolgate.security.path_validator import expand_home

_DEFAULT_DNS_TIMEOUT_SECONDS = 5.0
_DEFAULT_URL_SCHEMES: frozenset[str] = frozenset({"http", "https"})
_LOG_PATH_ENV = "TOOLGATE_SECURITY_LOG"


@dataclass(frozen=True)
class GateConfig:
    """Immutable executor-side settings for the sandbox gate."""

    allowed_paths: tuple[Path, ...] = field(default_factory=tuple)
    """Extra allow roots on top of the per-call working directory."""

    dns_timeout_seconds: float = _DEFAULT_DNS_TIMEOUT_SECONDS
    """Upper bound on hostname resolution; a timeout blocks the host."""

    security_log_path: Path | None = None
    """Append-only JSON-lines file for security events (``None`` = memory only)."""

    allowed_url_schemes: frozenset[str] = _DEFAULT_URL_SCHEMES
    """URL schemes accepted by ``ToolGuard.check_url``."""

    def __post_init__(self) -> None:
        if self.dns_timeout_seconds <= 0:
            raise ValueError("dns_timeout_seconds must be > 0.")
        if not self.allowed_url_schemes:
            raise ValueError("allowed_url_schemes must not be empty.")


def _as_path(raw: object, key: str) -> Path:
    if not isinstance(raw, str) or not raw.strip():
        msg = f"security.{key}: expected a non-empty path string, got {raw!r}."
        raise TypeError(msg)
    return Path(expand_home(raw.strip()))


def _as_str_list(raw: object, key: str) -> list[str]:
    if not isinstance(raw, list):
        msg = f"security.{key}: must be a list."
        raise TypeError(msg)
    return [str(item) for item in cast(list[object], raw)]


def parse_gate_config(section: dict[str, object]) -> GateConfig:
    """Build a ``GateConfig`` from a parsed ``[security]`` table."""
    allowed_paths = tuple(
        _as_path(item, "allowed_paths")
        for item in _as_str_list(section.get("allowed_paths", []), "allowed_paths")
    )

    raw_timeout = section.get("dns_timeout_seconds", _DEFAULT_DNS_TIMEOUT_SECONDS)
    if isinstance(raw_timeout, bool) or not isinstance(raw_timeout, int | float):
        msg = f"security.dns_timeout_seconds: expected a number, got {raw_timeout!r}."
        raise TypeError(msg)

    raw_log = section.get("security_log_path")
    log_path = _as_path(raw_log, "security_log_path") if raw_log is not None else None
    env_log = os.getenv(_LOG_PATH_ENV, "").strip()
    if env_log:
        log_path = Path(expand_home(env_log))

    schemes = frozenset(
        scheme.strip().lower()
        for scheme in _as_str_list(
            section.get("allowed_url_schemes", sorted(_DEFAULT_URL_SCHEMES)),
            "allowed_url_schemes",
        )
        if scheme.strip()
    )

    return GateConfig(
        allowed_paths=allowed_paths,
        dns_timeout_seconds=float(raw_timeout),
        security_log_path=log_path,
        allowed_url_schemes=schemes,
    )


def load_gate_config(config_path: Path) -> GateConfig:
    """Load gate settings from the ``[security]`` table of *config_path*."""
    section: dict[str, object] = {}
    if config_path.is_file():
        with config_path.open("rb") as fh:
            data = tomllib.load(fh)
        raw_section = data.get("security")
        if raw_section is not None and not isinstance(raw_section, dict):
            msg = "[security] must be a table."
            raise TypeError(msg)
        if raw_section is not None:
            section = cast(dict[str, object], raw_section)
    return parse_gate_config(section)
