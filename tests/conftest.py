"""Shared test fixtures for toolgate."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from pathlib import Path

import pytest


class StaticResolver:
    """Resolver returning fixed addresses and recording the hosts it was asked for."""

    def __init__(self, addresses: Iterable[str]) -> None:
        self.addresses = list(addresses)
        self.calls: list[str] = []

    async def resolve(self, host: str) -> list[str]:
        self.calls.append(host)
        return list(self.addresses)


class FailingResolver:
    """Resolver that always raises, like an NXDOMAIN or a dead DNS server."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def resolve(self, host: str) -> list[str]:
        self.calls.append(host)
        raise OSError(f"DNS lookup failed for {host}")


class HangingResolver:
    """Resolver that never answers within any reasonable timeout."""

    async def resolve(self, host: str) -> list[str]:
        await asyncio.sleep(3600)
        return []


@pytest.fixture()
def workspace(tmp_path: Path) -> Path:
    """Temporary working directory used as the primary allow root."""
    path = tmp_path / "workspace"
    path.mkdir()
    return path


@pytest.fixture()
def outside(tmp_path: Path) -> Path:
    """Directory next to the workspace, outside every allow root."""
    path = tmp_path / "outside"
    path.mkdir()
    return path


@pytest.fixture()
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Fake home directory wired through ``HOME``."""
    path = tmp_path / "home"
    path.mkdir()
    monkeypatch.setenv("HOME", str(path))
    return path


@pytest.fixture()
def static_resolver() -> Callable[..., StaticResolver]:
    def _make(*addresses: str) -> StaticResolver:
        return StaticResolver(addresses)

    return _make


@pytest.fixture()
def failing_resolver() -> FailingResolver:
    return FailingResolver()


@pytest.fixture()
def hanging_resolver() -> HangingResolver:
    return HangingResolver()
