"""Shared fixtures and fakes for the ulb updater tests."""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from ulb_updater.config import Settings
from ulb_updater.runner import CommandResult


class FakeEnvironment:
    """EnvironmentProvider with a fixed PATH lookup table."""

    def __init__(
        self,
        home: Path,
        binaries: dict[str, Path] | None = None,
        writable: set[Path] | None = None,
    ) -> None:
        self._home = home
        self.binaries = dict(binaries or {})
        self.writable = set(writable or ())

    def which(self, name: str) -> Path | None:
        return self.binaries.get(name)

    def home(self) -> Path:
        return self._home

    def is_writable(self, directory: Path) -> bool:
        return directory in self.writable


class FakeRunner:
    """ProcessRunner that records calls and answers from a handler."""

    def __init__(
        self,
        handler: Callable[[list[str]], CommandResult] | None = None,
    ) -> None:
        self.calls: list[tuple[list[str], bool]] = []
        self._handler = handler or (lambda args: CommandResult(returncode=0))

    async def run(self, args: Sequence[str], *, capture: bool = True) -> CommandResult:
        argv = [str(a) for a in args]
        self.calls.append((argv, capture))
        return self._handler(argv)

    @property
    def argv(self) -> list[list[str]]:
        return [call[0] for call in self.calls]


def make_settings(**overrides) -> Settings:
    """Create Settings isolated from the real environment and .env files."""
    defaults = {
        "_env_file": None,
        "github_repo": "owner/ulb",
        "installer_url": "https://example.test/install.sh",
        "http_timeout": 5.0,
    }
    defaults.update(overrides)
    return Settings(**defaults)


@pytest.fixture(autouse=True)
def _clear_ulb_env(monkeypatch):
    """Keep ULB_* variables from the host out of every test."""
    for key in list(os.environ):
        if key.upper().startswith("ULB_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def home(tmp_path: Path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path
