"""Update orchestration: compare versions, pick a destination, install.

Typical flow:
1. ``VersionOracle`` reports the installed and the latest version
2. If they match, nothing happens
3. Otherwise the location of the current binary decides where the
   ``Installer`` puts the new one; unknown locations are left alone
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import click

from ulb_updater.config import Settings, get_settings
from ulb_updater.constants import (
    EXIT_OK,
    EXIT_UNRECOGNIZED_LOCATION,
    EXIT_VERSION_CHECK_FAILED,
    NOT_INSTALLED,
    SYSTEM_BIN_DIR,
    USER_BIN_SUBDIR,
)
from ulb_updater.environment import EnvironmentProvider, SystemEnvironment
from ulb_updater.errors import InstallError, LatestVersionError, LocalVersionError
from ulb_updater.installer import Installer
from ulb_updater.logging import get_logger
from ulb_updater.versions import VersionOracle

log = get_logger("ulb_updater.orchestrator")


class UpdateState(Enum):
    """Where a single update run ended up."""

    CHECKING = "checking"
    UP_TO_DATE = "up_to_date"
    INSTALL_FRESH = "install_fresh"
    INSTALL_USER = "install_user"
    INSTALL_SYSTEM = "install_system"
    UNRECOGNIZED_LOCATION = "unrecognized_location"
    VERSION_CHECK_FAILED = "version_check_failed"
    INSTALL_FAILED = "install_failed"


@dataclass
class UpdateOutcome:
    """Result of one update run."""

    state: UpdateState
    local_version: str | None = None
    latest_version: str | None = None  # None when the release check failed
    binary_path: Path | None = None
    destination: Path | None = None
    exit_code: int = EXIT_OK
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "local_version": self.local_version,
            "latest_version": self.latest_version,
            "binary_path": str(self.binary_path) if self.binary_path else None,
            "destination": str(self.destination) if self.destination else None,
            "exit_code": self.exit_code,
            "error": self.error,
        }


def select_destination(
    binary_path: Path | None, home: Path, binary_name: str = "ulb"
) -> tuple[UpdateState, Path | None]:
    """Map the located binary to an install state and destination directory.

    Paths are compared as given, without resolving symlinks.
    """
    user_bin = home / USER_BIN_SUBDIR
    if binary_path is None:
        return UpdateState.INSTALL_FRESH, user_bin
    if binary_path == user_bin / binary_name:
        return UpdateState.INSTALL_USER, user_bin
    if binary_path == SYSTEM_BIN_DIR / binary_name:
        return UpdateState.INSTALL_SYSTEM, SYSTEM_BIN_DIR
    return UpdateState.UNRECOGNIZED_LOCATION, None


class UpdateOrchestrator:
    """Brings the installed ulb up to the latest release."""

    def __init__(
        self,
        settings: Settings | None = None,
        env: EnvironmentProvider | None = None,
        oracle: VersionOracle | None = None,
        installer: Installer | None = None,
        echo: Callable[[str], None] = click.echo,
    ) -> None:
        self._settings = settings or get_settings()
        self._env = env or SystemEnvironment()
        self._oracle = oracle or VersionOracle(settings=self._settings, env=self._env)
        self._installer = installer or Installer(settings=self._settings)
        self._echo = echo

    async def run(self) -> UpdateOutcome:
        """Run one update check and, if needed, one install."""
        name = self._settings.binary_name
        outcome = UpdateOutcome(state=UpdateState.CHECKING)

        try:
            outcome.local_version = await self._oracle.get_local_version()
        except LocalVersionError as exc:
            log.warning("local_version_failed", error=str(exc))
            self._echo(f"Could not read the installed {name} version: {exc}")
            return self._finish(outcome, UpdateState.VERSION_CHECK_FAILED, str(exc))
        self._echo(f"Local {name} version: {outcome.local_version}")

        try:
            outcome.latest_version = await self._oracle.get_latest_version()
        except LatestVersionError as exc:
            outcome.error = str(exc)
            self._echo(f"Latest {name} version: unknown ({exc.reason})")
            if self._settings.unknown_remote_policy == "abort":
                self._echo("Version check failed; not updating.")
                return self._finish(outcome, UpdateState.VERSION_CHECK_FAILED, str(exc))
            log.warning("latest_version_unknown_updating_anyway", reason=exc.reason)
        else:
            self._echo(f"Latest {name} version: {outcome.latest_version}")

        if (
            outcome.local_version != NOT_INSTALLED
            and outcome.latest_version is not None
            and outcome.local_version == outcome.latest_version
        ):
            self._echo(f"{name} is already up to date.")
            return self._finish(outcome, UpdateState.UP_TO_DATE)

        self._echo("New version available, updating")
        outcome.binary_path = self._env.which(name)
        state, destination = select_destination(outcome.binary_path, self._env.home(), name)
        outcome.destination = destination

        if destination is None:
            self._echo(f"{name} is installed in a non-standard location: {outcome.binary_path}")
            self._echo("Automatic update is not supported there; please update it manually.")
            return self._finish(outcome, state)

        self._echo(f"Installing {name} to {destination} ...")
        try:
            await self._installer.install(destination)
        except InstallError as exc:
            self._echo(f"Installation failed: {exc}")
            return self._finish(outcome, UpdateState.INSTALL_FAILED, str(exc), exc.returncode)

        self._echo(f"{name} installed to {destination}.")
        return self._finish(outcome, state)

    def _finish(
        self,
        outcome: UpdateOutcome,
        state: UpdateState,
        error: str | None = None,
        exit_code: int | None = None,
    ) -> UpdateOutcome:
        outcome.state = state
        if error is not None:
            outcome.error = error
        if exit_code is not None:
            outcome.exit_code = exit_code
        elif state is UpdateState.UNRECOGNIZED_LOCATION:
            outcome.exit_code = EXIT_UNRECOGNIZED_LOCATION
        elif state is UpdateState.VERSION_CHECK_FAILED:
            outcome.exit_code = EXIT_VERSION_CHECK_FAILED
        else:
            outcome.exit_code = EXIT_OK
        log.info("update_finished", **outcome.to_dict())
        return outcome
