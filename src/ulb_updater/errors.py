"""Exceptions raised by the ulb updater."""

from ulb_updater.constants import EXIT_INSTALL_FAILED


class UlbUpdaterError(Exception):
    """Base class for updater failures."""


class LocalVersionError(UlbUpdaterError):
    """The installed binary exists but could not report its version."""


class LatestVersionError(UlbUpdaterError):
    """The latest published version could not be determined.

    ``reason`` is one of ``unreachable``, ``rate_limited``, ``no_releases``,
    ``malformed`` or ``http_<status>``.
    """

    def __init__(self, reason: str, detail: str = "") -> None:
        self.reason = reason
        self.detail = detail
        message = f"latest version unavailable ({reason})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InstallError(UlbUpdaterError):
    """Installation failed; ``returncode`` becomes the process exit code."""

    def __init__(self, message: str, returncode: int = EXIT_INSTALL_FAILED) -> None:
        super().__init__(message)
        self.returncode = returncode if returncode != 0 else EXIT_INSTALL_FAILED


class PlacementError(UlbUpdaterError):
    """The release binary could not be downloaded or moved into place."""
