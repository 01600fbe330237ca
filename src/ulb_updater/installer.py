"""Runs the published install payload against a destination directory."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import httpx

from ulb_updater.config import Settings, get_settings
from ulb_updater.constants import SYSTEM_BIN_DIR
from ulb_updater.errors import InstallError
from ulb_updater.logging import get_logger
from ulb_updater.runner import ProcessRunner, SubprocessRunner

log = get_logger("ulb_updater.installer")


class Installer:
    """Installs ulb into ``~/.local/bin`` or ``/usr/bin``.

    The payload is fetched fresh for every install and always deleted
    afterwards, whether it succeeded or not.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        runner: ProcessRunner | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        tmp_dir: str | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._runner = runner or SubprocessRunner()
        self._transport = transport
        self._tmp_dir = tmp_dir

    async def install(self, destination: Path) -> None:
        """Install ulb into *destination*.

        Raises:
            InstallError: removing the old binary, downloading the payload
                or running it failed.
        """
        destination = Path(destination)
        system = destination == SYSTEM_BIN_DIR
        log.info("install_started", destination=str(destination), elevated=system)

        await self._remove_existing(destination / self._settings.binary_name, elevated=system)

        fd, tmp_name = tempfile.mkstemp(prefix="ulb-installer.", suffix=".sh", dir=self._tmp_dir)
        payload = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as fh:
                await self._download(fh)
            payload.chmod(0o755)

            if system:
                args = ["sudo", str(payload)]
            else:
                args = ["bash", str(payload), f"--prefix={destination}"]

            result = await self._runner.run(args, capture=False)
            if not result.ok:
                log.warning(
                    "install_payload_failed",
                    destination=str(destination),
                    returncode=result.returncode,
                )
                raise InstallError(
                    f"installer exited with code {result.returncode}",
                    returncode=result.returncode,
                )
        finally:
            payload.unlink(missing_ok=True)

        log.info("install_complete", destination=str(destination))

    async def _remove_existing(self, binary: Path, *, elevated: bool) -> None:
        if elevated:
            result = await self._runner.run(["sudo", "rm", "-f", str(binary)], capture=False)
            if not result.ok:
                raise InstallError(
                    f"could not remove {binary} (exit {result.returncode})",
                    returncode=result.returncode,
                )
            return

        try:
            binary.unlink(missing_ok=True)
        except OSError as exc:
            raise InstallError(f"could not remove {binary}: {exc}") from exc

    async def _download(self, fh) -> None:
        url = self._settings.installer_url
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.http_timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                async with client.stream("GET", url) as resp:
                    resp.raise_for_status()
                    async for chunk in resp.aiter_bytes():
                        fh.write(chunk)
        except httpx.HTTPError as exc:
            log.warning("install_payload_download_failed", url=url, error=str(exc))
            raise InstallError(f"could not download installer from {url}: {exc}") from exc
