"""Downloads the ulb release artifact and moves it onto PATH.

Without an explicit prefix the target depends on the system type: a
writable ``/usr/bin`` means a classic distribution and the binary goes
there, otherwise the system is treated as atomic (immutable root) and the
binary goes to ``~/.local/bin``.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import httpx

from ulb_updater.config import Settings, get_settings
from ulb_updater.constants import DOWNLOAD_DIR, SYSTEM_BIN_DIR, USER_BIN_SUBDIR
from ulb_updater.environment import EnvironmentProvider, SystemEnvironment
from ulb_updater.errors import PlacementError
from ulb_updater.logging import get_logger
from ulb_updater.runner import ProcessRunner, SubprocessRunner

log = get_logger("ulb_updater.payload")


class BinaryPlacer:
    """Fetches the release binary and places it."""

    def __init__(
        self,
        settings: Settings | None = None,
        env: EnvironmentProvider | None = None,
        runner: ProcessRunner | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        download_dir: Path = DOWNLOAD_DIR,
    ) -> None:
        self._settings = settings or get_settings()
        self._env = env or SystemEnvironment()
        self._runner = runner or SubprocessRunner()
        self._transport = transport
        self._download_dir = Path(download_dir)

    async def place(self, prefix: Path | None = None) -> Path:
        """Download the binary and move it into *prefix* or the default location.

        Returns the path of the installed binary.
        """
        staged = await self.download()

        if prefix is not None:
            target_dir = Path(prefix)
            log.info("placing_binary", target=str(target_dir), reason="prefix")
            return self._move(staged, target_dir)

        if self._env.is_writable(SYSTEM_BIN_DIR):
            log.info("placing_binary", target=str(SYSTEM_BIN_DIR), reason="classic_system")
            target = SYSTEM_BIN_DIR / staged.name
            result = await self._runner.run(["sudo", "mv", str(staged), str(target)], capture=False)
            if not result.ok:
                raise PlacementError(
                    f"sudo mv to {SYSTEM_BIN_DIR} failed (exit {result.returncode})"
                )
            return target

        user_bin = self._env.home() / USER_BIN_SUBDIR
        log.info("placing_binary", target=str(user_bin), reason="atomic_system")
        return self._move(staged, user_bin)

    async def download(self) -> Path:
        """Download the release artifact into the staging directory."""
        url = self._settings.binary_url
        self._download_dir.mkdir(parents=True, exist_ok=True)
        staged = self._download_dir / self._settings.binary_name

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.http_timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                async with client.stream("GET", url) as resp:
                    resp.raise_for_status()
                    with staged.open("wb") as fh:
                        async for chunk in resp.aiter_bytes():
                            fh.write(chunk)
        except httpx.HTTPError as exc:
            staged.unlink(missing_ok=True)
            log.warning("binary_download_failed", url=url, error=str(exc))
            raise PlacementError(f"could not download {url}: {exc}") from exc

        staged.chmod(0o755)
        log.debug("binary_downloaded", url=url, path=str(staged))
        return staged

    @staticmethod
    def _move(staged: Path, target_dir: Path) -> Path:
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            target = target_dir / staged.name
            shutil.move(str(staged), str(target))
        except OSError as exc:
            raise PlacementError(f"could not move {staged} to {target_dir}: {exc}") from exc
        return target
