"""Installed and published ulb versions.

Versions are opaque tags compared by string equality; nothing here
parses or orders them.
"""

from __future__ import annotations

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ulb_updater.config import Settings, get_settings
from ulb_updater.constants import GITHUB_ACCEPT, NOT_INSTALLED
from ulb_updater.environment import EnvironmentProvider, SystemEnvironment
from ulb_updater.errors import LatestVersionError, LocalVersionError
from ulb_updater.logging import get_logger
from ulb_updater.runner import ProcessRunner, SubprocessRunner

log = get_logger("ulb_updater.versions")

_RATE_LIMIT_STATUSES = {403, 429}


class LatestRelease(BaseModel):
    """The part of the GitHub latest-release payload the updater reads."""

    model_config = ConfigDict(extra="ignore")

    tag_name: str

    @field_validator("tag_name")
    @classmethod
    def _validate_tag(cls, value: str) -> str:
        tag = value.strip()
        if not tag:
            raise ValueError("tag_name is empty")
        if tag == NOT_INSTALLED:
            raise ValueError(f"tag_name collides with the '{NOT_INSTALLED}' sentinel")
        return tag


class VersionOracle:
    """Resolves the installed version and the latest published one."""

    def __init__(
        self,
        settings: Settings | None = None,
        env: EnvironmentProvider | None = None,
        runner: ProcessRunner | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._env = env or SystemEnvironment()
        self._runner = runner or SubprocessRunner()
        self._transport = transport

    async def get_local_version(self) -> str:
        """Return the output of ``ulb version``, or ``"none"`` if ulb is not on PATH."""
        path = self._env.which(self._settings.binary_name)
        if path is None:
            log.debug("local_binary_not_found", binary=self._settings.binary_name)
            return NOT_INSTALLED

        result = await self._runner.run([str(path), "version"])
        if not result.ok:
            raise LocalVersionError(
                f"'{path} version' exited with {result.returncode}: {result.stderr.strip()}"
            )

        version = result.stdout.rstrip("\n")
        log.debug("local_version_resolved", path=str(path), version=version)
        return version

    async def get_latest_version(self) -> str:
        """Return the tag of the latest GitHub release.

        Raises:
            LatestVersionError: the endpoint was unreachable, rate limited,
                had no releases or returned something other than a release.
        """
        headers: dict[str, str] = {"Accept": GITHUB_ACCEPT}
        if self._settings.github_token is not None:
            headers["Authorization"] = f"Bearer {self._settings.github_token.get_secret_value()}"

        url = self._settings.api_url
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.http_timeout,
                transport=self._transport,
            ) as client:
                resp = await client.get(url, headers=headers)
        except httpx.RequestError as exc:
            log.warning("latest_version_unreachable", url=url, error=str(exc))
            raise LatestVersionError("unreachable", str(exc)) from exc

        if resp.status_code in _RATE_LIMIT_STATUSES and (
            resp.headers.get("x-ratelimit-remaining") == "0" or resp.status_code == 429
        ):
            log.warning(
                "latest_version_rate_limited",
                status=resp.status_code,
                reset=resp.headers.get("x-ratelimit-reset"),
            )
            raise LatestVersionError("rate_limited", f"HTTP {resp.status_code}")

        if resp.status_code == 404:
            log.warning("latest_version_no_releases", repo=self._settings.github_repo)
            raise LatestVersionError("no_releases", self._settings.github_repo)

        if resp.status_code != 200:
            log.warning("latest_version_http_error", status=resp.status_code)
            raise LatestVersionError(f"http_{resp.status_code}")

        try:
            release = LatestRelease.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            log.warning("latest_version_malformed", error=str(exc)[:200])
            raise LatestVersionError("malformed", "response has no usable tag_name") from exc

        log.debug("latest_version_resolved", tag=release.tag_name)
        return release.tag_name
