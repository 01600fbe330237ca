"""End-to-end update runs with real components and fake host/network.

The orchestrator, version oracle and installer are the production classes;
only the HTTP transport, PATH lookup and subprocess execution are faked.
"""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest
from conftest import FakeEnvironment, FakeRunner, make_settings

from ulb_updater.installer import Installer
from ulb_updater.orchestrator import UpdateOrchestrator, UpdateState
from ulb_updater.runner import CommandResult
from ulb_updater.versions import VersionOracle

INSTALL_SCRIPT = b"#!/bin/bash\nexit 0\n"


def _github(latest_tag: str | None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "api.github.com":
            if latest_tag is None:
                return httpx.Response(500)
            return httpx.Response(200, json={"tag_name": latest_tag})
        if request.url.path.endswith("/install.sh"):
            return httpx.Response(200, content=INSTALL_SCRIPT)
        return httpx.Response(404)

    return httpx.MockTransport(handler)


def _runner(local_version: str, payload_rc: int = 0) -> FakeRunner:
    def handler(args: list[str]) -> CommandResult:
        if args[-1] == "version":
            return CommandResult(0, stdout=f"{local_version}\n")
        if any(Path(a).name.startswith("ulb-installer.") for a in args):
            return CommandResult(payload_rc)
        return CommandResult(0)

    return FakeRunner(handler)


def _wire(
    tmp_path: Path,
    *,
    binary: Path | None,
    local_version: str,
    latest_tag: str | None,
    payload_rc: int = 0,
    **settings_overrides,
) -> tuple[UpdateOrchestrator, FakeRunner, list[str]]:
    home = tmp_path / "home"
    home.mkdir(exist_ok=True)
    tmp_dir = tmp_path / "tmp"
    tmp_dir.mkdir(exist_ok=True)

    settings = make_settings(
        installer_url="https://raw.example.test/install.sh", **settings_overrides
    )
    env = FakeEnvironment(home=home, binaries={"ulb": binary} if binary else None)
    runner = _runner(local_version, payload_rc)
    transport = _github(latest_tag)
    lines: list[str] = []

    orchestrator = UpdateOrchestrator(
        settings=settings,
        env=env,
        oracle=VersionOracle(settings=settings, env=env, runner=runner, transport=transport),
        installer=Installer(
            settings=settings, runner=runner, transport=transport, tmp_dir=str(tmp_dir)
        ),
        echo=lines.append,
    )
    return orchestrator, runner, lines


class TestUpdateFlow:
    """Scenario tests across the whole update path."""

    @pytest.mark.asyncio
    async def test_already_current(self, tmp_path: Path) -> None:
        home_bin = tmp_path / "home" / ".local" / "bin" / "ulb"
        orch, runner, lines = _wire(
            tmp_path, binary=home_bin, local_version="v1.0.0", latest_tag="v1.0.0"
        )

        outcome = await orch.run()

        assert outcome.exit_code == 0
        assert outcome.state is UpdateState.UP_TO_DATE
        assert runner.argv == [[str(home_bin), "version"]]
        assert "ulb is already up to date." in lines

    @pytest.mark.asyncio
    async def test_fresh_install(self, tmp_path: Path) -> None:
        orch, runner, _ = _wire(tmp_path, binary=None, local_version="", latest_tag="v2.0.0")

        outcome = await orch.run()

        user_bin = tmp_path / "home" / ".local" / "bin"
        assert outcome.state is UpdateState.INSTALL_FRESH
        assert outcome.local_version == "none"
        assert outcome.exit_code == 0
        assert runner.argv[-1][0] == "bash"
        assert runner.argv[-1][-1] == f"--prefix={user_bin}"
        assert list((tmp_path / "tmp").iterdir()) == []

    @pytest.mark.asyncio
    async def test_system_update_elevates(self, tmp_path: Path) -> None:
        orch, runner, _ = _wire(
            tmp_path, binary=Path("/usr/bin/ulb"), local_version="v1.0.0", latest_tag="v2.0.0"
        )

        outcome = await orch.run()

        assert outcome.state is UpdateState.INSTALL_SYSTEM
        assert runner.argv[1] == ["sudo", "rm", "-f", "/usr/bin/ulb"]
        assert runner.argv[2][0] == "sudo"
        assert Path(runner.argv[2][1]).name.startswith("ulb-installer.")

    @pytest.mark.asyncio
    async def test_custom_location(self, tmp_path: Path) -> None:
        orch, runner, lines = _wire(
            tmp_path, binary=Path("/opt/custom/ulb"), local_version="v1.0.0", latest_tag="v2.0.0"
        )

        outcome = await orch.run()

        assert outcome.exit_code == 1
        assert runner.argv == [["/opt/custom/ulb", "version"]]
        assert any("/opt/custom/ulb" in line for line in lines)

    @pytest.mark.asyncio
    async def test_failing_payload_cleans_up(self, tmp_path: Path) -> None:
        orch, _, _ = _wire(
            tmp_path, binary=None, local_version="", latest_tag="v2.0.0", payload_rc=4
        )

        outcome = await orch.run()

        assert outcome.state is UpdateState.INSTALL_FAILED
        assert outcome.exit_code == 4
        assert list((tmp_path / "tmp").iterdir()) == []

    @pytest.mark.asyncio
    async def test_release_check_failure_with_abort_policy(self, tmp_path: Path) -> None:
        orch, runner, _ = _wire(
            tmp_path,
            binary=Path("/usr/bin/ulb"),
            local_version="v1.0.0",
            latest_tag=None,
            unknown_remote_policy="abort",
        )

        outcome = await orch.run()

        assert outcome.exit_code == 3
        assert all(call[0] != "sudo" for call in runner.argv)
