"""Command-line entry points.

Usage:
    ulb-update
    ulb-install [--prefix PATH]
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from ulb_updater import __version__
from ulb_updater.constants import EXIT_INSTALL_FAILED
from ulb_updater.errors import PlacementError
from ulb_updater.logging import get_logger, setup_logging
from ulb_updater.orchestrator import UpdateOrchestrator
from ulb_updater.payload import BinaryPlacer


@click.command()
def update() -> None:
    """Update ulb to the latest release."""
    setup_logging()
    log = get_logger("ulb_updater.cli")

    outcome = asyncio.run(UpdateOrchestrator().run())
    log.debug("update_exit", exit_code=outcome.exit_code, state=outcome.state.value)
    sys.exit(outcome.exit_code)


@click.command()
@click.version_option(version=__version__, prog_name="ulb-install")
@click.option(
    "--prefix",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to install ulb into (default: /usr/bin if writable, else ~/.local/bin).",
)
def install(prefix: Path | None) -> None:
    """Download the ulb release binary and put it on PATH."""
    setup_logging()

    try:
        target = asyncio.run(BinaryPlacer().place(prefix))
    except PlacementError as exc:
        click.echo(f"Installation failed: {exc}", err=True)
        sys.exit(EXIT_INSTALL_FAILED)

    click.echo(f"ulb installed to {target}")
