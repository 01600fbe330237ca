"""Entry point for ``python -m ulb_updater``."""

from ulb_updater.cli import update

if __name__ == "__main__":
    update()
