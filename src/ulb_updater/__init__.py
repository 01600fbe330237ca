"""Installer and self-updater for the ulb binary.

Checks the installed ``ulb`` against the latest GitHub release and, when
they differ, re-runs the published install payload for the location the
binary currently lives in.
"""

__version__ = "0.1.0"
