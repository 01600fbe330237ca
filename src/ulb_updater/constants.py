"""Centralized constants for the ulb updater."""

from pathlib import Path

# Reported by get_local_version() when ulb is not on PATH
NOT_INSTALLED = "none"

SYSTEM_BIN_DIR = Path("/usr/bin")
# Relative to the user's home directory
USER_BIN_SUBDIR = Path(".local") / "bin"

# Staging directory used by the placement payload
DOWNLOAD_DIR = Path("/tmp/ulb/download-ulb")

GITHUB_API_BASE = "https://api.github.com"
GITHUB_ACCEPT = "application/vnd.github.v3+json"

# Process exit codes
EXIT_OK = 0
EXIT_UNRECOGNIZED_LOCATION = 1
EXIT_INSTALL_FAILED = 2
EXIT_VERSION_CHECK_FAILED = 3

# Conventional shell code for "command not found"
COMMAND_NOT_FOUND = 127
COMMAND_NOT_EXECUTABLE = 126
