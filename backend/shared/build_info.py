"""Build metadata reported by the records service health check.

APP_VERSION and GIT_COMMIT may be set via environment variables in CI.
Otherwise the version comes from the installed distribution and the commit
from the local git checkout, each falling back to "dev".
"""

import os
import subprocess
from importlib import metadata

DISTRIBUTION_NAME = "naval-battle"


def _installed_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return "dev"


def _git_short_sha() -> str:
    """Read short SHA from git for local development."""
    try:
        return subprocess.check_output(
            ["git", "rev-parse", "--short", "HEAD"],  # noqa: S607
            text=True,
            stderr=subprocess.DEVNULL,
        ).strip()
    except (FileNotFoundError, subprocess.CalledProcessError):
        return "dev"


APP_VERSION: str = os.environ.get("APP_VERSION") or _installed_version()
GIT_COMMIT: str = os.environ.get("GIT_COMMIT") or _git_short_sha()
