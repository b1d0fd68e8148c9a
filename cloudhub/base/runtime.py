"""
Interpreter version check.

Warns on stderr when the running Python is end-of-life or close to it.
Update the thresholds to follow the CPython release schedule: *supported*
means not yet end-of-life, *recommended* means still receiving bugfix
releases (not only security fixes).
"""

from __future__ import annotations

import os
import platform
import sys
from typing import TextIO

from packaging.version import InvalidVersion, Version

# Minimum non-EOL Python version
SUPPORTED_VERSION_THRESHOLD = "3.10"

# Minimum Python version still in bugfix maintenance
RECOMMENDED_VERSION_THRESHOLD = "3.13"

SUPPRESS_ENV_VAR = "GOOGLE_CLOUD_SUPPRESS_PYTHON_WARNINGS"

_SCHEDULE_URL = "https://devguide.python.org/versions/"


def warn_on_old_runtime_version(
    supported_version: str = SUPPORTED_VERSION_THRESHOLD,
    recommended_version: str = RECOMMENDED_VERSION_THRESHOLD,
    *,
    current_version: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Print a warning if the current Python is old.

    Args:
        supported_version: Versions below this are end-of-life.
        recommended_version: Versions below this are nearing end-of-life.
        current_version: Version to check; defaults to the running interpreter.
        stream: Where to write; defaults to ``sys.stderr``.

    Never raises: if a version cannot be parsed a single diagnostic line is
    written instead.
    """
    if SUPPRESS_ENV_VAR in os.environ:
        return
    out = stream if stream is not None else sys.stderr
    try:
        current = Version(platform.python_version() if current_version is None else current_version)
        supported = Version(supported_version)
        recommended = Version(recommended_version)
    except (InvalidVersion, TypeError):
        print("Unable to determine current Python version.", file=out)
        return

    if current < supported:
        _warn_unsupported(current, recommended_version, out)
    elif current < recommended:
        _warn_nonrecommended(current, recommended_version, out)


def _warn_unsupported(current: Version, recommended_version: str, out: TextIO) -> None:
    print(
        f"WARNING: You are running Python {current}, which has reached"
        " end-of-life and is no longer supported by the Python core team.",
        file=out,
    )
    print(
        "The Cloudhub service clients work best on supported versions of"
        f" Python. It is strongly recommended that you upgrade to Python"
        f" {recommended_version} or later.",
        file=out,
    )
    _print_footer(out)


def _warn_nonrecommended(current: Version, recommended_version: str, out: TextIO) -> None:
    print(
        f"WARNING: You are running Python {current}, which is nearing end-of-life.",
        file=out,
    )
    print(
        "The Cloudhub service clients work best on supported versions of"
        f" Python. Consider upgrading to Python {recommended_version} or later.",
        file=out,
    )
    _print_footer(out)


def _print_footer(out: TextIO) -> None:
    print(f"See {_SCHEDULE_URL} for more info on the Python release schedule.", file=out)
    print(f"To suppress this message, set the {SUPPRESS_ENV_VAR} environment variable.", file=out)
