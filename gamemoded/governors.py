"""Discovery and reading of the CPU frequency scaling governors."""

from __future__ import annotations

import glob
import os
from pathlib import Path

from .log import log_error

DEFAULT_PATTERN = "/sys/devices/system/cpu/cpu*/cpufreq/scaling_governor"
MAX_GOVERNORS = 128
GOVERNOR_STATE_MAX = 63
MALFORMED = "malformed"


def fetch_governors(pattern: str = DEFAULT_PATTERN) -> list[str]:
    """Return the resolved paths of every distinct governor file.

    Several CPUs commonly share one cpufreq policy directory through
    symlinks, so paths are resolved and duplicates dropped. At most
    ``MAX_GOVERNORS`` matches are considered.
    """
    paths = sorted(glob.glob(pattern))
    if not paths:
        log_error("no cpu governors found")
        return []

    governors: list[str] = []
    for path in paths[:MAX_GOVERNORS]:
        try:
            real = os.path.realpath(path, strict=True)
        except OSError:
            continue
        if real not in governors:
            governors.append(real)
    return governors


def _first_line(data: str) -> str:
    return next((part for part in data.split("\n") if part), "")


def get_gov_state(pattern: str = DEFAULT_PATTERN) -> str:
    """Return the governor all CPUs currently use.

    Returns ``"malformed"`` when CPUs disagree and an empty string when
    nothing could be read.
    """
    governor = ""
    for path in fetch_governors(pattern):
        try:
            data = Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError:
            log_error(f"Failed to open file for read {path}")
            continue
        if not data:
            log_error(f"Failed to read contents of {path}")
            continue

        contents = _first_line(data)
        if governor and governor != contents:
            # Mixed governors should never happen; do not try to handle it.
            log_error(f'Governors malformed: got "{contents}", expected "{governor}"')
            return MALFORMED
        governor = contents[:GOVERNOR_STATE_MAX]
    return governor