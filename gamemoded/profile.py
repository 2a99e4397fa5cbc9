"""Reading the ACPI platform profile."""

from __future__ import annotations

import os

from .log import log_error

PROFILE_PATH = "/sys/firmware/acpi/platform_profile"
PROFILE_STATE_MAX = 63
NO_PROFILE = "none"


def get_profile_state(path: str | os.PathLike[str] = PROFILE_PATH) -> str:
    """Return the current platform profile.

    Returns ``"none"`` when the profile file cannot be opened and an empty
    string when it holds nothing.
    """
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            data = handle.read()
    except OSError:
        log_error(f"Failed to open file for read {os.fspath(path)}")
        return NO_PROFILE

    if not data:
        log_error(f"Failed to read contents of {os.fspath(path)}")
        return ""

    first = next((part for part in data.split("\n") if part), "")
    return first[:PROFILE_STATE_MAX]