"""Reading the kernel split lock mitigation setting."""

from __future__ import annotations

import os
import re

from .log import log_error

SPLITLOCK_PATH = "/proc/sys/kernel/split_lock_mitigate"
_READ_LIMIT = 40
_LONG_MIN = -(1 << 63)
_LONG_MAX = (1 << 63) - 1
_LEADING_INT = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")


def get_splitlock_state(path: str | os.PathLike[str] = SPLITLOCK_PATH) -> int:
    """Return the current split lock mitigation value, or -1 when it cannot be read.

    Text that does not start with a number reads as 0.
    """
    try:
        with open(path, "rb") as handle:
            data = handle.read(_READ_LIMIT)
    except OSError:
        log_error(f"Failed to open file for read {os.fspath(path)}")
        return -1

    if not data:
        log_error(f"Failed to read contents of {os.fspath(path)}")
        return -1

    match = _LEADING_INT.match(data.decode(errors="replace"))
    if match is None:
        return 0
    return max(_LONG_MIN, min(_LONG_MAX, int(match.group(1))))