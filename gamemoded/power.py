"""Reading CPU and integrated GPU energy counters from the RAPL interface."""

from __future__ import annotations

import glob
import os
import re

from .log import log_error, log_once

DEFAULT_PATTERN = "/sys/class/powercap/intel-rapl/intel-rapl:0/intel-rapl:0:*"
FIELD_LIMIT = 32
_LEADING_INT = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")


class PowerReadError(OSError):
    """Raised when an energy counter cannot be read."""


def read_file_in_dir(
    directory: str | os.PathLike[str], name: str, limit: int = FIELD_LIMIT
) -> str:
    """Read a small sysfs file, trimming trailing whitespace.

    Fails when the file is empty or holds ``limit`` bytes or more.
    """
    path = os.path.join(os.fspath(directory), name)
    try:
        with open(path, "rb") as handle:
            data = handle.read(limit)
    except OSError as exc:
        log_error(f"Failed to open file for read {path}")
        raise PowerReadError(f"cannot open {path}: {exc.strerror or exc}") from exc

    if not data:
        log_error(f"Failed to read contents of {path}")
        raise PowerReadError(f"{path} is empty")
    if len(data) >= limit:
        log_error(f"File contained more data than expected {path}")
        raise PowerReadError(f"{path} holds more than {limit - 1} bytes")

    return data.decode(errors="replace").rstrip()


def get_energy_uj(rapl_name: str, pattern: str = DEFAULT_PATTERN) -> int:
    """Return the energy counter, in microjoules, of the RAPL domain ``rapl_name``.

    The value is wrapped to 32 bits, as deltas are later taken at that width.
    """
    paths = sorted(glob.glob(pattern))
    if not paths:
        log_once(
            "rapl-missing",
            "Intel RAPL interface not found in sysfs. "
            "This is only problematic if you expected Intel iGPU "
            "power threshold optimization.",
        )
        raise PowerReadError("RAPL interface not found")

    for directory in paths:
        name = read_file_in_dir(directory, "name")
        if name[:FIELD_LIMIT] != rapl_name[:FIELD_LIMIT]:
            continue

        text = read_file_in_dir(directory, "energy_uj")
        match = _LEADING_INT.match(text)
        if match is None:
            log_error(f"Invalid energy_uj contents: {text}")
            raise PowerReadError(f"invalid energy_uj contents: {text!r}")
        value = int(match.group(1))
        if value < 0:
            log_error(f"Value of energy_uj is out of expected bounds: {value}")
            raise PowerReadError(f"energy_uj out of bounds: {value}")
        return value & 0xFFFFFFFF

    # Most likely asking for "uncore" on a machine without an integrated GPU.
    raise PowerReadError(f"no RAPL domain named {rapl_name!r}")


def get_cpu_energy_uj(pattern: str = DEFAULT_PATTERN) -> int:
    """Return the energy used to date by the CPU cores in microjoules."""
    return get_energy_uj("core", pattern)


def get_igpu_energy_uj(pattern: str = DEFAULT_PATTERN) -> int:
    """Return the energy used to date by the integrated GPU in microjoules."""
    return get_energy_uj("uncore", pattern)