"""Discovery of which CPU cores to keep for games, by parking or pinning."""

from __future__ import annotations

import enum
import os
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .cpulist import expand_cpulist, iter_cpu_ranges
from .log import log_error, log_msg

_FALSE_WORDS = ("no", "false")
_TRUE_WORDS = ("yes", "true")
_LEADING_UINT = re.compile(r"[ \t\n\v\f\r]*\+?([0-9]+)")
_CACHE_UNITS = {"K": 1024, "M": 1024 * 1024, "G": 1024 * 1024 * 1024}


class CpuMode(enum.IntEnum):
    """Whether unwanted cores are taken offline or games are pinned away from them."""

    PARK = 0
    PIN = 1


@dataclass(frozen=True)
class CPUInfo:
    """The online cores and the cores to keep for games."""

    num_cpu: int
    mode: CpuMode
    online: frozenset[int]
    to_keep: frozenset[int]

    def parked_cores(self) -> frozenset[int]:
        """Return the online cores that are not kept."""
        return self.online - self.to_keep


def _is_false(value: str) -> bool:
    return value.lower() in _FALSE_WORDS or value == "0"


def _is_true(value: str) -> bool:
    return value.lower() in _TRUE_WORDS or value == "1"


def select_mode(park_cores: str, pin_cores: str) -> tuple[CpuMode, str] | None:
    """Decide between parking and pinning from the two config values.

    Returns the mode and the explicit core list to use (empty for automatic
    detection), or ``None`` when both features are switched off.
    """
    mode: CpuMode | None = None
    disabled_pin = False

    if pin_cores:
        if _is_false(pin_cores):
            disabled_pin = True
        elif _is_true(pin_cores):
            pin_cores = ""
            mode = CpuMode.PIN
        else:
            mode = CpuMode.PIN

    if mode is not CpuMode.PIN and park_cores:
        if _is_false(park_cores):
            if disabled_pin:
                return None
            mode = None
        elif _is_true(park_cores):
            park_cores = ""
            mode = CpuMode.PARK
        else:
            mode = CpuMode.PARK

    if mode is not CpuMode.PARK:
        mode = CpuMode.PIN

    return mode, park_cores if mode is CpuMode.PARK else pin_cores


def walk_string(
    online_list: str, config_list: str, mode: CpuMode
) -> tuple[set[int], set[int]]:
    """Apply an explicit core list to the online cores.

    Returns ``(online, to_keep)``. When parking, the listed cores are the
    ones taken away; when pinning, they are the ones kept.
    """
    online = expand_cpulist(online_list)
    to_keep = set(online) if mode is CpuMode.PARK else set()
    for cpu in expand_cpulist(config_list) & online:
        if mode is CpuMode.PARK:
            to_keep.discard(cpu)
        else:
            to_keep.add(cpu)
    return online, to_keep


def _read_small_file(path: Path) -> str | None:
    try:
        with open(path, encoding="utf-8", errors="replace", newline="") as handle:
            line = handle.readline()
    except OSError as exc:
        log_error(f"Couldn't open file at {path} : {exc.strerror or exc}")
        return None
    if not line:
        log_error(f"Couldn't read file at {path} : end of file")
        return None
    return line.rstrip("\r\n")


def _leading_uint(text: str) -> tuple[int, str]:
    match = _LEADING_UINT.match(text)
    if match is None:
        return 0, text
    return int(match.group(1)), text[match.end():]


def _uniform(online: Iterable[int], to_keep: set[int]) -> bool:
    return set(online) == to_keep or not to_keep


def _check_pe_cores(sysfs: Path, online: set[int]) -> set[int] | None:
    text = _read_small_file(sysfs / "devices" / "cpu_core" / "cpus")
    if text is None:
        return None
    log_msg("found kernel support for checking P/E-cores")
    to_keep = expand_cpulist(text)
    if _uniform(online, to_keep):
        log_msg("kernel did not indicate that this was an P/E-cores system")
    return to_keep


def _walk_sysfs(sysfs: Path, cpulist: str, online: set[int]) -> set[int]:
    cpu_root = sysfs / "devices" / "system" / "cpu"
    max_cache = 0
    max_freq = 0
    to_keep: set[int] = set()
    freq_cores: set[int] = set()

    for first, last in iter_cpu_ranges(cpulist):
        for cpu in range(first, last + 1):
            # L3 cache non-uniformity among the cores
            text = _read_small_file(cpu_root / f"cpu{cpu}" / "cache" / "index3" / "size")
            if text is not None:
                cache_size, rest = _leading_uint(text)
                unit = rest[:1]
                if unit in _CACHE_UNITS:
                    cache_size *= _CACHE_UNITS[unit]
                elif rest:
                    log_msg(f"cpu L3 cache size ({text}) on core #{cpu} is silly")
                    cache_size = 0
                if cache_size > max_cache:
                    max_cache = cache_size
                    to_keep.clear()
                if cache_size == max_cache:
                    to_keep.add(cpu)

            # frequency non-uniformity among the cores
            text = _read_small_file(cpu_root / f"cpu{cpu}" / "cpufreq" / "cpuinfo_max_freq")
            if text is not None:
                freq, _ = _leading_uint(text)
                cutoff = (freq * 10) // 100
                if freq > max_freq:
                    if max_freq < freq - cutoff:
                        freq_cores.clear()
                    max_freq = freq
                if freq + cutoff >= max_freq:
                    freq_cores.add(cpu)

    if _uniform(online, to_keep):
        log_msg("cpu L3 cache was uniform, this is not a x3D with multiple chiplets")
        to_keep = freq_cores
        if _uniform(online, to_keep):
            log_msg("cpu frequency was uniform, this is not a big.LITTLE type of system")
    return to_keep


def initialise_cpu(
    park_cores: str,
    pin_cores: str,
    sysfs_root: str | os.PathLike[str] = "/sys",
) -> CPUInfo | None:
    """Work out which cores to park or pin to.

    Returns ``None`` when the feature is off, cannot be applied, or would
    leave fewer than four cores for games.
    """
    selection = select_mode(park_cores, pin_cores)
    if selection is None:
        return None
    mode, explicit = selection

    sysfs = Path(sysfs_root)
    online_text = _read_small_file(sysfs / "devices" / "system" / "cpu" / "online")
    if online_text is None:
        return None

    highest = max((last for _, last in iter_cpu_ranges(online_text)), default=0)
    # Either parsing failed or there is only one core: nothing to optimise.
    if highest <= 0:
        return None
    num_cpu = highest + 1

    if explicit:
        online, to_keep = walk_string(online_text, explicit, mode)
    else:
        online = expand_cpulist(online_text)
        pe_cores = _check_pe_cores(sysfs, online)
        to_keep = pe_cores if pe_cores is not None else _walk_sysfs(sysfs, online_text, online)

    online = {cpu for cpu in online if 0 <= cpu < num_cpu}
    to_keep = {cpu for cpu in to_keep if 0 <= cpu < num_cpu}

    if mode is CpuMode.PARK and online == to_keep:
        log_msg("I can find no reason to perform core parking on this system!")
        return None
    if not to_keep:
        log_msg("I can find no reason to perform core pinning on this system!")
        return None
    if len(to_keep) < 4:
        log_msg(
            "logic or config would result in less than 4 active cores, will not apply cpu core "
            "parking/pinning!"
        )
        return None

    return CPUInfo(
        num_cpu=num_cpu,
        mode=mode,
        online=frozenset(online),
        to_keep=frozenset(to_keep),
    )