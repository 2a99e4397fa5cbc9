"""Applying and removing core parking and pinning."""

from __future__ import annotations

import os
from pathlib import Path

from .cpuinfo import CPUInfo, CpuMode, initialise_cpu
from .cpulist import format_cpulist
from .external import ExternalProcessError, run_external_process
from .log import log_error, log_msg

DEFAULT_LIBEXEC_DIR = "/usr/libexec"


def _core_control(info: CPUInfo, action: str, libexec_dir: str | os.PathLike[str]) -> str:
    cpulist = format_cpulist(info.parked_cores())
    args = ["pkexec", os.path.join(os.fspath(libexec_dir), "cpucorectl"), action, cpulist]
    run_external_process(args, -1)
    return cpulist


def park_cpu(
    info: CPUInfo | None, libexec_dir: str | os.PathLike[str] = DEFAULT_LIBEXEC_DIR
) -> str | None:
    """Take the unwanted cores offline.

    Returns the core list that was parked, or ``None`` when nothing applies.
    """
    if info is None or info.mode is CpuMode.PIN:
        return None
    log_msg(f"Requesting parking of cores {format_cpulist(info.parked_cores())}")
    try:
        return _core_control(info, "offline", libexec_dir)
    except ExternalProcessError:
        log_error("Failed to park cpu cores")
        raise


def unpark_cpu(
    info: CPUInfo | None, libexec_dir: str | os.PathLike[str] = DEFAULT_LIBEXEC_DIR
) -> str | None:
    """Bring the parked cores back online.

    Returns the core list that was unparked, or ``None`` when nothing applies.
    """
    if info is None or info.mode is CpuMode.PIN:
        return None
    log_msg(f"Requesting unparking of cores {format_cpulist(info.parked_cores())}")
    try:
        return _core_control(info, "online", libexec_dir)
    except ExternalProcessError:
        log_error("Failed to unpark cpu cores")
        raise


def _apply_affinity_mask(
    pid: int, mask: frozenset[int], be_silent: bool, proc_root: str | os.PathLike[str]
) -> list[int]:
    task_dir = Path(proc_root) / str(pid) / "task"
    try:
        entries = sorted(os.listdir(task_dir))
    except OSError as exc:
        if not be_silent:
            log_error(f"Unable to find executable for PID {pid}: {exc.strerror or exc}")
        return []

    pinned: list[int] = []
    for name in entries:
        if name.startswith("."):
            continue
        try:
            tid = int(name)
        except ValueError:
            continue
        try:
            os.sched_setaffinity(tid, mask)
        except OSError as exc:
            if not be_silent:
                log_error(f"Failed to pin thread {tid}: {exc.strerror or exc}")
            continue
        pinned.append(tid)
    return pinned


def apply_core_pinning(
    info: CPUInfo | None,
    pid: int,
    be_silent: bool = False,
    proc_root: str | os.PathLike[str] = "/proc",
) -> list[int]:
    """Pin every thread of ``pid`` to the kept cores.

    Returns the thread ids that were pinned.
    """
    if info is None or info.mode is CpuMode.PARK:
        return []
    if not be_silent:
        log_msg("Pinning process...")
    return _apply_affinity_mask(pid, info.to_keep, be_silent, proc_root)


def undo_core_pinning(
    info: CPUInfo | None, pid: int, proc_root: str | os.PathLike[str] = "/proc"
) -> list[int]:
    """Let every thread of ``pid`` run on all online cores again.

    Returns the thread ids that were updated.
    """
    if info is None or info.mode is CpuMode.PARK:
        return []
    log_msg("Pinning process back to all online cores...")
    return _apply_affinity_mask(pid, info.online, False, proc_root)


def reconfig_cpu(
    info: CPUInfo | None,
    park_cores: str,
    pin_cores: str,
    sysfs_root: str | os.PathLike[str] = "/sys",
    libexec_dir: str | os.PathLike[str] = DEFAULT_LIBEXEC_DIR,
) -> CPUInfo | None:
    """Undo any parking and work out the cores afresh from new settings."""
    try:
        unpark_cpu(info, libexec_dir)
    except ExternalProcessError:
        pass
    return initialise_cpu(park_cores, pin_cores, sysfs_root)