import os

import pytest

from gamemoded.cpuctl import (
    apply_core_pinning,
    park_cpu,
    reconfig_cpu,
    undo_core_pinning,
    unpark_cpu,
)
from gamemoded.cpuinfo import CPUInfo, CpuMode
from gamemoded.external import ExternalProcessError


def _install_pkexec(tmp_path, monkeypatch, body):
    bindir = tmp_path / "bin"
    bindir.mkdir()
    script = bindir / "pkexec"
    script.write_text("#!/bin/sh\n" + body + "\n")
    script.chmod(0o755)
    monkeypatch.setenv("PATH", f"{bindir}{os.pathsep}{os.environ.get('PATH', '')}")


@pytest.fixture
def fake_pkexec(tmp_path, monkeypatch):
    record = tmp_path / "record.txt"
    _install_pkexec(tmp_path, monkeypatch, f'printf "%s\\n" "$@" > "{record}"')
    return record


@pytest.fixture
def failing_pkexec(tmp_path, monkeypatch):
    _install_pkexec(tmp_path, monkeypatch, "exit 1")


PARK_INFO = CPUInfo(8, CpuMode.PARK, frozenset(range(8)), frozenset(range(4)))
PIN_INFO = CPUInfo(8, CpuMode.PIN, frozenset(range(8)), frozenset(range(4)))


def test_park_cpu_runs_helper(fake_pkexec, tmp_path):
    libexec = tmp_path / "libexec"
    assert park_cpu(PARK_INFO, libexec) == "4-7"
    assert fake_pkexec.read_text().splitlines() == [str(libexec / "cpucorectl"), "offline", "4-7"]


def test_unpark_cpu_runs_helper(fake_pkexec, tmp_path):
    libexec = tmp_path / "libexec"
    assert unpark_cpu(PARK_INFO, libexec) == "4-7"
    assert fake_pkexec.read_text().splitlines()[1] == "online"


def test_pin_mode_does_not_park(fake_pkexec, tmp_path):
    assert park_cpu(PIN_INFO, tmp_path) is None
    assert unpark_cpu(None, tmp_path) is None
    assert not fake_pkexec.exists()


def test_park_failure_raises(failing_pkexec, tmp_path):
    with pytest.raises(ExternalProcessError):
        park_cpu(PARK_INFO, tmp_path)


def test_reconfig_unparks_and_reinitialises(fake_pkexec, tmp_path):
    cpu_dir = tmp_path / "sys" / "devices" / "system" / "cpu"
    cpu_dir.mkdir(parents=True)
    (cpu_dir / "online").write_text("0-7\n")
    info = reconfig_cpu(PARK_INFO, "", "0-3", tmp_path / "sys", tmp_path)
    assert info == PIN_INFO
    assert fake_pkexec.read_text().splitlines()[1] == "online"


def test_reconfig_survives_failed_unpark(failing_pkexec, tmp_path):
    assert reconfig_cpu(PARK_INFO, "no", "no", tmp_path, tmp_path) is None


def _current_info():
    current = frozenset(os.sched_getaffinity(0))
    return CPUInfo(max(current) + 1, CpuMode.PIN, current, current)


def test_apply_core_pinning(tmp_path):
    info = _current_info()
    task = tmp_path / "4242" / "task"
    (task / str(os.getpid())).mkdir(parents=True)
    (task / ".hidden").mkdir()
    before = os.sched_getaffinity(0)
    assert apply_core_pinning(info, 4242, False, tmp_path) == [os.getpid()]
    assert os.sched_getaffinity(0) == before


def test_undo_core_pinning(tmp_path):
    info = _current_info()
    (tmp_path / "77" / "task" / str(os.getpid())).mkdir(parents=True)
    assert undo_core_pinning(info, 77, tmp_path) == [os.getpid()]


def test_pinning_skips_unknown_threads(tmp_path):
    info = _current_info()
    (tmp_path / "5" / "task" / "999999999").mkdir(parents=True)
    assert apply_core_pinning(info, 5, True, tmp_path) == []


def test_pinning_missing_process(tmp_path):
    assert apply_core_pinning(_current_info(), 5, False, tmp_path) == []


def test_park_mode_does_not_pin(tmp_path):
    (tmp_path / "9" / "task" / str(os.getpid())).mkdir(parents=True)
    assert apply_core_pinning(PARK_INFO, 9, False, tmp_path) == []
    assert undo_core_pinning(PARK_INFO, 9, tmp_path) == []