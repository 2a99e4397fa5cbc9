import os

from gamemoded.governors import MALFORMED, fetch_governors, get_gov_state


def _make_cpu(root, index, governor):
    cpufreq = root / f"cpu{index}" / "cpufreq"
    cpufreq.mkdir(parents=True)
    (cpufreq / "scaling_governor").write_text(governor + "\n")


def _pattern(root):
    return str(root / "cpu*" / "cpufreq" / "scaling_governor")


def test_uniform_governor_is_reported(tmp_path):
    for index in range(4):
        _make_cpu(tmp_path, index, "performance")
    assert get_gov_state(_pattern(tmp_path)) == "performance"


def test_mixed_governors_are_malformed(tmp_path):
    _make_cpu(tmp_path, 0, "performance")
    _make_cpu(tmp_path, 1, "powersave")
    assert get_gov_state(_pattern(tmp_path)) == MALFORMED
    assert MALFORMED == "malformed"


def test_no_governors_gives_empty_state(tmp_path):
    assert fetch_governors(_pattern(tmp_path)) == []
    assert get_gov_state(_pattern(tmp_path)) == ""


def test_fetch_returns_one_path_per_cpu(tmp_path):
    for index in range(3):
        _make_cpu(tmp_path, index, "schedutil")
    found = fetch_governors(_pattern(tmp_path))
    assert len(found) == 3
    assert all(os.path.isabs(path) for path in found)


def test_shared_policy_is_deduplicated(tmp_path):
    policy = tmp_path / "policy0"
    policy.mkdir()
    (policy / "scaling_governor").write_text("ondemand\n")
    for index in range(2):
        cpu = tmp_path / f"cpu{index}"
        cpu.mkdir()
        os.symlink(policy, cpu / "cpufreq")
    found = fetch_governors(_pattern(tmp_path))
    assert found == [os.path.realpath(policy / "scaling_governor")]
    assert get_gov_state(_pattern(tmp_path)) == "ondemand"


def test_empty_file_is_skipped(tmp_path):
    _make_cpu(tmp_path, 0, "performance")
    empty = tmp_path / "cpu1" / "cpufreq"
    empty.mkdir(parents=True)
    (empty / "scaling_governor").write_text("")
    assert get_gov_state(_pattern(tmp_path)) == "performance"