import sys
import time

import pytest

from gamemoded.external import (
    EXTERNAL_BUFFER_MAX,
    ExternalProcessError,
    ExternalProcessTimeout,
    run_external_process,
)


def test_captures_stdout():
    assert run_external_process(["sh", "-c", "printf hello"], 5) == "hello"


def test_default_timeout_runs_command():
    assert run_external_process(["sh", "-c", "echo ok"]) == "ok\n"


def test_output_is_truncated_to_buffer():
    out = run_external_process([sys.executable, "-c", "print('x' * 3000, end='')"], 10)
    assert out == "x" * (EXTERNAL_BUFFER_MAX - 1)


def test_nonzero_exit_raises_with_code_and_output():
    with pytest.raises(ExternalProcessError) as info:
        run_external_process(["sh", "-c", "printf partial; exit 3"], 5)
    assert info.value.returncode == 3
    assert info.value.output == "partial"


def test_timeout_kills_child():
    start = time.monotonic()
    with pytest.raises(ExternalProcessTimeout):
        run_external_process(["sh", "-c", "exec sleep 10"], 0.5)
    assert time.monotonic() - start < 5


def test_timeout_is_an_external_process_error():
    with pytest.raises(ExternalProcessError):
        run_external_process(["sh", "-c", "exec sleep 10"], 0.3)


def test_missing_program_raises():
    with pytest.raises(ExternalProcessError) as info:
        run_external_process(["definitely-not-a-real-program-xyz"], 5)
    assert info.value.returncode is None


def test_killed_by_signal_returns_output():
    assert run_external_process(["sh", "-c", "printf hi; kill -9 $$"], 5) == "hi"


def test_empty_arguments_rejected():
    with pytest.raises(ValueError):
        run_external_process([], 5)