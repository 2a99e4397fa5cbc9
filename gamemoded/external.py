"""Running helper programs and capturing what they print."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Sequence

from .log import log_error

EXTERNAL_BUFFER_MAX = 1024
DEFAULT_TIMEOUT = 5


class ExternalProcessError(Exception):
    """Raised when a helper program cannot be run or exits with an error."""

    def __init__(self, message: str, *, returncode: int | None = None, output: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class ExternalProcessTimeout(ExternalProcessError):
    """Raised when a helper program does not finish in time and is killed."""


def run_external_process(
    args: Sequence[str | os.PathLike[str]],
    timeout: float | None = -1,
) -> str:
    """Run ``args`` and return its standard output.

    At most ``EXTERNAL_BUFFER_MAX - 1`` bytes of output are kept. A timeout
    of ``-1`` selects the default of five seconds. A child killed by a
    signal is logged but its output is still returned.
    """
    argv = [os.fspath(arg) for arg in args]
    if not argv:
        raise ValueError("no program given")
    if timeout == -1:
        timeout = DEFAULT_TIMEOUT

    try:
        proc = subprocess.Popen(argv, stdout=subprocess.PIPE)
    except OSError as exc:
        log_error(f"Failed to execute external process: {argv[0]} {exc.strerror or exc}")
        raise ExternalProcessError(f"could not run {argv[0]}: {exc}") from exc

    try:
        raw, _ = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        log_error(f"Child process timed out for {argv[0]}, killing and returning")
        proc.kill()
        if proc.stdout is not None:
            proc.stdout.close()
        proc.wait()
        raise ExternalProcessTimeout(
            f"{argv[0]} did not finish within {timeout} seconds",
            returncode=proc.returncode,
        ) from None

    output = raw[: EXTERNAL_BUFFER_MAX - 1].decode(errors="replace")

    if proc.returncode < 0:
        log_error(f"Child process '{argv[0]}' exited abnormally")
    elif proc.returncode != 0:
        log_error(f"External process failed with exit code {proc.returncode}")
        log_error(f"Output was: {output}")
        raise ExternalProcessError(
            f"{argv[0]} exited with code {proc.returncode}",
            returncode=proc.returncode,
            output=output,
        )
    return output