"""Daemon logging to the terminal or to the system logger."""

from __future__ import annotations

import sys
import threading

try:
    import syslog
except ImportError:  # pragma: no cover - non-Unix platforms
    syslog = None  # type: ignore[assignment]

_lock = threading.Lock()
_syslog_active = False
_seen_once: set[str] = set()
_seen_hints: set[str] = set()


def use_syslog(name: str | None) -> None:
    """Send all further messages to the system logger under ``name``.

    Passing ``None`` closes the system logger and returns to plain output.
    """
    global _syslog_active
    with _lock:
        if name is None:
            if _syslog_active and syslog is not None:
                syslog.closelog()
            _syslog_active = False
            return
        if syslog is None:
            raise OSError("the system logger is not available on this platform")
        syslog.openlog(name, syslog.LOG_PID, syslog.LOG_DAEMON)
        _syslog_active = True


def syslog_enabled() -> bool:
    """Return whether messages currently go to the system logger."""
    return _syslog_active


def _clean(message: str) -> str:
    return message.rstrip("\n")


def log_msg(message: str) -> None:
    """Log an informational message."""
    text = _clean(message)
    if _syslog_active:
        syslog.syslog(syslog.LOG_INFO, text)
    else:
        print(text, file=sys.stdout, flush=True)


def log_error(message: str) -> None:
    """Log an error message."""
    text = _clean(message)
    if _syslog_active:
        syslog.syslog(syslog.LOG_ERR, text)
    else:
        print(f"ERROR: {text}", file=sys.stderr, flush=True)


def log_once(key: str, message: str, error: bool = False) -> bool:
    """Log ``message`` only the first time ``key`` is seen.

    Returns True when the message was logged.
    """
    with _lock:
        if key in _seen_once:
            return False
        _seen_once.add(key)
    if error:
        log_error(message)
    else:
        log_msg(message)
    return True


def hint_once(key: str, hint: str) -> str:
    """Return ``hint`` the first time ``key`` is seen, an empty string after."""
    with _lock:
        if key in _seen_hints:
            return ""
        _seen_hints.add(key)
    return hint