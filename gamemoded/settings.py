"""Config file parsing and the set of values it can hold."""

from __future__ import annotations

import enum
import math
import re
import struct
from dataclasses import dataclass, field

from .log import log_error, log_msg

CONFIG_NAME = "gamemode.ini"
CONFIG_LIST_MAX = 32
CONFIG_VALUE_MAX = 256

IOPRIO_RESET_DEFAULT = -1
IOPRIO_DONT_SET = -2
IOPRIO_DEFAULT = 4

DEFAULT_REAPER_FREQ = 5
DEFAULT_SCRIPT_TIMEOUT = 10

_C_SPACE = " \t\n\v\f\r"
_COMMENT_START = ";#"
_INLINE_COMMENT = ";"
_LONG_MIN = -(1 << 63)
_LONG_MAX = (1 << 63) - 1

_LONG_RE = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")
_DEC_FLOAT_RE = re.compile(
    r"[ \t\n\v\f\r]*([+-]?(?:(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    r"|inf(?:inity)?|nan))",
    re.IGNORECASE,
)
_HEX_FLOAT_RE = re.compile(
    r"[ \t\n\v\f\r]*([+-]?0[xX](?:[0-9a-fA-F]+(?:\.[0-9a-fA-F]*)?|\.[0-9a-fA-F]+)"
    r"(?:[pP][+-]?[0-9]+)?)"
)


def _to_float32(value: float) -> float:
    return struct.unpack("f", struct.pack("f", value))[0]


DEFAULT_IGPU_POWER_THRESHOLD = _to_float32(0.3)


class ConfigValueError(ValueError):
    """Raised when a config value cannot be used."""


def clamp(lower: int, upper: int, value: int) -> int:
    """Constrain ``value`` to the range spanned by ``lower`` and ``upper``."""
    return max(min(lower, upper), min(max(lower, upper), value))


def _find_chars_or_comment(text: str, start: int, chars: str) -> int:
    was_space = False
    for index in range(start, len(text)):
        char = text[index]
        if char in chars or (was_space and char in _INLINE_COMMENT):
            return index
        was_space = char in _C_SPACE
    return len(text)


def parse_ini(text: str) -> tuple[list[tuple[str, str, str]], int]:
    """Parse INI text into ``(section, name, value)`` entries.

    Parsing goes on past bad lines; the second item returned is the number
    of the first bad line, or 0 when every line was understood.
    """
    entries: list[tuple[str, str, str]] = []
    error = 0
    section = ""
    prev_name = ""

    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    for lineno, raw in enumerate(lines, start=1):
        if lineno == 1 and raw.startswith("\ufeff"):
            raw = raw[1:]
        stripped = raw.rstrip(_C_SPACE)
        line = stripped.lstrip(_C_SPACE)
        indented = len(line) < len(stripped)

        if not line or line[0] in _COMMENT_START:
            continue

        if prev_name and indented:
            end = _find_chars_or_comment(line, 0, "")
            entries.append((section, prev_name, line[:end].rstrip(_C_SPACE)))
            continue

        if line[0] == "[":
            end = _find_chars_or_comment(line, 1, "]")
            if end < len(line) and line[end] == "]":
                section = line[1:end]
                prev_name = ""
            elif not error:
                error = lineno
            continue

        end = _find_chars_or_comment(line, 0, "=:")
        if end < len(line) and line[end] in "=:":
            name = line[:end].rstrip(_C_SPACE)
            rest = line[end + 1 :]
            cut = _find_chars_or_comment(rest, 0, "")
            value = rest[:cut].strip(_C_SPACE)
            prev_name = name
            entries.append((section, name, value))
        elif not error:
            error = lineno

    return entries, error


def parse_long(name: str, value: str) -> int:
    """Parse a whole base-10 integer that fits a signed 64-bit long."""
    match = _LONG_RE.fullmatch(value)
    if match is None:
        log_error(f"Config: {name} was invalid, given [{value}]")
        raise ConfigValueError(f"{name} was invalid, given [{value}]")
    number = int(match.group(1))
    if not _LONG_MIN <= number <= _LONG_MAX:
        log_error(f"Config: {name} overflowed, given [{value}]")
        raise ConfigValueError(f"{name} overflowed, given [{value}]")
    return number


def parse_float(name: str, value: str) -> float:
    """Parse a whole single precision floating point number."""
    hex_match = _HEX_FLOAT_RE.fullmatch(value)
    dec_match = _DEC_FLOAT_RE.fullmatch(value) if hex_match is None else None
    if hex_match is not None:
        number = float.fromhex(hex_match.group(1))
        literal_infinite = False
    elif dec_match is not None:
        literal = dec_match.group(1)
        number = float(literal)
        literal_infinite = "inf" in literal.lower()
    else:
        log_error(f"Config: {name} was invalid, given [{value}]")
        raise ConfigValueError(f"{name} was invalid, given [{value}]")

    try:
        if math.isinf(number) and not literal_infinite:
            raise OverflowError
        return _to_float32(number)
    except OverflowError:
        log_error(f"Config: {name} overflowed, given [{value}]")
        raise ConfigValueError(f"{name} overflowed, given [{value}]") from None


def string_list_contains(needle: str, haystack: list[str]) -> bool:
    """Return whether any non-empty entry of ``haystack`` occurs in ``needle``."""
    return any(item in needle for item in haystack[:CONFIG_LIST_MAX] if item)


class _Kind(enum.Enum):
    LIST = enum.auto()
    LONG = enum.auto()
    FLOAT = enum.auto()
    STRING = enum.auto()


_HANDLERS: dict[str, dict[str, tuple[str, _Kind]]] = {
    "filter": {
        "whitelist": ("whitelist", _Kind.LIST),
        "blacklist": ("blacklist", _Kind.LIST),
    },
    "general": {
        "reaper_freq": ("reaper_frequency", _Kind.LONG),
        "defaultgov": ("defaultgov", _Kind.STRING),
        "desiredgov": ("desiredgov", _Kind.STRING),
        "defaultprof": ("defaultprof", _Kind.STRING),
        "desiredprof": ("desiredprof", _Kind.STRING),
        "igpu_desiredgov": ("igpu_desiredgov", _Kind.STRING),
        "igpu_power_threshold": ("igpu_power_threshold", _Kind.FLOAT),
        "softrealtime": ("softrealtime", _Kind.STRING),
        "renice": ("renice", _Kind.LONG),
        "ioprio": ("ioprio", _Kind.STRING),
        "inhibit_screensaver": ("inhibit_screensaver", _Kind.LONG),
        "disable_splitlock": ("disable_splitlock", _Kind.LONG),
    },
    "gpu": {
        "apply_gpu_optimisations": ("apply_gpu_optimisations", _Kind.STRING),
        "gpu_device": ("gpu_device", _Kind.LONG),
        "nv_core_clock_mhz_offset": ("nv_core_clock_mhz_offset", _Kind.LONG),
        "nv_mem_clock_mhz_offset": ("nv_mem_clock_mhz_offset", _Kind.LONG),
        "nv_powermizer_mode": ("nv_powermizer_mode", _Kind.LONG),
        "amd_performance_level": ("amd_performance_level", _Kind.STRING),
    },
    "cpu": {
        "park_cores": ("cpu_park_cores", _Kind.STRING),
        "pin_cores": ("cpu_pin_cores", _Kind.STRING),
    },
    "supervisor": {
        "supervisor_whitelist": ("supervisor_whitelist", _Kind.LIST),
        "supervisor_blacklist": ("supervisor_blacklist", _Kind.LIST),
        "require_supervisor": ("require_supervisor", _Kind.LONG),
    },
    "custom": {
        "start": ("startscripts", _Kind.LIST),
        "end": ("endscripts", _Kind.LIST),
        "script_timeout": ("script_timeout", _Kind.LONG),
    },
}


@dataclass
class ConfigValues:
    """Every value a config file can set, starting from the defaults."""

    whitelist: list[str] = field(default_factory=list)
    blacklist: list[str] = field(default_factory=list)

    script_timeout: int = DEFAULT_SCRIPT_TIMEOUT
    startscripts: list[str] = field(default_factory=list)
    endscripts: list[str] = field(default_factory=list)

    defaultgov: str = ""
    desiredgov: str = ""
    defaultprof: str = ""
    desiredprof: str = ""

    igpu_desiredgov: str = ""
    igpu_power_threshold: float = DEFAULT_IGPU_POWER_THRESHOLD

    softrealtime: str = ""
    renice: int = 0
    ioprio: str = ""

    inhibit_screensaver: int = 1
    disable_splitlock: int = 1
    reaper_frequency: int = DEFAULT_REAPER_FREQ

    apply_gpu_optimisations: str = ""
    gpu_device: int = 0
    nv_core_clock_mhz_offset: int = -1
    nv_mem_clock_mhz_offset: int = -1
    nv_powermizer_mode: int = -1
    amd_performance_level: str = ""

    cpu_park_cores: str = ""
    cpu_pin_cores: str = ""

    require_supervisor: int = 0
    supervisor_whitelist: list[str] = field(default_factory=list)
    supervisor_blacklist: list[str] = field(default_factory=list)

    def apply(self, section: str, name: str, value: str, protected: bool = False) -> bool:
        """Store one config entry.

        Returns False, after logging, when the entry is unknown or its value
        cannot be used; the entry is then ignored.
        """
        if section == "gpu" and not protected:
            log_error(
                "The [gpu] config section is not configurable from unsafe config files! "
                f"Option {name} will be ignored!"
            )
            log_error("Consider moving this option to /etc/gamemode.ini")

        spec = _HANDLERS.get(section, {}).get(name)
        valid = spec is not None and self._store(spec[0], spec[1], name, value)
        if not valid:
            log_msg(f"Config: Value ignored [{section}] {name}={value}")
        return valid

    def _store(self, attr: str, kind: _Kind, name: str, value: str) -> bool:
        if kind is _Kind.LIST:
            return _append_value(name, value, getattr(self, attr))
        if kind is _Kind.STRING:
            setattr(self, attr, value[: CONFIG_VALUE_MAX - 1])
            return True
        try:
            parsed = parse_long(name, value) if kind is _Kind.LONG else parse_float(name, value)
        except ConfigValueError:
            return False
        setattr(self, attr, parsed)
        return True


def _append_value(list_name: str, value: str, items: list[str]) -> bool:
    if len(items) >= CONFIG_LIST_MAX:
        log_error(
            f"Config: Could not add [{value}] to [{list_name}], "
            f"exceeds number of {CONFIG_LIST_MAX}"
        )
        return False
    if len(value) >= CONFIG_VALUE_MAX:
        log_error(
            f"Config: Could not add [{value}] to [{list_name}], "
            f"exceeds length limit of {CONFIG_VALUE_MAX}"
        )
        return False
    # An empty entry would end the list, so it adds nothing.
    if value:
        items.append(value)
    return True