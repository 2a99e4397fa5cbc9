"""Parsing and formatting of kernel CPU lists such as ``0-3,5,7-9``."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator

_NUMBER = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")


class CpuListError(ValueError):
    """Raised when a CPU list entry cannot be parsed."""


def _number_at(text: str, pos: int) -> tuple[int, int]:
    match = _NUMBER.match(text, pos)
    if match is None:
        raise CpuListError(f"expected a cpu number in {text!r} at offset {pos}")
    return int(match.group(1)), match.end()


def parse_cpulist_entry(text: str) -> tuple[int, int, str]:
    """Parse the first entry of a CPU list.

    Returns ``(first, last, remainder)`` where ``remainder`` is the rest of
    the list after the entry and its separator.
    """
    if not text:
        raise CpuListError("empty cpu list")

    first, pos = _number_at(text, 0)
    if pos == len(text):
        return first, first, ""
    if text[pos] == ",":
        return first, first, text[pos + 1 :]
    if text[pos] != "-":
        raise CpuListError(f"unexpected {text[pos]!r} in cpu list {text!r}")

    last, pos = _number_at(text, pos + 1)
    if last < first:
        raise CpuListError(f"range {first}-{last} runs backwards")
    # Whatever single character follows the range is taken as its separator.
    return first, last, text[pos + 1 :]


def iter_cpu_ranges(text: str) -> Iterator[tuple[int, int]]:
    """Yield ``(first, last)`` ranges from a CPU list.

    Parsing stops quietly at the end of the list or at the first
    malformed entry.
    """
    rest = text
    while rest:
        try:
            first, last, rest = parse_cpulist_entry(rest)
        except CpuListError:
            return
        yield first, last


def expand_cpulist(text: str) -> set[int]:
    """Return the set of CPU numbers named by a CPU list."""
    return {cpu for first, last in iter_cpu_ranges(text) for cpu in range(first, last + 1)}


def format_cpulist(cpus: Iterable[int]) -> str:
    """Format CPU numbers as a compact list of ranges."""
    parts: list[str] = []
    first = last = None
    for cpu in sorted(set(cpus)):
        if first is None:
            first = last = cpu
        elif cpu == last + 1:
            last = cpu
        else:
            parts.append(_range_text(first, last))
            first = last = cpu
    if first is not None:
        parts.append(_range_text(first, last))
    return ",".join(parts)


def _range_text(first: int, last: int) -> str:
    return str(first) if first == last else f"{first}-{last}"