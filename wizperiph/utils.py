"""Coloured memory-span configuration files and file timestamps."""

from __future__ import annotations

import os
from dataclasses import dataclass

_WORD_MASK = (1 << 64) - 1
_HEX_DIGITS = "0123456789abcdefABCDEF"


class SpansConfigError(Exception):
    """Raised when a span configuration file cannot be read."""


@dataclass(frozen=True)
class MarkedSpan:
    """A highlighted memory range with an RGBA colour and optional description."""

    start: int
    length: int
    color: tuple[int, int, int, int]
    desc: str = ""


def _strtoul(text: str, base: int) -> int:
    """Parse a leading unsigned integer the way strtoul does; 0 if none."""
    text = text.lstrip(" \t\n\r\f\v")
    negative = False
    if text[:1] in ("+", "-"):
        negative = text[0] == "-"
        text = text[1:]
    if base == 16 and text[:2] in ("0x", "0X") and text[2:3] and text[2] in _HEX_DIGITS:
        text = text[2:]
    valid = _HEX_DIGITS if base == 16 else "0123456789"
    digits = ""
    for char in text:
        if char not in valid:
            break
        digits += char
    value = int(digits, base) if digits else 0
    return (-value) & _WORD_MASK if negative else value


def _scan_hex_bytes(text: str, count: int) -> list[int]:
    """Read up to `count` hex fields of at most two digits, stopping at the first failure."""
    values: list[int] = []
    position = 0
    for _ in range(count):
        while position < len(text) and text[position].isspace():
            position += 1
        digits = ""
        while len(digits) < 2 and position < len(text) and text[position] in _HEX_DIGITS:
            digits += text[position]
            position += 1
        if not digits:
            break
        values.append(int(digits, 16))
    return values + [0] * (count - len(values))


def _split_fields(line: str) -> list[str]:
    parts = line.split(",")
    if parts[-1] == "":
        parts.pop()
    return parts


def parse_colored_spans(path: str | os.PathLike[str]) -> list[MarkedSpan]:
    """Parse a span file: lines of `start,end-or-length,colour[,description]`."""
    try:
        handle = open(path, encoding="utf-8", errors="replace")
    except OSError as exc:
        raise SpansConfigError("Failed to open the file.") from exc

    spans: list[MarkedSpan] = []
    with handle:
        for raw_line in handle:
            line = raw_line.rstrip("\n")
            if line.startswith("#"):
                continue
            parts = _split_fields(line)
            if len(parts) < 3:
                continue

            start = _strtoul(parts[0], 16)
            if parts[1].startswith("0x"):
                end = _strtoul(parts[1], 16)
            else:
                end = (start + _strtoul(parts[1], 10) - 1) & _WORD_MASK

            r = g = b = a = 0
            if len(parts[2]) == 6:
                r, g, b = _scan_hex_bytes(parts[2], 3)
            elif len(parts[2]) == 8:
                a, r, g, b = _scan_hex_bytes(parts[2], 4)

            spans.append(
                MarkedSpan(
                    start=start,
                    length=(end - start + 1) & _WORD_MASK,
                    color=(r, g, b, 50 if a == 0 else a),
                    desc=parts[3] if len(parts) == 4 else "",
                )
            )
    return spans


def mtime_ms(path: str | os.PathLike[str]) -> int:
    """Modification time in milliseconds, or 0 if the file cannot be stat'ed."""
    try:
        return os.stat(path).st_mtime_ns // 1_000_000
    except OSError:
        return 0