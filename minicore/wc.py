"""Count lines, words and characters."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import IO, Optional, TextIO

_CHUNK = 512
_SPACE_CODES = frozenset(b" \r\t\n\v\0")


@dataclass
class Counts:
    """Line, word and character totals."""

    lines: int = 0
    words: int = 0
    chars: int = 0


def count(stream: IO) -> Counts:
    """Count ``stream``, text or binary; NUL separates words like whitespace."""
    result = Counts()
    inword = False
    while True:
        chunk = stream.read(_CHUNK)
        if not chunk:
            break
        codes = chunk if isinstance(chunk, (bytes, bytearray)) else [ord(c) for c in chunk]
        for code in codes:
            result.chars += 1
            if code == 0x0A:
                result.lines += 1
            if code in _SPACE_CODES:
                inword = False
            elif not inword:
                result.words += 1
                inword = True
    return result


def wc(stream: IO, name: str, out: TextIO) -> Counts:
    """Count ``stream`` and write the totals followed by ``name``."""
    c = count(stream)
    out.write(f"{c.lines} {c.words} {c.chars} {name}\n")
    return c


def main(argv: Optional[list[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        wc(sys.stdin.buffer, "", sys.stdout)
        return 0
    for name in args:
        try:
            f = open(name, "rb")
        except OSError:
            sys.stdout.write(f"wc: cannot open {name}\n")
            return 1
        with f:
            try:
                wc(f, name, sys.stdout)
            except OSError:
                sys.stdout.write("wc: read error\n")
                return 1
    return 0