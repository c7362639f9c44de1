"""Line search supporting the ^ . * $ operators."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

_BUFSIZE = 1024


def _match_here(re: str, ri: int, text: str, ti: int) -> bool:
    while True:
        if ri == len(re):
            return True
        if ri + 1 < len(re) and re[ri + 1] == "*":
            return _match_star(re[ri], re, ri + 2, text, ti)
        if re[ri] == "$" and ri + 1 == len(re):
            return ti == len(text)
        if ti < len(text) and (re[ri] == "." or re[ri] == text[ti]):
            ri += 1
            ti += 1
            continue
        return False


def _match_star(c: str, re: str, ri: int, text: str, ti: int) -> bool:
    while True:
        if _match_here(re, ri, text, ti):
            return True
        if ti >= len(text):
            return False
        matched = text[ti] == c or c == "."
        ti += 1
        if not matched:
            return False


def match(pattern: str, text: str) -> bool:
    """Whether ``pattern`` matches anywhere in ``text``."""
    if pattern.startswith("^"):
        return _match_here(pattern, 1, text, 0)
    return any(_match_here(pattern, 0, text, i) for i in range(len(text) + 1))


def grep(pattern: str, stream: TextIO, out: TextIO) -> None:
    """Write every newline-terminated line of ``stream`` that matches.

    A line that does not fit in the buffer ends the search, and a last line
    without a newline is never printed.
    """
    buf = ""
    while True:
        room = _BUFSIZE - len(buf) - 1
        if room <= 0:
            break
        chunk = stream.read(room)
        if not chunk:
            break
        buf += chunk
        *lines, buf = buf.split("\n")
        for line in lines:
            if match(pattern, line):
                out.write(line + "\n")


def main(argv: Optional[list[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        sys.stderr.write("usage: grep pattern [file ...]\n")
        return 1
    pattern, files = args[0], args[1:]
    if not files:
        grep(pattern, sys.stdin, sys.stdout)
        return 0
    for name in files:
        try:
            f = open(name)
        except OSError:
            sys.stdout.write(f"grep: cannot open {name}\n")
            return 1
        with f:
            grep(pattern, f, sys.stdout)
    return 0