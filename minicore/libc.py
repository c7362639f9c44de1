"""String helpers with C-library semantics."""

from __future__ import annotations

from itertools import zip_longest
from typing import IO, AnyStr


def atoi(s: str) -> int:
    """Value of the leading decimal digits of ``s``; 0 when there are none.

    No sign and no leading whitespace are accepted.
    """
    n = 0
    for ch in s:
        if not "0" <= ch <= "9":
            break
        n = n * 10 + (ord(ch) - ord("0"))
    return n


def _codes(value: str | bytes) -> list[int]:
    codes = list(value) if isinstance(value, (bytes, bytearray)) else [ord(c) for c in value]
    if 0 in codes:
        codes = codes[: codes.index(0)]
    return codes


def strcmp(a: str | bytes, b: str | bytes) -> int:
    """Difference of the first differing characters, 0 when equal."""
    for x, y in zip_longest(_codes(a), _codes(b), fillvalue=0):
        if x != y:
            return x - y
    return 0


def gets(stream: IO[AnyStr], limit: int) -> AnyStr:
    """Read at most ``limit - 1`` characters, stopping after a newline or CR."""
    chunks = []
    kind = None
    while len(chunks) + 1 < limit:
        c = stream.read(1)
        kind = c[:0]
        if not c:
            break
        chunks.append(c)
        if c in ("\n", "\r", b"\n", b"\r"):
            break
    if kind is None:
        kind = ""
    return kind.join(chunks)