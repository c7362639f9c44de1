"""A small printf: %d, %l, %x, %p, %s, %c and %%."""

from __future__ import annotations

import sys
from typing import Any, Iterator, TextIO

_DIGITS = "0123456789ABCDEF"
_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF


def _as_int32(value: int) -> int:
    value &= _MASK32
    return value - (1 << 32) if value & 0x80000000 else value


def _render_int(value: int, base: int, signed: bool) -> str:
    xx = _as_int32(value)
    negative = signed and xx < 0
    x = -xx if negative else xx & _MASK32
    digits = []
    while True:
        digits.append(_DIGITS[x % base])
        x //= base
        if x == 0:
            break
    if negative:
        digits.append("-")
    return "".join(reversed(digits))


def _render_pointer(value: int) -> str:
    return "0x" + format(value & _MASK64, "016X")


def _render_char(value: Any) -> str:
    if isinstance(value, str):
        if not value:
            raise ValueError("%c needs a character")
        return value[0]
    return chr(int(value) & 0xFF)


def _next_arg(args: Iterator[Any]) -> Any:
    try:
        return next(args)
    except StopIteration:
        raise TypeError("not enough arguments for format string") from None


def format_string(fmt: str, *args: Any) -> str:
    """Render ``fmt`` with ``args`` and return the resulting text.

    Integers are taken as 32-bit values, as the conversions do; unknown
    conversions are copied through with their percent sign.
    """
    fmt = fmt.split("\0", 1)[0]
    values = iter(args)
    out: list[str] = []
    pending = False
    for c in fmt:
        if not pending:
            if c == "%":
                pending = True
            else:
                out.append(c)
            continue
        if c == "d":
            out.append(_render_int(_next_arg(values), 10, True))
        elif c == "l":
            out.append(_render_int(_next_arg(values), 10, False))
        elif c == "x":
            out.append(_render_int(_next_arg(values), 16, False))
        elif c == "p":
            out.append(_render_pointer(_next_arg(values)))
        elif c == "s":
            s = _next_arg(values)
            out.append("(null)" if s is None else str(s))
        elif c == "c":
            out.append(_render_char(_next_arg(values)))
        elif c == "%":
            out.append("%")
        else:
            out.append("%" + c)
        pending = False
    return "".join(out)


def fprintf(stream: TextIO, fmt: str, *args: Any) -> None:
    """Format and write to ``stream``."""
    stream.write(format_string(fmt, *args))


def printf(fmt: str, *args: Any) -> None:
    """Format and write to standard output."""
    fprintf(sys.stdout, fmt, *args)