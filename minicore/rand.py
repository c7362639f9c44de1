"""The Park-Miller minimal standard random number generator."""

from __future__ import annotations

from typing import Iterator

_MODULUS = 0x7FFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF


class ParkMiller:
    """Generator of values in ``[0, 0x7ffffffd]``.

    Computes ``16807 * x mod (2**31 - 1)`` without overflowing 31 bits,
    keeping the last value as its state.
    """

    def __init__(self, seed: int = 1) -> None:
        if seed < 0:
            raise ValueError("seed must not be negative")
        self.state = seed & _MASK64

    def next(self) -> int:
        """Advance the state and return the new value."""
        x = (self.state % 0x7FFFFFFE) + 1
        hi, lo = divmod(x, 127773)
        x = 16807 * lo - 2836 * hi
        if x < 0:
            x += _MODULUS
        x -= 1
        self.state = x
        return x

    def __iter__(self) -> Iterator[int]:
        return self

    def __next__(self) -> int:
        return self.next()