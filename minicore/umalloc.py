"""A first-fit free-list allocator over a simulated program break."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

HEADER_SIZE = 16
MIN_GROW_UNITS = 4096
_BASE = -HEADER_SIZE


class OutOfMemory(MemoryError):
    """The break cannot be moved that far."""


@dataclass
class _Header:
    ptr: Optional[int]
    size: int


class Heap:
    """Allocator handing out byte addresses from a break limited to ``limit``."""

    def __init__(self, limit: int) -> None:
        if limit < 0:
            raise ValueError("limit must not be negative")
        self.limit = limit
        self._brk = 0
        self._headers: dict[int, _Header] = {}
        self._allocated: set[int] = set()
        self._freep: Optional[int] = None

    def sbrk(self, n: int) -> int:
        """Move the break by ``n`` bytes and return its old position."""
        old = self._brk
        new = old + n
        if new < 0 or new > self.limit:
            raise OutOfMemory(f"cannot move break from {old} by {n}")
        self._brk = new
        return old

    def _release(self, bp: int) -> None:
        h = self._headers
        p = self._freep
        assert p is not None
        while not (p < bp < h[p].ptr):
            if p >= h[p].ptr and (bp > p or bp < h[p].ptr):
                break
            p = h[p].ptr
        block = h[bp]
        nxt = h[p].ptr
        if bp + block.size * HEADER_SIZE == nxt:
            block.size += h[nxt].size
            block.ptr = h[nxt].ptr
            del h[nxt]
        else:
            block.ptr = nxt
        if p + h[p].size * HEADER_SIZE == bp:
            h[p].size += block.size
            h[p].ptr = block.ptr
            del h[bp]
        else:
            h[p].ptr = bp
        self._freep = p

    def free(self, addr: int) -> None:
        """Return a block obtained from :meth:`malloc`."""
        bp = addr - HEADER_SIZE
        if bp not in self._allocated:
            raise ValueError(f"address {addr} was not allocated")
        self._allocated.remove(bp)
        self._release(bp)

    def _morecore(self, nunits: int) -> int:
        nunits = max(nunits, MIN_GROW_UNITS)
        p = self.sbrk(nunits * HEADER_SIZE)
        self._headers[p] = _Header(ptr=None, size=nunits)
        self._release(p)
        assert self._freep is not None
        return self._freep

    def malloc(self, nbytes: int) -> int:
        """Allocate ``nbytes`` and return the block's address."""
        if nbytes < 0:
            raise ValueError("size must not be negative")
        h = self._headers
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        if self._freep is None:
            h[_BASE] = _Header(ptr=_BASE, size=0)
            self._freep = _BASE
        prevp = self._freep
        p = h[prevp].ptr
        while True:
            block = h[p]
            if block.size >= nunits:
                if block.size == nunits:
                    h[prevp].ptr = block.ptr
                else:
                    block.size -= nunits
                    p += block.size * HEADER_SIZE
                    h[p] = _Header(ptr=None, size=nunits)
                self._freep = prevp
                self._allocated.add(p)
                return p + HEADER_SIZE
            if p == self._freep:
                p = self._morecore(nunits)
            prevp, p = p, h[p].ptr