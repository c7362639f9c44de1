"""Three-level Sv39 page tables over a simulated physical memory.

Page-table pages hold real 64-bit little-endian PTEs, and user pages shared
after a fork are marked copy-on-write.
"""

from __future__ import annotations

import enum
import struct
from typing import Optional

PGSIZE = 4096
PGSHIFT = 12
MAXVA = 1 << (9 + 9 + 9 + 12 - 1)
KERNBASE = 0x80000000

_PTE_SIZE = 8
_PTE_LAYOUT = struct.Struct("<Q")
_FLAG_MASK = 0x3FF


class VmPanic(RuntimeError):
    """An internal inconsistency that the kernel treats as fatal."""


class VmFault(Exception):
    """A user address could not be accessed."""


class Pte(enum.IntFlag):
    """Page-table entry flag bits."""

    V = 1 << 0
    R = 1 << 1
    W = 1 << 2
    X = 1 << 3
    U = 1 << 4
    C = 1 << 8  # copy-on-write, in the software-reserved bits


_V = int(Pte.V)
_R = int(Pte.R)
_W = int(Pte.W)
_X = int(Pte.X)
_U = int(Pte.U)
_C = int(Pte.C)


def _round_up(a: int) -> int:
    return (a + PGSIZE - 1) & ~(PGSIZE - 1)


def _round_down(a: int) -> int:
    return a & ~(PGSIZE - 1)


def _px(level: int, va: int) -> int:
    return (va >> (PGSHIFT + 9 * level)) & 0x1FF


def _pa2pte(pa: int) -> int:
    return (pa >> 12) << 10


def _pte2pa(pte: int) -> int:
    return (pte >> 10) << 12


class PhysicalMemory:
    """A run of reference-counted physical pages starting at KERNBASE."""

    def __init__(self, npages: int) -> None:
        if npages <= 0:
            raise ValueError("npages must be positive")
        self.npages = npages
        self.base = KERNBASE
        self._data = bytearray(npages * PGSIZE)
        self._refs: dict[int, int] = {}
        self._free = [self.base + i * PGSIZE for i in reversed(range(npages))]

    def alloc(self) -> int:
        """Hand out a zeroed page with one reference."""
        if not self._free:
            raise MemoryError("out of physical pages")
        pa = self._free.pop()
        self._refs[pa] = 1
        off = pa - self.base
        self._data[off : off + PGSIZE] = bytes(PGSIZE)
        return pa

    def _check_page(self, pa: int, what: str) -> None:
        if pa % PGSIZE or pa not in self._refs:
            raise VmPanic(what)

    def free(self, pa: int) -> None:
        """Drop one reference; the page returns to the pool at zero."""
        self._check_page(pa, "kfree")
        self._refs[pa] -= 1
        if self._refs[pa] == 0:
            del self._refs[pa]
            self._free.append(pa)

    def inc_ref(self, pa: int) -> None:
        """Add a reference to an allocated page."""
        self._check_page(pa, "inc_page_ref")
        self._refs[pa] += 1

    def _offset(self, pa: int, n: int) -> int:
        if n < 0 or pa < self.base or pa + n > self.base + len(self._data):
            raise VmPanic(f"physical address {pa:#x} out of range")
        return pa - self.base

    def read(self, pa: int, n: int) -> bytes:
        """Read ``n`` bytes at physical address ``pa``."""
        off = self._offset(pa, n)
        return bytes(self._data[off : off + n])

    def write(self, pa: int, data: bytes) -> None:
        """Write ``data`` at physical address ``pa``."""
        off = self._offset(pa, len(data))
        self._data[off : off + len(data)] = data

    def free_pages(self) -> int:
        """Number of pages not currently allocated."""
        return len(self._free)


class PageTable:
    """A user page table rooted in one page of ``memory``."""

    def __init__(self, memory: PhysicalMemory) -> None:
        self.memory = memory
        self.root = memory.alloc()

    def _load(self, addr: int) -> int:
        return int.from_bytes(self.memory.read(addr, _PTE_SIZE), "little")

    def _store(self, addr: int, value: int) -> None:
        self.memory.write(addr, value.to_bytes(_PTE_SIZE, "little"))

    def walk(self, va: int, alloc: bool = False) -> Optional[int]:
        """Physical address of the leaf PTE for ``va``, or None.

        With ``alloc`` missing page-table pages are created; None is also
        returned when that allocation fails.
        """
        if va < 0 or va >= MAXVA:
            raise VmPanic("walk")
        table = self.root
        for level in (2, 1):
            addr = table + _px(level, va) * _PTE_SIZE
            pte = self._load(addr)
            if pte & _V:
                table = _pte2pa(pte)
                continue
            if not alloc:
                return None
            try:
                table = self.memory.alloc()
            except MemoryError:
                return None
            self._store(addr, _pa2pte(table) | _V)
        return table + _px(0, va) * _PTE_SIZE

    def walkaddr(self, va: int) -> Optional[int]:
        """Physical address of the user page at ``va``, or None."""
        if va < 0 or va >= MAXVA:
            return None
        addr = self.walk(va)
        if addr is None:
            return None
        pte = self._load(addr)
        if not pte & _V or not pte & _U:
            return None
        return _pte2pa(pte)

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map ``[va, va + size)`` onto physical memory starting at ``pa``."""
        if size == 0:
            raise VmPanic("mappages: size")
        a = _round_down(va)
        last = _round_down(va + size - 1)
        while True:
            addr = self.walk(a, True)
            if addr is None:
                raise MemoryError("mappages: out of memory")
            if self._load(addr) & _V:
                raise VmPanic("mappages: remap")
            self._store(addr, _pa2pte(pa) | int(perm) | _V)
            if a == last:
                break
            a += PGSIZE
            pa += PGSIZE

    def unmap(self, va: int, npages: int, do_free: bool) -> None:
        """Remove ``npages`` existing mappings from page-aligned ``va``."""
        if va % PGSIZE:
            raise VmPanic("uvmunmap: not aligned")
        for a in range(va, va + npages * PGSIZE, PGSIZE):
            addr = self.walk(a)
            if addr is None:
                raise VmPanic("uvmunmap: walk")
            pte = self._load(addr)
            if not pte & _V:
                raise VmPanic("uvmunmap: not mapped")
            if pte & _FLAG_MASK == _V:
                raise VmPanic("uvmunmap: not a leaf")
            if do_free:
                self.memory.free(_pte2pa(pte))
            self._store(addr, 0)

    def first(self, code: bytes) -> None:
        """Load ``code`` (less than a page) at address 0."""
        if len(code) >= PGSIZE:
            raise VmPanic("uvmfirst: more than a page")
        mem = self.memory.alloc()
        self.map_pages(0, PGSIZE, mem, _W | _R | _X | _U)
        self.memory.write(mem, bytes(code))

    def grow(self, oldsz: int, newsz: int, xperm: int) -> int:
        """Allocate zeroed pages from ``oldsz`` to ``newsz``; return the new size.

        On failure everything this call mapped is released and MemoryError
        is raised.
        """
        if newsz < oldsz:
            return oldsz
        oldsz = _round_up(oldsz)
        for a in range(oldsz, newsz, PGSIZE):
            try:
                mem = self.memory.alloc()
            except MemoryError:
                self.shrink(a, oldsz)
                raise
            try:
                self.map_pages(a, PGSIZE, mem, _R | _U | int(xperm))
            except MemoryError:
                self.memory.free(mem)
                self.shrink(a, oldsz)
                raise
        return newsz

    def shrink(self, oldsz: int, newsz: int) -> int:
        """Free user pages to bring the size from ``oldsz`` down to ``newsz``."""
        if newsz >= oldsz:
            return oldsz
        if _round_up(newsz) < _round_up(oldsz):
            npages = (_round_up(oldsz) - _round_up(newsz)) // PGSIZE
            self.unmap(_round_up(newsz), npages, True)
        return newsz

    def _freewalk(self, table: int) -> None:
        entries = struct.iter_unpack("<Q", self.memory.read(table, PGSIZE))
        for i, (pte,) in enumerate(entries):
            if pte & _V and pte & (_R | _W | _X) == 0:
                self._freewalk(_pte2pa(pte))
                self._store(table + i * _PTE_SIZE, 0)
            elif pte & _V:
                raise VmPanic("freewalk: leaf")
        self.memory.free(table)

    def destroy(self, sz: int) -> None:
        """Free ``sz`` bytes of user memory, then every page-table page."""
        if sz > 0:
            self.unmap(0, _round_up(sz) // PGSIZE, True)
        self._freewalk(self.root)

    def copy_into(self, other: "PageTable", sz: int) -> None:
        """Share the first ``sz`` bytes with ``other``, copy-on-write."""
        if other.memory is not self.memory:
            raise ValueError("page tables must share one physical memory")
        for i in range(0, sz, PGSIZE):
            addr = self.walk(i)
            if addr is None:
                raise VmPanic("uvmcopy: pte should exist")
            pte = self._load(addr)
            if not pte & _V:
                raise VmPanic("uvmcopy: page not present")
            pa = _pte2pa(pte)
            flags = pte & _FLAG_MASK
            if flags & _W:
                flags = (flags & ~_W) | _C
                self._store(addr, _pa2pte(pa) | flags)
            try:
                other.map_pages(i, PGSIZE, pa, flags)
            except MemoryError:
                other.unmap(0, i // PGSIZE, True)
                raise
            self.memory.inc_ref(pa)

    def clear_user(self, va: int) -> None:
        """Make the page at ``va`` inaccessible to user code."""
        addr = self.walk(va)
        if addr is None:
            raise VmPanic("uvmclear")
        self._store(addr, self._load(addr) & ~_U)

    def handle_cow_fault(self, va: int) -> int:
        """Give the copy-on-write page at ``va`` a private writable copy.

        Returns the physical address of the new page.
        """
        va = _round_down(va)
        if va < 0 or va >= MAXVA:
            raise VmFault(f"address {va:#x} out of range")
        addr = self.walk(va)
        if addr is None:
            raise VmFault(f"address {va:#x} not mapped")
        pte = self._load(addr)
        flags = pte & _FLAG_MASK
        if not flags & _V or not flags & _U or not flags & _C:
            raise VmFault(f"address {va:#x} is not a copy-on-write page")
        old = _pte2pa(pte)
        new = self.memory.alloc()
        self.memory.write(new, self.memory.read(old, PGSIZE))
        self._store(addr, _pa2pte(new) | (flags & ~_C) | _W)
        self.memory.free(old)
        return new

    def copyout(self, dstva: int, data: bytes) -> None:
        """Copy ``data`` to user address ``dstva``."""
        data = bytes(data)
        pos = 0
        while pos < len(data):
            va0 = _round_down(dstva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise VmFault(f"copyout: {dstva:#x} not mapped")
            addr = self.walk(va0)
            assert addr is not None
            if self._load(addr) & _C:
                pa0 = self.handle_cow_fault(va0)
            n = min(PGSIZE - (dstva - va0), len(data) - pos)
            self.memory.write(pa0 + (dstva - va0), data[pos : pos + n])
            pos += n
            dstva = va0 + PGSIZE

    def copyin(self, srcva: int, n: int) -> bytes:
        """Copy ``n`` bytes from user address ``srcva``."""
        chunks = []
        while n > 0:
            va0 = _round_down(srcva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise VmFault(f"copyin: {srcva:#x} not mapped")
            step = min(PGSIZE - (srcva - va0), n)
            chunks.append(self.memory.read(pa0 + (srcva - va0), step))
            n -= step
            srcva = va0 + PGSIZE
        return b"".join(chunks)

    def copyinstr(self, srcva: int, limit: int) -> bytes:
        """Copy a NUL-terminated string of at most ``limit`` bytes, NUL included."""
        out = bytearray()
        while limit > 0:
            va0 = _round_down(srcva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise VmFault(f"copyinstr: {srcva:#x} not mapped")
            n = min(PGSIZE - (srcva - va0), limit)
            chunk = self.memory.read(pa0 + (srcva - va0), n)
            nul = chunk.find(b"\0")
            if nul >= 0:
                out += chunk[:nul]
                return bytes(out)
            out += chunk
            limit -= n
            srcva = va0 + PGSIZE
        raise VmFault("copyinstr: string not terminated within limit")