"""Build a file-system image holding a root directory and a set of files.

Disk layout, one block per sector:
[ boot block | superblock | log | inode blocks | free bit map | data blocks ]
"""

from __future__ import annotations

import struct
import sys
from dataclasses import dataclass, field
from typing import BinaryIO, Iterable, Optional

from .commands import FileType

ROOTINO = 1
_USER_PREFIX = "user/"
_SUPERBLOCK = struct.Struct("<8I")


class MkfsError(Exception):
    """The image cannot be built as requested."""


@dataclass(frozen=True)
class Geometry:
    """Sizes that fix the layout of an image; derived fields are computed."""

    block_size: int = 1024
    fs_size: int = 2000
    ninodes: int = 200
    nlog: int = 30
    ndirect: int = 12
    dirsiz: int = 14
    magic: int = 0x10203040

    nindirect: int = field(init=False)
    maxfile: int = field(init=False)
    inode_size: int = field(init=False)
    dirent_size: int = field(init=False)
    ipb: int = field(init=False)
    nbitmap: int = field(init=False)
    ninodeblocks: int = field(init=False)
    nmeta: int = field(init=False)
    nblocks: int = field(init=False)
    logstart: int = field(init=False)
    inodestart: int = field(init=False)
    bmapstart: int = field(init=False)

    def __post_init__(self) -> None:
        if min(self.block_size, self.fs_size, self.ninodes, self.ndirect, self.dirsiz) <= 0:
            raise ValueError("geometry sizes must be positive")
        if self.nlog < 0:
            raise ValueError("log size must not be negative")
        inode_size = 4 * 2 + 4 + 4 * (self.ndirect + 1)
        dirent_size = 2 + self.dirsiz
        if self.block_size % inode_size:
            raise ValueError(f"block size must be a multiple of the inode size {inode_size}")
        if self.block_size % dirent_size:
            raise ValueError(f"block size must be a multiple of the entry size {dirent_size}")
        ipb = self.block_size // inode_size
        nbitmap = self.fs_size // (self.block_size * 8) + 1
        ninodeblocks = self.ninodes // ipb + 1
        nmeta = 2 + self.nlog + ninodeblocks + nbitmap
        if nmeta >= self.fs_size:
            raise ValueError("no room left for data blocks")
        nindirect = self.block_size // 4
        derived = {
            "nindirect": nindirect,
            "maxfile": self.ndirect + nindirect,
            "inode_size": inode_size,
            "dirent_size": dirent_size,
            "ipb": ipb,
            "nbitmap": nbitmap,
            "ninodeblocks": ninodeblocks,
            "nmeta": nmeta,
            "nblocks": self.fs_size - nmeta,
            "logstart": 2,
            "inodestart": 2 + self.nlog,
            "bmapstart": 2 + self.nlog + ninodeblocks,
        }
        for name, value in derived.items():
            object.__setattr__(self, name, value)


def _inode_layout(geometry: Geometry) -> struct.Struct:
    return struct.Struct(f"<hhhhI{geometry.ndirect + 1}I")


@dataclass
class DiskInode:
    """An on-disk inode."""

    type: int = 0
    major: int = 0
    minor: int = 0
    nlink: int = 0
    size: int = 0
    addrs: list[int] = field(default_factory=list)

    def pack(self, geometry: Geometry) -> bytes:
        count = geometry.ndirect + 1
        addrs = list(self.addrs) + [0] * (count - len(self.addrs))
        if len(addrs) != count:
            raise ValueError(f"an inode holds {count} block addresses")
        return _inode_layout(geometry).pack(
            int(self.type), self.major, self.minor, self.nlink, self.size, *addrs
        )

    @classmethod
    def unpack(cls, data: bytes, geometry: Geometry) -> "DiskInode":
        layout = _inode_layout(geometry)
        if len(data) != layout.size:
            raise ValueError(f"an inode needs {layout.size} bytes, got {len(data)}")
        values = layout.unpack(data)
        return cls(values[0], values[1], values[2], values[3], values[4], list(values[5:]))


class ImageBuilder:
    """Writes an image file; the root directory exists from the start."""

    def __init__(self, path: str, geometry: Optional[Geometry] = None) -> None:
        self.geometry = geometry or Geometry()
        self._file: BinaryIO = open(path, "w+b")
        self._freeinode = 1
        self._freeblock = self.geometry.nmeta
        try:
            zeroes = bytes(self.geometry.block_size)
            for sec in range(self.geometry.fs_size):
                self._wsect(sec, zeroes)
            self._wsect(1, self._superblock())
            self.root = self.ialloc(FileType.DIR)
            if self.root != ROOTINO:
                raise MkfsError(f"root inode is {self.root}, not {ROOTINO}")
            self._link(".", self.root)
            self._link("..", self.root)
        except BaseException:
            self._file.close()
            raise

    def _superblock(self) -> bytes:
        g = self.geometry
        packed = _SUPERBLOCK.pack(
            g.magic, g.fs_size, g.nblocks, g.ninodes, g.nlog,
            g.logstart, g.inodestart, g.bmapstart,
        )
        return packed.ljust(g.block_size, b"\0")

    def _wsect(self, sec: int, data: bytes) -> None:
        size = self.geometry.block_size
        if len(data) != size:
            raise MkfsError(f"sector write of {len(data)} bytes")
        self._file.seek(sec * size)
        self._file.write(data)

    def _rsect(self, sec: int) -> bytes:
        size = self.geometry.block_size
        self._file.seek(sec * size)
        data = self._file.read(size)
        if len(data) != size:
            raise MkfsError(f"short read of sector {sec}")
        return data

    def _inode_location(self, inum: int) -> tuple[int, int]:
        g = self.geometry
        return inum // g.ipb + g.inodestart, (inum % g.ipb) * g.inode_size

    def _next_block(self) -> int:
        if self._freeblock >= self.geometry.fs_size:
            raise MkfsError("out of blocks")
        block = self._freeblock
        self._freeblock += 1
        return block

    def ialloc(self, kind: int) -> int:
        """Allocate an inode of type ``kind`` with one link and no data."""
        inum = self._freeinode
        self._freeinode += 1
        self.write_inode(inum, DiskInode(type=int(kind), nlink=1, size=0))
        return inum

    def read_inode(self, inum: int) -> DiskInode:
        """The inode numbered ``inum`` as stored in the image."""
        bn, off = self._inode_location(inum)
        block = self._rsect(bn)
        return DiskInode.unpack(block[off : off + self.geometry.inode_size], self.geometry)

    def write_inode(self, inum: int, inode: DiskInode) -> None:
        """Store ``inode`` as inode number ``inum``."""
        bn, off = self._inode_location(inum)
        block = bytearray(self._rsect(bn))
        block[off : off + self.geometry.inode_size] = inode.pack(self.geometry)
        self._wsect(bn, bytes(block))

    def iappend(self, inum: int, data: bytes) -> None:
        """Append ``data`` to the contents of inode ``inum``."""
        g = self.geometry
        din = self.read_inode(inum)
        off = din.size
        pos = 0
        indirect_layout = struct.Struct(f"<{g.nindirect}I")
        while pos < len(data):
            fbn = off // g.block_size
            if fbn >= g.maxfile:
                raise MkfsError(f"inode {inum} would exceed the largest file size")
            if fbn < g.ndirect:
                if din.addrs[fbn] == 0:
                    din.addrs[fbn] = self._next_block()
                x = din.addrs[fbn]
            else:
                if din.addrs[g.ndirect] == 0:
                    din.addrs[g.ndirect] = self._next_block()
                table = din.addrs[g.ndirect]
                indirect = list(indirect_layout.unpack(self._rsect(table)))
                slot = fbn - g.ndirect
                if indirect[slot] == 0:
                    indirect[slot] = self._next_block()
                    self._wsect(table, indirect_layout.pack(*indirect))
                x = indirect[slot]
            n1 = min(len(data) - pos, (fbn + 1) * g.block_size - off)
            block = bytearray(self._rsect(x))
            start = off - fbn * g.block_size
            block[start : start + n1] = data[pos : pos + n1]
            self._wsect(x, bytes(block))
            pos += n1
            off += n1
        din.size = off
        self.write_inode(inum, din)

    def _link(self, name: str, inum: int) -> None:
        g = self.geometry
        raw = name.encode()[: g.dirsiz]
        self.iappend(self.root, struct.pack(f"<H{g.dirsiz}s", inum, raw))

    def add_file(self, name: str, data: bytes) -> int:
        """Create a file named ``name`` in the root directory; return its inode."""
        if "/" in name:
            raise MkfsError(f"file name {name!r} contains a slash")
        inum = self.ialloc(FileType.FILE)
        self._link(name, inum)
        self.iappend(inum, data)
        return inum

    def finish(self) -> int:
        """Round the root size up and write the bitmap; return the blocks in use."""
        g = self.geometry
        din = self.read_inode(self.root)
        din.size = (din.size // g.block_size + 1) * g.block_size
        self.write_inode(self.root, din)
        used = self._freeblock
        if used >= g.block_size * 8:
            raise MkfsError(f"{used} blocks do not fit in one bitmap block")
        bitmap = bytearray(g.block_size)
        for i in range(used):
            bitmap[i // 8] |= 1 << (i % 8)
        self._wsect(g.bmapstart, bytes(bitmap))
        return used

    def close(self) -> None:
        """Close the image file."""
        self._file.close()

    def __enter__(self) -> "ImageBuilder":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def _short_name(path: str) -> str:
    name = path[len(_USER_PREFIX):] if path.startswith(_USER_PREFIX) else path
    if "/" in name:
        raise MkfsError(f"{path}: file must be in the current or user/ directory")
    return name[1:] if name.startswith("_") else name


def build_image(path: str, sources: Iterable[str], geometry: Optional[Geometry] = None) -> int:
    """Write an image at ``path`` holding ``sources``; return the blocks in use.

    A leading ``user/`` and a leading underscore are dropped from each name.
    """
    with ImageBuilder(path, geometry) as builder:
        for source in sources:
            name = _short_name(source)
            with open(source, "rb") as f:
                data = f.read()
            builder.add_file(name, data)
        return builder.finish()


def main(argv: Optional[list[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print("Usage: mkfs fs.img files...", file=sys.stderr)
        return 1
    g = Geometry()
    print(
        f"nmeta {g.nmeta} (boot, super, log blocks {g.nlog} inode blocks "
        f"{g.ninodeblocks}, bitmap blocks {g.nbitmap}) blocks {g.nblocks} total {g.fs_size}"
    )
    try:
        used = build_image(args[0], args[1:], g)
    except OSError as exc:
        print(f"{exc.filename}: {exc.strerror}", file=sys.stderr)
        return 1
    except MkfsError as exc:
        print(f"mkfs: {exc}", file=sys.stderr)
        return 1
    print(f"balloc: first {used} blocks have been allocated")
    print(f"balloc: write bitmap block at sector {g.bmapstart}")
    return 0