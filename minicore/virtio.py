"""Wire layouts of virtio queue structures and the sysinfo record."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field
from typing import ClassVar

# MMIO control register offsets.
VIRTIO_MMIO_MAGIC_VALUE = 0x000
VIRTIO_MMIO_VERSION = 0x004
VIRTIO_MMIO_DEVICE_ID = 0x008
VIRTIO_MMIO_VENDOR_ID = 0x00C
VIRTIO_MMIO_DEVICE_FEATURES = 0x010
VIRTIO_MMIO_DRIVER_FEATURES = 0x020
VIRTIO_MMIO_QUEUE_SEL = 0x030
VIRTIO_MMIO_QUEUE_NUM_MAX = 0x034
VIRTIO_MMIO_QUEUE_NUM = 0x038
VIRTIO_MMIO_QUEUE_READY = 0x044
VIRTIO_MMIO_QUEUE_NOTIFY = 0x050
VIRTIO_MMIO_INTERRUPT_STATUS = 0x060
VIRTIO_MMIO_INTERRUPT_ACK = 0x064
VIRTIO_MMIO_STATUS = 0x070
VIRTIO_MMIO_QUEUE_DESC_LOW = 0x080
VIRTIO_MMIO_QUEUE_DESC_HIGH = 0x084
VIRTIO_MMIO_DRIVER_DESC_LOW = 0x090
VIRTIO_MMIO_DRIVER_DESC_HIGH = 0x094
VIRTIO_MMIO_DEVICE_DESC_LOW = 0x0A0
VIRTIO_MMIO_DEVICE_DESC_HIGH = 0x0A4

# Status register bits.
VIRTIO_CONFIG_S_ACKNOWLEDGE = 1
VIRTIO_CONFIG_S_DRIVER = 2
VIRTIO_CONFIG_S_DRIVER_OK = 4
VIRTIO_CONFIG_S_FEATURES_OK = 8

# Device feature bits.
VIRTIO_BLK_F_RO = 5
VIRTIO_BLK_F_SCSI = 7
VIRTIO_BLK_F_CONFIG_WCE = 11
VIRTIO_BLK_F_MQ = 12
VIRTIO_F_ANY_LAYOUT = 27
VIRTIO_RING_F_INDIRECT_DESC = 28
VIRTIO_RING_F_EVENT_IDX = 29

NUM = 8

VIRTIO_BLK_T_IN = 0
VIRTIO_BLK_T_OUT = 1


class DescFlags(enum.IntFlag):
    """Descriptor flags."""

    NEXT = 1
    WRITE = 2


def _pack(layout: struct.Struct, *values: int) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(str(exc)) from exc


def _unpack(layout: struct.Struct, data: bytes, name: str) -> tuple:
    if len(data) != layout.size:
        raise ValueError(f"{name} needs {layout.size} bytes, got {len(data)}")
    return layout.unpack(data)


def _check_ring(ring: list, name: str) -> None:
    if len(ring) != NUM:
        raise ValueError(f"{name} ring must hold {NUM} entries, not {len(ring)}")


@dataclass
class VirtqDesc:
    """One descriptor of the descriptor table."""

    addr: int = 0
    len: int = 0
    flags: DescFlags = DescFlags(0)
    next: int = 0

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<QIHH")
    SIZE: ClassVar[int] = _LAYOUT.size

    def pack(self) -> bytes:
        return _pack(self._LAYOUT, self.addr, self.len, int(self.flags), self.next)

    @classmethod
    def unpack(cls, data: bytes) -> "VirtqDesc":
        addr, length, flags, nxt = _unpack(cls._LAYOUT, data, cls.__name__)
        return cls(addr, length, DescFlags(flags), nxt)


@dataclass
class VirtqAvail:
    """The available ring written by the driver."""

    flags: int = 0
    idx: int = 0
    ring: list[int] = field(default_factory=lambda: [0] * NUM)
    unused: int = 0

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct(f"<HH{NUM}HH")
    SIZE: ClassVar[int] = _LAYOUT.size

    def pack(self) -> bytes:
        _check_ring(self.ring, type(self).__name__)
        return _pack(self._LAYOUT, self.flags, self.idx, *self.ring, self.unused)

    @classmethod
    def unpack(cls, data: bytes) -> "VirtqAvail":
        values = _unpack(cls._LAYOUT, data, cls.__name__)
        return cls(values[0], values[1], list(values[2 : 2 + NUM]), values[-1])


@dataclass
class VirtqUsedElem:
    """One completed request reported by the device."""

    id: int = 0
    len: int = 0

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<II")
    SIZE: ClassVar[int] = _LAYOUT.size

    def pack(self) -> bytes:
        return _pack(self._LAYOUT, self.id, self.len)

    @classmethod
    def unpack(cls, data: bytes) -> "VirtqUsedElem":
        return cls(*_unpack(cls._LAYOUT, data, cls.__name__))


@dataclass
class VirtqUsed:
    """The used ring written by the device."""

    flags: int = 0
    idx: int = 0
    ring: list[VirtqUsedElem] = field(
        default_factory=lambda: [VirtqUsedElem() for _ in range(NUM)]
    )

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct(f"<HH{2 * NUM}I")
    SIZE: ClassVar[int] = _LAYOUT.size

    def pack(self) -> bytes:
        _check_ring(self.ring, type(self).__name__)
        flat = [value for elem in self.ring for value in (elem.id, elem.len)]
        return _pack(self._LAYOUT, self.flags, self.idx, *flat)

    @classmethod
    def unpack(cls, data: bytes) -> "VirtqUsed":
        values = _unpack(cls._LAYOUT, data, cls.__name__)
        flat = values[2:]
        ring = [VirtqUsedElem(i, n) for i, n in zip(flat[::2], flat[1::2])]
        return cls(values[0], values[1], ring)


@dataclass
class VirtioBlkReq:
    """Header of a block-device request."""

    type: int = VIRTIO_BLK_T_IN
    reserved: int = 0
    sector: int = 0

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<IIQ")
    SIZE: ClassVar[int] = _LAYOUT.size

    def pack(self) -> bytes:
        return _pack(self._LAYOUT, self.type, self.reserved, self.sector)

    @classmethod
    def unpack(cls, data: bytes) -> "VirtioBlkReq":
        return cls(*_unpack(cls._LAYOUT, data, cls.__name__))


@dataclass
class SysInfo:
    """System statistics: uptime, memory and process count."""

    uptime: int = 0
    totalram: int = 0
    freeram: int = 0
    procs: int = 0

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<QQQH6x")
    SIZE: ClassVar[int] = _LAYOUT.size

    def pack(self) -> bytes:
        return _pack(self._LAYOUT, self.uptime, self.totalram, self.freeram, self.procs)

    @classmethod
    def unpack(cls, data: bytes) -> "SysInfo":
        return cls(*_unpack(cls._LAYOUT, data, cls.__name__))