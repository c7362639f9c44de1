import pytest

from minicore.umalloc import HEADER_SIZE, MIN_GROW_UNITS, Heap, OutOfMemory

CHUNK = MIN_GROW_UNITS * HEADER_SIZE


def test_sbrk_returns_old_break():
    heap = Heap(1000)
    assert heap.sbrk(0) == 0
    assert heap.sbrk(100) == 0
    assert heap.sbrk(-40) == 100
    assert heap.sbrk(0) == 60


def test_sbrk_beyond_limits_raises():
    heap = Heap(1000)
    with pytest.raises(OutOfMemory):
        heap.sbrk(1001)
    with pytest.raises(OutOfMemory):
        heap.sbrk(-1)
    assert heap.sbrk(0) == 0


def test_first_malloc_grows_break_by_minimum_chunk():
    heap = Heap(4 * CHUNK)
    heap.malloc(1)
    assert heap.sbrk(0) == CHUNK


def test_malloc_without_room_for_chunk_raises():
    with pytest.raises(OutOfMemory):
        Heap(CHUNK - 1).malloc(1)


def test_blocks_are_aligned_and_disjoint():
    heap = Heap(4 * CHUNK)
    sizes = [1, 17, 100, 1000, 16]
    blocks = [(heap.malloc(n), n) for n in sizes]
    for addr, _ in blocks:
        assert addr % HEADER_SIZE == 0
        assert 0 < addr <= heap.sbrk(0)
    spans = sorted((a, a + n) for a, n in blocks)
    for (_, end), (start, _) in zip(spans, spans[1:]):
        assert end <= start - HEADER_SIZE


def test_free_then_malloc_reuses_block():
    heap = Heap(4 * CHUNK)
    a = heap.malloc(100)
    heap.free(a)
    assert heap.malloc(100) == a


def test_freed_blocks_coalesce_into_whole_chunk():
    heap = Heap(CHUNK)
    addrs = [heap.malloc(n) for n in (10, 200, 3000, 5)]
    for addr in reversed(addrs[::2]):
        heap.free(addr)
    for addr in addrs[1::2]:
        heap.free(addr)
    whole = heap.malloc((MIN_GROW_UNITS - 1) * HEADER_SIZE)
    assert whole == HEADER_SIZE
    assert heap.sbrk(0) == CHUNK


def test_exhausting_heap_raises_and_stays_within_limit():
    heap = Heap(CHUNK)
    count = 0
    with pytest.raises(OutOfMemory):
        while True:
            heap.malloc(HEADER_SIZE)
            count += 1
    assert count > 0
    assert count * 2 * HEADER_SIZE <= CHUNK


def test_double_free_raises():
    heap = Heap(CHUNK)
    a = heap.malloc(8)
    heap.free(a)
    with pytest.raises(ValueError):
        heap.free(a)


def test_free_of_unknown_address_raises():
    heap = Heap(CHUNK)
    heap.malloc(8)
    with pytest.raises(ValueError):
        heap.free(12345)


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        Heap(CHUNK).malloc(-1)