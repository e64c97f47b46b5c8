import pytest

from spanpool.common import (
    MAX_BYTES,
    NFREELIST,
    PAGE_SHIFT,
    PAGE_SIZE,
    FreeList,
    Span,
    SpanList,
    SystemMemory,
    align_up,
    index_in_group,
    num_move_page,
    num_move_size,
    round_up,
    size_index,
)


def test_align_up_multiples():
    for align in (8, 16, 128, 1024):
        for n in range(1, 3 * align):
            r = align_up(n, align)
            assert r % align == 0
            assert n <= r < n + align


def test_align_up_rejects_non_power_of_two():
    with pytest.raises(ValueError):
        align_up(10, 12)


def test_round_up_smallest_is_eight():
    assert round_up(1) == 8
    assert round_up(8) == 8


@pytest.mark.parametrize(
    "lo,hi,align",
    [(1, 128, 8), (129, 1024, 16), (1025, 8192, 128), (8193, 65536, 1024),
     (65537, MAX_BYTES, 8192)],
)
def test_round_up_groups(lo, hi, align):
    for size in (lo, lo + 1, (lo + hi) // 2, hi):
        r = round_up(size)
        assert r % align == 0
        assert size <= r < size + align
        assert round_up(r) == r


def test_round_up_large_is_page_aligned():
    size = MAX_BYTES + 1
    r = round_up(size)
    assert r % PAGE_SIZE == 0
    assert size <= r < size + PAGE_SIZE


def test_index_in_group_examples():
    assert index_in_group(1, 3) == 0
    assert index_in_group(8, 3) == 0
    assert index_in_group(9, 3) == 1
    assert index_in_group(16, 3) == 1


def test_size_index_covers_all_buckets():
    indices = {size_index(s) for s in range(1, MAX_BYTES + 1)}
    assert indices == set(range(NFREELIST))
    assert size_index(1) == 0
    assert size_index(MAX_BYTES) == NFREELIST - 1


def test_size_index_monotonic_across_group_boundaries():
    for boundary in (128, 1024, 8 * 1024, 64 * 1024):
        assert size_index(boundary + 1) == size_index(boundary) + 1


def test_size_index_matches_rounded_size():
    for size in (1, 7, 100, 129, 1000, 5000, 40000, 200000):
        assert size_index(round_up(size)) == size_index(size)


@pytest.mark.parametrize("size", [0, -1, MAX_BYTES + 1])
def test_size_index_out_of_range(size):
    with pytest.raises(ValueError):
        size_index(size)


def test_num_move_size_limits():
    assert num_move_size(1) == 512
    assert num_move_size(MAX_BYTES) == 2
    for size in (8, 100, 4096, 100000):
        assert 2 <= num_move_size(size) <= 512


def test_num_move_size_rejects_zero():
    with pytest.raises(ValueError):
        num_move_size(0)


def test_num_move_page_bounds():
    for size in (8, 64, 1024, 8192, 65536, MAX_BYTES):
        pages = num_move_page(size)
        assert pages >= 1
        assert pages << PAGE_SHIFT <= max(num_move_size(size) * size, PAGE_SIZE)


def test_system_memory_alloc_is_page_aligned_and_disjoint():
    mem = SystemMemory()
    a = mem.alloc(3)
    b = mem.alloc(2)
    assert a % PAGE_SIZE == 0 and b % PAGE_SIZE == 0
    assert a > 0
    assert b >= a + 3 * PAGE_SIZE or a >= b + 2 * PAGE_SIZE


def test_system_memory_reuses_freed_block():
    mem = SystemMemory()
    a = mem.alloc(4)
    mem.alloc(1)
    mem.free(a)
    assert mem.alloc(4) == a


def test_system_memory_coalesces_holes():
    mem = SystemMemory()
    a = mem.alloc(2)
    b = mem.alloc(2)
    mem.alloc(1)
    mem.free(a)
    mem.free(b)
    assert mem.alloc(4) == a


def test_system_memory_free_unknown_raises():
    mem = SystemMemory()
    a = mem.alloc(1)
    with pytest.raises(ValueError):
        mem.free(a + 8)
    mem.free(a)
    with pytest.raises(ValueError):
        mem.free(a)


def test_system_memory_rejects_bad_count_and_exhaustion():
    mem = SystemMemory(base_page=1, limit_page=5)
    with pytest.raises(ValueError):
        mem.alloc(0)
    mem.alloc(4)
    with pytest.raises(MemoryError):
        mem.alloc(1)


def test_free_list_lifo():
    fl = FreeList()
    assert fl.is_empty()
    fl.push(10)
    fl.push(20)
    assert len(fl) == 2
    assert fl.pop() == 20
    assert fl.pop() == 10
    assert fl.is_empty()
    with pytest.raises(IndexError):
        fl.pop()


def test_free_list_ranges_keep_order():
    fl = FreeList()
    fl.push(99)
    fl.push_range([1, 2, 3])
    assert len(fl) == 4
    assert fl.pop_range(2) == [1, 2]
    assert fl.pop() == 3
    assert fl.pop() == 99


def test_free_list_pop_range_too_many():
    fl = FreeList()
    fl.push_range([1, 2])
    with pytest.raises(ValueError):
        fl.pop_range(3)
    assert len(fl) == 2


def test_free_list_max_size_starts_at_one():
    fl = FreeList()
    assert fl.max_size == 1
    fl.max_size += 1
    assert fl.max_size == 2


def test_span_address():
    span = Span(page_id=5, n=2)
    assert span.address == 5 << PAGE_SHIFT
    assert span.free_list == [] and not span.is_use


def test_span_list_push_pop_order():
    sl = SpanList()
    assert sl.is_empty()
    a, b = Span(page_id=1), Span(page_id=2)
    sl.push_front(a)
    sl.push_front(b)
    assert list(sl) == [b, a]
    assert len(sl) == 2
    assert sl.pop_front() is b
    assert sl.pop_front() is a
    assert sl.is_empty()
    with pytest.raises(IndexError):
        sl.pop_front()


def test_span_list_insert_and_erase():
    sl = SpanList()
    a, b, c = Span(page_id=1), Span(page_id=2), Span(page_id=3)
    sl.push_front(a)
    sl.insert(a, b)
    sl.insert(a, c)
    assert list(sl) == [b, c, a]
    sl.erase(c)
    assert list(sl) == [b, a]
    assert c.prev is None and c.next is None
    with pytest.raises(ValueError):
        sl.erase(c)


def test_span_list_rejects_double_link():
    sl = SpanList()
    a = Span()
    sl.push_front(a)
    with pytest.raises(ValueError):
        sl.push_front(a)
    assert len(sl) == 1