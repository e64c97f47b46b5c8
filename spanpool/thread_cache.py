"""Per-thread cache of free objects, one free list per size class."""

from __future__ import annotations

from spanpool.central_cache import CentralCache
from spanpool.common import (
    MAX_BYTES,
    NFREELIST,
    FreeList,
    num_move_size,
    round_up,
    size_index,
)


class ThreadCache:
    """Serves small allocations without locking, refilling from the central cache."""

    def __init__(self, central_cache: CentralCache):
        self.central_cache = central_cache
        self._free_lists = [FreeList() for _ in range(NFREELIST)]

    def allocate(self, size: int) -> int:
        """Return the address of an object of at least ``size`` bytes."""
        if size > MAX_BYTES:
            raise ValueError(f"size must be at most {MAX_BYTES}, got {size}")
        index = size_index(size)
        free_list = self._free_lists[index]
        if not free_list.is_empty():
            return free_list.pop()
        return self.fetch_from_central_cache(index, round_up(size))

    def deallocate(self, ptr: int, size: int) -> None:
        """Take back object ``ptr`` of ``size`` bytes."""
        index = size_index(size)
        free_list = self._free_lists[index]
        free_list.push(ptr)
        if len(free_list) >= free_list.max_size:
            self.list_too_long(free_list, size)

    def fetch_from_central_cache(self, index: int, size: int) -> int:
        """Fetch a batch with slow start, keep all but one, return that one."""
        free_list = self._free_lists[index]
        batch_num = min(free_list.max_size, num_move_size(size))
        if free_list.max_size == batch_num:
            free_list.max_size += 1
        objs = self.central_cache.fetch_range_obj(batch_num, size)
        free_list.push_range(objs[1:])
        return objs[0]

    def list_too_long(self, free_list: FreeList, size: int) -> None:
        """Hand one batch of ``free_list`` back to the central cache."""
        objs = free_list.pop_range(free_list.max_size)
        self.central_cache.release_list_to_spans(objs, size)