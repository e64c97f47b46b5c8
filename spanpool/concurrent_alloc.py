"""The allocator front end: thread caches for small sizes, pages for large ones."""

from __future__ import annotations

import threading
from typing import Optional

from spanpool.central_cache import CentralCache
from spanpool.common import MAX_BYTES, PAGE_SHIFT, SystemMemory, round_up
from spanpool.page_cache import PageCache
from spanpool.thread_cache import ThreadCache


class MemoryPool:
    """A three-tier pool: per-thread caches, a central cache and a page cache."""

    def __init__(self, system: Optional[SystemMemory] = None):
        self.page_cache = PageCache(system)
        self.central_cache = CentralCache(self.page_cache)
        self._local = threading.local()

    def thread_cache(self) -> ThreadCache:
        """Return the calling thread's cache, creating it on first use."""
        cache = getattr(self._local, "cache", None)
        if cache is None:
            cache = ThreadCache(self.central_cache)
            self._local.cache = cache
        return cache

    def allocate(self, size: int) -> int:
        """Return the address of a block of at least ``size`` bytes."""
        if size < 1:
            raise ValueError(f"size must be positive, got {size}")
        if size > MAX_BYTES:
            kpage = round_up(size) >> PAGE_SHIFT
            with self.page_cache.lock:
                span = self.page_cache.new_span(kpage)
                span.obj_size = size
                span.is_use = True
            return span.address
        return self.thread_cache().allocate(size)

    def free(self, ptr: int) -> None:
        """Release a block returned by :meth:`allocate`."""
        span = self.page_cache.map_object_to_span(ptr)
        size = span.obj_size
        if size > MAX_BYTES:
            with self.page_cache.lock:
                self.page_cache.release_span_to_page_cache(span)
        else:
            self.thread_cache().deallocate(ptr, size)


_default_pool = MemoryPool()


def concurrent_alloc(size: int) -> int:
    """Allocate ``size`` bytes from the process-wide pool."""
    return _default_pool.allocate(size)


def concurrent_free(ptr: int) -> None:
    """Release a block obtained from :func:`concurrent_alloc`."""
    _default_pool.free(ptr)