"""Central cache shared by all thread caches, one locked bucket per size class."""

from __future__ import annotations

from spanpool.common import (
    NFREELIST,
    PAGE_SHIFT,
    Span,
    SpanList,
    num_move_page,
    size_index,
)
from spanpool.page_cache import PageCache


class CentralCache:
    """Carves page spans into objects and hands them out in batches."""

    def __init__(self, page_cache: PageCache):
        self.page_cache = page_cache
        self._span_lists = [SpanList() for _ in range(NFREELIST)]

    def get_one_span(self, span_list: SpanList, size: int) -> Span:
        """Return a span of ``span_list`` with free objects of ``size`` bytes.

        The caller holds ``span_list.lock``; it is dropped while a new span is
        fetched from the page cache and held again on return.
        """
        for span in span_list:
            if span.free_list:
                return span

        span_list.lock.release()
        try:
            page_cache = self.page_cache
            with page_cache.lock:
                span = page_cache.new_span(num_move_page(size))
                span.is_use = True
                span.obj_size = size

            start = span.address
            end = start + (span.n << PAGE_SHIFT)
            # Head of the free list is the last element: lowest address first out.
            span.free_list = list(reversed(range(start, end - size + 1, size)))
        finally:
            span_list.lock.acquire()

        span_list.push_front(span)
        return span

    def fetch_range_obj(self, batch_num: int, size: int) -> list[int]:
        """Take up to ``batch_num`` objects of ``size`` bytes from one span."""
        if batch_num < 1:
            raise ValueError(f"batch size must be positive, got {batch_num}")
        span_list = self._span_lists[size_index(size)]
        with span_list.lock:
            span = self.get_one_span(span_list, size)
            count = min(batch_num, len(span.free_list))
            objs = span.free_list[-count:]
            del span.free_list[-count:]
            objs.reverse()
            span.use_count += count
        return objs

    def release_list_to_spans(self, objs, size: int) -> None:
        """Return objects to their spans; fully free spans go to the page cache."""
        span_list = self._span_lists[size_index(size)]
        with span_list.lock:
            for obj in objs:
                span = self.page_cache.map_object_to_span(obj)
                span.free_list.append(obj)
                span.use_count -= 1
                if span.use_count:
                    continue
                span_list.erase(span)
                span.free_list = []
                span_list.lock.release()
                try:
                    with self.page_cache.lock:
                        self.page_cache.release_span_to_page_cache(span)
                finally:
                    span_list.lock.acquire()