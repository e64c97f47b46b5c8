"""Page-level cache handing out and coalescing spans of contiguous pages."""

from __future__ import annotations

import threading
from typing import Optional

from spanpool.common import NPAGES, PAGE_SHIFT, Span, SpanList, SystemMemory
from spanpool.object_pool import ObjectPool
from spanpool.page_map import PageMap1


class PageCache:
    """Keeps free spans bucketed by page count and merges neighbours on release.

    Callers hold :attr:`lock` around :meth:`new_span` and
    :meth:`release_span_to_page_cache`; :meth:`map_object_to_span` is lock-free.
    """

    def __init__(self, system: Optional[SystemMemory] = None):
        self.system = system if system is not None else SystemMemory()
        self.lock = threading.Lock()
        self._span_lists = [SpanList() for _ in range(NPAGES)]
        self._span_pool: ObjectPool[Span] = ObjectPool(Span)
        self._id_span_map = PageMap1(32 - PAGE_SHIFT)

    def _map_pages(self, span: Span) -> None:
        for page in range(span.page_id, span.page_id + span.n):
            self._id_span_map.set(page, span)

    def new_span(self, k: int) -> Span:
        """Return a span of exactly ``k`` pages."""
        if k < 1:
            raise ValueError(f"page count must be positive, got {k}")

        if k > NPAGES - 1:
            address = self.system.alloc(k)
            span = self._span_pool.new()
            span.page_id = address >> PAGE_SHIFT
            span.n = k
            self._id_span_map.set(span.page_id, span)
            return span

        while True:
            bucket = self._span_lists[k]
            if not bucket.is_empty():
                span = bucket.pop_front()
                self._map_pages(span)
                return span

            for n in range(k + 1, NPAGES):
                bigger = self._span_lists[n]
                if bigger.is_empty():
                    continue
                n_span = bigger.pop_front()
                k_span = self._span_pool.new()
                k_span.page_id = n_span.page_id
                k_span.n = k

                n_span.page_id += k
                n_span.n -= k
                self._span_lists[n_span.n].push_front(n_span)
                self._id_span_map.set(n_span.page_id, n_span)
                self._id_span_map.set(n_span.page_id + n_span.n - 1, n_span)

                self._map_pages(k_span)
                return k_span

            big = self._span_pool.new()
            big.page_id = self.system.alloc(NPAGES - 1) >> PAGE_SHIFT
            big.n = NPAGES - 1
            self._span_lists[big.n].push_front(big)

    def map_object_to_span(self, address: int) -> Span:
        """Return the span owning the page that ``address`` lies in."""
        span = self._id_span_map.get(address >> PAGE_SHIFT)
        if span is None:
            raise ValueError(f"address {address:#x} is not managed by this cache")
        return span

    def _mergeable(self, other: Optional[Span], span: Span) -> bool:
        return (
            other is not None
            and other is not span
            and not other.is_use
            and other.prev is not None
            and other.n + span.n <= NPAGES - 1
        )

    def release_span_to_page_cache(self, span: Span) -> None:
        """Take back a free span, merging it with free neighbouring spans."""
        if span.n > NPAGES - 1:
            self._id_span_map.set(span.page_id, None)
            self.system.free(span.address)
            self._span_pool.delete(span)
            return

        while True:
            prev_span = self._id_span_map.get(span.page_id - 1)
            if not self._mergeable(prev_span, span):
                break
            if prev_span.page_id + prev_span.n != span.page_id:
                break
            span.page_id = prev_span.page_id
            span.n += prev_span.n
            self._span_lists[prev_span.n].erase(prev_span)
            self._span_pool.delete(prev_span)

        while True:
            next_id = span.page_id + span.n
            next_span = self._id_span_map.get(next_id)
            if not self._mergeable(next_span, span):
                break
            if next_span.page_id != next_id:
                break
            span.n += next_span.n
            self._span_lists[next_span.n].erase(next_span)
            self._span_pool.delete(next_span)

        self._span_lists[span.n].push_front(span)
        span.is_use = False
        self._id_span_map.set(span.page_id, span)
        self._id_span_map.set(span.page_id + span.n - 1, span)