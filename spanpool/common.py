"""Size classes, simulated system pages, free lists and spans."""

from __future__ import annotations

import bisect
import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Optional

MAX_BYTES = 256 * 1024
NFREELIST = 208
NPAGES = 129
PAGE_SHIFT = 13
PAGE_SIZE = 1 << PAGE_SHIFT

# Number of free-list buckets in each alignment group.
_GROUP_SIZES = (16, 56, 56, 56)

# (upper bound of the group, alignment shift) for every group of small sizes.
_GROUPS = (
    (128, 3),
    (1024, 4),
    (8 * 1024, 7),
    (64 * 1024, 10),
    (256 * 1024, 13),
)


def align_up(nbytes: int, align: int) -> int:
    """Round ``nbytes`` up to a multiple of ``align`` (a power of two)."""
    if align <= 0 or align & (align - 1):
        raise ValueError(f"alignment must be a power of two, got {align}")
    return (nbytes + align - 1) & ~(align - 1)


def round_up(size: int) -> int:
    """Return the aligned size that a request of ``size`` bytes is served with.

    Alignment grows with the size so that internal waste stays near 10%.
    """
    for upper, shift in _GROUPS:
        if size <= upper:
            return align_up(size, 1 << shift)
    return align_up(size, PAGE_SIZE)


def index_in_group(nbytes: int, align_shift: int) -> int:
    """Index of ``nbytes`` within a group aligned to ``1 << align_shift``."""
    return ((nbytes + (1 << align_shift) - 1) >> align_shift) - 1


def size_index(size: int) -> int:
    """Return the free-list bucket that serves requests of ``size`` bytes."""
    if not 1 <= size <= MAX_BYTES:
        raise ValueError(f"size must be in [1, {MAX_BYTES}], got {size}")
    lower = 0
    offset = 0
    for (upper, shift), count in zip(_GROUPS, (0,) + _GROUP_SIZES):
        offset += count
        if size <= upper:
            return index_in_group(size - lower, shift) + offset
        lower = upper
    raise AssertionError("unreachable")


def num_move_size(size: int) -> int:
    """Upper bound of objects moved between thread and central cache at once."""
    if size <= 0:
        raise ValueError(f"size must be positive, got {size}")
    return min(max(MAX_BYTES // size, 2), 512)


def num_move_page(size: int) -> int:
    """Number of pages fetched from the page cache for objects of ``size``."""
    npage = (num_move_size(size) * size) >> PAGE_SHIFT
    return max(npage, 1)


class SystemMemory:
    """A simulated address space handing out page-aligned blocks.

    Blocks are addressed by integers; page ``p`` starts at ``p << PAGE_SHIFT``.
    Freed blocks are coalesced and reused first-fit.
    """

    def __init__(self, base_page: int = 1, limit_page: int = 1 << (32 - PAGE_SHIFT)):
        if not 0 < base_page < limit_page:
            raise ValueError("need 0 < base_page < limit_page")
        self._next_page = base_page
        self._limit_page = limit_page
        self._holes: list[tuple[int, int]] = []
        self._blocks: dict[int, int] = {}
        self._lock = threading.Lock()

    def alloc(self, kpage: int) -> int:
        """Reserve ``kpage`` contiguous pages and return the start address."""
        if kpage < 1:
            raise ValueError(f"page count must be positive, got {kpage}")
        with self._lock:
            for pos, (start, n) in enumerate(self._holes):
                if n >= kpage:
                    if n == kpage:
                        del self._holes[pos]
                    else:
                        self._holes[pos] = (start + kpage, n - kpage)
                    break
            else:
                if self._next_page + kpage > self._limit_page:
                    raise MemoryError(f"cannot allocate {kpage} pages")
                start = self._next_page
                self._next_page += kpage
            self._blocks[start] = kpage
            return start << PAGE_SHIFT

    def free(self, address: int) -> None:
        """Return a block obtained from :meth:`alloc`."""
        page = address >> PAGE_SHIFT
        with self._lock:
            if address & (PAGE_SIZE - 1) or page not in self._blocks:
                raise ValueError(f"address {address:#x} was not allocated here")
            n = self._blocks.pop(page)
            start, end = page, page + n
            pos = bisect.bisect(self._holes, (start, n))
            if pos < len(self._holes) and self._holes[pos][0] == end:
                end += self._holes[pos][1]
                del self._holes[pos]
            if pos > 0 and sum(self._holes[pos - 1]) == start:
                start = self._holes[pos - 1][0]
                del self._holes[pos - 1]
                pos -= 1
            if end == self._next_page:
                self._next_page = start
            else:
                self._holes.insert(pos, (start, end - start))


class FreeList:
    """A LIFO list of free object addresses with a slow-start batch limit."""

    def __init__(self) -> None:
        # The head of the list is the last element.
        self._items: list[int] = []
        self.max_size = 1

    def push(self, obj: int) -> None:
        """Put one object at the head."""
        self._items.append(obj)

    def push_range(self, objs: Iterable[int]) -> None:
        """Put a chain of objects at the head; the first one becomes the head."""
        self._items.extend(reversed(list(objs)))

    def pop_range(self, n: int) -> list[int]:
        """Remove ``n`` objects from the head, head first."""
        if not 1 <= n <= len(self._items):
            raise ValueError(f"cannot pop {n} of {len(self._items)} objects")
        taken = self._items[-n:]
        del self._items[-n:]
        taken.reverse()
        return taken

    def pop(self) -> int:
        """Remove and return the head."""
        if not self._items:
            raise IndexError("pop from empty free list")
        return self._items.pop()

    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)


@dataclass(eq=False)
class Span:
    """A run of contiguous pages, possibly carved into equal-sized objects."""

    page_id: int = 0
    n: int = 0
    obj_size: int = 0
    use_count: int = 0
    free_list: list[int] = field(default_factory=list)
    is_use: bool = False
    next: Optional["Span"] = field(default=None, repr=False)
    prev: Optional["Span"] = field(default=None, repr=False)

    @property
    def address(self) -> int:
        """Start address of the first page."""
        return self.page_id << PAGE_SHIFT


class SpanList:
    """A circular doubly linked list of spans with a sentinel and a bucket lock."""

    def __init__(self) -> None:
        self._head = Span()
        self._head.next = self._head
        self._head.prev = self._head
        self.lock = threading.Lock()

    def __iter__(self) -> Iterator[Span]:
        cur = self._head.next
        while cur is not self._head:
            following = cur.next
            yield cur
            cur = following

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def is_empty(self) -> bool:
        return self._head.next is self._head

    def push_front(self, span: Span) -> None:
        self.insert(self._head.next, span)

    def pop_front(self) -> Span:
        if self.is_empty():
            raise IndexError("pop from empty span list")
        front = self._head.next
        self.erase(front)
        return front

    def insert(self, pos: Span, span: Span) -> None:
        """Link ``span`` just before ``pos``."""
        if pos.prev is None:
            raise ValueError("position is not linked into a list")
        if span.prev is not None or span.next is not None:
            raise ValueError("span is already linked into a list")
        prev = pos.prev
        prev.next = span
        span.prev = prev
        span.next = pos
        pos.prev = span

    def erase(self, span: Span) -> None:
        """Unlink ``span`` from the list."""
        if span is self._head:
            raise ValueError("cannot erase the list sentinel")
        if span.prev is None or span.next is None:
            raise ValueError("span is not linked into a list")
        span.prev.next = span.next
        span.next.prev = span.prev
        span.prev = None
        span.next = None