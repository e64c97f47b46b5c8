"""Radix maps from page numbers to values."""

from __future__ import annotations

from typing import Any, Optional


def _check_set_key(key: int, bits: int) -> None:
    if key < 0 or key >> bits:
        raise IndexError(f"key {key} out of range for {bits}-bit map")


class PageMap1:
    """Single-level array covering ``2**bits`` keys."""

    def __init__(self, bits: int):
        if bits < 0:
            raise ValueError("bits must be non-negative")
        self._bits = bits
        self._array: list[Any] = [None] * (1 << bits)

    def get(self, key: int) -> Optional[Any]:
        """Return the value for ``key``, or None if unset or out of range."""
        if key < 0 or key >> self._bits:
            return None
        return self._array[key]

    def set(self, key: int, value: Any) -> None:
        _check_set_key(key, self._bits)
        self._array[key] = value


class PageMap2:
    """Two-level radix tree: 32 root entries, each pointing to a leaf."""

    ROOT_BITS = 5
    ROOT_LENGTH = 1 << ROOT_BITS

    def __init__(self, bits: int):
        if bits < self.ROOT_BITS:
            raise ValueError(f"bits must be at least {self.ROOT_BITS}")
        self._bits = bits
        self._leaf_bits = bits - self.ROOT_BITS
        self._leaf_length = 1 << self._leaf_bits
        self._root: list[Optional[list[Any]]] = [None] * self.ROOT_LENGTH
        self.preallocate_more_memory()

    def get(self, key: int) -> Optional[Any]:
        if key < 0 or key >> self._bits:
            return None
        leaf = self._root[key >> self._leaf_bits]
        if leaf is None:
            return None
        return leaf[key & (self._leaf_length - 1)]

    def set(self, key: int, value: Any) -> None:
        _check_set_key(key, self._bits)
        leaf = self._root[key >> self._leaf_bits]
        if leaf is None:
            raise KeyError(f"key {key} has not been ensured")
        leaf[key & (self._leaf_length - 1)] = value

    def ensure(self, start: int, n: int) -> bool:
        """Make room for keys ``start`` .. ``start + n - 1``; False on overflow."""
        if start < 0 or n < 0:
            raise ValueError("start and n must be non-negative")
        key = start
        last = start + n - 1
        while key <= last:
            i1 = key >> self._leaf_bits
            if i1 >= self.ROOT_LENGTH:
                return False
            if self._root[i1] is None:
                self._root[i1] = [None] * self._leaf_length
            key = (i1 + 1) << self._leaf_bits
        return True

    def preallocate_more_memory(self) -> None:
        """Allocate leaves for every possible key."""
        self.ensure(0, 1 << self._bits)


class PageMap3:
    """Three-level radix tree allocating interior nodes and leaves on demand."""

    def __init__(self, bits: int):
        interior_bits = (bits + 2) // 3
        leaf_bits = bits - 2 * interior_bits
        if bits < 1 or leaf_bits < 0:
            raise ValueError(f"unsupported key width {bits}")
        self._bits = bits
        self._interior_bits = interior_bits
        self._interior_length = 1 << interior_bits
        self._leaf_bits = leaf_bits
        self._leaf_length = 1 << leaf_bits
        self._root: Optional[list[Optional[list[Any]]]] = None
        self.preallocate_more_memory()

    def _new_node(self) -> list[Any]:
        return [None] * self._interior_length

    def _split(self, key: int) -> tuple[int, int, int]:
        i1 = key >> (self._leaf_bits + self._interior_bits)
        i2 = (key >> self._leaf_bits) & (self._interior_length - 1)
        i3 = key & (self._leaf_length - 1)
        return i1, i2, i3

    def get(self, key: int) -> Optional[Any]:
        if key < 0 or key >> self._bits:
            return None
        i1, i2, i3 = self._split(key)
        node = self._root[i1]
        if node is None or node[i2] is None:
            return None
        return node[i2][i3]

    def set(self, key: int, value: Any) -> None:
        _check_set_key(key, self._bits)
        i1, i2, i3 = self._split(key)
        node = self._root[i1]
        if node is None or node[i2] is None:
            raise KeyError(f"key {key} has not been ensured")
        node[i2][i3] = value

    def ensure(self, start: int, n: int) -> bool:
        """Make room for keys ``start`` .. ``start + n - 1``; False on overflow."""
        if start < 0 or n < 0:
            raise ValueError("start and n must be non-negative")
        key = start
        last = start + n - 1
        while key <= last:
            i1, i2, _ = self._split(key)
            if i1 >= self._interior_length:
                return False
            if self._root[i1] is None:
                self._root[i1] = self._new_node()
            node = self._root[i1]
            if node[i2] is None:
                node[i2] = [None] * self._leaf_length
            key = ((key >> self._leaf_bits) + 1) << self._leaf_bits
        return True

    def preallocate_more_memory(self) -> None:
        """Create the root node if missing; deeper nodes come from :meth:`ensure`."""
        if self._root is None:
            self._root = self._new_node()