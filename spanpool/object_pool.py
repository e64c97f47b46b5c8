"""A fixed-type object pool that recycles released instances."""

from __future__ import annotations

from typing import Generic, TypeVar

T = TypeVar("T")


class ObjectPool(Generic[T]):
    """Hands out instances of one class, reusing those given back.

    A recycled instance is re-initialised in place, so :meth:`new` always
    returns an object in its freshly constructed state.
    """

    def __init__(self, cls: type[T]):
        self._cls = cls
        self._free: list[T] = []
        self._free_ids: set[int] = set()

    def new(self) -> T:
        """Return a fresh instance, reusing the most recently deleted one."""
        if self._free:
            obj = self._free.pop()
            self._free_ids.discard(id(obj))
            obj.__init__()  # type: ignore[misc]
            return obj
        return self._cls()

    def delete(self, obj: T) -> None:
        """Give ``obj`` back to the pool for reuse."""
        if not isinstance(obj, self._cls):
            raise TypeError(f"expected {self._cls.__name__}, got {type(obj).__name__}")
        if id(obj) in self._free_ids:
            raise ValueError("object was already returned to the pool")
        self._free.append(obj)
        self._free_ids.add(id(obj))