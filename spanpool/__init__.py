"""A simulated concurrent memory pool built from thread, central and page caches."""

__version__ = "0.1.0"

__all__ = [
    "benchmark",
    "central_cache",
    "common",
    "concurrent_alloc",
    "object_pool",
    "page_cache",
    "page_map",
    "thread_cache",
]