# spanpool

`spanpool` models a three-tier concurrent memory pool in pure Python. It
works on simulated integer addresses, not real memory. The pool has three
tiers:

- a per-thread **thread cache** (`spanpool.thread_cache.ThreadCache`) that
  serves small requests from free lists without taking a lock,
- a shared **central cache** (`spanpool.central_cache.CentralCache`) that
  cuts spans into fixed-size objects and moves them to and from thread
  caches in batches, with one lock per size-class bucket,
- a **page cache** (`spanpool.page_cache.PageCache`) that hands out runs of
  8 KiB pages as spans and joins neighbouring free spans when they are
  given back.

Requests above 256 KiB skip the small-object tiers and go straight to the
page cache. Runs of more than 128 pages are taken directly from the
simulated system memory (`spanpool.common.SystemMemory`) and given back to
it on release.

## Installation

```
pip install .
```

Add the `test` extra to install pytest as well:

```
pip install .[test]
```

## Usage

```python
from spanpool.concurrent_alloc import concurrent_alloc, concurrent_free

ptr = concurrent_alloc(16)   # an integer address inside a simulated page
concurrent_free(ptr)

big = concurrent_alloc(257 * 1024)   # served straight from the page cache
concurrent_free(big)
```

`concurrent_alloc` and `concurrent_free` use one process-wide pool. To keep
state apart from it, create a pool of your own:

```python
from spanpool.concurrent_alloc import MemoryPool

pool = MemoryPool()
addrs = [pool.allocate(8) for _ in range(10)]
for addr in addrs:
    pool.free(addr)
```

`MemoryPool.thread_cache()` returns the calling thread's cache, creating it
on first use. `allocate` raises `ValueError` for sizes below 1, and `free`
raises `ValueError` for an address the pool does not manage.

### Size classes

`spanpool.common` holds the rules for alignment and bucket mapping:

```python
from spanpool.common import round_up, size_index, num_move_size, num_move_page

round_up(129)        # 144: 16-byte alignment for sizes in (128, 1024]
size_index(8)        # 0
num_move_size(16)    # the most objects moved between caches in one batch
num_move_page(16)    # how many pages a span for this size class gets
```

The same module provides `align_up`, `index_in_group`, the `FreeList`,
`Span` and `SpanList` types, and constants such as `MAX_BYTES`, `NPAGES`
and `PAGE_SHIFT`.

The lower-level parts can also be used on their own:
`spanpool.object_pool.ObjectPool`, the radix maps in `spanpool.page_map`
(`PageMap1`, `PageMap2`, `PageMap3`), `PageCache`, `CentralCache` and
`ThreadCache`.

## Benchmark

The package installs a command that times the pool's allocator against
plain Python `bytearray` allocation, with several threads and several
rounds, and prints the time spent allocating and freeing:

```
spanpool-benchmark
spanpool-benchmark --ntimes 10000 --workers 2 --rounds 5
```

The defaults are `--ntimes 100000`, `--workers 4` and `--rounds 10`.

The same runs can be started from Python with
`spanpool.benchmark.benchmark_concurrent_malloc(ntimes, nworks, rounds)` and
`spanpool.benchmark.benchmark_malloc(ntimes, nworks, rounds)`; each prints
its report and returns a `BenchmarkResult` with the timings in milliseconds.

## What it does not do

The pool hands out addresses in a simulated address space. It does not
reserve real memory, and the addresses cannot be used to store or read
data.