"""Timing of the pool against plain object allocation under several threads."""

from __future__ import annotations

import argparse
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

from spanpool.concurrent_alloc import concurrent_alloc, concurrent_free

_OBJECT_SIZE = 16
_SEPARATOR = "=" * 58


@dataclass(frozen=True)
class BenchmarkResult:
    """Accumulated timings of one benchmark run, in milliseconds."""

    ntimes: int
    nworks: int
    rounds: int
    alloc_ms: float
    free_ms: float

    @property
    def total_ms(self) -> float:
        return self.alloc_ms + self.free_ms

    @property
    def operations(self) -> int:
        """Number of allocate/free pairs performed over all threads."""
        return self.nworks * self.rounds * self.ntimes


def _check_counts(ntimes: int, nworks: int, rounds: int) -> None:
    for name, value in (("ntimes", ntimes), ("nworks", nworks), ("rounds", rounds)):
        if value < 0:
            raise ValueError(f"{name} must be non-negative, got {value}")


def _run(
    ntimes: int,
    nworks: int,
    rounds: int,
    alloc: Callable[[], Any],
    free: Callable[[Any], None],
) -> BenchmarkResult:
    _check_counts(ntimes, nworks, rounds)
    lock = threading.Lock()
    totals = {"alloc": 0.0, "free": 0.0}
    errors: list[BaseException] = []

    def worker() -> None:
        try:
            for _ in range(rounds):
                begin = time.perf_counter()
                objs = [alloc() for _ in range(ntimes)]
                alloc_cost = time.perf_counter() - begin

                begin = time.perf_counter()
                for obj in objs:
                    free(obj)
                free_cost = time.perf_counter() - begin

                with lock:
                    totals["alloc"] += alloc_cost * 1000.0
                    totals["free"] += free_cost * 1000.0
        except BaseException as exc:  # re-raised in the calling thread
            with lock:
                errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(nworks)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    if errors:
        raise errors[0]

    return BenchmarkResult(ntimes, nworks, rounds, totals["alloc"], totals["free"])


def _report(result: BenchmarkResult, alloc_name: str, free_name: str) -> None:
    print(
        f"{result.nworks} threads ran {result.rounds} rounds concurrently, "
        f"{alloc_name} {result.ntimes} times per round: cost {result.alloc_ms:.0f} ms"
    )
    print(
        f"{result.nworks} threads ran {result.rounds} rounds concurrently, "
        f"{free_name} {result.ntimes} times per round: cost {result.free_ms:.0f} ms"
    )
    print(
        f"{result.nworks} threads {alloc_name}&{free_name} {result.operations} times "
        f"concurrently, total cost {result.total_ms:.0f} ms"
    )


def _drop(obj: Any) -> None:
    del obj


def benchmark_malloc(ntimes: int, nworks: int, rounds: int) -> BenchmarkResult:
    """Time plain 16-byte buffer allocation and release, and print the report."""
    result = _run(ntimes, nworks, rounds, lambda: bytearray(_OBJECT_SIZE), _drop)
    _report(result, "malloc", "free")
    return result


def benchmark_concurrent_malloc(ntimes: int, nworks: int, rounds: int) -> BenchmarkResult:
    """Time 16-byte allocation and release through the pool, and print the report."""
    result = _run(
        ntimes,
        nworks,
        rounds,
        lambda: concurrent_alloc(_OBJECT_SIZE),
        concurrent_free,
    )
    _report(result, "concurrent alloc", "concurrent dealloc")
    return result


def main(argv: Optional[list[str]] = None) -> int:
    """Run both benchmarks and print their reports."""
    parser = argparse.ArgumentParser(
        prog="spanpool-benchmark",
        description="Compare the memory pool with plain allocation.",
    )
    parser.add_argument("--ntimes", type=int, default=100000,
                        help="allocations per round and thread")
    parser.add_argument("--workers", type=int, default=4, help="number of threads")
    parser.add_argument("--rounds", type=int, default=10, help="rounds per thread")
    args = parser.parse_args(argv)
    try:
        _check_counts(args.ntimes, args.workers, args.rounds)
    except ValueError as exc:
        parser.error(str(exc))

    print(_SEPARATOR)
    benchmark_concurrent_malloc(args.ntimes, args.workers, args.rounds)
    print()
    print()
    benchmark_malloc(args.ntimes, args.workers, args.rounds)
    print(_SEPARATOR)
    return 0