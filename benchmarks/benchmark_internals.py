"""Benchmark internal operations of fastapi-refine to identify bottlenecks."""

import time
from typing import Optional
from urllib.parse import urlencode

from sqlmodel import Field, SQLModel, select
from starlette.requests import Request

from fastapi_refine.engine import RefineQuery
from fastapi_refine.keys import camel, query_parameters
from fastapi_refine.refiner import Refiner, invocable_operations


class Hero(SQLModel, table=True):
    """Hero model for benchmarking."""

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    age: Optional[int] = Field(default=None, index=True)
    city: str = Field(default="")
    deleted: bool = Field(default=False)


class HeroRefiner(Refiner):
    def before(self, query, request):
        return query.where(Hero.deleted == False)  # noqa: E712

    def name(self, query, value, request):
        return query.where(Hero.name == value)

    def minAge(self, query, value, request):
        return query.where(Hero.age >= int(value))

    def city(self, query, value, request):
        return query.where(Hero.city == value)

    def sortBy(self, query, value, request):
        return query.order_by(getattr(Hero, value))


def make_request(params: dict) -> Request:
    """Build a GET request carrying the given query parameters."""
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/heroes/",
            "query_string": urlencode(params).encode(),
            "headers": [],
        }
    )


def time_function(func, iterations: int = 1000):
    """Time a function execution."""
    # Warmup
    for _ in range(10):
        func()

    timings = []
    for _ in range(iterations):
        start = time.perf_counter()
        func()
        end = time.perf_counter()
        timings.append(end - start)

    timings.sort()
    avg = sum(timings) / len(timings)
    p50 = timings[int(len(timings) * 0.5)]
    p95 = timings[int(len(timings) * 0.95)]
    return {"avg": avg * 1000, "p50": p50 * 1000, "p95": p95 * 1000}


def report(tests: dict, iterations: int) -> None:
    for name, func in tests.items():
        result = time_function(func, iterations=iterations)
        print(
            f"  {name:30s} - Avg: {result['avg']:6.3f}ms, "
            f"P50: {result['p50']:6.3f}ms, P95: {result['p95']:6.3f}ms"
        )


def benchmark_keys():
    """Benchmark key normalization and query extraction."""
    print("\n=== Benchmark: keys ===")

    request = make_request({f"filter-key-{i}": str(i) for i in range(20)})
    report(
        {
            "camel (short key)": lambda: camel("min-age"),
            "camel (long key)": lambda: camel("some_really-long key_name-here"),
            "query_parameters (20 keys)": lambda: query_parameters(request),
        },
        iterations=10000,
    )


def benchmark_operation_table():
    """Benchmark cached operation table lookups."""
    print("\n=== Benchmark: operation table ===")

    report({"invocable_operations": lambda: invocable_operations(HeroRefiner)}, 10000)


def benchmark_refine():
    """Benchmark plan resolution and full refine calls."""
    print("\n=== Benchmark: refine ===")

    refiner = HeroRefiner()
    base_query = select(Hero)
    simple = make_request({"name": "Hero_1"})
    complex_ = make_request(
        {"name": "Hero_1", "min-age": "30", "city": "Chicago", "sort-by": "age", "x": "1"}
    )

    report(
        {
            "Plan (1 key)": lambda: RefineQuery(base_query, simple, refiner).plan(),
            "Plan (5 keys)": lambda: RefineQuery(base_query, complex_, refiner).plan(),
            "Match (1 key)": lambda: RefineQuery(base_query, simple, refiner).match(),
            "Match (5 keys)": lambda: RefineQuery(base_query, complex_, refiner).match(),
        },
        iterations=2000,
    )


def main():
    """Run all internal benchmarks."""
    print("=" * 80)
    print("FASTAPI-REFINE INTERNAL BENCHMARKS")
    print("=" * 80)

    benchmark_keys()
    benchmark_operation_table()
    benchmark_refine()

    print("\n" + "=" * 80)
    print("BENCHMARKS COMPLETE")
    print("=" * 80)


if __name__ == "__main__":
    main()
