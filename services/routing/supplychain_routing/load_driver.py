"""
Concurrent load driver for the route registry.

Spins up worker threads that hit one registry at the same time (route lookups
for a rotating set of cities, plus optional raw id allocations) and then
checks what they observed:

- every route id of a kind belongs to exactly one route
- every worker saw the same route list for a given city
- raw id allocations never handed out the same value twice
"""

import logging
import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Set, Tuple

from .registry import DynamicRouteRegistry
from .routes import DIRECT, MULTIHOP, Route

logger = logging.getLogger(__name__)


@dataclass
class LoadReport:
    workers: int
    calls: int
    cities: List[str]
    direct_ids: int = 0
    multihop_ids: int = 0
    allocated_direct_ids: int = 0
    allocated_multihop_ids: int = 0
    duplicate_ids: List[Tuple[str, int]] = field(default_factory=list)
    inconsistent_cities: List[str] = field(default_factory=list)
    elapsed_sec: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.duplicate_ids and not self.inconsistent_cities


@dataclass
class _WorkerResult:
    lists: Dict[str, List[Tuple[Route, ...]]] = field(default_factory=dict)
    direct_ids: List[int] = field(default_factory=list)
    multihop_ids: List[int] = field(default_factory=list)


def run_load(
    registry: DynamicRouteRegistry,
    cities: Sequence[str],
    workers: int = 8,
    requests_per_worker: int = 50,
    include_multihop: bool = False,
    ids_per_worker: int = 0,
) -> LoadReport:
    if workers < 1:
        raise ValueError("workers must be >= 1")
    if not cities:
        raise ValueError("at least one city is required")

    results = [_WorkerResult() for _ in range(workers)]
    barrier = threading.Barrier(workers)

    def _work(idx: int) -> None:
        res = results[idx]
        barrier.wait()
        for i in range(requests_per_worker):
            city = cities[(idx + i) % len(cities)]
            routes = registry.get_routes_for_city(city, include_multihop=include_multihop)
            res.lists.setdefault(city, []).append(tuple(routes))
        for _ in range(ids_per_worker):
            res.direct_ids.append(registry.next_direct_id())
            res.multihop_ids.append(registry.next_multihop_id())

    logger.info(
        "Starting load: workers=%d requests_per_worker=%d cities=%d multihop=%s ids_per_worker=%d",
        workers, requests_per_worker, len(cities), include_multihop, ids_per_worker,
    )

    started = time.perf_counter()
    threads = [
        threading.Thread(target=_work, args=(i,), name=f"route-worker-{i}", daemon=True)
        for i in range(workers)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    elapsed = time.perf_counter() - started

    report = LoadReport(
        workers=workers,
        calls=workers * requests_per_worker,
        cities=list(cities),
        elapsed_sec=elapsed,
    )
    route_keys = _check_route_lists(results, report)
    _check_allocations(results, report, route_keys)

    if report.ok:
        logger.info(
            "Load finished in %.3fs: calls=%d direct_ids=%d multihop_ids=%d allocated=%d/%d",
            elapsed, report.calls, report.direct_ids, report.multihop_ids,
            report.allocated_direct_ids, report.allocated_multihop_ids,
        )
    else:
        logger.error(
            "Load finished with violations: duplicate_ids=%d inconsistent_cities=%s",
            len(report.duplicate_ids), report.inconsistent_cities,
        )
    return report


def _check_route_lists(results: List[_WorkerResult], report: LoadReport) -> Set[Tuple[str, int]]:
    seen: Dict[Tuple[str, int], Route] = {}
    reference: Dict[str, Tuple[Route, ...]] = {}
    inconsistent: Set[str] = set()
    duplicates: Set[Tuple[str, int]] = set()

    for res in results:
        for city, observed in res.lists.items():
            for routes in observed:
                ref = reference.setdefault(city, routes)
                if routes != ref:
                    inconsistent.add(city)
                for route in routes:
                    key = (route.kind, route.route_id)
                    prior = seen.setdefault(key, route)
                    if prior != route:
                        duplicates.add(key)

    report.direct_ids = sum(1 for kind, _ in seen if kind == DIRECT)
    report.multihop_ids = sum(1 for kind, _ in seen if kind == MULTIHOP)
    report.inconsistent_cities = sorted(inconsistent)
    report.duplicate_ids = sorted(duplicates)
    return set(seen)


def _check_allocations(
    results: List[_WorkerResult],
    report: LoadReport,
    route_keys: Set[Tuple[str, int]],
) -> None:
    """Raw allocations must not repeat, nor collide with ids already on routes."""
    duplicates = set(report.duplicate_ids)
    for kind, attr in ((DIRECT, "direct_ids"), (MULTIHOP, "multihop_ids")):
        counts = Counter(i for res in results for i in getattr(res, attr))
        for route_id, n in sorted(counts.items()):
            if n > 1 or (kind, route_id) in route_keys:
                duplicates.add((kind, route_id))
        setattr(report, f"allocated_{attr}", len(counts))
    report.duplicate_ids = sorted(duplicates)
