"""
Dynamic route registry.

Holds the per-city direct and multi-hop route caches plus the two route id
counters. The counters and both mappings are only read or written under one
re-entrant lock owned by the registry, and that lock is held just for those
short updates. Route planning for a (kind, city) entry runs outside it,
serialized by a per-entry lock, so:

- no two routes of the same kind ever get the same id
- a city's routes are generated once, even when many threads ask at once
- unrelated cities plan in parallel and never stall id allocation
- readers see a city entry either absent or fully populated
"""

import logging
import threading
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from . import config
from .errors import RouteGenerationError
from .metrics import (
    REGISTRY_CACHED_CITIES,
    ROUTE_CACHE_REQUESTS,
    ROUTE_GENERATION_FAILURES,
    ROUTE_IDS_ALLOCATED,
)
from .network import SupplyNetwork, load_default_network
from .routes import DIRECT, MULTIHOP, RegistryStats, Route, RouteKind, RouteSnapshot

logger = logging.getLogger(__name__)


class DynamicRouteRegistry:
    def __init__(
        self,
        network: Optional[SupplyNetwork] = None,
        direct_start_id: Optional[int] = None,
        multihop_start_id: Optional[int] = None,
    ):
        self.network = network if network is not None else load_default_network()

        if direct_start_id is None:
            direct_start_id = config.DYNAMIT_ROUTE_START_ID
        if multihop_start_id is None:
            multihop_start_id = config.MULTIHOP_ROUTE_START_ID

        self._lock = threading.RLock()
        self._next_ids: Dict[str, int] = {
            DIRECT: direct_start_id,
            MULTIHOP: multihop_start_id,
        }
        self._routes: Dict[str, Dict[str, Tuple[Route, ...]]] = {
            DIRECT: {},
            MULTIHOP: {},
        }
        # (kind, city) -> lock held while that entry is being generated
        self._generating: Dict[Tuple[str, str], threading.Lock] = {}
        self._builders: Dict[str, Callable[[str], Iterator[Route]]] = {
            DIRECT: self._build_direct,
            MULTIHOP: self._build_multihop,
        }

    # ------------------------------------------------------------------
    # Identifier allocation
    # ------------------------------------------------------------------

    def _next_id(self, kind: RouteKind) -> int:
        with self._lock:
            route_id = self._next_ids[kind]
            self._next_ids[kind] = route_id + 1
        ROUTE_IDS_ALLOCATED.labels(kind).inc()
        return route_id

    def next_direct_id(self) -> int:
        return self._next_id(DIRECT)

    def next_multihop_id(self) -> int:
        return self._next_id(MULTIHOP)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def _build_direct(self, city: str) -> Iterator[Route]:
        for warehouse in self.network.warehouses_for(city):
            distance_km, eta = self.network.plan_direct(city, warehouse)
            yield Route(
                route_id=self.next_direct_id(),
                kind=DIRECT,
                city=city,
                warehouse_id=warehouse.warehouse_id,
                hubs=(),
                distance_km=distance_km,
                total_eta_minutes=eta,
            )

    def _build_multihop(self, city: str) -> Iterator[Route]:
        for warehouse in self.network.warehouses_for(city):
            for hubs, distance_km, eta in self.network.plan_multihop(city, warehouse):
                yield Route(
                    route_id=self.next_multihop_id(),
                    kind=MULTIHOP,
                    city=city,
                    warehouse_id=warehouse.warehouse_id,
                    hubs=hubs,
                    distance_km=distance_km,
                    total_eta_minutes=eta,
                )

    def _cached(self, city: str, kind: RouteKind) -> Optional[Tuple[Route, ...]]:
        with self._lock:
            return self._routes[kind].get(city)

    def _entry_lock(self, city: str, kind: RouteKind) -> threading.Lock:
        with self._lock:
            return self._generating.setdefault((kind, city), threading.Lock())

    def _populate(self, city: str, kind: RouteKind) -> Tuple[Route, ...]:
        """Return the cached routes for ``city``, generating them once if absent."""
        if not self.network.has_city(city):
            logger.debug("Ignoring %s route request for unknown city=%s", kind, city)
            return ()

        cached = self._cached(city, kind)
        if cached is not None:
            ROUTE_CACHE_REQUESTS.labels(kind, "hit").inc()
            return cached

        with self._entry_lock(city, kind):
            # another caller may have finished while we waited
            cached = self._cached(city, kind)
            if cached is not None:
                ROUTE_CACHE_REQUESTS.labels(kind, "hit").inc()
                return cached
            ROUTE_CACHE_REQUESTS.labels(kind, "miss").inc()

            try:
                routes = tuple(self._builders[kind](city))
            except RouteGenerationError:
                ROUTE_GENERATION_FAILURES.labels(kind).inc()
                logger.exception("Failed to generate %s routes for city=%s", kind, city)
                raise
            except Exception as exc:
                ROUTE_GENERATION_FAILURES.labels(kind).inc()
                logger.exception("Failed to generate %s routes for city=%s", kind, city)
                raise RouteGenerationError(city, kind, repr(exc)) from exc

            with self._lock:
                cache = self._routes[kind]
                if city not in cache:
                    cache[city] = routes
                routes = cache[city]
                self._generating.pop((kind, city), None)
                REGISTRY_CACHED_CITIES.set(len(self._cached_city_ids()))

        if routes:
            logger.info(
                "Generated %d %s routes for city=%s (ids %d..%d)",
                len(routes), kind, city, routes[0].route_id, routes[-1].route_id,
            )
        else:
            logger.info("No %s routes for city=%s (no serving warehouses)", kind, city)
        return routes

    def create_direct_routes(self, city: str) -> List[Route]:
        """
        One direct route per warehouse serving ``city``, each with a fresh id.

        If the city is already populated (possibly by a concurrent caller
        that got there first) the cached list is returned instead and no
        ids are allocated. Cities the network does not know yield ``[]``
        and are not cached.
        """
        return list(self._populate(city, DIRECT))

    def create_multihop_routes(self, city: str) -> List[Route]:
        return list(self._populate(city, MULTIHOP))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_routes_for_city(self, city: str, include_multihop: bool = False) -> List[Route]:
        """
        Cached direct routes for ``city`` followed, when requested, by its
        multi-hop routes. Missing entries are generated on first access.

        A multi-hop generation failure propagates; the direct routes stay
        cached and the multi-hop entry is retried on the next call.
        """
        routes = list(self._populate(city, DIRECT))
        if include_multihop:
            routes.extend(self._populate(city, MULTIHOP))
        return routes

    def snapshot(self, city: str) -> RouteSnapshot:
        """Current cache entries for ``city`` without generating anything."""
        with self._lock:
            return RouteSnapshot(
                city=city,
                direct=self._routes[DIRECT].get(city),
                multihop=self._routes[MULTIHOP].get(city),
            )

    def _cached_city_ids(self) -> set:
        with self._lock:
            return set(self._routes[DIRECT]) | set(self._routes[MULTIHOP])

    def known_cities(self) -> List[str]:
        return sorted(self._cached_city_ids())

    def stats(self) -> RegistryStats:
        with self._lock:
            direct = self._routes[DIRECT]
            multihop = self._routes[MULTIHOP]
            return RegistryStats(
                cached_cities=len(self._cached_city_ids()),
                direct_cities=len(direct),
                multihop_cities=len(multihop),
                direct_routes=sum(len(r) for r in direct.values()),
                multihop_routes=sum(len(r) for r in multihop.values()),
                next_direct_id=self._next_ids[DIRECT],
                next_multihop_id=self._next_ids[MULTIHOP],
            )
