"""
Route records handed out by the dynamic route registry.

A route always carries an integer ``route_id`` that is unique within its kind:
direct routes and multi-hop routes draw from separate counters.
"""

from dataclasses import dataclass
from typing import Literal, Optional, Tuple

RouteKind = Literal["direct", "multihop"]

DIRECT: RouteKind = "direct"
MULTIHOP: RouteKind = "multihop"


@dataclass(frozen=True)
class Route:
    route_id: int
    kind: RouteKind
    city: str
    warehouse_id: str
    hubs: Tuple[str, ...]  # empty for direct routes
    distance_km: float
    total_eta_minutes: int

    @property
    def path(self) -> Tuple[str, ...]:
        return (self.city, *self.hubs, self.warehouse_id)


@dataclass(frozen=True)
class RouteSnapshot:
    """Cached entries for one city; ``None`` means not populated yet."""

    city: str
    direct: Optional[Tuple[Route, ...]]
    multihop: Optional[Tuple[Route, ...]]

    @property
    def routes(self) -> Tuple[Route, ...]:
        return (self.direct or ()) + (self.multihop or ())


@dataclass(frozen=True)
class RegistryStats:
    cached_cities: int
    direct_cities: int
    multihop_cities: int
    direct_routes: int
    multihop_routes: int
    next_direct_id: int
    next_multihop_id: int
