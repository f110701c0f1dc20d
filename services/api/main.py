import logging
from typing import List

from fastapi import Depends, FastAPI, HTTPException, Query
from prometheus_client import make_asgi_app

from services.routing.supplychain_routing.config import LOG_FORMAT, LOG_LEVEL
from services.routing.supplychain_routing.errors import RouteGenerationError
from services.routing.supplychain_routing.registry import DynamicRouteRegistry
from services.routing.supplychain_routing.routes import Route

from . import state
from .config import API_HOST, API_PORT
from .schemas import (
    CityOut,
    CityRoutes,
    CitySnapshot,
    HealthResponse,
    RegistryStatsOut,
    RouteOut,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="FMEA Supply Chain Route API",
    description="REST API over the dynamic route registry used by the mitigation solver.",
    version="0.1.0",
)

# Prometheus scrape endpoint
app.mount("/metrics", make_asgi_app())


def _route_out(route: Route) -> RouteOut:
    return RouteOut(
        route_id=route.route_id,
        kind=route.kind,
        city=route.city,
        warehouse_id=route.warehouse_id,
        hubs=list(route.hubs),
        distance_km=route.distance_km,
        total_eta_minutes=route.total_eta_minutes,
    )


def _require_city(registry: DynamicRouteRegistry, city: str) -> None:
    if not registry.network.has_city(city):
        raise HTTPException(status_code=404, detail=f"Unknown city {city!r}")


# ---------- Registry dependency ----------


def get_registry() -> DynamicRouteRegistry:
    return state.get_registry()


# ---------- Lifecycle hooks ----------


@app.on_event("startup")
def on_startup():
    state.init_registry()
    logger.info("Route registry ready")


# ---------- Endpoints ----------


@app.get("/health", response_model=HealthResponse)
def health(registry: DynamicRouteRegistry = Depends(get_registry)):
    return HealthResponse(status="ok", cached_cities=len(registry.known_cities()))


@app.get("/cities", response_model=List[CityOut])
def list_cities(registry: DynamicRouteRegistry = Depends(get_registry)):
    network = registry.network
    return [
        CityOut(
            city_id=c.city_id,
            name=c.name,
            lat=c.lat,
            lon=c.lon,
            warehouses=[w.warehouse_id for w in network.warehouses_for(c.city_id)],
        )
        for c in network.cities()
    ]


@app.get("/routes/{city}", response_model=CityRoutes)
def routes_for_city(
    city: str,
    include_multihop: bool = Query(False),
    registry: DynamicRouteRegistry = Depends(get_registry),
):
    """
    Routes for a city, generated and cached on first request.
    """
    _require_city(registry, city)
    try:
        routes = registry.get_routes_for_city(city, include_multihop=include_multihop)
    except RouteGenerationError as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    return CityRoutes(
        city=city,
        include_multihop=include_multihop,
        routes=[_route_out(r) for r in routes],
    )


@app.get("/routes/{city}/snapshot", response_model=CitySnapshot)
def city_snapshot(city: str, registry: DynamicRouteRegistry = Depends(get_registry)):
    """
    What is cached for a city right now; never triggers generation.
    """
    _require_city(registry, city)
    snap = registry.snapshot(city)
    return CitySnapshot(
        city=city,
        direct=None if snap.direct is None else [_route_out(r) for r in snap.direct],
        multihop=None if snap.multihop is None else [_route_out(r) for r in snap.multihop],
    )


@app.get("/registry/stats", response_model=RegistryStatsOut)
def registry_stats(registry: DynamicRouteRegistry = Depends(get_registry)):
    stats = registry.stats()
    return RegistryStatsOut(
        cached_cities=stats.cached_cities,
        direct_cities=stats.direct_cities,
        multihop_cities=stats.multihop_cities,
        direct_routes=stats.direct_routes,
        multihop_routes=stats.multihop_routes,
        next_direct_id=stats.next_direct_id,
        next_multihop_id=stats.next_multihop_id,
    )


# ---------- For local dev convenience ----------

if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    uvicorn.run(
        "services.api.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=True,
    )
