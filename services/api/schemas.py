from typing import List, Literal, Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    cached_cities: int


class CityOut(BaseModel):
    city_id: str
    name: str
    lat: float
    lon: float
    warehouses: List[str]


class RouteOut(BaseModel):
    route_id: int
    kind: Literal["direct", "multihop"]
    city: str
    warehouse_id: str
    hubs: List[str]
    distance_km: float
    total_eta_minutes: int


class CityRoutes(BaseModel):
    city: str
    include_multihop: bool
    routes: List[RouteOut]


class CitySnapshot(BaseModel):
    city: str
    # None = not populated yet
    direct: Optional[List[RouteOut]]
    multihop: Optional[List[RouteOut]]


class RegistryStatsOut(BaseModel):
    cached_cities: int
    direct_cities: int
    multihop_cities: int
    direct_routes: int
    multihop_routes: int
    next_direct_id: int
    next_multihop_id: int
