"""
Supply network known to the route registry: cities, transfer hubs and the
warehouses that serve each city.

The built-in network is synthetic but realistic enough for:
- one direct lane per (city, serving warehouse)
- multi-hop alternatives through regional hubs (mitigation when a lane fails)
- ETA baselines derived from great-circle distance and hub dwell times
"""

import itertools
import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, ValidationError

from .config import (
    AVG_TRUCK_SPEED_KMH,
    MULTIHOP_MAX_DETOUR_RATIO,
    MULTIHOP_MAX_HUBS,
    SUPPLY_NETWORK_PATH,
)
from .errors import NetworkConfigError

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class City:
    city_id: str
    name: str
    lat: float
    lon: float


@dataclass(frozen=True)
class Hub:
    hub_id: str
    lat: float
    lon: float
    dwell_minutes: int = 0


@dataclass(frozen=True)
class Warehouse:
    warehouse_id: str
    lat: float
    lon: float
    serves: Tuple[str, ...]


# (hubs, distance_km, eta_minutes)
MultihopPlan = Tuple[Tuple[str, ...], float, int]


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = phi2 - phi1
    dlmb = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


class SupplyNetwork:
    """Immutable view of cities, hubs and warehouses plus lane planning."""

    def __init__(
        self,
        cities: Iterable[City],
        hubs: Iterable[Hub],
        warehouses: Iterable[Warehouse],
        speed_kmh: float = AVG_TRUCK_SPEED_KMH,
        max_hubs: int = MULTIHOP_MAX_HUBS,
        max_detour_ratio: float = MULTIHOP_MAX_DETOUR_RATIO,
    ):
        if speed_kmh <= 0:
            raise NetworkConfigError(f"speed_kmh must be positive, got {speed_kmh}")
        if max_hubs < 1:
            raise NetworkConfigError(f"max_hubs must be >= 1, got {max_hubs}")

        self._cities = _index(cities, "city_id", "city")
        self._hubs = _index(hubs, "hub_id", "hub")
        self._warehouses = _index(warehouses, "warehouse_id", "warehouse")
        self.speed_kmh = speed_kmh
        self.max_hubs = max_hubs
        self.max_detour_ratio = max_detour_ratio

        self._by_city: Dict[str, List[Warehouse]] = {c: [] for c in self._cities}
        for wh_id in sorted(self._warehouses):
            wh = self._warehouses[wh_id]
            for city_id in wh.serves:
                if city_id not in self._cities:
                    raise NetworkConfigError(
                        f"Warehouse {wh_id} serves unknown city {city_id!r}"
                    )
                self._by_city[city_id].append(wh)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def cities(self) -> List[City]:
        return [self._cities[c] for c in sorted(self._cities)]

    def hubs(self) -> List[Hub]:
        return [self._hubs[h] for h in sorted(self._hubs)]

    def has_city(self, city_id: str) -> bool:
        return city_id in self._cities

    def get_city(self, city_id: str) -> Optional[City]:
        return self._cities.get(city_id)

    def warehouses_for(self, city_id: str) -> List[Warehouse]:
        """Warehouses serving ``city_id``, ordered by id. Unknown city -> []."""
        return list(self._by_city.get(city_id, ()))

    # ------------------------------------------------------------------
    # Lane planning
    # ------------------------------------------------------------------

    def _eta_minutes(self, distance_km: float, dwell_minutes: int = 0) -> int:
        return int(round(distance_km / self.speed_kmh * 60)) + dwell_minutes

    def plan_direct(self, city_id: str, warehouse: Warehouse) -> Tuple[float, int]:
        city = self._cities[city_id]
        distance = haversine_km(city.lat, city.lon, warehouse.lat, warehouse.lon)
        return round(distance, 1), self._eta_minutes(distance)

    def plan_multihop(self, city_id: str, warehouse: Warehouse) -> List[MultihopPlan]:
        """
        Every ordered selection of 1..max_hubs distinct hubs between the city
        and the warehouse whose length stays within the detour budget,
        fastest first.
        """
        city = self._cities[city_id]
        direct = haversine_km(city.lat, city.lon, warehouse.lat, warehouse.lon)
        budget = direct * self.max_detour_ratio

        plans: List[MultihopPlan] = []
        hubs = self.hubs()
        for size in range(1, min(self.max_hubs, len(hubs)) + 1):
            for chain in itertools.permutations(hubs, size):
                distance = _chain_length(city, chain, warehouse)
                if distance > budget:
                    continue
                dwell = sum(h.dwell_minutes for h in chain)
                plans.append(
                    (
                        tuple(h.hub_id for h in chain),
                        round(distance, 1),
                        self._eta_minutes(distance, dwell),
                    )
                )

        plans.sort(key=lambda p: (p[2], p[0]))
        return plans


def _index(items: Iterable, key: str, label: str) -> Dict:
    out: Dict = {}
    for item in items:
        ident = getattr(item, key)
        if ident in out:
            raise NetworkConfigError(f"Duplicate {label} id {ident!r}")
        out[ident] = item
    return out


def _chain_length(city: City, chain: Sequence[Hub], warehouse: Warehouse) -> float:
    points = [(city.lat, city.lon)]
    points += [(h.lat, h.lon) for h in chain]
    points.append((warehouse.lat, warehouse.lon))
    return sum(haversine_km(*a, *b) for a, b in zip(points, points[1:]))


# ----------------------------------------------------------------------
# JSON network files
# ----------------------------------------------------------------------


class CityModel(BaseModel):
    city_id: str = Field(min_length=1)
    name: str
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class HubModel(BaseModel):
    hub_id: str = Field(min_length=1)
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    dwell_minutes: int = Field(default=0, ge=0)


class WarehouseModel(BaseModel):
    warehouse_id: str = Field(min_length=1)
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    serves: List[str] = []


class NetworkFile(BaseModel):
    cities: List[CityModel]
    hubs: List[HubModel] = []
    warehouses: List[WarehouseModel] = []


def network_from_dict(data: dict) -> SupplyNetwork:
    try:
        parsed = NetworkFile.model_validate(data)
    except ValidationError as exc:
        raise NetworkConfigError(f"Invalid supply network definition: {exc}") from exc

    return SupplyNetwork(
        cities=[City(**c.model_dump()) for c in parsed.cities],
        hubs=[Hub(**h.model_dump()) for h in parsed.hubs],
        warehouses=[
            Warehouse(
                warehouse_id=w.warehouse_id,
                lat=w.lat,
                lon=w.lon,
                serves=tuple(w.serves),
            )
            for w in parsed.warehouses
        ],
    )


def load_network(path) -> SupplyNetwork:
    """Load a supply network from a JSON file."""
    network_path = Path(path)
    if not network_path.exists():
        raise FileNotFoundError(f"Supply network file not found at {network_path}")

    with network_path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise NetworkConfigError(f"{network_path} is not valid JSON: {exc}") from exc

    network = network_from_dict(data)
    logger.info(
        "Loaded supply network from %s: cities=%d hubs=%d",
        network_path,
        len(network.cities()),
        len(network.hubs()),
    )
    return network


def load_default_network() -> SupplyNetwork:
    if SUPPLY_NETWORK_PATH:
        return load_network(SUPPLY_NETWORK_PATH)
    return DEFAULT_NETWORK


DEFAULT_NETWORK = SupplyNetwork(
    cities=[
        City("TOR", "Toronto", 43.6532, -79.3832),
        City("MTL", "Montreal", 45.5017, -73.5673),
        City("OTT", "Ottawa", 45.4215, -75.6972),
        City("VAN", "Vancouver", 49.2827, -123.1207),
        City("CAL", "Calgary", 51.0447, -114.0719),
        City("EDM", "Edmonton", 53.5461, -113.4938),
        City("WPG", "Winnipeg", 49.8951, -97.1384),
        City("HFX", "Halifax", 44.6488, -63.5752),
    ],
    hubs=[
        Hub("YYZ_SORT", 43.6777, -79.6248, dwell_minutes=45),
        Hub("KINGSTON_SORT", 44.2312, -76.4860, dwell_minutes=40),
        Hub("SUDBURY_HUB", 46.4917, -80.9930, dwell_minutes=60),
        Hub("THUNDER_BAY_HUB", 48.3809, -89.2477, dwell_minutes=60),
        Hub("REGINA_HUB", 50.4452, -104.6189, dwell_minutes=50),
        Hub("KAMLOOPS_HUB", 50.6745, -120.3273, dwell_minutes=50),
        Hub("QUEBEC_SORT", 46.8139, -71.2080, dwell_minutes=40),
        Hub("MONCTON_HUB", 46.0878, -64.7782, dwell_minutes=45),
    ],
    warehouses=[
        Warehouse("TOR_MAIN_DC", 43.7315, -79.7624, ("TOR", "OTT", "MTL", "WPG")),
        Warehouse("MTL_DC", 45.4735, -73.7470, ("MTL", "OTT", "TOR", "HFX")),
        Warehouse("HFX_DC", 44.7000, -63.6000, ("HFX", "MTL")),
        Warehouse("WPG_DC", 49.9000, -97.2000, ("WPG", "CAL", "TOR")),
        Warehouse("CALGARY_DC", 51.0000, -113.9500, ("CAL", "EDM", "VAN", "WPG")),
        Warehouse("VAN_MAIN_DC", 49.1666, -123.1336, ("VAN", "CAL")),
    ],
)
