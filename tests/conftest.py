import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from services.routing.supplychain_routing.network import City, Hub, SupplyNetwork, Warehouse
from services.routing.supplychain_routing.registry import DynamicRouteRegistry

DIRECT_START = 1000
MULTIHOP_START = 9000


def build_small_network(cls=SupplyNetwork, **kwargs) -> SupplyNetwork:
    """
    Two cities on the equator, one hub between A and W1 and one far-off hub.

    A -> W1 has a single multi-hop alternative (through H1); B has none.
    """
    return cls(
        cities=[
            City("A", "Alpha", 0.0, 0.0),
            City("B", "Bravo", 0.0, 2.0),
        ],
        hubs=[
            Hub("H1", 0.0, 1.0, dwell_minutes=10),
            Hub("H2", 5.0, 5.0, dwell_minutes=10),
        ],
        warehouses=[
            Warehouse("W1", 0.0, 3.0, ("A", "B")),
            Warehouse("W2", 1.0, 0.0, ("A",)),
        ],
        speed_kmh=kwargs.pop("speed_kmh", 60.0),
        **kwargs,
    )


def build_wide_network(n_cities: int, cls=SupplyNetwork) -> SupplyNetwork:
    """One warehouse per city, nothing else."""
    cities = [City(f"C{i:03d}", f"City {i}", 10.0 + i * 0.01, 20.0) for i in range(n_cities)]
    warehouses = [
        Warehouse(f"W{i:03d}", 10.0 + i * 0.01, 20.5, (f"C{i:03d}",)) for i in range(n_cities)
    ]
    return cls(cities=cities, hubs=[], warehouses=warehouses)


@pytest.fixture()
def small_network() -> SupplyNetwork:
    return build_small_network()


@pytest.fixture()
def registry(small_network) -> DynamicRouteRegistry:
    return DynamicRouteRegistry(
        network=small_network,
        direct_start_id=DIRECT_START,
        multihop_start_id=MULTIHOP_START,
    )
