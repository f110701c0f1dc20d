import json
import math

import pytest

from services.routing.supplychain_routing.errors import NetworkConfigError
from services.routing.supplychain_routing import network as network_module
from services.routing.supplychain_routing.network import (
    DEFAULT_NETWORK,
    EARTH_RADIUS_KM,
    City,
    SupplyNetwork,
    Warehouse,
    haversine_km,
    load_default_network,
    load_network,
    network_from_dict,
)


def test_haversine_toronto_montreal():
    tor = DEFAULT_NETWORK.get_city("TOR")
    mtl = DEFAULT_NETWORK.get_city("MTL")
    distance = haversine_km(tor.lat, tor.lon, mtl.lat, mtl.lon)
    assert 480 < distance < 530


def test_haversine_antipodal_points_do_not_overflow_asin():
    distance = haversine_km(0.0, 0.0, 0.0, 180.0)
    assert distance == pytest.approx(math.pi * EARTH_RADIUS_KM, rel=1e-6)
    assert haversine_km(45.0, -75.0, -45.0, 105.0) == pytest.approx(math.pi * EARTH_RADIUS_KM, rel=1e-6)


def test_warehouses_for_city_sorted_by_id(small_network):
    assert [w.warehouse_id for w in small_network.warehouses_for("A")] == ["W1", "W2"]
    assert [w.warehouse_id for w in small_network.warehouses_for("B")] == ["W1"]


def test_unknown_city_has_no_warehouses(small_network):
    assert small_network.warehouses_for("NOPE") == []
    assert not small_network.has_city("NOPE")


def test_plan_direct_eta_follows_speed(small_network):
    wh = small_network.warehouses_for("B")[0]
    distance, eta = small_network.plan_direct("B", wh)
    # 1 degree of longitude on the equator, 60 km/h -> one minute per km
    assert 110 < distance < 112.5
    assert abs(eta - distance) <= 1


def test_plan_multihop_respects_detour_budget(small_network):
    w1, w2 = small_network.warehouses_for("A")
    plans = small_network.plan_multihop("A", w1)
    assert [hubs for hubs, _, _ in plans] == [("H1",)]

    direct_distance, direct_eta = small_network.plan_direct("A", w1)
    (_, distance, eta), = plans
    assert distance == pytest.approx(direct_distance, abs=0.2)
    assert eta == direct_eta + 10  # H1 dwell

    assert small_network.plan_multihop("A", w2) == []


def test_plan_multihop_sorted_fastest_first():
    for wh in DEFAULT_NETWORK.warehouses_for("TOR"):
        per_warehouse = DEFAULT_NETWORK.plan_multihop("TOR", wh)
        etas = [eta for _, _, eta in per_warehouse]
        assert etas == sorted(etas)
        for hubs, _, _ in per_warehouse:
            assert 1 <= len(hubs) <= DEFAULT_NETWORK.max_hubs
            assert len(set(hubs)) == len(hubs)


def test_duplicate_ids_rejected():
    with pytest.raises(NetworkConfigError):
        SupplyNetwork(
            cities=[City("A", "a", 0, 0), City("A", "again", 1, 1)],
            hubs=[],
            warehouses=[],
        )


def test_warehouse_serving_unknown_city_rejected():
    with pytest.raises(NetworkConfigError) as exc:
        SupplyNetwork(
            cities=[City("A", "a", 0, 0)],
            hubs=[],
            warehouses=[Warehouse("W", 0, 1, ("A", "Z"))],
        )
    assert "Z" in str(exc.value)


def test_non_positive_speed_rejected():
    with pytest.raises(NetworkConfigError):
        SupplyNetwork(cities=[], hubs=[], warehouses=[], speed_kmh=0)


def test_load_network_from_json(tmp_path):
    path = tmp_path / "network.json"
    path.write_text(
        json.dumps(
            {
                "cities": [{"city_id": "X", "name": "Xville", "lat": 45.0, "lon": -75.0}],
                "hubs": [{"hub_id": "HX", "lat": 45.5, "lon": -74.5, "dwell_minutes": 30}],
                "warehouses": [
                    {"warehouse_id": "WX", "lat": 46.0, "lon": -74.0, "serves": ["X"]}
                ],
            }
        ),
        encoding="utf-8",
    )

    network = load_network(path)
    assert [c.city_id for c in network.cities()] == ["X"]
    assert [h.hub_id for h in network.hubs()] == ["HX"]
    assert [w.warehouse_id for w in network.warehouses_for("X")] == ["WX"]


def test_load_network_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_network(tmp_path / "missing.json")


def test_load_network_bad_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(NetworkConfigError):
        load_network(path)


def test_network_from_dict_validates_coordinates():
    with pytest.raises(NetworkConfigError):
        network_from_dict({"cities": [{"city_id": "X", "name": "x", "lat": 200, "lon": 0}]})


def test_load_default_network_uses_builtin_when_path_unset(monkeypatch):
    monkeypatch.setattr(network_module, "SUPPLY_NETWORK_PATH", None)
    assert load_default_network() is DEFAULT_NETWORK


def test_load_default_network_reads_configured_path(tmp_path, monkeypatch):
    path = tmp_path / "override.json"
    path.write_text(
        json.dumps(
            {
                "cities": [
                    {"city_id": "Q", "name": "Quebec", "lat": 46.81, "lon": -71.21},
                    {"city_id": "R", "name": "Regina", "lat": 50.45, "lon": -104.62},
                ],
                "warehouses": [
                    {"warehouse_id": "WQ", "lat": 46.9, "lon": -71.3, "serves": ["Q"]}
                ],
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setattr(network_module, "SUPPLY_NETWORK_PATH", str(path))

    network = load_default_network()
    assert network is not DEFAULT_NETWORK
    assert [c.city_id for c in network.cities()] == ["Q", "R"]
    assert [w.warehouse_id for w in network.warehouses_for("Q")] == ["WQ"]
    assert network.warehouses_for("R") == []
    assert not network.has_city("TOR")
