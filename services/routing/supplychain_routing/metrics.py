from prometheus_client import Counter, Gauge

# Cache lookups per route kind (result = hit | miss)
ROUTE_CACHE_REQUESTS = Counter(
    "supplychain_route_cache_requests_total",
    "Per-city route cache lookups",
    ["kind", "result"],
)

ROUTE_IDS_ALLOCATED = Counter(
    "supplychain_route_ids_allocated_total",
    "Route identifiers issued by the registry",
    ["kind"],
)

ROUTE_GENERATION_FAILURES = Counter(
    "supplychain_route_generation_failures_total",
    "Route generations that raised and were not cached",
    ["kind"],
)

REGISTRY_CACHED_CITIES = Gauge(
    "supplychain_registry_cached_cities",
    "Cities with at least one cached route list",
)
