import argparse
import logging
import sys
from typing import List, Optional

from prometheus_client import start_http_server

from services.routing.supplychain_routing.config import LOG_FORMAT, LOG_LEVEL, METRICS_PORT
from services.routing.supplychain_routing.load_driver import run_load
from services.routing.supplychain_routing.network import load_default_network, load_network
from services.routing.supplychain_routing.registry import DynamicRouteRegistry

logger = logging.getLogger("route_load_driver")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="FMEA supply chain - concurrent load driver for the dynamic route registry."
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=8,
        help="Number of concurrent worker threads.",
    )
    parser.add_argument(
        "--requests-per-worker",
        type=int,
        default=50,
        help="Route lookups issued by each worker.",
    )
    parser.add_argument(
        "--cities",
        nargs="+",
        default=None,
        help="City ids to request (defaults to every city in the network).",
    )
    parser.add_argument(
        "--include-multihop",
        action="store_true",
        help="Also request multi-hop routes.",
    )
    parser.add_argument(
        "--ids-per-worker",
        type=int,
        default=0,
        help="Raw id allocations per worker and route kind.",
    )
    parser.add_argument(
        "--network",
        default=None,
        help="Path to a JSON supply network (overrides SUPPLY_NETWORK_PATH).",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=METRICS_PORT,
        help="Expose Prometheus metrics on this port while running (0 disables).",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    args = build_parser().parse_args(argv)

    network = load_network(args.network) if args.network else load_default_network()
    cities = args.cities or [c.city_id for c in network.cities()]

    if args.metrics_port:
        logger.info("Starting Prometheus metrics server on port %d", args.metrics_port)
        start_http_server(args.metrics_port)

    registry = DynamicRouteRegistry(network=network)

    report = run_load(
        registry,
        cities=cities,
        workers=args.workers,
        requests_per_worker=args.requests_per_worker,
        include_multihop=args.include_multihop,
        ids_per_worker=args.ids_per_worker,
    )

    stats = registry.stats()
    logger.info(
        "Registry: cities=%d direct_routes=%d multihop_routes=%d next_ids=(%d, %d)",
        stats.cached_cities,
        stats.direct_routes,
        stats.multihop_routes,
        stats.next_direct_id,
        stats.next_multihop_id,
    )
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
