import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from repo root when running locally
ROOT_DIR = Path(__file__).resolve().parents[3]  # .../fmea-supply-chain/
env_path = ROOT_DIR / ".env"
if env_path.exists():
    load_dotenv(env_path)

# Route id spaces (direct vs multi-hop never share a counter)
DYNAMIT_ROUTE_START_ID = int(os.getenv("DYNAMIT_ROUTE_START_ID", "100000"))
MULTIHOP_ROUTE_START_ID = int(os.getenv("MULTIHOP_ROUTE_START_ID", "500000"))

# Optional JSON network file; the built-in network is used when unset
SUPPLY_NETWORK_PATH = os.getenv("SUPPLY_NETWORK_PATH") or None

# Route planning
AVG_TRUCK_SPEED_KMH = float(os.getenv("AVG_TRUCK_SPEED_KMH", "80"))
MULTIHOP_MAX_HUBS = int(os.getenv("MULTIHOP_MAX_HUBS", "2"))
MULTIHOP_MAX_DETOUR_RATIO = float(os.getenv("MULTIHOP_MAX_DETOUR_RATIO", "1.6"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Load driver
METRICS_PORT = int(os.getenv("METRICS_PORT", "9500"))
