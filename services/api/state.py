import threading
from typing import Optional

from services.routing.supplychain_routing.registry import DynamicRouteRegistry

_registry: Optional[DynamicRouteRegistry] = None
_init_lock = threading.Lock()


def init_registry() -> DynamicRouteRegistry:
    """Create the process-wide registry once."""
    global _registry
    with _init_lock:
        if _registry is None:
            _registry = DynamicRouteRegistry()
        return _registry


def get_registry() -> DynamicRouteRegistry:
    if _registry is None:
        return init_registry()
    return _registry


def set_registry(registry: Optional[DynamicRouteRegistry]) -> None:
    """Swap the process registry (tests, or reloading a network file)."""
    global _registry
    with _init_lock:
        _registry = registry
