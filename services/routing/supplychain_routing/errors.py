class RegistryError(Exception):
    """Base error for the route registry and its supply network."""


class NetworkConfigError(RegistryError):
    """Supply network definition is malformed or inconsistent."""


class RouteGenerationError(RegistryError):
    """Routes for a city could not be generated."""

    def __init__(self, city: str, kind: str, reason: str):
        super().__init__(f"Failed to generate {kind} routes for {city!r}: {reason}")
        self.city = city
        self.kind = kind
        self.reason = reason
