"""Route computation with layered provider fallback."""
import threading
from typing import List, Optional

from loguru import logger

from core.errors import RouteProviderError
from models.map_entities import LatLng, Location, RouteInfo
from routing.geodesy import approximate_route
from routing.providers import RouteProvider, default_providers


class RoutePlanner:
    """Try each provider in order; fall back to a local approximation.

    ``plan`` never raises: route unavailability degrades quality, it is not
    a failure.
    """

    def __init__(self, providers: List[RouteProvider] = None):
        self.providers = default_providers() if providers is None else providers

    def plan(self, start: LatLng, end: LatLng) -> RouteInfo:
        for provider in self.providers:
            try:
                route = provider.get_route(start, end)
            except RouteProviderError as e:
                logger.warning(f"Routing via {e.provider} failed: {e.reason}")
                continue
            except Exception as e:
                logger.warning(f"Routing via {provider.name} failed unexpectedly: {e!r}")
                continue
            if route is not None and route.route_path:
                logger.info(f"🗺️ Route via {provider.name}: {route.distance_label}, {route.driving_label} driving")
                return route
            logger.warning(f"Routing via {provider.name} returned an empty path")

        route = approximate_route(start, end)
        logger.warning(f"All routing providers failed, using approximate route ({route.distance_label})")
        return route


class RouteSelection:
    """The destination the user picked and the route shown for it.

    Last request wins: each selection takes a sequence number and a result
    is only published if no newer selection has started meanwhile.
    """

    def __init__(self, planner: RoutePlanner):
        self.planner = planner
        self._lock = threading.Lock()
        self._sequence = 0
        self.destination: Optional[Location] = None
        self.route_info: Optional[RouteInfo] = None
        self.is_loading = False

    def select(self, destination: Location, start: Optional[LatLng]) -> Optional[RouteInfo]:
        with self._lock:
            self._sequence += 1
            ticket = self._sequence
            self.destination = destination
            self.route_info = None
            self.is_loading = start is not None

        if start is None:
            return None

        route = None
        try:
            route = self.planner.plan(start, destination.position)
        finally:
            with self._lock:
                current = ticket == self._sequence
                if current:
                    self.route_info = route
                    self.is_loading = False

        if not current:
            logger.debug(f"Discarding stale route to {destination.name} (request {ticket})")
            return None
        return route

    def clear(self) -> None:
        with self._lock:
            self._sequence += 1
            self.destination = None
            self.route_info = None
            self.is_loading = False
