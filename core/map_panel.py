"""Map & routing panel: wires the store, overlays, tracker, planner and markers."""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional

from loguru import logger

from core.dialogs import DialogState
from core.viewport import MapViewport
from models.map_entities import Event, LatLng, Location, RouteInfo
from routing.route_planner import RoutePlanner, RouteSelection
from services.geolocation import GeolocationTracker, PositionProvider
from services.location_store import LocationStore
from services.overlay_service import OverlayService, event_tooltip_lines
from services.portal_client import PortalClient
from tools.add_location_flow import AddLocationFlow
from tools.marker_icons import MarkerIcon, icon_for
from tools.marker_interaction import MarkerInteraction
from tools.popup_layout import PopupTracker


@dataclass
class MarkerView:
    location: Location
    icon: MarkerIcon
    events: List[Event] = field(default_factory=list)
    tooltip: List[str] = field(default_factory=list)
    draggable: bool = False
    unsynced: bool = False

    def to_dict(self) -> dict:
        return {
            **self.location.to_dict(),
            'icon': self.icon.kind,
            'hasEvents': self.icon.has_events,
            'eventCount': len(self.events),
            'tooltip': self.tooltip,
            'draggable': self.draggable,
            'unsynced': self.unsynced,
        }


SELECTION_PROMPT = 'Click anywhere on the map to set your location. Click "Cancel Selection" to cancel.'


def format_coordinates(position: LatLng) -> str:
    return f"[{position[0]}, {position[1]}]"


class MapRoutingPanel:
    """One interactive map and everything that commands it."""

    def __init__(self, client: PortalClient = None, planner: RoutePlanner = None,
                 position_provider: Optional[PositionProvider] = None,
                 viewport: MapViewport = None):
        self.client = client or PortalClient()
        self.dialogs = DialogState()
        self.viewport = viewport or MapViewport()
        self.store = LocationStore(self.client, self.dialogs)
        self.overlays = OverlayService(self.client)
        self.tracker = GeolocationTracker(position_provider, self.viewport)
        self.routes = RouteSelection(planner or RoutePlanner())
        self.markers = MarkerInteraction(self.store, self.viewport, self.dialogs)
        self.add_flow = AddLocationFlow(self.store, self.dialogs)
        self.popups = PopupTracker(self.viewport)
        self.show_route = True

        logger.info("🎯 Map & routing panel initialized")

    def mount(self) -> None:
        """Load locations, events and youth members independently of each other."""
        with ThreadPoolExecutor(max_workers=3, thread_name_prefix='map-load') as pool:
            futures = [
                pool.submit(self.store.load),
                pool.submit(self.overlays.load_events),
                pool.submit(self.overlays.load_youth),
            ]
            for future in futures:
                future.result()
        logger.success(
            f"✅ Map loaded: {len(self.store.locations)} locations, "
            f"{len(self.overlays.events)} events, {len(self.overlays.youth)} youth members"
        )

    def refresh(self) -> None:
        self.store.load()
        self.overlays.load_youth()

    def close(self) -> None:
        self.tracker.close()
        self.routes.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # Markers

    def marker_views(self) -> List[MarkerView]:
        views = []
        for location in self.store.locations:
            events = self.overlays.events_for_location(location)
            views.append(MarkerView(
                location=location,
                icon=icon_for(location.type, bool(events)),
                events=events,
                tooltip=event_tooltip_lines(events),
                draggable=self.markers.markers_draggable,
                unsynced=self.store.is_unsynced(location.id),
            ))
        return views

    def copy_coordinates(self, position: LatLng) -> str:
        text = format_coordinates(position)
        self.dialogs.show_success(f"Coordinates copied: {text}")
        return text

    # Map clicks

    def handle_map_click(self, latitude: float, longitude: float) -> bool:
        if not self.tracker.handle_map_click(latitude, longitude):
            return False
        self.dialogs.dismiss(SELECTION_PROMPT)
        return True

    def handle_right_click(self, latitude: float, longitude: float) -> None:
        self.add_flow.right_click(latitude, longitude)

    # Location selection

    def start_location_selection(self) -> None:
        self.tracker.start_selection()
        self.dialogs.show_info(SELECTION_PROMPT)

    def cancel_location_selection(self) -> None:
        self.tracker.cancel_selection()
        self.dialogs.dismiss(SELECTION_PROMPT)

    def locate_user(self) -> bool:
        location = self.tracker.locate()
        if location is None:
            self.dialogs.show_error(self.tracker.error)
            return False
        return True

    # Routing

    def request_route(self, location_id: str) -> Optional[RouteInfo]:
        destination = self.store.get(location_id)
        if destination is None:
            return None
        user = self.tracker.user_location
        if user is None:
            self.dialogs.show_info('Set your location first to get a route.')
        route = self.routes.select(destination, user.position if user else None)
        if route is not None and self.show_route:
            self.viewport.fit_bounds(route.route_path)
        return route
