"""Event and youth-member overlays drawn on top of the location markers."""
import threading
from typing import Dict, List

from loguru import logger

from core.errors import PortalAPIError
from models.map_entities import Event, EventStatus, Location, YouthProfile
from services.portal_client import PortalClient

EVENT_STATUS_COLORS = {
    EventStatus.ACTIVE.value: '#EF4444',
    EventStatus.COMPLETED.value: '#10B981',
    EventStatus.CANCELLED.value: '#6B7280',
}
DEFAULT_EVENT_COLOR = '#F59E0B'


def event_status_color(status: str) -> str:
    return EVENT_STATUS_COLORS.get(str(status).upper(), DEFAULT_EVENT_COLOR)


def format_event_date(event: Event) -> str:
    if event.date_time is None:
        return ''
    return event.date_time.strftime('%a, %b %d, %Y, %I:%M %p')


def event_tooltip_lines(events: List[Event]) -> List[str]:
    """Short hover summary: count, first two titles, remainder."""
    if not events:
        return []
    count = len(events)
    lines = [f"📅 {count} Event{'s' if count > 1 else ''}"]
    lines.extend(f"• {event.title}" for event in events[:2])
    if count > 2:
        lines.append(f"+{count - 2} more...")
    return lines


class OverlayService:
    def __init__(self, client: PortalClient):
        self.client = client
        self._lock = threading.Lock()
        self.events: List[Event] = []
        self.youth: List[YouthProfile] = []

    def load_events(self) -> List[Event]:
        try:
            events = [Event.from_api(e) for e in self.client.get_events()]
        except (PortalAPIError, TypeError, ValueError) as e:
            logger.error(f"Failed to load events: {e}")
            events = []
        with self._lock:
            self.events = events
        logger.info(f"Loaded {len(events)} events")
        return events

    def load_youth(self) -> List[YouthProfile]:
        try:
            profiles = [YouthProfile.from_api(y) for y in self.client.get_youth()]
        except (PortalAPIError, TypeError, ValueError) as e:
            logger.error(f"Failed to load youth profiles: {e}")
            profiles = []
        plotted = [p for p in profiles if p.has_coordinates]
        with self._lock:
            self.youth = plotted
        logger.info(f"Loaded {len(plotted)} youth members with coordinates ({len(profiles)} total)")
        return plotted

    def events_for_location(self, location: Location) -> List[Event]:
        """Events held at a location.

        An explicit ``location_id`` wins. Events without one fall back to
        exact, case-sensitive venue/name equality.
        """
        with self._lock:
            events = list(self.events)
        matched = []
        for event in events:
            if event.location_id:
                if event.location_id == location.id:
                    matched.append(event)
            elif event.venue == location.name:
                matched.append(event)
        return matched

    def events_by_location(self, locations: List[Location]) -> Dict[str, List[Event]]:
        return {location.id: self.events_for_location(location) for location in locations}
