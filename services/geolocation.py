"""User position tracking: device/network fixes and manual map-click selection."""
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import requests
from loguru import logger

from configurations.config import Config
from core.errors import GeolocationError
from core.viewport import MapViewport
from models.map_entities import UserLocation

ERROR_MESSAGES = {
    GeolocationError.PERMISSION_DENIED: 'Location access denied. Please enable location services.',
    GeolocationError.POSITION_UNAVAILABLE: 'Location information unavailable. Please try again.',
    GeolocationError.TIMEOUT: 'Location request timed out. Please try again.',
}
UNSUPPORTED_MESSAGE = 'Geolocation is not supported on this device.'
GENERIC_MESSAGE = 'Unable to get your location.'


def describe_geolocation_error(error: GeolocationError) -> str:
    if error.code == GeolocationError.UNSUPPORTED:
        return UNSUPPORTED_MESSAGE
    return ERROR_MESSAGES.get(error.code, GENERIC_MESSAGE)


@dataclass
class PositionOptions:
    enable_high_accuracy: bool = True
    timeout_ms: int = Config.GEOLOCATION_TIMEOUT_MS
    maximum_age_ms: int = Config.GEOLOCATION_MAXIMUM_AGE_MS


@dataclass
class Position:
    latitude: float
    longitude: float
    accuracy: Optional[float]
    timestamp: float


class PositionProvider:
    """Source of device positions. Raises ``GeolocationError`` on failure."""

    def get_current_position(self, options: PositionOptions) -> Position:
        raise NotImplementedError


class StaticPositionProvider(PositionProvider):
    """Fixed position, e.g. a kiosk with a known installation point."""

    def __init__(self, latitude: float, longitude: float, accuracy: Optional[float] = None):
        self.latitude = latitude
        self.longitude = longitude
        self.accuracy = accuracy

    def get_current_position(self, options: PositionOptions) -> Position:
        return Position(self.latitude, self.longitude, self.accuracy, time.time())


class IPPositionProvider(PositionProvider):
    """Network geolocation over HTTP, honouring timeout and cache age."""

    def __init__(self, url: str = None, session: requests.Session = None):
        self.url = url or Config.GEOIP_URL
        self.session = session or requests.Session()
        self._last: Optional[Position] = None

    def get_current_position(self, options: PositionOptions) -> Position:
        if self._last is not None:
            age_ms = (time.time() - self._last.timestamp) * 1000
            if age_ms <= options.maximum_age_ms:
                return self._last

        try:
            response = self.session.get(self.url, timeout=options.timeout_ms / 1000)
        except requests.Timeout as e:
            raise GeolocationError(GeolocationError.TIMEOUT, str(e)) from e
        except requests.RequestException as e:
            raise GeolocationError(GeolocationError.POSITION_UNAVAILABLE, str(e)) from e

        if response.status_code in (401, 403):
            raise GeolocationError(GeolocationError.PERMISSION_DENIED, f"HTTP {response.status_code}")
        if response.status_code != 200:
            raise GeolocationError(GeolocationError.POSITION_UNAVAILABLE, f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise GeolocationError(GeolocationError.POSITION_UNAVAILABLE, f"invalid response: {e}") from e
        if not isinstance(data, dict):
            raise GeolocationError(GeolocationError.POSITION_UNAVAILABLE, 'invalid response')
        if data.get('status') == 'fail' or data.get('lat') is None or data.get('lon') is None:
            raise GeolocationError(GeolocationError.POSITION_UNAVAILABLE, data.get('message', 'no fix'))

        try:
            latitude, longitude = float(data['lat']), float(data['lon'])
        except (TypeError, ValueError) as e:
            raise GeolocationError(GeolocationError.POSITION_UNAVAILABLE, f"invalid coordinates: {e}") from e
        self._last = Position(latitude, longitude, Config.GEOIP_ACCURACY_METERS, time.time())
        return self._last


class TrackerState(str, Enum):
    IDLE = 'idle'
    LOCATING = 'locating'
    SELECTING = 'selecting'
    LOCATED = 'located'
    ERROR = 'error'


class WatchSubscription:
    """Live position updates until ``cancel()`` is called."""

    def __init__(self, provider: PositionProvider, options: PositionOptions, interval: float,
                 on_position: Callable[[Position], None],
                 on_error: Optional[Callable[[GeolocationError], None]] = None):
        self.provider = provider
        self.options = options
        self.interval = interval
        self.on_position = on_position
        self.on_error = on_error
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name='geolocation-watch', daemon=True)

    def start(self) -> 'WatchSubscription':
        self._thread.start()
        return self

    @property
    def active(self) -> bool:
        return self._thread.is_alive() and not self._stop.is_set()

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                position = self.provider.get_current_position(self.options)
            except GeolocationError as e:
                logger.warning(f"Error watching location: {e}")
                if self.on_error:
                    self.on_error(e)
            else:
                if not self._stop.is_set():
                    self.on_position(position)
            self._stop.wait(self.interval)

    def cancel(self) -> None:
        self._stop.set()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout=self.interval + 1)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cancel()


class GeolocationTracker:
    """Holds the single current user location.

    ``idle -> locating -> located | error`` for device fixes and
    ``idle -> selecting -> located`` for a manual map click. Either path
    replaces any earlier location.
    """

    def __init__(self, provider: Optional[PositionProvider] = None, viewport: Optional[MapViewport] = None):
        self.provider = provider
        self.viewport = viewport
        self._lock = threading.Lock()
        self.state = TrackerState.IDLE
        self.user_location: Optional[UserLocation] = None
        self.error: Optional[str] = None
        self._subscriptions: List[WatchSubscription] = []

    @property
    def is_selecting(self) -> bool:
        return self.state == TrackerState.SELECTING

    def _set_location(self, location: UserLocation) -> None:
        with self._lock:
            self.user_location = location
            self.state = TrackerState.LOCATED
            self.error = None
        if self.viewport is not None:
            self.viewport.center_on(location.position, Config.LOCATE_ZOOM)

    def locate(self, options: PositionOptions = None) -> Optional[UserLocation]:
        """One-shot device fix. Returns None and sets ``error`` on failure."""
        if self.provider is None:
            with self._lock:
                self.state = TrackerState.ERROR
                self.error = UNSUPPORTED_MESSAGE
            return None

        with self._lock:
            self.state = TrackerState.LOCATING
            self.error = None
        try:
            position = self.provider.get_current_position(options or PositionOptions())
        except GeolocationError as e:
            message = describe_geolocation_error(e)
            logger.error(f"Error getting location: {e} -> {message}")
            with self._lock:
                self.state = TrackerState.ERROR
                self.error = message
            return None

        location = UserLocation(position.latitude, position.longitude, position.accuracy, source='device')
        self._set_location(location)
        logger.info(f"📍 User located at {location.position} (±{position.accuracy}m)")
        return location

    def start_selection(self) -> None:
        with self._lock:
            self.state = TrackerState.SELECTING
            self.error = None

    def cancel_selection(self) -> None:
        with self._lock:
            if self.state == TrackerState.SELECTING:
                self.state = TrackerState.LOCATED if self.user_location else TrackerState.IDLE
            self.error = None

    def handle_map_click(self, latitude: float, longitude: float) -> bool:
        """Consume a map click while selecting. Clicks outside selection are ignored."""
        location = UserLocation(latitude, longitude, accuracy=None, source='manual')
        with self._lock:
            if self.state != TrackerState.SELECTING:
                return False
            self.user_location = location
            self.state = TrackerState.LOCATED
            self.error = None
        if self.viewport is not None:
            self.viewport.center_on(location.position, Config.LOCATE_ZOOM)
        logger.info(f"📍 User location set manually to ({latitude}, {longitude})")
        return True

    def watch(self, interval: float = None,
              on_update: Optional[Callable[[UserLocation], None]] = None) -> WatchSubscription:
        """Start continuous tracking. The caller owns the returned subscription."""
        if self.provider is None:
            raise GeolocationError(GeolocationError.UNSUPPORTED, UNSUPPORTED_MESSAGE)

        def _on_position(position: Position) -> None:
            location = UserLocation(position.latitude, position.longitude, position.accuracy, source='device')
            with self._lock:
                self.user_location = location
                self.state = TrackerState.LOCATED
            if on_update:
                on_update(location)

        options = PositionOptions(maximum_age_ms=Config.GEOLOCATION_WATCH_MAXIMUM_AGE_MS)
        subscription = WatchSubscription(
            self.provider, options,
            Config.GEOLOCATION_WATCH_INTERVAL_SECONDS if interval is None else interval,
            _on_position,
        )
        with self._lock:
            self._subscriptions = [s for s in self._subscriptions if s.active]
            self._subscriptions.append(subscription)
        return subscription.start()

    def close(self) -> None:
        with self._lock:
            subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.cancel()
