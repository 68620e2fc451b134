"""Command interface over the single shared map view."""
import math
import threading
from typing import Iterable, Optional, Tuple

from loguru import logger

from configurations.config import Config
from models.map_entities import LatLng

TILE_SIZE = 256
MAX_LATITUDE = 85.0511287798


class MapViewport:
    """Center, zoom and pixel size of the map, plus Web Mercator conversions.

    Features never touch the view directly; they issue ``center_on`` or
    ``fit_bounds``. While a popup is open the popup owns the view (it may be
    auto-panning), so recentering is deferred until ``popup_closed``.
    """

    def __init__(self, center: LatLng = None, zoom: int = None,
                 width: int = None, height: int = None):
        self._lock = threading.Lock()
        self.center: LatLng = tuple(center or Config.DEFAULT_CENTER)
        self.zoom: int = Config.DEFAULT_ZOOM if zoom is None else zoom
        self.width: int = width or Config.VIEWPORT_WIDTH
        self.height: int = height or Config.VIEWPORT_HEIGHT
        self.popup_open = False
        self._deferred: Optional[Tuple[LatLng, Optional[int]]] = None

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def resize(self, width: int, height: int) -> None:
        with self._lock:
            self.width, self.height = width, height

    def center_on(self, coords: LatLng, zoom: Optional[int] = None) -> bool:
        """Recenter the view. Returns False when deferred behind an open popup."""
        with self._lock:
            if self.popup_open:
                self._deferred = (tuple(coords), zoom)
                logger.debug(f"Deferring recenter to {coords} until popup closes")
                return False
            self._apply(tuple(coords), zoom)
            return True

    def _apply(self, coords: LatLng, zoom: Optional[int]) -> None:
        self.center = coords
        if zoom is not None:
            self.zoom = max(0, min(Config.MAX_ZOOM, zoom))

    def fit_bounds(self, points: Iterable[LatLng], padding: int = 40) -> bool:
        points = list(points)
        if not points:
            return False
        lats = [p[0] for p in points]
        lngs = [p[1] for p in points]
        south, north = min(lats), max(lats)
        west, east = min(lngs), max(lngs)

        zoom = 0
        for candidate in range(Config.MAX_ZOOM, -1, -1):
            x1, y1 = self.project((north, west), candidate)
            x2, y2 = self.project((south, east), candidate)
            if (x2 - x1) <= self.width - 2 * padding and (y2 - y1) <= self.height - 2 * padding:
                zoom = candidate
                break

        x1, y1 = self.project((north, west), zoom)
        x2, y2 = self.project((south, east), zoom)
        center = self.unproject(((x1 + x2) / 2, (y1 + y2) / 2), zoom)
        return self.center_on(center, zoom)

    def popup_opened(self) -> None:
        with self._lock:
            self.popup_open = True

    def popup_closed(self) -> None:
        with self._lock:
            self.popup_open = False
            deferred, self._deferred = self._deferred, None
            if deferred is not None:
                self._apply(*deferred)

    # Projection (EPSG:3857, 256px tiles)

    @staticmethod
    def project(latlng: LatLng, zoom: float) -> Tuple[float, float]:
        lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, latlng[0]))
        scale = TILE_SIZE * (2 ** zoom)
        sin_lat = math.sin(math.radians(lat))
        x = scale * (latlng[1] + 180.0) / 360.0
        y = scale * (0.5 - math.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi))
        return (x, y)

    @staticmethod
    def unproject(point: Tuple[float, float], zoom: float) -> LatLng:
        scale = TILE_SIZE * (2 ** zoom)
        lng = point[0] / scale * 360.0 - 180.0
        n = math.pi - 2 * math.pi * point[1] / scale
        lat = math.degrees(math.atan(math.sinh(n)))
        return (lat, lng)

    def latlng_to_container_point(self, latlng: LatLng) -> Tuple[float, float]:
        px, py = self.project(latlng, self.zoom)
        cx, cy = self.project(self.center, self.zoom)
        return (px - cx + self.width / 2, py - cy + self.height / 2)

    def container_point_to_latlng(self, point: Tuple[float, float]) -> LatLng:
        cx, cy = self.project(self.center, self.zoom)
        world = (point[0] - self.width / 2 + cx, point[1] - self.height / 2 + cy)
        return self.unproject(world, self.zoom)
