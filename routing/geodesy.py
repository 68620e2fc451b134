"""Great-circle distance and the locally synthesized approximate route."""
import math
from typing import List

import numpy as np

from models.map_entities import LatLng, RouteInfo

EARTH_RADIUS_KM = 6371.0
MINUTES_PER_KM = 2.5  # ~24 km/h average
WALKING_FACTOR = 3
APPROXIMATE_PATH_POINTS = 15
CURVE_OFFSET_DEGREES = 0.0001


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def haversine_km(start: LatLng, end: LatLng) -> float:
    """Haversine distance between two (lat, lng) points in kilometres."""
    lat1, lon1 = math.radians(start[0]), math.radians(start[1])
    lat2, lon2 = math.radians(end[0]), math.radians(end[1])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def approximate_path(start: LatLng, end: LatLng, points: int = APPROXIMATE_PATH_POINTS) -> List[LatLng]:
    """Straight line with a slight sinusoidal bow. Not a road geometry."""
    t = np.linspace(0.0, 1.0, points + 2)[1:-1]
    lats = start[0] + (end[0] - start[0]) * t
    lngs = start[1] + (end[1] - start[1]) * t
    offset = np.sin(t * np.pi) * CURVE_OFFSET_DEGREES
    middle = [(float(lat), float(lng)) for lat, lng in zip(lats + offset, lngs + offset)]
    return [tuple(start)] + middle + [tuple(end)]


def build_route_info(distance_m: float, duration_s: float, path: List[LatLng], provider: str) -> RouteInfo:
    """Derive display figures from a provider's metres and seconds."""
    driving = round_half_up(duration_s / 60)
    return RouteInfo(
        distance_km=round(distance_m / 1000, 1),
        driving_minutes=driving,
        walking_minutes=driving * WALKING_FACTOR,
        route_path=list(path),
        provider=provider,
        approximate=False,
    )


def approximate_route(start: LatLng, end: LatLng) -> RouteInfo:
    distance = haversine_km(start, end)
    driving = round_half_up(distance * MINUTES_PER_KM)
    return RouteInfo(
        distance_km=round(distance, 1),
        driving_minutes=driving,
        walking_minutes=driving * WALKING_FACTOR,
        route_path=approximate_path(start, end),
        provider='approximate',
        approximate=True,
    )
