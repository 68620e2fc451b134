"""Decoder for the encoded polyline format used by Google Directions."""
from typing import List, Tuple


def _next_value(encoded: str, index: int) -> Tuple[int, int]:
    shift = 0
    result = 0
    while True:
        b = ord(encoded[index]) - 63
        index += 1
        result |= (b & 0x1f) << shift
        shift += 5
        if b < 0x20:
            break
    value = ~(result >> 1) if result & 1 else result >> 1
    return value, index


def decode_polyline(encoded: str, precision: int = 5) -> List[Tuple[float, float]]:
    """Decode delta + zigzag encoded points into (lat, lng) pairs."""
    factor = 10 ** precision
    points = []
    index = 0
    lat = 0
    lng = 0
    while index < len(encoded):
        dlat, index = _next_value(encoded, index)
        dlng, index = _next_value(encoded, index)
        lat += dlat
        lng += dlng
        points.append((lat / factor, lng / factor))
    return points
