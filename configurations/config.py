"""Configuration settings for the map & routing panel."""
import os
from typing import Tuple

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    # Portal backend (locations, events, youth, uploads)
    PORTAL_API_BASE_URL: str = os.getenv("PORTAL_API_BASE_URL", "http://localhost:3000")
    PORTAL_API_TOKEN: str = os.getenv("PORTAL_API_TOKEN", "")
    REQUEST_TIMEOUT_SECONDS: int = int(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))

    # Routing providers, tried in this order
    OSRM_URL: str = os.getenv("OSRM_URL", "https://router.project-osrm.org")
    GRAPHHOPPER_URL: str = os.getenv("GRAPHHOPPER_URL", "https://graphhopper.com/api/1/route")
    GRAPHHOPPER_API_KEY: str = os.getenv("GRAPHHOPPER_API_KEY", "")
    GOOGLE_DIRECTIONS_URL: str = os.getenv("GOOGLE_DIRECTIONS_URL", "https://maps.googleapis.com/maps/api/directions/json")
    GOOGLE_MAPS_API_KEY: str = os.getenv("GOOGLE_MAPS_API_KEY", "")
    ROUTING_TIMEOUT_SECONDS: int = int(os.getenv("ROUTING_TIMEOUT_SECONDS", "10"))

    # Network position source used when no device sensor is available
    GEOIP_URL: str = os.getenv("GEOIP_URL", "http://ip-api.com/json")
    GEOIP_ACCURACY_METERS: float = 5000.0

    # Map defaults (Casiguran, Sorsogon)
    DEFAULT_CENTER: Tuple[float, float] = (12.873131, 124.005867)
    DEFAULT_ZOOM: int = 18
    LOCATE_ZOOM: int = 15
    MAX_ZOOM: int = 19
    VIEWPORT_WIDTH: int = 1024
    VIEWPORT_HEIGHT: int = 768

    # Geolocation options
    GEOLOCATION_TIMEOUT_MS: int = 10000
    GEOLOCATION_MAXIMUM_AGE_MS: int = 60000
    GEOLOCATION_WATCH_MAXIMUM_AGE_MS: int = 30000
    GEOLOCATION_WATCH_INTERVAL_SECONDS: float = 5.0

    # Trash zone (bottom-right corner of the map container)
    TRASH_ZONE_SIZE_PX: int = 100
    TRASH_ZONE_MARGIN_PX: int = 20

    # Location image uploads
    MAX_IMAGE_SIZE_MB: int = 5
    UPLOAD_PATH: str = "/api/upload/location-image"

    # API settings
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 8081

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
