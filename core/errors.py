"""Exceptions raised by the map & routing panel."""
from typing import Optional


class MapPanelError(Exception):
    """Base class for panel errors."""


class PortalAPIError(MapPanelError):
    """The portal backend rejected or failed a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ImageUploadError(MapPanelError):
    """A location image failed local validation before upload."""


class GeolocationError(MapPanelError):
    # W3C GeolocationPositionError codes; 0 means no position source at all
    UNSUPPORTED = 0
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3

    def __init__(self, code: int, detail: str = ""):
        super().__init__(detail or f"geolocation error {code}")
        self.code = code
        self.detail = detail


class RouteProviderError(MapPanelError):
    """A routing provider failed or returned no route."""

    def __init__(self, provider: str, reason: str):
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason
