"""Data models for the map & routing panel."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

LatLng = Tuple[float, float]


class LocationType(str, Enum):
    SCHOOL = "SCHOOL"
    GOVERNMENT = "GOVERNMENT"
    HEALTH = "HEALTH"
    COMMERCIAL = "COMMERCIAL"
    SPORTS = "SPORTS"
    RELIGIOUS = "RELIGIOUS"
    EMERGENCY = "EMERGENCY"
    RESIDENTIAL = "RESIDENTIAL"
    RECREATION = "RECREATION"
    GYMNASIUM = "GYMNASIUM"

    @classmethod
    def parse(cls, value: Any) -> Optional["LocationType"]:
        """Return the matching type (case-insensitive) or None."""
        if isinstance(value, cls):
            return value
        if not value:
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


class EventStatus(str, Enum):
    PLANNED = "PLANNED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


@dataclass
class Location:
    id: str
    name: str
    latitude: float
    longitude: float
    type: str
    description: Optional[str] = None
    address: Optional[str] = None
    image: Optional[str] = None
    is_active: bool = True

    @property
    def position(self) -> LatLng:
        return (self.latitude, self.longitude)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Location":
        return cls(
            id=str(data.get("id")),
            name=data.get("name") or "",
            latitude=float(data.get("latitude") or 0),
            longitude=float(data.get("longitude") or 0),
            type=str(data.get("type") or "").upper(),
            description=data.get("description"),
            address=data.get("address"),
            image=data.get("image"),
            is_active=bool(data.get("isActive", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "type": self.type,
            "description": self.description,
            "address": self.address,
            "image": self.image,
            "isActive": self.is_active,
        }


@dataclass
class Event:
    id: str
    title: str
    date_time: Optional[datetime]
    venue: str
    status: str = EventStatus.PLANNED.value
    max_participants: Optional[int] = None
    location_id: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Event":
        raw_date = data.get("dateTime")
        date_time = None
        if raw_date:
            try:
                date_time = datetime.fromisoformat(str(raw_date).replace("Z", "+00:00"))
            except ValueError:
                date_time = None
        location_id = data.get("locationId")
        return cls(
            id=str(data.get("id")),
            title=data.get("title") or "",
            date_time=date_time,
            venue=data.get("venue") or "",
            status=str(data.get("status") or EventStatus.PLANNED.value).upper(),
            max_participants=data.get("maxParticipants"),
            location_id=str(location_id) if location_id else None,
            description=data.get("description"),
        )


@dataclass
class YouthProfile:
    id: str
    full_name: str
    latitude: Optional[float]
    longitude: Optional[float]
    age: Optional[int] = None
    sex: Optional[str] = None
    status: Optional[str] = None
    committee: Optional[str] = None
    street_address: Optional[str] = None
    barangay: Optional[str] = None
    mobile_number: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return bool(self.latitude) and bool(self.longitude)

    @property
    def position(self) -> LatLng:
        return (self.latitude, self.longitude)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "YouthProfile":
        lat = data.get("latitude")
        lng = data.get("longitude")
        return cls(
            id=str(data.get("id")),
            full_name=data.get("fullName") or "",
            latitude=float(lat) if lat not in (None, "") else None,
            longitude=float(lng) if lng not in (None, "") else None,
            age=data.get("age"),
            sex=data.get("sex"),
            status=data.get("status"),
            committee=data.get("committee"),
            street_address=data.get("streetAddress"),
            barangay=data.get("barangay"),
            mobile_number=data.get("mobileNumber"),
        )


@dataclass
class RouteInfo:
    """Ephemeral route between the user and a destination.

    ``walking_minutes`` is always three times ``driving_minutes``.
    ``approximate`` routes are synthesized locally and do not follow roads.
    """
    distance_km: float
    driving_minutes: int
    walking_minutes: int
    route_path: List[LatLng] = field(default_factory=list)
    provider: str = "approximate"
    approximate: bool = False

    @property
    def distance_label(self) -> str:
        return f"{self.distance_km:.1f} km"

    @property
    def driving_label(self) -> str:
        return f"{self.driving_minutes} min"

    @property
    def walking_label(self) -> str:
        return f"{self.walking_minutes} min"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distance": self.distance_label,
            "drivingTime": self.driving_label,
            "walkingTime": self.walking_label,
            "distanceKm": self.distance_km,
            "drivingMinutes": self.driving_minutes,
            "walkingMinutes": self.walking_minutes,
            "routePath": [list(point) for point in self.route_path],
            "provider": self.provider,
            "approximate": self.approximate,
        }


@dataclass
class UserLocation:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    source: str = "device"

    @property
    def position(self) -> LatLng:
        return (self.latitude, self.longitude)
