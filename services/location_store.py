"""Client-side cache of map locations backed by the portal API."""
import threading
from typing import Dict, List, Optional

from loguru import logger

from core.dialogs import DialogState
from core.errors import PortalAPIError
from models.map_entities import Location, LocationType
from services.portal_client import PortalClient
from services.validation import validate_location_input

SEED_LOCATIONS = [
    {'id': 'seed-1', 'name': 'Casiguran Central School', 'latitude': 12.8728, 'longitude': 124.0092,
     'type': 'SCHOOL', 'description': 'Main educational institution in Casiguran'},
    {'id': 'seed-2', 'name': 'Casiguran Barangay Hall', 'latitude': 12.8735, 'longitude': 124.0088,
     'type': 'GOVERNMENT', 'description': 'Main government office and administrative center'},
    {'id': 'seed-3', 'name': 'Casiguran Health Center', 'latitude': 12.8720, 'longitude': 124.0095,
     'type': 'HEALTH', 'description': 'Primary healthcare facility for residents'},
    {'id': 'seed-4', 'name': 'Casiguran Public Market', 'latitude': 12.8740, 'longitude': 124.0085,
     'type': 'COMMERCIAL', 'description': 'Main marketplace for local commerce'},
    {'id': 'seed-5', 'name': 'Casiguran Municipal Hall', 'latitude': 12.8745, 'longitude': 124.0080,
     'type': 'GOVERNMENT', 'description': 'Municipal government office'},
    {'id': 'seed-6', 'name': 'Casiguran Basketball Court', 'latitude': 12.8725, 'longitude': 124.0090,
     'type': 'SPORTS', 'description': 'Community sports and recreation facility'},
]
SEED_ADDRESS = 'Casiguran, Sorsogon, Philippines'


class LocationStore:
    """Eventually-consistent copy of the backend's locations.

    Writes are never merged locally: a successful create reloads the full
    list. The only optimistic write is a drag reposition, which is kept on
    persistence failure and flagged as unsynced until a retry succeeds.
    """

    def __init__(self, client: PortalClient, dialogs: DialogState = None):
        self.client = client
        self.dialogs = dialogs or DialogState()
        self._lock = threading.Lock()
        self._locations: Dict[str, Location] = {}
        self._unsynced: Dict[str, str] = {}
        self.error: Optional[str] = None
        self.loading = False
        self.deleted: List[Location] = []

    @property
    def locations(self) -> List[Location]:
        with self._lock:
            return list(self._locations.values())

    def get(self, location_id: str) -> Optional[Location]:
        with self._lock:
            return self._locations.get(str(location_id))

    def find(self, key: str) -> Optional[Location]:
        """Look a location up by id, then by exact name."""
        location = self.get(key)
        if location is not None:
            return location
        return next((loc for loc in self.locations if loc.name == key), None)

    def _replace_all(self, locations: List[Location]) -> None:
        with self._lock:
            self._locations = {loc.id: loc for loc in locations}
            self._unsynced = {k: v for k, v in self._unsynced.items() if k in self._locations}

    def load(self) -> List[Location]:
        self.loading = True
        try:
            records = self.client.get_locations()
            self._replace_all([Location.from_api(r) for r in records])
            self.error = None
            logger.info(f"Loaded {len(records)} locations")
        except (PortalAPIError, TypeError, ValueError) as e:
            logger.warning(f"Failed to load locations ({e}), using seed locations")
            self.error = 'Failed to load locations'
            self._replace_all([Location.from_api({**seed, 'address': SEED_ADDRESS}) for seed in SEED_LOCATIONS])
        finally:
            self.loading = False
        return self.locations

    def create(self, name: str, location_type, latitude: float, longitude: float,
               description: Optional[str] = None, image: Optional[str] = None) -> List[str]:
        """Create a location. Returns validation errors; an empty list means created.

        Backend failures raise ``PortalAPIError`` and leave the cache untouched.
        """
        errors = validate_location_input(name, location_type, description, image)
        if errors:
            logger.info(f"Rejected location '{name}': {errors}")
            return errors

        payload = {
            'name': name.strip(),
            'description': (description or '').strip(),
            'latitude': latitude,
            'longitude': longitude,
            'type': LocationType.parse(location_type).value,
        }
        if image:
            payload['image'] = image

        self.client.create_location(payload)
        logger.success(f"Created location '{payload['name']}'")
        self.load()
        return []

    def reposition(self, location_id: str, latitude: float, longitude: float) -> bool:
        """Move a location locally at once, then persist the move."""
        with self._lock:
            location = self._locations.get(str(location_id))
            if location is None:
                logger.warning(f"Cannot reposition unknown location {location_id}")
                return False
            location.latitude, location.longitude = latitude, longitude
            self._unsynced[location.id] = 'pending'
        return self._persist_position(location)

    def _persist_position(self, location: Location) -> bool:
        try:
            self.client.update_location(location.id, {
                'latitude': location.latitude,
                'longitude': location.longitude,
            })
        except PortalAPIError as e:
            logger.error(f"Failed to persist position of {location.name}: {e}")
            with self._lock:
                self._unsynced[location.id] = e.message
            return False
        with self._lock:
            self._unsynced.pop(location.id, None)
        return True

    def is_unsynced(self, location_id: str) -> bool:
        with self._lock:
            return str(location_id) in self._unsynced

    @property
    def unsynced(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._unsynced)

    def retry_unsynced(self) -> List[str]:
        """Re-persist every unsynced location. Returns ids still unsynced."""
        for location_id in list(self.unsynced):
            location = self.get(location_id)
            if location is not None:
                self._persist_position(location)
        return list(self.unsynced)

    def remove(self, location_id: str) -> bool:
        """Ask for confirmation before deleting. Returns False for unknown ids."""
        location = self.get(location_id)
        if location is None:
            return False
        self.dialogs.ask(f'Delete "{location.name}"?', lambda: self._delete(location.id))
        return True

    def _delete(self, location_id: str) -> bool:
        try:
            self.client.delete_location(location_id)
        except PortalAPIError as e:
            self.dialogs.show_error(f'Failed to delete location: {e.message}')
            return False
        with self._lock:
            removed = self._locations.pop(location_id, None)
            self._unsynced.pop(location_id, None)
        if removed is not None:
            logger.info(f"Deleted location '{removed.name}'")
        return True

    def load_deleted(self) -> List[Location]:
        self.deleted = [Location.from_api(r) for r in self.client.get_deleted_locations()]
        return self.deleted

    def restore(self, location_id: str) -> List[Location]:
        self.client.restore_location(location_id)
        logger.info(f"Restored location {location_id}")
        self.deleted = [loc for loc in self.deleted if loc.id != str(location_id)]
        return self.load()

    def upload_image(self, filename: str, content: bytes, content_type: str) -> str:
        return self.client.upload_location_image(filename, content, content_type)
