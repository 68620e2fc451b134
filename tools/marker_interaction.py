"""Edit mode, marker drag lifecycle and the trash-zone drop target."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from loguru import logger

from configurations.config import Config
from core.dialogs import DialogState
from core.viewport import MapViewport
from models.map_entities import Location
from services.location_store import LocationStore


@dataclass(frozen=True)
class TrashZone:
    """Square drop target inset from the bottom-right corner of the map."""
    size: int = Config.TRASH_ZONE_SIZE_PX
    margin: int = Config.TRASH_ZONE_MARGIN_PX

    def region(self, width: float, height: float) -> Tuple[float, float, float, float]:
        right = width - self.margin
        bottom = height - self.margin
        return (right - self.size, bottom - self.size, right, bottom)

    def contains(self, point: Tuple[float, float], width: float, height: float) -> bool:
        left, top, right, bottom = self.region(width, height)
        return left <= point[0] <= right and top <= point[1] <= bottom


class DragOutcome(str, Enum):
    MOVED = 'moved'
    MOVE_UNSYNCED = 'move_unsynced'
    DELETE_REQUESTED = 'delete_requested'
    IGNORED = 'ignored'


class MarkerInteraction:
    def __init__(self, store: LocationStore, viewport: MapViewport, dialogs: DialogState,
                 trash_zone: TrashZone = None):
        self.store = store
        self.viewport = viewport
        self.dialogs = dialogs
        self.trash_zone = trash_zone or TrashZone()
        self.edit_mode = False
        self.dragging: Optional[Location] = None

    @property
    def trash_visible(self) -> bool:
        return self.edit_mode and self.dragging is not None

    @property
    def markers_draggable(self) -> bool:
        return self.edit_mode

    def set_edit_mode(self, enabled: bool) -> None:
        self.edit_mode = bool(enabled)
        if not self.edit_mode:
            self.dragging = None
        logger.info(f"Edit mode {'on' if self.edit_mode else 'off'}")

    def toggle_edit_mode(self) -> bool:
        self.set_edit_mode(not self.edit_mode)
        return self.edit_mode

    def drag_start(self, location_id: str) -> bool:
        if not self.edit_mode:
            return False
        location = self.store.get(location_id)
        if location is None:
            return False
        self.dragging = location
        return True

    def drag_end(self, location_id: str, latitude: float, longitude: float) -> DragOutcome:
        """Finish a drag: a drop inside the trash zone asks to delete, anything else moves."""
        if not self.edit_mode:
            return DragOutcome.IGNORED
        if self.dragging is None or self.dragging.id != str(location_id):
            # dragend without dragstart still counts, as long as the location exists
            if self.store.get(location_id) is None:
                return DragOutcome.IGNORED
        self.dragging = None

        point = self.viewport.latlng_to_container_point((latitude, longitude))
        if self.trash_zone.contains(point, self.viewport.width, self.viewport.height):
            logger.info(f"Location {location_id} dropped on trash zone at {point}")
            self.store.remove(location_id)
            return DragOutcome.DELETE_REQUESTED

        if self.store.reposition(location_id, latitude, longitude):
            return DragOutcome.MOVED
        self.dialogs.show_error('Failed to save location changes')
        return DragOutcome.MOVE_UNSYNCED
