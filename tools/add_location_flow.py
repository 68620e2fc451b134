"""Right-click "add location" flow."""
from enum import Enum
from typing import List, Optional

from loguru import logger

from core.dialogs import DialogState
from core.errors import ImageUploadError, PortalAPIError
from models.map_entities import LatLng, LocationType
from services.location_store import LocationStore


class AddFlowState(str, Enum):
    IDLE = 'idle'
    POSITIONED = 'positioned'
    FORM_OPEN = 'form_open'
    CREATING = 'creating'


class AddLocationFlow:
    """idle -> positioned -> form_open -> creating -> idle, with cancel at any step."""

    def __init__(self, store: LocationStore, dialogs: DialogState):
        self.store = store
        self.dialogs = dialogs
        self.state = AddFlowState.IDLE
        self.position: Optional[LatLng] = None
        self.errors: List[str] = []
        self.image: Optional[str] = None
        self.default_type = LocationType.SCHOOL

    @property
    def temp_marker(self) -> Optional[LatLng]:
        return self.position if self.state != AddFlowState.IDLE else None

    def right_click(self, latitude: float, longitude: float) -> None:
        self.position = (latitude, longitude)
        self.errors = []
        self.image = None
        self.state = AddFlowState.POSITIONED
        self.open_form()

    def open_form(self) -> None:
        if self.state == AddFlowState.POSITIONED:
            self.state = AddFlowState.FORM_OPEN

    def attach_image(self, filename: str, content: bytes, content_type: str) -> Optional[str]:
        try:
            self.image = self.store.upload_image(filename, content, content_type)
        except (ImageUploadError, PortalAPIError) as e:
            self.dialogs.show_error(f'Failed to upload image: {e}')
            self.image = None
        return self.image

    def submit(self, name: str, location_type=None, description: Optional[str] = None,
               image: Optional[str] = None) -> bool:
        if self.state != AddFlowState.FORM_OPEN:
            logger.warning(f"Ignoring submit in state {self.state.value}")
            return False
        if self.position is None:
            self.dialogs.show_error('Location position is required. Please click on the map to set a position.')
            return False

        self.state = AddFlowState.CREATING
        try:
            errors = self.store.create(
                name,
                self.default_type if location_type is None else location_type,
                self.position[0], self.position[1],
                description=description,
                image=image or self.image,
            )
        except PortalAPIError as e:
            self.state = AddFlowState.FORM_OPEN
            self.dialogs.show_error(f'Failed to create location: {e.message}')
            return False

        if errors:
            self.state = AddFlowState.FORM_OPEN
            self.errors = errors
            self.dialogs.show_error('Please fix the following errors:\n' + '\n'.join(errors))
            return False

        self._reset()
        self.dialogs.show_success('Location created successfully!')
        return True

    def cancel(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self.state = AddFlowState.IDLE
        self.position = None
        self.errors = []
        self.image = None
