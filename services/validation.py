"""Validation rules for user-created locations."""
from typing import List, Optional

from models.map_entities import LocationType

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
IMAGE_PREFIXES = ('data:image/', 'http', '/uploads/')


def validate_location_input(name: Optional[str], location_type, description: Optional[str] = None,
                            image: Optional[str] = None) -> List[str]:
    """Return every violated rule as a human-readable message (empty when valid)."""
    errors = []

    trimmed = (name or '').strip()
    if not trimmed:
        errors.append('Location name is required')
    elif len(trimmed) < NAME_MIN_LENGTH:
        errors.append(f'Location name must be at least {NAME_MIN_LENGTH} characters long')
    elif len(trimmed) > NAME_MAX_LENGTH:
        errors.append(f'Location name must be less than {NAME_MAX_LENGTH} characters')

    if not location_type:
        errors.append('Location type is required')
    elif LocationType.parse(location_type) is None:
        allowed = ', '.join(t.value for t in LocationType)
        errors.append(f'Location type must be one of: {allowed}')

    if description and len(description.strip()) > DESCRIPTION_MAX_LENGTH:
        errors.append(f'Description must be less than {DESCRIPTION_MAX_LENGTH} characters')

    if image and not image.startswith(IMAGE_PREFIXES):
        errors.append('Invalid image format')

    return errors
