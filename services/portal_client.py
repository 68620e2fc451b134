"""REST client for the SK portal backend (locations, events, youth, uploads)."""
from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from configurations.config import Config
from core.errors import ImageUploadError, PortalAPIError


class PortalClient:
    def __init__(self, base_url: str = None, token: str = None,
                 session: requests.Session = None, timeout: int = None):
        self.base_url = (base_url or Config.PORTAL_API_BASE_URL).rstrip('/')
        self.token = Config.PORTAL_API_TOKEN if token is None else token
        self.timeout = timeout or Config.REQUEST_TIMEOUT_SECONDS
        self.session = session or requests.Session()
        self.session.headers.update({'accept': 'application/json'})
        if self.token:
            self.session.headers['Authorization'] = f'Bearer {self.token}'

        logger.info(f"PortalClient initialized with base URL: {self.base_url}")

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise PortalAPIError(str(e)) from e

        if response.status_code not in (200, 201, 204):
            message = self._error_message(response)
            logger.error(f"{method} {url} returned {response.status_code}: {message}")
            raise PortalAPIError(message, status_code=response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"{method} {url} returned a non-JSON body: {e}")
            raise PortalAPIError("Invalid JSON response", status_code=response.status_code) from e

    @staticmethod
    def _records(data: Any, what: str) -> List[Dict]:
        """A collection endpoint must answer with a list of objects."""
        if data is None:
            return []
        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise PortalAPIError(f"Invalid {what} response")
        return data

    @staticmethod
    def _error_message(response) -> str:
        """Prefer the backend's own ``error`` text over a generic message."""
        try:
            data = response.json()
            if isinstance(data, dict) and data.get('error'):
                return str(data['error'])
        except ValueError:
            pass
        return f"Request failed with status {response.status_code}"

    # Locations

    def get_locations(self) -> List[Dict]:
        return self._records(self._request('GET', '/api/locations'), 'locations')

    def get_location(self, location_id: str) -> Dict:
        return self._request('GET', f'/api/locations/{location_id}')

    def create_location(self, payload: Dict[str, Any]) -> Dict:
        return self._request('POST', '/api/locations', json=payload)

    def update_location(self, location_id: str, payload: Dict[str, Any]) -> Dict:
        return self._request('PUT', f'/api/locations/{location_id}', json=payload)

    def delete_location(self, location_id: str) -> Optional[Dict]:
        return self._request('DELETE', f'/api/locations/{location_id}')

    def get_deleted_locations(self) -> List[Dict]:
        return self._records(self._request('GET', '/api/locations/deleted'), 'deleted locations')

    def restore_location(self, location_id: str) -> Dict:
        return self._request('PATCH', '/api/locations/deleted', json={'id': location_id})

    # Overlays

    def get_events(self) -> List[Dict]:
        data = self._request('GET', '/api/events')
        if isinstance(data, dict):
            data = data.get('events')
        return self._records(data, 'events')

    def get_youth(self) -> List[Dict]:
        return self._records(self._request('GET', '/api/youth'), 'youth')

    # Uploads

    def upload_location_image(self, filename: str, content: bytes, content_type: str) -> str:
        """Upload an image and return its URL."""
        if not content_type or not content_type.startswith('image/'):
            raise ImageUploadError('Please select a valid image file (JPEG, PNG, GIF, etc.)')
        if len(content) > Config.MAX_IMAGE_SIZE_MB * 1024 * 1024:
            raise ImageUploadError(f'File size must be less than {Config.MAX_IMAGE_SIZE_MB}MB')

        data = self._request(
            'POST', Config.UPLOAD_PATH,
            files={'file': (filename, content, content_type)},
        )
        if not isinstance(data, dict) or not data.get('url'):
            raise PortalAPIError('No URL returned from upload')
        logger.info(f"Uploaded location image {filename} -> {data['url']}")
        return data['url']
