"""External road-routing providers, each optional and independently faultable."""
from typing import Dict, List

import requests
from loguru import logger

from configurations.config import Config
from core.errors import RouteProviderError
from models.map_entities import LatLng, RouteInfo
from routing.geodesy import build_route_info
from routing.polyline import decode_polyline


class RouteProvider:
    name = 'provider'

    def __init__(self, session: requests.Session = None, timeout: int = None):
        self.session = session or requests.Session()
        self.timeout = timeout or Config.ROUTING_TIMEOUT_SECONDS

    def get_route(self, start: LatLng, end: LatLng) -> RouteInfo:
        """Return a route or raise ``RouteProviderError``."""
        raise NotImplementedError

    def _get_json(self, url: str, params: Dict = None) -> Dict:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise RouteProviderError(self.name, f"request failed: {e}") from e
        except ValueError as e:
            raise RouteProviderError(self.name, f"invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise RouteProviderError(self.name, f"expected a JSON object, got {type(data).__name__}")
        return data


class OSRMProvider(RouteProvider):
    name = 'osrm'

    def __init__(self, base_url: str = None, **kwargs):
        super().__init__(**kwargs)
        self.base_url = (base_url or Config.OSRM_URL).rstrip('/')

    def get_route(self, start: LatLng, end: LatLng) -> RouteInfo:
        # OSRM takes lon,lat
        url = f"{self.base_url}/route/v1/driving/{start[1]},{start[0]};{end[1]},{end[0]}"
        params = {
            'overview': 'full',
            'geometries': 'geojson',
            'steps': 'true',
        }
        data = self._get_json(url, params)
        if data.get('code', 'Ok') != 'Ok' or not data.get('routes'):
            raise RouteProviderError(self.name, data.get('message', 'No route found'))

        route = data['routes'][0]
        path = [(coord[1], coord[0]) for coord in route['geometry']['coordinates']]
        return build_route_info(route['distance'], route['duration'], path, self.name)


class GraphHopperProvider(RouteProvider):
    name = 'graphhopper'

    def __init__(self, url: str = None, api_key: str = None, **kwargs):
        super().__init__(**kwargs)
        self.url = url or Config.GRAPHHOPPER_URL
        self.api_key = Config.GRAPHHOPPER_API_KEY if api_key is None else api_key

    def get_route(self, start: LatLng, end: LatLng) -> RouteInfo:
        if not self.api_key:
            raise RouteProviderError(self.name, 'no API key configured')
        params = [
            ('point', f"{start[0]},{start[1]}"),
            ('point', f"{end[0]},{end[1]}"),
            ('vehicle', 'car'),
            ('key', self.api_key),
            ('instructions', 'false'),
            ('calc_points', 'true'),
            ('points_encoded', 'false'),
        ]
        data = self._get_json(self.url, params)
        if not data.get('paths'):
            raise RouteProviderError(self.name, 'No route found')

        path_data = data['paths'][0]
        # Unencoded points come back as GeoJSON lon,lat
        path = [(coord[1], coord[0]) for coord in path_data['points']['coordinates']]
        return build_route_info(path_data['distance'], path_data['time'] / 1000, path, self.name)


class GoogleDirectionsProvider(RouteProvider):
    name = 'google'

    def __init__(self, url: str = None, api_key: str = None, **kwargs):
        super().__init__(**kwargs)
        self.url = url or Config.GOOGLE_DIRECTIONS_URL
        self.api_key = Config.GOOGLE_MAPS_API_KEY if api_key is None else api_key

    def get_route(self, start: LatLng, end: LatLng) -> RouteInfo:
        if not self.api_key:
            raise RouteProviderError(self.name, 'no API key configured')
        params = {
            'origin': f"{start[0]},{start[1]}",
            'destination': f"{end[0]},{end[1]}",
            'key': self.api_key,
        }
        data = self._get_json(self.url, params)
        if not data.get('routes'):
            raise RouteProviderError(self.name, data.get('status', 'No route found'))

        route = data['routes'][0]
        leg = route['legs'][0]
        path = decode_polyline(route['overview_polyline']['points'])
        return build_route_info(leg['distance']['value'], leg['duration']['value'], path, self.name)


def default_providers(session: requests.Session = None) -> List[RouteProvider]:
    """Primary, secondary and tertiary providers in fallback order."""
    return [
        OSRMProvider(session=session),
        GraphHopperProvider(session=session),
        GoogleDirectionsProvider(session=session),
    ]
