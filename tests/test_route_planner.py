"""Unit tests for routing providers, fallback and route selection."""
import math
import threading

import pytest
import requests

from core.errors import RouteProviderError
from models.map_entities import Location, RouteInfo
from routing.geodesy import approximate_path, approximate_route, haversine_km, round_half_up
from routing.polyline import decode_polyline
from routing.providers import GoogleDirectionsProvider, GraphHopperProvider, OSRMProvider
from routing.route_planner import RoutePlanner, RouteSelection
from fakes import FakeResponse, FakeSession

START = (12.8700, 124.0050)
END = (12.8735, 124.0088)


class StubProvider:
    def __init__(self, name, route=None, error=None):
        self.name = name
        self.route = route
        self.error = error
        self.calls = 0

    def get_route(self, start, end):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.route


def _route(provider, driving=5):
    return RouteInfo(1.2, driving, driving * 3, [START, END], provider=provider)


class TestGeodesy:
    def test_haversine_is_symmetric(self):
        assert haversine_km(START, END) == pytest.approx(haversine_km(END, START))

    def test_haversine_zero(self):
        assert haversine_km(START, START) == 0

    def test_haversine_antipodal(self):
        assert haversine_km((0, 0), (0, 180)) == pytest.approx(math.pi * 6371.0)
        assert haversine_km((45.0, 10.0), (-45.0, -170.0)) == pytest.approx(math.pi * 6371.0)

    def test_haversine_known_distance(self):
        # One degree of longitude on the equator
        assert haversine_km((0, 0), (0, 1)) == pytest.approx(111.195, abs=0.01)

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2

    def test_approximate_path_shape(self):
        path = approximate_path(START, END)
        assert len(path) == 17
        assert path[0] == START
        assert path[-1] == END
        # Bowed off the straight line by at most the curve offset
        mid = path[8]
        assert mid[0] == pytest.approx((START[0] + END[0]) / 2 + 0.0001, abs=1e-5)

    def test_approximate_route_times(self):
        route = approximate_route(START, END)
        distance = haversine_km(START, END)
        assert route.approximate
        assert route.distance_km == round(distance, 1)
        assert route.driving_minutes == round_half_up(distance * 2.5)
        assert route.walking_minutes == route.driving_minutes * 3

    def test_approximate_route_same_point(self):
        route = approximate_route(START, START)
        assert route.distance_km == 0
        assert route.driving_minutes == 0
        assert route.route_path


class TestPolyline:
    def test_decode_reference_polyline(self):
        points = decode_polyline('_p~iF~ps|U_ulLnnqC_mqNvxq`@')
        assert points == [
            pytest.approx((38.5, -120.2)),
            pytest.approx((40.7, -120.95)),
            pytest.approx((43.252, -126.453)),
        ]

    def test_decode_empty(self):
        assert decode_polyline('') == []


class TestProviders:
    def test_osrm_swaps_coordinates(self):
        session = FakeSession([('GET', '/route/v1/driving/', FakeResponse(200, {
            'code': 'Ok',
            'routes': [{
                'distance': 1530.0,
                'duration': 272.0,
                'geometry': {'coordinates': [[124.0050, 12.8700], [124.0088, 12.8735]]},
            }],
        }))])
        route = OSRMProvider('http://osrm.test', session=session).get_route(START, END)

        assert route.route_path == [(12.8700, 124.0050), (12.8735, 124.0088)]
        assert route.distance_km == 1.5
        assert route.driving_minutes == 5
        assert route.walking_minutes == 15
        assert route.provider == 'osrm'
        url = session.calls[0][1]
        assert url == 'http://osrm.test/route/v1/driving/124.005,12.87;124.0088,12.8735'

    def test_osrm_no_route(self):
        session = FakeSession([('GET', '/route/', FakeResponse(200, {'code': 'NoRoute', 'routes': []}))])
        with pytest.raises(RouteProviderError):
            OSRMProvider('http://osrm.test', session=session).get_route(START, END)

    def test_osrm_http_error(self):
        session = FakeSession([('GET', '/route/', FakeResponse(503, {'message': 'busy'}))])
        with pytest.raises(RouteProviderError):
            OSRMProvider('http://osrm.test', session=session).get_route(START, END)

    @pytest.mark.parametrize('body', [[], 'Ok', 42])
    def test_non_object_json_is_a_provider_error(self, body):
        session = FakeSession([('GET', '/route/', FakeResponse(200, body))])
        with pytest.raises(RouteProviderError):
            OSRMProvider('http://osrm.test', session=session).get_route(START, END)

    def test_providers_without_key_skip_without_request(self):
        session = FakeSession()
        for provider in (GraphHopperProvider(api_key='', session=session),
                         GoogleDirectionsProvider(api_key='', session=session)):
            with pytest.raises(RouteProviderError):
                provider.get_route(START, END)
        assert session.calls == []

    def test_graphhopper_converts_milliseconds(self):
        session = FakeSession([('GET', 'graphhopper', FakeResponse(200, {
            'paths': [{'distance': 2000, 'time': 240000,
                       'points': {'coordinates': [[124.0050, 12.8700], [124.0088, 12.8735]]}}],
        }))])
        route = GraphHopperProvider('https://graphhopper.test/api/1/route', api_key='k',
                                    session=session).get_route(START, END)
        assert route.driving_minutes == 4
        assert route.route_path[0] == (12.8700, 124.0050)

    def test_google_decodes_overview_polyline(self):
        session = FakeSession([('GET', 'directions', FakeResponse(200, {
            'status': 'OK',
            'routes': [{
                'overview_polyline': {'points': '_p~iF~ps|U_ulLnnqC'},
                'legs': [{'distance': {'value': 3000}, 'duration': {'value': 600}}],
            }],
        }))])
        route = GoogleDirectionsProvider('https://maps.test/directions/json', api_key='k',
                                         session=session).get_route(START, END)
        assert route.route_path[0] == pytest.approx((38.5, -120.2))
        assert route.distance_km == 3.0
        assert route.driving_minutes == 10
        assert route.walking_minutes == 30


class TestRoutePlanner:
    def test_first_success_wins(self):
        first = StubProvider('osrm', route=_route('osrm'))
        second = StubProvider('graphhopper', route=_route('graphhopper'))
        route = RoutePlanner([first, second]).plan(START, END)
        assert route.provider == 'osrm'
        assert second.calls == 0

    def test_falls_through_failures(self):
        providers = [
            StubProvider('osrm', error=RouteProviderError('osrm', 'down')),
            StubProvider('graphhopper', route=RouteInfo(1.0, 3, 9, [], provider='graphhopper')),
            StubProvider('google', route=_route('google')),
        ]
        route = RoutePlanner(providers).plan(START, END)
        assert route.provider == 'google'

    def test_malformed_data_is_a_failure(self):
        providers = [StubProvider('osrm', error=KeyError('routes'))]
        route = RoutePlanner(providers).plan(START, END)
        assert route.approximate

    def test_unexpected_provider_error_is_a_failure(self):
        providers = [
            StubProvider('osrm', error=AttributeError("'list' object has no attribute 'get'")),
            StubProvider('graphhopper', route=None),
        ]
        route = RoutePlanner(providers).plan(START, END)
        assert route.approximate
        assert providers[1].calls == 1

    def test_all_providers_failing_gives_approximate_route(self):
        session = FakeSession([('GET', '/route/', requests.ConnectionError('offline'))])
        providers = [
            OSRMProvider('http://osrm.test', session=session),
            GraphHopperProvider(api_key='', session=session),
            GoogleDirectionsProvider(api_key='', session=session),
        ]
        route = RoutePlanner(providers).plan(START, END)
        assert route is not None
        assert route.approximate
        assert route.walking_minutes == 3 * route.driving_minutes
        assert len(route.route_path) == 17


class GatedPlanner(RoutePlanner):
    def __init__(self):
        super().__init__(providers=[])
        self.gates = {}
        self.entered = {}

    def gate(self, end):
        self.gates[end] = threading.Event()
        self.entered[end] = threading.Event()

    def plan(self, start, end):
        if end in self.gates:
            self.entered[end].set()
            self.gates[end].wait(timeout=5)
        return RouteInfo(1.0, 2, 6, [start, end], provider=f'to-{end[0]}')


class TestRouteSelection:
    def setup_method(self):
        self.a = Location('a', 'Far Hall', 12.90, 124.05, 'GOVERNMENT')
        self.b = Location('b', 'Near School', 12.871, 124.006, 'SCHOOL')

    def test_no_start_means_no_route(self):
        selection = RouteSelection(GatedPlanner())
        assert selection.select(self.a, None) is None
        assert selection.destination is self.a
        assert selection.route_info is None
        assert not selection.is_loading

    def test_select_publishes_route(self):
        selection = RouteSelection(GatedPlanner())
        route = selection.select(self.b, START)
        assert selection.route_info is route
        assert not selection.is_loading

    def test_list_body_from_osrm_still_yields_route(self):
        session = FakeSession([('GET', '/route/', FakeResponse(200, []))])
        selection = RouteSelection(RoutePlanner([OSRMProvider('http://osrm.test', session=session)]))
        route = selection.select(self.b, START)
        assert route.approximate
        assert selection.route_info is route
        assert not selection.is_loading

    def test_planner_crash_resets_loading(self):
        class CrashingPlanner(RoutePlanner):
            def plan(self, start, end):
                raise RuntimeError('planner down')

        selection = RouteSelection(CrashingPlanner(providers=[]))
        with pytest.raises(RuntimeError):
            selection.select(self.b, START)
        assert not selection.is_loading
        assert selection.route_info is None

    def test_last_request_wins(self):
        planner = GatedPlanner()
        planner.gate(self.a.position)
        selection = RouteSelection(planner)
        results = {}

        slow = threading.Thread(target=lambda: results.setdefault('a', selection.select(self.a, START)))
        slow.start()
        assert planner.entered[self.a.position].wait(timeout=5)

        results['b'] = selection.select(self.b, START)
        planner.gates[self.a.position].set()
        slow.join(timeout=5)

        assert results['a'] is None
        assert selection.destination is self.b
        assert selection.route_info is results['b']
        assert selection.route_info.route_path[-1] == self.b.position

    def test_clear_discards_in_flight_result(self):
        planner = GatedPlanner()
        planner.gate(self.a.position)
        selection = RouteSelection(planner)
        results = {}

        worker = threading.Thread(target=lambda: results.setdefault('a', selection.select(self.a, START)))
        worker.start()
        assert planner.entered[self.a.position].wait(timeout=5)
        selection.clear()
        planner.gates[self.a.position].set()
        worker.join(timeout=5)

        assert results['a'] is None
        assert selection.route_info is None
        assert selection.destination is None
