"""In-memory stand-ins for HTTP sessions and the portal client."""
import json

import requests

from core.errors import PortalAPIError


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, text=None):
        self.status_code = status_code
        self._json = json_data
        if text is None:
            text = json.dumps(json_data) if json_data is not None else ''
        self.text = text
        self.content = text.encode('utf-8')

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class FakeSession:
    """Answers requests from a list of (method, url fragment, response) rules.

    A response may be an exception instance, which is raised instead.
    """

    def __init__(self, rules=None):
        self.rules = list(rules or [])
        self.headers = {}
        self.calls = []

    def add(self, method, fragment, response):
        self.rules.append((method, fragment, response))

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        for rule_method, fragment, response in self.rules:
            if rule_method == method and fragment in url:
                if isinstance(response, Exception):
                    raise response
                return response
        return FakeResponse(404, {'error': 'Not found'})

    def get(self, url, **kwargs):
        return self.request('GET', url, **kwargs)


class FakePortalClient:
    """Portal client backed by a dict; every backend call is recorded."""

    def __init__(self, locations=None, events=None, youth=None):
        self.records = {str(r['id']): dict(r) for r in (locations or [])}
        self.deleted = {}
        self.events = list(events or [])
        self.youth = list(youth or [])
        self.calls = []
        self.fail = set()
        self._next_id = 100

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail:
            raise PortalAPIError(f'{name} failed', status_code=500)

    def calls_to(self, name):
        return [c for c in self.calls if c[0] == name]

    def get_locations(self):
        self._call('get_locations')
        return list(self.records.values())

    def create_location(self, payload):
        self._call('create_location', payload)
        self._next_id += 1
        record = {'id': str(self._next_id), **payload}
        self.records[record['id']] = record
        return record

    def update_location(self, location_id, payload):
        self._call('update_location', location_id, payload)
        self.records[location_id].update(payload)
        return self.records[location_id]

    def delete_location(self, location_id):
        self._call('delete_location', location_id)
        self.deleted[location_id] = self.records.pop(location_id)

    def get_deleted_locations(self):
        self._call('get_deleted_locations')
        return list(self.deleted.values())

    def restore_location(self, location_id):
        self._call('restore_location', location_id)
        self.records[location_id] = self.deleted.pop(location_id)
        return self.records[location_id]

    def get_events(self):
        self._call('get_events')
        return list(self.events)

    def get_youth(self):
        self._call('get_youth')
        return list(self.youth)

    def upload_location_image(self, filename, content, content_type):
        self._call('upload_location_image', filename)
        return f'/uploads/locations/{filename}'


SAMPLE_LOCATIONS = [
    {'id': '1', 'name': 'Casiguran Central School', 'latitude': 12.8728, 'longitude': 124.0092,
     'type': 'SCHOOL', 'description': 'Main school'},
    {'id': '2', 'name': 'Casiguran Barangay Hall', 'latitude': 12.8735, 'longitude': 124.0088,
     'type': 'government'},
    {'id': '3', 'name': 'Casiguran Health Center', 'latitude': 12.8720, 'longitude': 124.0095,
     'type': 'HEALTH'},
]

SAMPLE_EVENTS = [
    {'id': 'e1', 'title': 'Clean-up Drive', 'dateTime': '2025-01-06T14:30:00Z',
     'venue': 'Casiguran Central School', 'status': 'ACTIVE', 'maxParticipants': 50},
    {'id': 'e2', 'title': 'Sports Fest', 'dateTime': '2025-02-10T08:00:00Z',
     'venue': 'Somewhere Else', 'status': 'PLANNED', 'locationId': '3'},
    {'id': 'e3', 'title': 'Assembly', 'dateTime': '2025-03-01T09:00:00Z',
     'venue': 'casiguran central school', 'status': 'PLANNED'},
]
