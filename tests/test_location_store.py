"""Unit tests for the portal client, validation and the location store."""
import pytest
import requests

from core.dialogs import DialogState
from core.errors import ImageUploadError, PortalAPIError
from services.location_store import SEED_LOCATIONS, LocationStore
from services.portal_client import PortalClient
from services.validation import validate_location_input
from fakes import SAMPLE_LOCATIONS, FakePortalClient, FakeResponse, FakeSession


class TestValidation:
    def test_valid_input_has_no_errors(self):
        assert validate_location_input('Barangay Hall', 'GOVERNMENT') == []

    def test_short_name(self):
        assert validate_location_input('Ab', 'SCHOOL') == ['Location name must be at least 3 characters long']

    def test_every_violation_is_reported(self):
        errors = validate_location_input('', 'CASTLE', 'x' * 501, 'ftp://image.png')
        assert errors == [
            'Location name is required',
            'Location type must be one of: SCHOOL, GOVERNMENT, HEALTH, COMMERCIAL, SPORTS, '
            'RELIGIOUS, EMERGENCY, RESIDENTIAL, RECREATION, GYMNASIUM',
            'Description must be less than 500 characters',
            'Invalid image format',
        ]

    def test_name_length_bounds(self):
        assert validate_location_input('a' * 100, 'SCHOOL') == []
        assert validate_location_input('a' * 101, 'SCHOOL') == ['Location name must be less than 100 characters']

    def test_type_is_case_insensitive(self):
        assert validate_location_input('Plaza', 'recreation') == []

    def test_missing_type(self):
        assert validate_location_input('Plaza', '') == ['Location type is required']

    @pytest.mark.parametrize('image', ['data:image/png;base64,AAA', 'https://cdn/x.png', '/uploads/a.jpg'])
    def test_accepted_image_forms(self, image):
        assert validate_location_input('Plaza', 'SCHOOL', image=image) == []


class TestPortalClient:
    def setup_method(self):
        self.session = FakeSession()
        self.client = PortalClient(base_url='http://portal.test/', token='secret', session=self.session)

    def test_bearer_header(self):
        assert self.session.headers['Authorization'] == 'Bearer secret'

    def test_events_are_unwrapped(self):
        self.session.add('GET', '/api/events', FakeResponse(200, {'events': [{'id': 1}]}))
        assert self.client.get_events() == [{'id': 1}]

    def test_backend_error_text_is_kept(self):
        self.session.add('POST', '/api/locations', FakeResponse(400, {'error': 'Name taken'}))
        with pytest.raises(PortalAPIError) as exc:
            self.client.create_location({'name': 'x'})
        assert exc.value.message == 'Name taken'
        assert exc.value.status_code == 400

    def test_network_failure_becomes_portal_error(self):
        self.session.add('GET', '/api/locations', requests.ConnectionError('refused'))
        with pytest.raises(PortalAPIError):
            self.client.get_locations()

    def test_non_json_body_becomes_portal_error(self):
        self.session.add('GET', '/api/youth', FakeResponse(200, text='<html>login</html>'))
        with pytest.raises(PortalAPIError) as exc:
            self.client.get_youth()
        assert exc.value.message == 'Invalid JSON response'
        assert exc.value.status_code == 200

    def test_restore_patches_deleted_collection(self):
        self.session.add('PATCH', '/api/locations/deleted', FakeResponse(200, {'id': '7'}))
        self.client.restore_location('7')
        method, url, kwargs = self.session.calls[-1]
        assert url == 'http://portal.test/api/locations/deleted'
        assert kwargs['json'] == {'id': '7'}

    def test_delete_with_no_content(self):
        self.session.add('DELETE', '/api/locations/3', FakeResponse(204))
        assert self.client.delete_location('3') is None

    def test_upload_rejects_non_images_without_request(self):
        with pytest.raises(ImageUploadError):
            self.client.upload_location_image('notes.txt', b'hello', 'text/plain')
        assert self.session.calls == []

    def test_upload_rejects_large_files(self):
        with pytest.raises(ImageUploadError):
            self.client.upload_location_image('big.png', b'0' * (5 * 1024 * 1024 + 1), 'image/png')
        assert self.session.calls == []

    def test_upload_returns_url(self):
        self.session.add('POST', '/api/upload/location-image', FakeResponse(200, {'url': '/uploads/a.png'}))
        assert self.client.upload_location_image('a.png', b'png', 'image/png') == '/uploads/a.png'
        assert 'files' in self.session.calls[-1][2]


class TestLocationStore:
    def setup_method(self):
        self.client = FakePortalClient(SAMPLE_LOCATIONS)
        self.dialogs = DialogState()
        self.store = LocationStore(self.client, self.dialogs)
        self.store.load()

    def test_load_normalizes_types(self):
        assert self.store.get('2').type == 'GOVERNMENT'
        assert len(self.store.locations) == 3
        assert self.store.error is None

    def test_load_failure_falls_back_to_seeds(self):
        self.client.fail.add('get_locations')
        locations = self.store.load()
        assert self.store.error == 'Failed to load locations'
        assert [loc.id for loc in locations] == [seed['id'] for seed in SEED_LOCATIONS]
        assert all(loc.address == 'Casiguran, Sorsogon, Philippines' for loc in locations)

    @pytest.mark.parametrize('response', [
        FakeResponse(200, text='<html>login</html>'),
        FakeResponse(200, {'error': 'not a list'}),
        FakeResponse(200, ['not-a-record']),
    ])
    def test_unusable_body_falls_back_to_seeds(self, response):
        session = FakeSession([('GET', '/api/locations', response)])
        store = LocationStore(PortalClient(base_url='http://portal.test', session=session), DialogState())
        locations = store.load()
        assert store.error == 'Failed to load locations'
        assert len(locations) == len(SEED_LOCATIONS)

    def test_valid_create_makes_one_backend_call_and_reloads(self):
        errors = self.store.create('Barangay Hall', 'GOVERNMENT', 12.87, 124.0)
        assert errors == []
        assert len(self.client.calls_to('create_location')) == 1
        assert self.client.calls_to('create_location')[0][1]['type'] == 'GOVERNMENT'
        assert any(loc.name == 'Barangay Hall' for loc in self.store.locations)

    def test_invalid_create_makes_no_backend_call(self):
        errors = self.store.create('Ab', 'SCHOOL', 12.87, 124.0)
        assert errors == ['Location name must be at least 3 characters long']
        assert self.client.calls_to('create_location') == []

    def test_create_failure_raises_and_keeps_cache(self):
        self.client.fail.add('create_location')
        with pytest.raises(PortalAPIError):
            self.store.create('New Plaza', 'RECREATION', 12.87, 124.0)
        assert len(self.store.locations) == 3

    def test_find_by_id_or_name(self):
        assert self.store.find('3').name == 'Casiguran Health Center'
        assert self.store.find('Casiguran Barangay Hall').id == '2'
        assert self.store.find('casiguran barangay hall') is None

    def test_reposition_persists(self):
        assert self.store.reposition('1', 12.9, 124.1)
        assert self.store.get('1').position == (12.9, 124.1)
        assert not self.store.is_unsynced('1')

    def test_failed_reposition_stays_unsynced_until_retry(self):
        self.client.fail.add('update_location')
        assert not self.store.reposition('1', 12.9, 124.1)
        assert self.store.get('1').position == (12.9, 124.1)
        assert self.store.unsynced == {'1': 'update_location failed'}

        assert self.store.retry_unsynced() == ['1']
        self.client.fail.clear()
        assert self.store.retry_unsynced() == []
        assert self.client.records['1']['latitude'] == 12.9

    def test_remove_waits_for_confirmation(self):
        assert self.store.remove('1')
        assert self.client.calls_to('delete_location') == []
        assert self.dialogs.pending.message == 'Delete "Casiguran Central School"?'

        assert self.dialogs.confirm() is True
        assert self.store.get('1') is None

    def test_cancelled_remove_keeps_location(self):
        self.store.remove('1')
        self.dialogs.cancel()
        assert self.dialogs.confirm() is None
        assert self.store.get('1') is not None

    def test_failed_delete_keeps_location(self):
        self.client.fail.add('delete_location')
        self.store.remove('1')
        assert self.dialogs.confirm() is False
        assert self.store.get('1') is not None
        assert self.dialogs.current.message == 'Failed to delete location: delete_location failed'

    def test_remove_unknown(self):
        assert not self.store.remove('missing')
        assert self.dialogs.pending is None

    def test_restore_deleted(self):
        self.store.remove('2')
        self.dialogs.confirm()
        assert [loc.id for loc in self.store.load_deleted()] == ['2']
        self.store.restore('2')
        assert self.store.get('2') is not None
        assert self.store.deleted == []
