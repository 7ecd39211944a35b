"""Tests for the Supabase client wrapper"""
from unittest.mock import MagicMock, patch

import pytest
import requests

from saas_admin.exceptions import AuthenticationError, ConfigurationError, SupabaseAPIError
from saas_admin.supabase import SupabaseClient

BASE = 'https://example.supabase.co'


def make_response(status_code=200, payload=None, text=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = 'Bad Request' if status_code >= 400 else 'OK'
    if payload is None and text is None:
        response.content = b''
        response.text = ''
        response.json.side_effect = ValueError('No JSON')
    elif payload is None:
        response.content = text.encode()
        response.text = text
        response.json.side_effect = ValueError('No JSON')
    else:
        response.content = b'{}'
        response.text = str(payload)
        response.json.return_value = payload
    return response


@pytest.fixture
def mock_request():
    with patch('saas_admin.supabase.requests.request') as request:
        yield request


class TestConfiguration:
    def test_configured_from_settings(self):
        client = SupabaseClient()
        assert client.is_configured()
        assert client.rest_url == f'{BASE}/rest/v1'
        assert client.auth_url == f'{BASE}/auth/v1'

    def test_not_configured_without_key(self, settings):
        settings.SAAS_ADMIN = {'SUPABASE_URL': BASE}
        client = SupabaseClient()
        assert not client.is_configured()
        with pytest.raises(ConfigurationError):
            client.select('users')

    def test_anon_key_is_bearer_without_session(self):
        headers = SupabaseClient().headers
        assert headers['apikey'] == 'anon-key'
        assert headers['Authorization'] == 'Bearer anon-key'

    def test_access_token_is_bearer_with_session(self):
        headers = SupabaseClient(access_token='user-jwt').headers
        assert headers['apikey'] == 'anon-key'
        assert headers['Authorization'] == 'Bearer user-jwt'

    def test_schema_profile_headers(self, settings):
        settings.SAAS_ADMIN = {'SUPABASE_URL': BASE, 'ANON_KEY': 'anon-key', 'SCHEMA': 'admin'}
        headers = SupabaseClient().headers
        assert headers['Accept-Profile'] == 'admin'
        assert headers['Content-Profile'] == 'admin'


class TestTables:
    def test_select_builds_postgrest_query(self, mock_request):
        mock_request.return_value = make_response(payload=[{'id': 1}])

        rows = SupabaseClient().select('notifications', filters={'channel': 'eq.sms'}, order='sent_at.desc')

        assert rows == [{'id': 1}]
        args, kwargs = mock_request.call_args
        assert args == ('GET', f'{BASE}/rest/v1/notifications')
        assert kwargs['params'] == {'select': '*', 'channel': 'eq.sms', 'order': 'sent_at.desc'}
        assert kwargs['timeout'] == 30

    def test_select_limit(self, mock_request):
        mock_request.return_value = make_response(payload=[])
        SupabaseClient().select('users', columns='id', limit=1)
        assert mock_request.call_args.kwargs['params'] == {'select': 'id', 'limit': '1'}

    def test_insert_returns_stored_row(self, mock_request):
        mock_request.return_value = make_response(201, payload=[{'id': 7, 'name': 'Acme Org'}])

        row = SupabaseClient().insert('organizations', {'name': 'Acme Org'})

        assert row == {'id': 7, 'name': 'Acme Org'}
        args, kwargs = mock_request.call_args
        assert args[0] == 'POST'
        assert kwargs['json'] == [{'name': 'Acme Org'}]

    def test_update_targets_one_id(self, mock_request):
        mock_request.return_value = make_response(payload=[{'id': 5, 'name': 'SuperAdmin'}])

        row = SupabaseClient().update('roles', 5, {'name': 'SuperAdmin'})

        assert row['name'] == 'SuperAdmin'
        args, kwargs = mock_request.call_args
        assert args == ('PATCH', f'{BASE}/rest/v1/roles')
        assert kwargs['params'] == {'id': 'eq.5'}
        assert kwargs['json'] == {'name': 'SuperAdmin'}

    def test_update_without_matching_row(self, mock_request):
        mock_request.return_value = make_response(payload=[])
        assert SupabaseClient().update('roles', 404, {'name': 'x'}) == {}

    def test_delete_handles_empty_body(self, mock_request):
        mock_request.return_value = make_response(204)

        assert SupabaseClient().delete('roles', 5) is None
        args, kwargs = mock_request.call_args
        assert args[0] == 'DELETE'
        assert kwargs['params'] == {'id': 'eq.5'}

    def test_upsert_merges_on_conflict(self, mock_request):
        mock_request.return_value = make_response(201, payload=[{'id': 'u1', 'email': 'a@b.co'}])

        SupabaseClient().upsert('users', {'email': 'a@b.co'}, on_conflict='email')

        kwargs = mock_request.call_args.kwargs
        assert kwargs['params'] == {'on_conflict': 'email'}
        assert 'resolution=merge-duplicates' in kwargs['headers']['Prefer']


class TestErrors:
    def test_error_message_from_body(self, mock_request):
        mock_request.return_value = make_response(409, payload={'message': 'duplicate key value'})

        with pytest.raises(SupabaseAPIError) as exc_info:
            SupabaseClient().insert('roles', {'name': 'Admin'})

        assert exc_info.value.message == 'duplicate key value'
        assert exc_info.value.status_code == 409

    def test_gotrue_error_description(self, mock_request):
        mock_request.return_value = make_response(400, payload={'error': 'invalid_grant',
                                                               'error_description': 'Invalid login credentials'})

        with pytest.raises(SupabaseAPIError) as exc_info:
            SupabaseClient().sign_in_with_password('a@b.co', 'wrong')

        assert exc_info.value.message == 'Invalid login credentials'

    def test_plain_text_error(self, mock_request):
        mock_request.return_value = make_response(500, text='upstream exploded')

        with pytest.raises(SupabaseAPIError) as exc_info:
            SupabaseClient().select('users')

        assert exc_info.value.message == 'upstream exploded'

    @pytest.mark.parametrize('status_code', [401, 403])
    def test_auth_failures(self, mock_request, status_code):
        mock_request.return_value = make_response(status_code, payload={'message': 'JWT expired'})

        with pytest.raises(AuthenticationError):
            SupabaseClient(access_token='old').select('users')

    def test_network_failure(self, mock_request):
        mock_request.side_effect = requests.exceptions.ConnectionError('connection refused')

        with pytest.raises(SupabaseAPIError) as exc_info:
            SupabaseClient().select('users')

        assert 'API request failed' in str(exc_info.value)
        assert exc_info.value.status_code is None


class TestAuth:
    def test_sign_in_with_password(self, mock_request):
        session = {'access_token': 'a', 'refresh_token': 'r', 'user': {'id': 'u1'}}
        mock_request.return_value = make_response(payload=session)

        assert SupabaseClient().sign_in_with_password('a@b.co', 'pw') == session
        args, kwargs = mock_request.call_args
        assert args == ('POST', f'{BASE}/auth/v1/token')
        assert kwargs['params'] == {'grant_type': 'password'}
        assert kwargs['json'] == {'email': 'a@b.co', 'password': 'pw'}

    def test_refresh_session(self, mock_request):
        mock_request.return_value = make_response(payload={'access_token': 'new'})

        SupabaseClient().refresh_session('r1')

        kwargs = mock_request.call_args.kwargs
        assert kwargs['params'] == {'grant_type': 'refresh_token'}
        assert kwargs['json'] == {'refresh_token': 'r1'}

    def test_sign_up(self, mock_request):
        mock_request.return_value = make_response(payload={'id': 'u2'})
        SupabaseClient().sign_up('new@b.co', 'pw')
        assert mock_request.call_args.args == ('POST', f'{BASE}/auth/v1/signup')

    def test_get_user_requires_token(self, mock_request):
        with pytest.raises(AuthenticationError):
            SupabaseClient().get_user()
        mock_request.assert_not_called()

    def test_get_user(self, mock_request):
        mock_request.return_value = make_response(payload={'id': 'u1', 'email': 'a@b.co'})

        user = SupabaseClient(access_token='jwt').get_user()

        assert user['id'] == 'u1'
        assert mock_request.call_args.kwargs['headers']['Authorization'] == 'Bearer jwt'

    def test_sign_out_without_session_is_a_no_op(self, mock_request):
        SupabaseClient().sign_out()
        mock_request.assert_not_called()

    def test_sign_out(self, mock_request):
        mock_request.return_value = make_response(204)
        SupabaseClient(access_token='jwt').sign_out()
        assert mock_request.call_args.args == ('POST', f'{BASE}/auth/v1/logout')
