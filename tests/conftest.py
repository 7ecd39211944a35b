"""
Shared fixtures.

``FakeBackend`` stands in for the Supabase project behind ``SupabaseClient``:
tables are in-memory lists of rows and auth is a dict of accounts and
issued tokens.
"""
import copy
import itertools
from collections import defaultdict
from unittest.mock import patch

import pytest
from django.core.cache import cache

from saas_admin.exceptions import AuthenticationError, SupabaseAPIError

ADMIN_EMAIL = 'admin@example.com'
ADMIN_PASSWORD = 'correct-horse'


class FakeBackend:
    def __init__(self):
        self.tables = defaultdict(list)
        self.accounts = {}
        self.tokens = {}
        self.refresh_tokens = {}
        self.calls = []
        self.failures = {}
        self._ids = itertools.count(1000)
        self._token_ids = itertools.count(1)

    def seed(self, table, rows):
        self.tables[table].extend(copy.deepcopy(rows))

    def rows(self, table):
        return self.tables[table]

    def add_account(self, email, password, user_id='auth-user-1'):
        self.accounts[email] = {'password': password, 'user': {'id': user_id, 'email': email}}

    def fail_next(self, method, message, status_code=400):
        self.failures[method] = SupabaseAPIError(message, status_code=status_code)

    def calls_to(self, method):
        return [call for call in self.calls if call[0] == method]

    def issue_session(self, user):
        n = next(self._token_ids)
        access, refresh = f'access-{n}', f'refresh-{n}'
        self.tokens[access] = user
        self.refresh_tokens[refresh] = user
        return {'access_token': access, 'refresh_token': refresh, 'user': user}

    def client(self, access_token=None):
        return FakeSupabaseClient(self, access_token)


class FakeSupabaseClient:
    def __init__(self, backend, access_token=None):
        self.backend = backend
        self.access_token = access_token

    def is_configured(self):
        return True

    def _record(self, method, *args):
        self.backend.calls.append((method,) + args)
        failure = self.backend.failures.pop(method, None)
        if failure is not None:
            raise failure

    @staticmethod
    def _matches(row, filters):
        for column, expression in (filters or {}).items():
            op, _, value = expression.partition('.')
            if op == 'eq' and str(row.get(column)) != value:
                return False
        return True

    def select(self, table, filters=None, order=None, columns='*', limit=None):
        self._record('select', table)
        rows = [copy.deepcopy(row) for row in self.backend.tables[table] if self._matches(row, filters)]
        return rows[:limit] if limit is not None else rows

    def insert(self, table, record):
        self._record('insert', table, record)
        row = {'id': next(self.backend._ids), **record}
        self.backend.tables[table].append(row)
        return copy.deepcopy(row)

    def update(self, table, record_id, changes):
        self._record('update', table, record_id, changes)
        for row in self.backend.tables[table]:
            if str(row['id']) == str(record_id):
                row.update(changes)
                return copy.deepcopy(row)
        return {}

    def delete(self, table, record_id):
        self._record('delete', table, record_id)
        self.backend.tables[table] = [
            row for row in self.backend.tables[table] if str(row['id']) != str(record_id)
        ]

    def upsert(self, table, record, on_conflict):
        self._record('upsert', table, record, on_conflict)
        for row in self.backend.tables[table]:
            if row.get(on_conflict) == record.get(on_conflict):
                row.update(record)
                return copy.deepcopy(row)
        self.backend.tables[table].append(dict(record))
        return copy.deepcopy(record)

    def sign_in_with_password(self, email, password):
        self._record('sign_in_with_password', email)
        account = self.backend.accounts.get(email)
        if account is None or account['password'] != password:
            raise SupabaseAPIError('Invalid login credentials', status_code=400)
        return self.backend.issue_session(account['user'])

    def sign_up(self, email, password):
        self._record('sign_up', email)
        self.backend.add_account(email, password, user_id=f'auth-{email}')
        return {'id': f'auth-{email}', 'email': email}

    def refresh_session(self, refresh_token):
        self._record('refresh_session')
        user = self.backend.refresh_tokens.pop(refresh_token, None)
        if user is None:
            raise AuthenticationError('Invalid Refresh Token', status_code=400)
        return self.backend.issue_session(user)

    def get_user(self):
        self._record('get_user')
        user = self.backend.tokens.get(self.access_token)
        if user is None:
            raise AuthenticationError('invalid JWT', status_code=401)
        return copy.deepcopy(user)

    def sign_out(self):
        self._record('sign_out')
        self.backend.tokens.pop(self.access_token, None)


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def backend():
    fake = FakeBackend()
    fake.add_account(ADMIN_EMAIL, ADMIN_PASSWORD)
    with patch('saas_admin.auth.SupabaseClient', side_effect=fake.client), \
            patch('saas_admin.middleware.SupabaseClient', side_effect=fake.client), \
            patch('saas_admin.views.SupabaseClient', side_effect=fake.client):
        yield fake


@pytest.fixture
def signed_in_client(client, backend):
    """Django test client signed in through the sign-in page"""
    response = client.post('/sign-in/', {'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    assert response.status_code == 302
    return client
