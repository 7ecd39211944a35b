"""Supabase client wrapper for SaaS Admin data access and auth"""
import logging
from typing import Dict, List, Optional, Any

import requests

from .conf import get_config
from .exceptions import AuthenticationError, ConfigurationError, SupabaseAPIError

logger = logging.getLogger(__name__)


class SupabaseClient:
    """
    Wrapper around the Supabase PostgREST and GoTrue APIs.

    Handles bearer authentication, timeouts and error translation.
    Table access runs with the signed-in user's access token when one is
    given, so Row Level Security applies to every query.
    """

    def __init__(self, access_token: Optional[str] = None):
        """Initialize Supabase client with configuration from Django settings"""
        config = get_config()
        self.url = config.get('SUPABASE_URL')
        self.anon_key = config.get('ANON_KEY')
        self.schema = config.get('SCHEMA')
        self.timeout = config.get('REQUEST_TIMEOUT', 30)
        self.access_token = access_token

        if self.url and self.anon_key:
            self.url = self.url.rstrip('/')
            self.rest_url = f"{self.url}/rest/v1"
            self.auth_url = f"{self.url}/auth/v1"
            self.headers = {
                'apikey': self.anon_key,
                'Authorization': f'Bearer {access_token or self.anon_key}',
                'Content-Type': 'application/json',
                'Prefer': 'return=representation'
            }
            if self.schema:
                self.headers['Accept-Profile'] = self.schema
                self.headers['Content-Profile'] = self.schema
        else:
            self.rest_url = None
            self.auth_url = None
            self.headers = {}

    def is_configured(self) -> bool:
        """Check if client is properly configured"""
        return bool(self.url and self.anon_key)

    def _ensure_configured(self):
        if not self.is_configured():
            raise ConfigurationError("SaaS Admin client is not configured")

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        """Extract the human-readable message from a failed Supabase response"""
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict):
            for key in ('message', 'msg', 'error_description', 'error'):
                if payload.get(key):
                    return str(payload[key])

        return response.text or response.reason or f"HTTP {response.status_code}"

    def _request(self, method: str, url: str, params: Optional[Dict[str, Any]] = None,
                 json: Any = None, headers: Optional[Dict[str, str]] = None) -> Any:
        """
        Make a request to Supabase

        Args:
            method: HTTP method
            url: Absolute URL (REST or auth endpoint)
            params: Query parameters
            json: JSON body
            headers: Extra headers merged over the defaults

        Returns:
            Response JSON data, or None for empty responses

        Raises:
            AuthenticationError: If Supabase answers 401 or 403
            SupabaseAPIError: If request fails
        """
        try:
            response = requests.request(
                method,
                url,
                headers={**self.headers, **(headers or {})},
                params=params,
                json=json,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Supabase API request failed: {e}")
            raise SupabaseAPIError(f"API request failed: {str(e)}")

        if not response.ok:
            message = self._error_message(response)
            logger.error(f"Supabase API {method} {url} returned {response.status_code}: {message}")
            if response.status_code in (401, 403):
                raise AuthenticationError(message, status_code=response.status_code)
            raise SupabaseAPIError(message, status_code=response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # Tables

    def select(self, table: str, filters: Optional[Dict[str, str]] = None,
               order: Optional[str] = None, columns: str = '*',
               limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Fetch rows from a table.

        Args:
            table: Table name (e.g., 'users')
            filters: PostgREST filters, column -> 'op.value' (e.g., {'id': 'eq.5'})
            order: PostgREST ordering (e.g., 'created_at.desc')
            columns: Column list for the select parameter
            limit: Optional maximum number of rows

        Returns:
            List of row dicts
        """
        self._ensure_configured()

        params = {'select': columns}
        params.update(filters or {})
        if order:
            params['order'] = order
        if limit is not None:
            params['limit'] = str(limit)

        logger.info(f"Fetching {table} (filters={filters}, order={order})")
        return self._request('GET', f"{self.rest_url}/{table}", params=params) or []

    def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one row and return it as stored"""
        self._ensure_configured()
        logger.info(f"Inserting into {table}")
        rows = self._request('POST', f"{self.rest_url}/{table}", json=[record])
        return rows[0] if rows else {}

    def update(self, table: str, record_id: Any, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Update the given columns of one row by id and return the row"""
        self._ensure_configured()
        logger.info(f"Updating {table} id={record_id}")
        rows = self._request(
            'PATCH',
            f"{self.rest_url}/{table}",
            params={'id': f'eq.{record_id}'},
            json=changes,
        )
        return rows[0] if rows else {}

    def delete(self, table: str, record_id: Any) -> None:
        """Delete one row by id"""
        self._ensure_configured()
        logger.info(f"Deleting from {table} id={record_id}")
        self._request('DELETE', f"{self.rest_url}/{table}", params={'id': f'eq.{record_id}'})

    def upsert(self, table: str, record: Dict[str, Any], on_conflict: str) -> Dict[str, Any]:
        """Insert one row, merging into the existing row on the conflict column"""
        self._ensure_configured()
        logger.info(f"Upserting into {table} on {on_conflict}")
        rows = self._request(
            'POST',
            f"{self.rest_url}/{table}",
            params={'on_conflict': on_conflict},
            json=[record],
            headers={'Prefer': 'return=representation,resolution=merge-duplicates'},
        )
        return rows[0] if rows else {}

    # Auth

    def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        """
        Exchange email and password for a session.

        Returns:
            Session dict with 'access_token', 'refresh_token' and 'user'
        """
        self._ensure_configured()
        logger.info(f"Signing in {email}")
        return self._request(
            'POST',
            f"{self.auth_url}/token",
            params={'grant_type': 'password'},
            json={'email': email, 'password': password},
        )

    def refresh_session(self, refresh_token: str) -> Dict[str, Any]:
        """Exchange a refresh token for a new session"""
        self._ensure_configured()
        return self._request(
            'POST',
            f"{self.auth_url}/token",
            params={'grant_type': 'refresh_token'},
            json={'refresh_token': refresh_token},
        )

    def sign_up(self, email: str, password: str) -> Dict[str, Any]:
        self._ensure_configured()
        logger.info(f"Signing up {email}")
        return self._request('POST', f"{self.auth_url}/signup", json={'email': email, 'password': password})

    def get_user(self) -> Dict[str, Any]:
        """
        Return the user owning the access token.

        Raises:
            AuthenticationError: If there is no token or Supabase rejects it
        """
        self._ensure_configured()
        if not self.access_token:
            raise AuthenticationError("No active session")
        return self._request('GET', f"{self.auth_url}/user")

    def sign_out(self) -> None:
        """Revoke the session owning the access token"""
        self._ensure_configured()
        if not self.access_token:
            return
        self._request('POST', f"{self.auth_url}/logout")
