"""Fetch and mutation orchestration for entity pages"""
import logging
from typing import Any, Dict, List, Optional

from django.core.cache import cache

from .conf import get_config
from .entities import EntityConfig
from .exceptions import ConfigurationError, RecordNotFound, RequestCancelled, SupabaseAPIError
from .records import Record, parse_record, parse_records
from .supabase import SupabaseClient

logger = logging.getLogger(__name__)

DASHBOARD = 'dashboard'
ANONYMOUS = 'anon'


def _version_key(name: str) -> str:
    return f'saas_admin_version_{name}'


def cache_version(name: str) -> int:
    """Current generation of a cached collection, shared by every user"""
    cache.add(_version_key(name), 1, None)
    return cache.get(_version_key(name), 1)


def bump_version(name: str):
    """Retire every user's cached copy of ``name``"""
    cache.add(_version_key(name), 1, None)
    cache.incr(_version_key(name))


def user_cache_key(user_id: Optional[str], name: str) -> str:
    """
    Cache key for one user's view of ``name``.

    Rows are fetched with the user's own token, so Row Level Security may give
    each user a different result; the key includes the user and the version.
    """
    return f'saas_admin_{user_id or ANONYMOUS}_{name}_v{cache_version(name)}'


def dashboard_cache_key(user_id: Optional[str] = None) -> str:
    return user_cache_key(user_id, DASHBOARD)


class CancellationToken:
    """Marks the page that started a request as disposed"""

    def __init__(self):
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class EntityRepository:
    """
    Generic list-CRUD access to one entity's table.

    The fetched collection is cached per user until the next successful
    mutation, which invalidates every user's copy so the following render
    re-fetches. A response that arrives after ``dispose()`` is discarded
    instead of being cached. Request views dispose their repository once the
    response is rendered; the token matters for repositories that outlive the
    request that created them or share a token with other work.
    """

    def __init__(self, entity: EntityConfig, client: SupabaseClient, token: CancellationToken = None,
                 user_id: Optional[str] = None):
        self.entity = entity
        self.client = client
        self.token = token or CancellationToken()
        self.user_id = user_id
        self.cache_timeout = get_config().get('CACHE_TIMEOUT', 300)

    @property
    def cache_key(self) -> str:
        return user_cache_key(self.user_id, self.entity.key)

    def dispose(self):
        self.token.cancel()

    def invalidate(self):
        bump_version(self.entity.key)
        bump_version(DASHBOARD)
        logger.debug(f"Invalidated cached {self.entity.key}")

    def _check_live(self):
        if self.token.cancelled:
            logger.debug(f"Discarding late {self.entity.key} response")
            raise RequestCancelled(f"{self.entity.title} page was disposed")

    def fetch(self) -> List[Record]:
        """
        Return the entity's collection, from cache when possible.

        Raises:
            ConfigurationError: If client is not properly configured
            SupabaseAPIError: If API call fails
            RecordValidationError: If a row does not match the schema
            RequestCancelled: If the page was disposed while fetching
        """
        if not self.client.is_configured():
            raise ConfigurationError("SaaS Admin client is not configured")

        cache_key = self.cache_key
        cached = cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {cache_key}")
            return cached

        rows = self.client.select(self.entity.table, filters=self.entity.scope, order=self.entity.order)
        self._check_live()

        items = parse_records(self.entity.schema, rows)
        # Keyed by the version read before the fetch, so a concurrent mutation retires it
        cache.set(cache_key, items, self.cache_timeout)
        logger.debug(f"Cached {len(items)} {self.entity.key}")
        return items

    def get(self, record_id: str) -> Record:
        """Find one record of the collection by id"""
        for item in self.fetch():
            if item.pk == str(record_id):
                return item
        raise RecordNotFound(f"{self.entity.singular} {record_id} not found")

    def create(self, payload: Dict[str, Any]) -> Record:
        row = self.client.insert(self.entity.table, {**self.entity.create_defaults, **payload})
        self.invalidate()
        logger.info(f"Created {self.entity.key} id={row.get('id')}")
        return parse_record(self.entity.schema, row)

    def update(self, record_id: str, changes: Dict[str, Any]) -> Record:
        row = self.client.update(self.entity.table, record_id, changes)
        self.invalidate()
        logger.info(f"Updated {self.entity.key} id={record_id}")
        if not row:
            raise RecordNotFound(f"{self.entity.singular} {record_id} not found")
        return parse_record(self.entity.schema, row)

    def delete(self, record_id: str) -> None:
        self.client.delete(self.entity.table, record_id)
        self.invalidate()
        logger.info(f"Deleted {self.entity.key} id={record_id}")


def table_is_empty(client: SupabaseClient, table: str) -> bool:
    """True when ``table`` has no visible rows; lookup failures count as not empty"""
    try:
        return not client.select(table, columns='id', limit=1)
    except SupabaseAPIError as e:
        logger.warning(f"Could not check whether {table} is empty: {e}")
        return False
