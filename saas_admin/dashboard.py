"""Dashboard statistics computed from the Supabase tables"""
import logging
from collections import Counter, OrderedDict
from decimal import Decimal
from typing import Any, Dict, Optional

from django.core.cache import cache
from django.utils import timezone

from .conf import get_config
from .entities import get_entity
from .exceptions import ConfigurationError, SupabaseAPIError
from .services import EntityRepository, dashboard_cache_key
from .supabase import SupabaseClient

logger = logging.getLogger(__name__)

PLANS = ('free', 'starter', 'professional', 'enterprise')


def _percent(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


def get_dashboard_stats(client: SupabaseClient, user_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Fetch aggregated dashboard statistics as seen by ``user_id``.

    Returns:
        Dictionary with stats:
        {
            'total_users': int, 'active_users': int, 'active_user_pct': int,
            'total_products': int, 'active_products': int, 'active_product_pct': int,
            'total_subscriptions': int, 'active_subscriptions': int,
            'active_subscription_pct': int,
            'revenue_this_month': Decimal, 'total_revenue': Decimal,
            'subscriptions_by_plan': {plan: count},
            'revenue_by_product': [(name, Decimal), ...],
        }

    Raises:
        ConfigurationError: If client is not properly configured
        SupabaseAPIError: If API call fails
    """
    if not client.is_configured():
        raise ConfigurationError("SaaS Admin client is not configured")

    cache_key = dashboard_cache_key(user_id)
    cached = cache.get(cache_key)
    if cached is not None:
        logger.debug(f"Cache hit for dashboard stats: {cache_key}")
        return cached

    try:
        stats = _fetch_dashboard_stats(client, user_id)
    except SupabaseAPIError:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch dashboard stats: {e}", exc_info=True)
        raise SupabaseAPIError(f"Failed to fetch dashboard stats: {str(e)}")

    cache.set(cache_key, stats, get_config().get('CACHE_TIMEOUT', 300))
    logger.debug(f"Cached dashboard stats: {cache_key}")
    return stats


def _fetch_dashboard_stats(client: SupabaseClient, user_id: Optional[str]) -> Dict[str, Any]:
    logger.info("Fetching dashboard stats")

    users = EntityRepository(get_entity('users'), client, user_id=user_id).fetch()
    products = EntityRepository(get_entity('products'), client, user_id=user_id).fetch()
    subscriptions = EntityRepository(get_entity('subscriptions'), client, user_id=user_id).fetch()
    invoices = EntityRepository(get_entity('invoices'), client, user_id=user_id).fetch()

    active_users = sum(1 for u in users if u.status == 'active')
    active_products = sum(1 for p in products if p.status == 'active')
    active_subscriptions = sum(1 for s in subscriptions if s.status == 'active')

    now = timezone.now()
    paid = [i for i in invoices if i.paid_at is not None]
    total_revenue = sum((i.amount for i in paid), Decimal('0'))
    revenue_this_month = sum(
        (i.amount for i in paid if i.paid_at.year == now.year and i.paid_at.month == now.month),
        Decimal('0'),
    )

    plan_counts = Counter(s.plan for s in subscriptions if s.plan)
    subscriptions_by_plan = OrderedDict((plan, plan_counts.get(plan, 0)) for plan in PLANS)

    revenue_by_product = sorted(
        ((p.name or p.pk, p.revenue_generated) for p in products),
        key=lambda pair: pair[1],
        reverse=True,
    )

    return {
        'total_users': len(users),
        'active_users': active_users,
        'active_user_pct': _percent(active_users, len(users)),
        'total_products': len(products),
        'active_products': active_products,
        'active_product_pct': _percent(active_products, len(products)),
        'total_subscriptions': len(subscriptions),
        'active_subscriptions': active_subscriptions,
        'active_subscription_pct': _percent(active_subscriptions, len(subscriptions)),
        'revenue_this_month': revenue_this_month,
        'total_revenue': total_revenue,
        'subscriptions_by_plan': subscriptions_by_plan,
        'revenue_by_product': revenue_by_product,
    }
