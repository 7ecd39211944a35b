"""Settings access for SaaS Admin"""
from typing import Any, Dict

from django.conf import settings

DEFAULTS = {
    'SUPABASE_URL': None,
    'ANON_KEY': None,
    'SCHEMA': None,
    'CACHE_TIMEOUT': 300,  # 5 minutes default
    'REQUEST_TIMEOUT': 30,
    'MOBILE_BREAKPOINT': 768,
}


def get_config() -> Dict[str, Any]:
    """Return the SAAS_ADMIN settings merged over the defaults"""
    config = getattr(settings, 'SAAS_ADMIN', {})
    return {**DEFAULTS, **config}
