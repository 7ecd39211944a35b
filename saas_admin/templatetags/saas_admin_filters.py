"""Custom template filters for SaaS Admin."""
import json
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from django import template

register = template.Library()


@register.filter
def field(record, name):
    """
    Look up a column on a record.

    Args:
        record: Record model or dict
        name: Column name

    Returns:
        The column value, or None when absent
    """
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


@register.filter
def format_currency(value):
    """
    Format an amount as US dollars.

    Returns:
        String like "$1,234.50", or "N/A" for non-numeric input
    """
    if value is None or value == '':
        return "N/A"
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return "N/A"
    sign = '-' if amount < 0 else ''
    return f"{sign}${abs(amount):,.2f}"


def _to_datetime(value):
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return None
    return value


@register.filter
def format_date(value):
    """Short date, or "N/A" when empty"""
    value = _to_datetime(value)
    if not isinstance(value, (datetime, date)):
        return "N/A"
    return value.strftime('%Y-%m-%d')


@register.filter
def format_datetime(value):
    value = _to_datetime(value)
    if not isinstance(value, datetime):
        return format_date(value)
    return value.strftime('%Y-%m-%d %H:%M')


@register.filter
def json_display(value):
    """Compact JSON for free-form columns; '-' when empty"""
    if value is None or value == '':
        return '-'
    return json.dumps(value, sort_keys=True, default=str)


@register.filter
def status_color(status):
    """
    Return a CSS class for styling based on status.

    Args:
        status: String representing a status, plan or notification type

    Returns:
        CSS class string
    """
    color_map = {
        # users, products, subscriptions
        'active': 'text-green-700 bg-green-100',
        'inactive': 'text-yellow-700 bg-yellow-100',
        'draft': 'text-yellow-700 bg-yellow-100',
        'archived': 'text-gray-600 bg-gray-100',
        'trial': 'text-blue-600 bg-blue-100',
        'cancelled': 'text-gray-600 bg-gray-100',
        'past_due': 'text-red-600 bg-red-100',
        # invoices
        'paid': 'text-green-700 bg-green-100',
        'pending': 'text-yellow-700 bg-yellow-100',
        'overdue': 'text-red-600 bg-red-100',
        # notifications and deliveries
        'sent': 'text-green-700 bg-green-100',
        'scheduled': 'text-blue-600 bg-blue-100',
        'failed': 'text-red-600 bg-red-100',
        'delivered': 'text-green-700 bg-green-100',
        'opened': 'text-purple-600 bg-purple-100',
        # notification types
        'announcement': 'text-blue-600 bg-blue-100',
        'update': 'text-green-700 bg-green-100',
        'maintenance': 'text-yellow-700 bg-yellow-100',
        'security': 'text-red-600 bg-red-100',
    }

    if not status:
        return 'text-gray-500 bg-gray-50'

    return color_map.get(str(status).lower(), 'text-gray-500 bg-gray-50')
