"""
Entity page configuration.

Every list page in the dashboard is the same generic page driven by one
``EntityConfig``: which table to read, how to parse rows, which columns to
show, how rows can be filtered and sorted, and which dialog form edits them.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Type

from django.http import Http404

from . import forms as entity_forms
from . import records
from .listing import ASC, DESC


@dataclass(frozen=True)
class Column:
    name: str
    label: str
    # text, date, datetime, currency, badge, json, number
    kind: str = 'text'


@dataclass(frozen=True)
class FilterField:
    name: str
    label: str
    # text, date, choice, search
    kind: str = 'text'
    choices: Tuple[Tuple[str, str], ...] = ()
    fields: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SortField:
    name: str
    label: str
    # text, number, date
    kind: str = 'text'


@dataclass(frozen=True)
class EntityConfig:
    key: str
    table: str
    title: str
    nav_label: str
    singular: str
    schema: Type[records.Record]
    columns: Tuple[Column, ...]
    filters: Tuple[FilterField, ...] = ()
    sort_fields: Tuple[SortField, ...] = ()
    default_sort: Optional[str] = None
    default_direction: str = ASC
    order: Optional[str] = None
    form_class: Optional[Type[entity_forms.EntityForm]] = None
    scope: Dict[str, str] = field(default_factory=dict)
    create_defaults: Dict[str, Any] = field(default_factory=dict)
    icon: str = 'table'

    @property
    def read_only(self) -> bool:
        return self.form_class is None

    @property
    def empty_message(self) -> str:
        return f"No {self.nav_label.lower()} found"


NOTIFICATION_TYPES = (
    ('announcement', 'Announcement'),
    ('update', 'Update'),
    ('maintenance', 'Maintenance'),
    ('security', 'Security'),
)

NOTIFICATION_STATUSES = (
    ('draft', 'Draft'),
    ('scheduled', 'Scheduled'),
    ('sent', 'Sent'),
    ('failed', 'Failed'),
)


def _notification_entity(channel: str, key: str, title: str, nav_label: str, icon: str) -> EntityConfig:
    return EntityConfig(
        key=key,
        table='notifications',
        title=title,
        nav_label=nav_label,
        singular=f"{channel.upper() if channel == 'sms' else channel.title()} notification",
        schema=records.NotificationRecord,
        columns=(
            Column('title', 'Title'),
            Column('product_name', 'Product'),
            Column('type', 'Type', 'badge'),
            Column('status', 'Status', 'badge'),
            Column('sent_at', 'Sent', 'date'),
            Column('sent_to', 'Sent to', 'number'),
            Column('delivered_to', 'Delivered', 'number'),
        ),
        filters=(
            FilterField('q', 'Search', 'search', fields=('title', 'message', 'product_name')),
            FilterField('product_name', 'Product'),
            FilterField('type', 'Type', 'choice', choices=NOTIFICATION_TYPES),
            FilterField('status', 'Status', 'choice', choices=NOTIFICATION_STATUSES),
        ),
        sort_fields=(
            SortField('sent_at', 'Sent', 'date'),
            SortField('title', 'Title'),
            SortField('delivered_to', 'Delivered', 'number'),
        ),
        default_sort='sent_at',
        default_direction=DESC,
        order='sent_at.desc',
        form_class=entity_forms.NotificationForm,
        scope={'channel': f'eq.{channel}'},
        create_defaults={'channel': channel},
        icon=icon,
    )


ENTITIES: Tuple[EntityConfig, ...] = (
    EntityConfig(
        key='users',
        table='users',
        title='User Management',
        nav_label='Users',
        singular='User',
        schema=records.UserRecord,
        columns=(
            Column('name', 'Name'),
            Column('email', 'Email'),
            Column('phone', 'Phone'),
            Column('status', 'Status', 'badge'),
            Column('created_at', 'Created', 'date'),
            Column('last_login', 'Last Login', 'date'),
        ),
        filters=(
            FilterField('name', 'Name'),
            FilterField('email', 'Email'),
            FilterField('phone', 'Phone'),
            FilterField('status', 'Status', 'choice', choices=(('active', 'Active'), ('inactive', 'Inactive'))),
            FilterField('created_at', 'Created', 'date'),
            FilterField('last_login', 'Last Login', 'date'),
        ),
        sort_fields=(
            SortField('name', 'Name'),
            SortField('created_at', 'Created', 'date'),
        ),
        default_sort='name',
        order='created_at.desc',
        form_class=entity_forms.UserForm,
        icon='users',
    ),
    EntityConfig(
        key='products',
        table='products',
        title='Product Management',
        nav_label='Products',
        singular='Product',
        schema=records.ProductRecord,
        columns=(
            Column('name', 'Name'),
            Column('description', 'Description'),
            Column('status', 'Status', 'badge'),
            Column('user_count', 'Users', 'number'),
            Column('revenue_generated', 'Revenue', 'currency'),
        ),
        filters=(
            FilterField('q', 'Search', 'search', fields=('name', 'description')),
            FilterField('status', 'Status', 'choice', choices=(
                ('active', 'Active'), ('draft', 'Draft'), ('archived', 'Archived'),
            )),
        ),
        sort_fields=(
            SortField('name', 'Name'),
            SortField('user_count', 'Users', 'number'),
            SortField('revenue_generated', 'Revenue', 'number'),
        ),
        default_sort='name',
        order='name.asc',
        form_class=entity_forms.ProductForm,
        icon='package',
    ),
    EntityConfig(
        key='subscriptions',
        table='subscriptions',
        title='Subscription Management',
        nav_label='Subscriptions',
        singular='Subscription',
        schema=records.SubscriptionRecord,
        columns=(
            Column('user_name', 'User'),
            Column('user_email', 'Email'),
            Column('product_name', 'Product'),
            Column('plan', 'Plan', 'badge'),
            Column('status', 'Status', 'badge'),
            Column('amount', 'Amount', 'currency'),
            Column('interval', 'Interval'),
            Column('start_date', 'Start', 'date'),
            Column('end_date', 'End', 'date'),
        ),
        filters=(
            FilterField('q', 'Search', 'search', fields=('user_name', 'user_email', 'product_name')),
            FilterField('product_name', 'Product'),
            FilterField('plan', 'Plan', 'choice', choices=(
                ('free', 'Free'), ('starter', 'Starter'),
                ('professional', 'Professional'), ('enterprise', 'Enterprise'),
            )),
            FilterField('status', 'Status', 'choice', choices=(
                ('active', 'Active'), ('cancelled', 'Cancelled'),
                ('trial', 'Trial'), ('past_due', 'Past due'),
            )),
            FilterField('interval', 'Interval', 'choice', choices=(('monthly', 'Monthly'), ('annual', 'Annual'))),
        ),
        sort_fields=(
            SortField('start_date', 'Start', 'date'),
            SortField('amount', 'Amount', 'number'),
            SortField('user_name', 'User'),
        ),
        default_sort='start_date',
        default_direction=DESC,
        order='start_date.desc',
        form_class=entity_forms.SubscriptionForm,
        icon='package-2',
    ),
    EntityConfig(
        key='invoices',
        table='invoices',
        title='Invoices',
        nav_label='Invoices',
        singular='Invoice',
        schema=records.InvoiceRecord,
        columns=(
            Column('id', 'ID'),
            Column('user_id', 'User ID'),
            Column('subscription_id', 'Subscription ID'),
            Column('amount', 'Amount', 'currency'),
            Column('status', 'Status', 'badge'),
            Column('issued_at', 'Issued', 'date'),
            Column('paid_at', 'Paid', 'date'),
        ),
        filters=(
            FilterField('user_id', 'User ID'),
            FilterField('subscription_id', 'Subscription ID'),
            FilterField('amount', 'Amount'),
            FilterField('status', 'Status'),
            FilterField('issued_at', 'Issued', 'date'),
            FilterField('paid_at', 'Paid', 'date'),
        ),
        sort_fields=(
            SortField('issued_at', 'Date', 'date'),
            SortField('amount', 'Amount', 'number'),
        ),
        default_sort='issued_at',
        order='issued_at.desc',
        form_class=entity_forms.InvoiceForm,
        icon='receipt',
    ),
    EntityConfig(
        key='organizations',
        table='organizations',
        title='Organizations',
        nav_label='Organizations',
        singular='Organization',
        schema=records.OrganizationRecord,
        columns=(
            Column('id', 'ID'),
            Column('name', 'Name'),
            Column('created_at', 'Created', 'datetime'),
        ),
        filters=(
            FilterField('name', 'Name'),
            FilterField('created_at', 'Created', 'date'),
        ),
        sort_fields=(
            SortField('name', 'Name'),
            SortField('created_at', 'Created', 'date'),
        ),
        default_sort='name',
        order='created_at.desc',
        form_class=entity_forms.OrganizationForm,
        icon='building',
    ),
    EntityConfig(
        key='roles',
        table='roles',
        title='Roles',
        nav_label='Roles',
        singular='Role',
        schema=records.RoleRecord,
        columns=(
            Column('id', 'ID'),
            Column('name', 'Name'),
            Column('created_at', 'Created', 'datetime'),
        ),
        filters=(
            FilterField('name', 'Name'),
            FilterField('created_at', 'Created', 'date'),
        ),
        sort_fields=(
            SortField('name', 'Name'),
            SortField('created_at', 'Created', 'date'),
        ),
        default_sort='name',
        order='created_at.desc',
        form_class=entity_forms.RoleForm,
        icon='shield',
    ),
    EntityConfig(
        key='audit-logs',
        table='audit_logs',
        title='Audit Logs',
        nav_label='Audit Logs',
        singular='Log',
        schema=records.AuditLogRecord,
        columns=(
            Column('id', 'ID'),
            Column('user_id', 'User ID'),
            Column('action', 'Action'),
            Column('entity_type', 'Entity Type'),
            Column('entity_id', 'Entity ID'),
            Column('details', 'Details', 'json'),
            Column('created_at', 'Created At', 'datetime'),
        ),
        filters=(
            FilterField('user_id', 'User ID'),
            FilterField('action', 'Action'),
            FilterField('entity_type', 'Entity Type'),
            FilterField('entity_id', 'Entity ID'),
            FilterField('created_at', 'Created At', 'date'),
        ),
        sort_fields=(
            SortField('created_at', 'Date', 'date'),
        ),
        default_sort='created_at',
        order='created_at.desc',
        form_class=entity_forms.AuditLogForm,
        icon='list-checks',
    ),
    EntityConfig(
        key='product-usage',
        table='product_usage',
        title='Product Usage',
        nav_label='Product Usage',
        singular='Usage event',
        schema=records.ProductUsageRecord,
        columns=(
            Column('id', 'ID'),
            Column('user_id', 'User ID'),
            Column('product_id', 'Product ID'),
            Column('event_type', 'Event Type'),
            Column('event_data', 'Event Data', 'json'),
            Column('occurred_at', 'Occurred At', 'datetime'),
        ),
        filters=(
            FilterField('user_id', 'User ID'),
            FilterField('product_id', 'Product ID'),
            FilterField('event_type', 'Event Type'),
            FilterField('occurred_at', 'Occurred At', 'date'),
        ),
        sort_fields=(
            SortField('occurred_at', 'Date', 'date'),
        ),
        default_sort='occurred_at',
        order='occurred_at.desc',
        form_class=entity_forms.ProductUsageForm,
        icon='activity',
    ),
    EntityConfig(
        key='notification-deliveries',
        table='notification_deliveries',
        title='Notification Deliveries',
        nav_label='Notification Deliveries',
        singular='Delivery',
        schema=records.NotificationDeliveryRecord,
        columns=(
            Column('id', 'ID'),
            Column('notification_id', 'Notification ID'),
            Column('user_id', 'User ID'),
            Column('delivered_at', 'Delivered At', 'datetime'),
            Column('opened_at', 'Opened At', 'datetime'),
            Column('status', 'Status', 'badge'),
        ),
        filters=(
            FilterField('notification_id', 'Notification ID'),
            FilterField('user_id', 'User ID'),
            FilterField('delivered_at', 'Delivered At', 'date'),
            FilterField('opened_at', 'Opened At', 'date'),
            FilterField('status', 'Status'),
        ),
        sort_fields=(
            SortField('delivered_at', 'Date', 'date'),
        ),
        default_sort='delivered_at',
        order='delivered_at.desc',
        icon='send',
    ),
    _notification_entity('sms', 'sms-notifications', 'SMS Notifications', 'SMS Notifications', 'mail'),
    _notification_entity('push', 'push-notifications', 'Push Notifications', 'Push Notifications', 'bell'),
)

REGISTRY: Dict[str, EntityConfig] = {entity.key: entity for entity in ENTITIES}


def get_entity(key: str) -> EntityConfig:
    try:
        return REGISTRY[key]
    except KeyError:
        raise Http404(f"Unknown entity: {key}")
