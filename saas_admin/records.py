"""
Record schemas for rows returned by Supabase.

Rows are parsed on receipt so pages never handle untyped payloads. Columns
the schema does not name are kept as extra attributes.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Dict, Iterable, List, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from .exceptions import RecordValidationError

RecordId = Union[int, str]


class Record(BaseModel):
    model_config = ConfigDict(extra='allow')

    kind: ClassVar[str] = 'record'

    id: RecordId

    @property
    def pk(self) -> str:
        return str(self.id)


class UserRecord(Record):
    kind: ClassVar[str] = 'user'

    name: Optional[str] = None
    email: Optional[str] = None
    status: Optional[Literal['active', 'inactive']] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class ProductRecord(Record):
    kind: ClassVar[str] = 'product'

    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[Literal['active', 'draft', 'archived']] = None
    user_count: int = 0
    revenue_generated: Decimal = Decimal('0')


class SubscriptionRecord(Record):
    kind: ClassVar[str] = 'subscription'

    user_id: Optional[RecordId] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    product_id: Optional[RecordId] = None
    product_name: Optional[str] = None
    plan: Optional[Literal['free', 'starter', 'professional', 'enterprise']] = None
    status: Optional[Literal['active', 'cancelled', 'trial', 'past_due']] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    amount: Decimal = Decimal('0')
    interval: Optional[Literal['monthly', 'annual']] = None


class InvoiceRecord(Record):
    kind: ClassVar[str] = 'invoice'

    user_id: Optional[RecordId] = None
    subscription_id: Optional[RecordId] = None
    amount: Decimal = Decimal('0')
    status: Optional[str] = None
    issued_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None


class AuditLogRecord(Record):
    kind: ClassVar[str] = 'audit_log'

    user_id: Optional[RecordId] = None
    action: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[RecordId] = None
    details: Optional[Any] = None
    created_at: Optional[datetime] = None


class OrganizationRecord(Record):
    kind: ClassVar[str] = 'organization'

    name: Optional[str] = None
    created_at: Optional[datetime] = None


class RoleRecord(Record):
    kind: ClassVar[str] = 'role'

    name: Optional[str] = None
    created_at: Optional[datetime] = None


class NotificationDeliveryRecord(Record):
    kind: ClassVar[str] = 'notification_delivery'

    notification_id: Optional[RecordId] = None
    user_id: Optional[RecordId] = None
    delivered_at: Optional[datetime] = None
    opened_at: Optional[datetime] = None
    status: Optional[str] = None


class ProductUsageRecord(Record):
    kind: ClassVar[str] = 'product_usage'

    user_id: Optional[RecordId] = None
    product_id: Optional[RecordId] = None
    event_type: Optional[str] = None
    event_data: Optional[Any] = None
    occurred_at: Optional[datetime] = None


class NotificationRecord(Record):
    kind: ClassVar[str] = 'notification'

    channel: Literal['sms', 'push']
    product_id: Optional[RecordId] = None
    product_name: Optional[str] = None
    type: Optional[Literal['announcement', 'update', 'maintenance', 'security']] = None
    title: Optional[str] = None
    message: Optional[str] = None
    sent_at: Optional[datetime] = None
    status: Optional[Literal['draft', 'scheduled', 'sent', 'failed']] = None
    sent_to: int = 0
    delivered_to: int = 0


RECORD_TYPES: Dict[str, Type[Record]] = {
    schema.kind: schema
    for schema in (
        UserRecord,
        ProductRecord,
        SubscriptionRecord,
        InvoiceRecord,
        AuditLogRecord,
        OrganizationRecord,
        RoleRecord,
        NotificationDeliveryRecord,
        ProductUsageRecord,
        NotificationRecord,
    )
}


def parse_record(schema: Type[Record], row: Dict[str, Any]) -> Record:
    """
    Parse one row into its schema.

    Raises:
        RecordValidationError: If the row does not match the schema
    """
    try:
        return schema.model_validate(row)
    except ValidationError as e:
        raise RecordValidationError(
            f"Malformed {schema.kind} record {row.get('id')!r}: {e.error_count()} invalid field(s)"
        ) from e


def parse_records(schema: Type[Record], rows: Iterable[Dict[str, Any]]) -> List[Record]:
    return [parse_record(schema, row) for row in rows]
