"""Dialog forms for creating and editing records"""
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django import forms
from django.core.serializers.json import DjangoJSONEncoder


@dataclass(frozen=True)
class JsonParseResult:
    ok: bool
    value: Any = None
    error: Optional[str] = None


def parse_json_text(text: Optional[str]) -> JsonParseResult:
    """
    Parse free-form JSON typed into a text field.

    Blank text parses to None.
    """
    if text is None or not text.strip():
        return JsonParseResult(ok=True, value=None)
    try:
        return JsonParseResult(ok=True, value=json.loads(text))
    except json.JSONDecodeError as e:
        return JsonParseResult(ok=False, error=f"Invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})")


class JSONTextField(forms.CharField):
    """Text input holding JSON; cleans to the parsed value"""

    widget = forms.Textarea(attrs={'rows': 3})

    def __init__(self, **kwargs):
        kwargs.setdefault('required', False)
        super().__init__(**kwargs)

    def clean(self, value):
        text = super().clean(value)
        result = parse_json_text(text)
        if not result.ok:
            raise forms.ValidationError(result.error, code='invalid_json')
        return result.value


class DateTimeLocalField(forms.DateTimeField):
    widget = forms.DateTimeInput(attrs={'type': 'datetime-local'}, format='%Y-%m-%dT%H:%M')

    def __init__(self, **kwargs):
        kwargs.setdefault('required', False)
        super().__init__(**kwargs)


class EntityForm(forms.Form):
    """
    Base dialog form.

    ``for_create`` starts from a blank draft, ``for_edit`` from a record.
    ``to_payload`` returns only this form's columns, so updates never touch
    columns the dialog does not show.
    """

    blank_draft: Dict[str, Any] = {}

    @classmethod
    def for_create(cls, data=None):
        return cls(data=data, initial=dict(cls.blank_draft))

    @classmethod
    def for_edit(cls, record, data=None):
        initial = {}
        for name, form_field in cls.base_fields.items():
            value = getattr(record, name, None)
            if isinstance(form_field, JSONTextField):
                value = json.dumps(value) if value is not None else ''
            initial[name] = value
        return cls(data=data, initial=initial)

    def to_payload(self) -> Dict[str, Any]:
        payload = {}
        for name, value in self.cleaned_data.items():
            form_field = self.fields[name]
            if value == '' and not form_field.required and not isinstance(form_field, JSONTextField):
                value = None
            payload[name] = value
        # Decimals and datetimes become JSON-safe strings
        return json.loads(json.dumps(payload, cls=DjangoJSONEncoder))


class UserForm(EntityForm):
    blank_draft = {'status': 'active'}

    name = forms.CharField(max_length=255)
    email = forms.EmailField()
    status = forms.ChoiceField(choices=[('active', 'Active'), ('inactive', 'Inactive')])
    phone = forms.CharField(max_length=50, required=False)


class ProductForm(EntityForm):
    blank_draft = {'status': 'draft'}

    name = forms.CharField(max_length=255)
    description = forms.CharField(widget=forms.Textarea(attrs={'rows': 3}), required=False)
    status = forms.ChoiceField(choices=[('active', 'Active'), ('draft', 'Draft'), ('archived', 'Archived')])


class SubscriptionForm(EntityForm):
    blank_draft = {'plan': 'starter', 'status': 'active', 'interval': 'monthly'}

    user_id = forms.CharField(label='User ID')
    product_id = forms.CharField(label='Product ID')
    plan = forms.ChoiceField(choices=[
        ('free', 'Free'),
        ('starter', 'Starter'),
        ('professional', 'Professional'),
        ('enterprise', 'Enterprise'),
    ])
    status = forms.ChoiceField(choices=[
        ('active', 'Active'),
        ('cancelled', 'Cancelled'),
        ('trial', 'Trial'),
        ('past_due', 'Past due'),
    ])
    interval = forms.ChoiceField(choices=[('monthly', 'Monthly'), ('annual', 'Annual')])
    amount = forms.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    start_date = DateTimeLocalField()
    end_date = DateTimeLocalField()


class InvoiceForm(EntityForm):
    user_id = forms.CharField(label='User ID')
    subscription_id = forms.CharField(label='Subscription ID', required=False)
    amount = forms.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    status = forms.CharField(max_length=50, required=False)
    issued_at = DateTimeLocalField()
    paid_at = DateTimeLocalField()


class AuditLogForm(EntityForm):
    user_id = forms.CharField(label='User ID', required=False)
    action = forms.CharField(max_length=255)
    entity_type = forms.CharField(max_length=255, required=False)
    entity_id = forms.CharField(label='Entity ID', required=False)
    details = JSONTextField(label='Details (JSON)')
    created_at = DateTimeLocalField()


class OrganizationForm(EntityForm):
    name = forms.CharField(max_length=255)


class RoleForm(EntityForm):
    name = forms.CharField(max_length=255)


class ProductUsageForm(EntityForm):
    user_id = forms.CharField(label='User ID')
    product_id = forms.CharField(label='Product ID')
    event_type = forms.CharField(max_length=255)
    event_data = JSONTextField(label='Event data (JSON)')
    occurred_at = DateTimeLocalField()


class NotificationForm(EntityForm):
    blank_draft = {'type': 'announcement', 'status': 'draft'}

    product_id = forms.CharField(label='Product ID', required=False)
    type = forms.ChoiceField(choices=[
        ('announcement', 'Announcement'),
        ('update', 'Update'),
        ('maintenance', 'Maintenance'),
        ('security', 'Security'),
    ])
    title = forms.CharField(max_length=255)
    message = forms.CharField(widget=forms.Textarea(attrs={'rows': 4}))
    status = forms.ChoiceField(choices=[
        ('draft', 'Draft'),
        ('scheduled', 'Scheduled'),
        ('sent', 'Sent'),
        ('failed', 'Failed'),
    ])
    sent_at = DateTimeLocalField(label='Send at')


class ProfileForm(forms.Form):
    first_name = forms.CharField(max_length=255, required=False)
    middle_name = forms.CharField(max_length=255, required=False)
    last_name = forms.CharField(max_length=255, required=False)
    age = forms.IntegerField(min_value=0, required=False)
    phone = forms.CharField(max_length=50, required=False)
    email = forms.EmailField()


class SignInForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField(widget=forms.PasswordInput)
