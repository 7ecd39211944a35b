"""
Client-side list state for entity pages.

Filter and sort state is a plain value updated by ``reduce``; the page
derives it from the query string, then ``apply`` narrows and orders the
fetched records in memory.
"""
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

ASC = 'asc'
DESC = 'desc'
DIRECTIONS = (ASC, DESC)

ALL = 'all'

SORT_PARAM = 'sort'
DIRECTION_PARAM = 'dir'


@dataclass(frozen=True)
class ListState:
    filters: Mapping[str, str] = field(default_factory=dict)
    sort_key: Optional[str] = None
    sort_direction: str = ASC

    @property
    def active_filters(self) -> Dict[str, str]:
        return {column: value for column, value in self.filters.items() if value and value != ALL}


@dataclass(frozen=True)
class SetFilter:
    column: str
    value: str


@dataclass(frozen=True)
class SetSort:
    key: Optional[str]
    direction: str = ASC


@dataclass(frozen=True)
class ToggleSortDirection:
    pass


@dataclass(frozen=True)
class Reset:
    pass


def reduce(state: ListState, action) -> ListState:
    """Return the state that results from applying ``action`` to ``state``"""
    if isinstance(action, SetFilter):
        filters = dict(state.filters)
        if action.value:
            filters[action.column] = action.value
        else:
            filters.pop(action.column, None)
        return replace(state, filters=filters)

    if isinstance(action, SetSort):
        direction = action.direction if action.direction in DIRECTIONS else ASC
        return replace(state, sort_key=action.key, sort_direction=direction)

    if isinstance(action, ToggleSortDirection):
        return replace(state, sort_direction=DESC if state.sort_direction == ASC else ASC)

    if isinstance(action, Reset):
        return ListState()

    raise TypeError(f"Unknown list action: {action!r}")


def field_value(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _as_text(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def matches(record: Any, spec, value: str) -> bool:
    """
    Check one record against one filter.

    Empty values and 'all' always pass. A missing or null field never
    matches a non-empty filter.
    """
    if not value or value == ALL:
        return True

    if spec.kind == 'search':
        needle = value.lower()
        return any(
            field_value(record, name) is not None and needle in _as_text(field_value(record, name)).lower()
            for name in spec.fields
        )

    current = field_value(record, spec.name)
    if current is None:
        return False

    if spec.kind == 'date':
        return _as_text(current).startswith(value)
    if spec.kind == 'choice':
        return _as_text(current) == value
    return value.lower() in _as_text(current).lower()


def apply_filters(records: Iterable[Any], state: ListState, specs: Sequence) -> List[Any]:
    """Keep the records passing every filter in ``state`` (logical AND)"""
    by_name = {spec.name: spec for spec in specs}
    active = [
        (by_name[column], value)
        for column, value in state.active_filters.items()
        if column in by_name
    ]
    return [
        record for record in records
        if all(matches(record, spec, value) for spec, value in active)
    ]


def _sort_value(record: Any, sort_field) -> Any:
    value = field_value(record, sort_field.name)
    if sort_field.kind == 'number':
        try:
            return Decimal(str(value)) if value is not None else Decimal('0')
        except InvalidOperation:
            return Decimal('0')
    if value is None:
        return ''
    if sort_field.kind == 'date':
        return _as_text(value)
    return _as_text(value).lower()


def sort_records(records: Iterable[Any], state: ListState, sort_fields: Sequence) -> List[Any]:
    """Order records by the single active sort key; unknown keys leave the order alone"""
    by_name = {sort_field.name: sort_field for sort_field in sort_fields}
    sort_field = by_name.get(state.sort_key)
    if sort_field is None:
        return list(records)
    return sorted(
        records,
        key=lambda record: _sort_value(record, sort_field),
        reverse=state.sort_direction == DESC,
    )


def apply(records: Iterable[Any], state: ListState, entity) -> List[Any]:
    return sort_records(apply_filters(records, state, entity.filters), state, entity.sort_fields)


def state_from_query(query: Mapping[str, str], entity) -> ListState:
    """Build the list state for ``entity`` from request query parameters"""
    state = ListState()
    for spec in entity.filters:
        value = (query.get(spec.name) or '').strip()
        if value:
            state = reduce(state, SetFilter(spec.name, value))

    sort_names = {sort_field.name for sort_field in entity.sort_fields}
    sort_key = query.get(SORT_PARAM)
    if sort_key not in sort_names:
        sort_key = entity.default_sort
    direction = query.get(DIRECTION_PARAM) or entity.default_direction
    return reduce(state, SetSort(sort_key, direction))


def state_to_query(state: ListState) -> Dict[str, str]:
    """Query parameters that reproduce ``state``"""
    query = dict(state.active_filters)
    if state.sort_key:
        query[SORT_PARAM] = state.sort_key
        query[DIRECTION_PARAM] = state.sort_direction
    return query
