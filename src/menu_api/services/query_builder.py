"""Generic list query builder.

Translates the raw query string of a listing request into a ``ListQuery``,
then into a DynamoDB condition expression, and finally shapes the matching
items into the paginated response envelope.

Query string grammar::

    field=value              equality
    field[gt|gte|lt|lte]=v   range comparison
    field[in]=a,b,c          membership
    select=f1,f2             projection (``id`` always included)
    sort=f1,-f2              sort keys, ``-`` for descending
    page=N&limit=M           page window
"""

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from decimal import Decimal
from typing import Any

from boto3.dynamodb.conditions import Attr, ConditionBase

from menu_api.models.query_models import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    DEFAULT_SORT,
    FilterCondition,
    FilterOperator,
    ListQuery,
    PageLink,
    Pagination,
    SortKey,
)

logger = logging.getLogger(__name__)

CONTROL_KEYS = frozenset({"select", "sort", "page", "limit"})

# Recognized ``field[suffix]`` operator suffixes
OPERATOR_SUFFIXES: dict[str, FilterOperator] = {
    "gt": FilterOperator.GT,
    "gte": FilterOperator.GTE,
    "lt": FilterOperator.LT,
    "lte": FilterOperator.LTE,
    "in": FilterOperator.IN,
}

_OPERATOR_SUFFIX = re.compile(r"^\[(?P<suffix>[^\[\]]*)\]$")
_NUMBER = re.compile(r"^-?\d+(\.\d+)?$")

_RANGE_COMPARATORS: dict[FilterOperator, Callable[[Attr, Any], ConditionBase]] = {
    FilterOperator.GT: Attr.gt,
    FilterOperator.GTE: Attr.gte,
    FilterOperator.LT: Attr.lt,
    FilterOperator.LTE: Attr.lte,
}


def collect_query_params(items: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Collapse query string pairs into a mapping.

    Args:
        items: ``(key, value)`` pairs, e.g. ``request.query_params.multi_items()``

    Returns:
        dict: Mapping where repeated keys hold a list of their values
    """
    params: dict[str, Any] = {}
    for key, value in items:
        if key not in params:
            params[key] = value
        elif isinstance(params[key], list):
            params[key].append(value)
        else:
            params[key] = [params[key], value]
    return params


def coerce_value(value: Any) -> Any:
    """Convert query string text into the store's native value types.

    Numeric strings become ``Decimal`` and ``true``/``false`` become bools.
    Lists are coerced element-wise and keep their shape.
    """
    if isinstance(value, list):
        return [coerce_value(v) for v in value]
    if not isinstance(value, str):
        return value

    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if _NUMBER.match(value):
        return Decimal(value)
    return value


def _last(value: Any) -> Any:
    # Repeated scalar parameters: the last occurrence wins
    return value[-1] if isinstance(value, list) and value else value


def parse_filter(key: str, value: Any) -> FilterCondition:
    """Parse one filter key and its raw value.

    Args:
        key: Query key, either ``field`` or ``field[suffix]``
        value: Raw value, a string or a list of strings

    Returns:
        FilterCondition for the key
    """
    field = key
    operator = FilterOperator.EQ

    bracket = key.find("[")
    if bracket > 0:
        # Everything from the first bracket on is the operator suffix
        field, suffix = key[:bracket], key[bracket:]
        match = _OPERATOR_SUFFIX.match(suffix)
        if match and match.group("suffix") in OPERATOR_SUFFIXES:
            operator = OPERATOR_SUFFIXES[match.group("suffix")]
        else:
            logger.info(f"Unrecognized filter operator '{suffix}' on '{field}', using equality")

    if operator is FilterOperator.IN:
        values = value if isinstance(value, list) else value.split(",")
        return FilterCondition(field=field, operator=operator, value=coerce_value(values))

    return FilterCondition(field=field, operator=operator, value=coerce_value(_last(value)))


def parse_positive_int(value: Any, default: int) -> int:
    """Parse a positive integer, falling back to ``default`` on bad input."""
    try:
        parsed = int(str(_last(value)).strip())
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def parse_fields(value: Any) -> list[str] | None:
    if value is None:
        return None
    fields = ["id"]
    for name in str(_last(value)).split(","):
        name = name.strip()
        if name and name not in fields:
            fields.append(name)
    return fields


def parse_sort(value: Any) -> list[SortKey]:
    raw = str(_last(value)).strip() if value is not None else ""
    if not raw:
        raw = DEFAULT_SORT

    keys: list[SortKey] = []
    for token in raw.split(","):
        token = token.strip()
        if not token or token == "-":
            continue
        if token.startswith("-"):
            keys.append(SortKey(field=token[1:], descending=True))
        else:
            keys.append(SortKey(field=token))
    return keys


def parse_list_query(params: Mapping[str, Any]) -> ListQuery:
    """Build a ListQuery from raw query parameters.

    Args:
        params: Mapping from ``collect_query_params``

    Returns:
        ListQuery with filters, projection, sort and page window
    """
    filters = [
        parse_filter(key, value) for key, value in params.items() if key not in CONTROL_KEYS
    ]

    return ListQuery(
        filters=filters,
        fields=parse_fields(params.get("select")),
        sort=parse_sort(params.get("sort")),
        page=parse_positive_int(params.get("page"), DEFAULT_PAGE),
        limit=parse_positive_int(params.get("limit"), DEFAULT_LIMIT),
    )


def _contains_any(attr: Attr, values: list[Any]) -> ConditionBase:
    condition: ConditionBase = attr.contains(values[0])
    for value in values[1:]:
        condition = condition | attr.contains(value)
    return condition


def translate_filter(
    condition: FilterCondition, list_fields: frozenset[str] = frozenset()
) -> ConditionBase:
    """Translate one FilterCondition into a DynamoDB condition.

    For list-valued attributes, equality means the list contains the value
    and membership means it contains any of the values.
    """
    attr = Attr(condition.field)
    is_list_field = condition.field in list_fields

    if condition.operator is FilterOperator.IN:
        values = condition.value if isinstance(condition.value, list) else [condition.value]
        if is_list_field:
            return _contains_any(attr, values)
        return attr.is_in(values)

    if condition.operator is FilterOperator.EQ:
        return attr.contains(condition.value) if is_list_field else attr.eq(condition.value)

    return _RANGE_COMPARATORS[condition.operator](attr, condition.value)


def build_condition(
    filters: list[FilterCondition], list_fields: frozenset[str] = frozenset()
) -> ConditionBase | None:
    """AND together all filters, or None when there are no filters."""
    combined: ConditionBase | None = None
    for condition in filters:
        clause = translate_filter(condition, list_fields)
        combined = clause if combined is None else combined & clause
    return combined


def sort_items(items: list[dict[str, Any]], sort_keys: list[SortKey]) -> list[dict[str, Any]]:
    """Stable multi-key sort. Items missing a sort field go last for that key."""
    ordered = list(items)
    for key in reversed(sort_keys):
        present = [item for item in ordered if item.get(key.field) is not None]
        missing = [item for item in ordered if item.get(key.field) is None]
        present.sort(key=lambda item: item[key.field], reverse=key.descending)
        ordered = present + missing
    return ordered


def project_item(item: dict[str, Any], fields: list[str] | None) -> dict[str, Any]:
    if fields is None:
        return item
    return {name: item[name] for name in fields if name in item}


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    """Compute next/prev links for a page window over ``total`` matches."""
    start_index = (page - 1) * limit
    pagination = Pagination()

    if start_index + limit < total:
        pagination.next = PageLink(page=page + 1, limit=limit)

    if start_index > 0:
        pagination.prev = PageLink(page=page - 1, limit=limit)

    return pagination


def build_envelope(data: list[dict[str, Any]], pagination: Pagination) -> dict[str, Any]:
    return {
        "success": True,
        "count": len(data),
        "pagination": pagination.to_response(),
        "data": data,
    }
