"""Atomic uniqueness for non-key attributes.

DynamoDB only enforces uniqueness on the primary key, and global secondary
indexes are eventually consistent, so a lookup before a write cannot stop
two concurrent writers from storing the same value. Instead, every unique
value is claimed by a marker record in the same table whose key is derived
from the value (``name#Caesar Salad``). The marker and the record are
written in one transaction, and the marker put is conditional on the key
being free, so the second writer's transaction is cancelled.

Marker records carry only ``id`` and ``owner_id``. Scans over a table that
holds markers must exclude them with ``exclude_claims()``.
"""

from typing import Any

from boto3.dynamodb.conditions import Attr, ConditionBase
from botocore.exceptions import ClientError

CLAIM_SEPARATOR = "#"

_KEY_IS_FREE = "attribute_not_exists(#id)"


def claim_key(field: str, value: str) -> str:
    return f"{field}{CLAIM_SEPARATOR}{value}"


def is_claim_key(record_id: str) -> bool:
    return CLAIM_SEPARATOR in record_id


def exclude_claims(condition: ConditionBase | None = None) -> ConditionBase:
    """Add a filter that drops marker records to a scan condition."""
    not_a_claim = Attr("owner_id").not_exists()
    return not_a_claim if condition is None else condition & not_a_claim


def put_record(table_name: str, item: dict[str, Any], *, new: bool) -> dict[str, Any]:
    """Transaction action storing a record, conditional on ``id`` being free if ``new``."""
    put: dict[str, Any] = {"TableName": table_name, "Item": item}
    if new:
        put["ConditionExpression"] = _KEY_IS_FREE
        put["ExpressionAttributeNames"] = {"#id": "id"}
    return {"Put": put}


def put_claim(table_name: str, field: str, value: str, owner_id: str) -> dict[str, Any]:
    """Transaction action claiming ``value`` for ``owner_id``; fails if already claimed."""
    return {
        "Put": {
            "TableName": table_name,
            "Item": {"id": claim_key(field, value), "owner_id": owner_id},
            "ConditionExpression": _KEY_IS_FREE,
            "ExpressionAttributeNames": {"#id": "id"},
        }
    }


def delete_key(table_name: str, record_id: str) -> dict[str, Any]:
    return {"Delete": {"TableName": table_name, "Key": {"id": record_id}}}


def delete_claim(table_name: str, field: str, value: str) -> dict[str, Any]:
    return delete_key(table_name, claim_key(field, value))


def is_conflict(error: ClientError) -> bool:
    """True when a transaction was cancelled by a failed condition.

    Cancellations for other reasons (throttling, concurrent transactions on
    the same keys) are not conflicts and should be treated as failures.
    """
    if error.response.get("Error", {}).get("Code") != "TransactionCanceledException":
        return False
    reasons = error.response.get("CancellationReasons", [])
    return any(reason.get("Code") == "ConditionalCheckFailed" for reason in reasons)
