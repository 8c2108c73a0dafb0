"""Custom metrics for the menu API."""

from opentelemetry import metrics

meter = metrics.get_meter("menu-api")

auth_failure_counter = meter.create_counter(
    name="auth_failures_total",
    description="Rejected requests by authorization pipeline stage",
    unit="1",
)

menu_item_write_counter = meter.create_counter(
    name="menu_item_writes_total",
    description="Successful menu item writes by operation",
    unit="1",
)

derived_refresh_failure_counter = meter.create_counter(
    name="derived_refresh_failures_total",
    description="Failed derived-field refreshes (category average, review cascade)",
    unit="1",
)


def record_auth_failure(reason: str) -> None:
    """Record a rejected request.

    Args:
        reason: Error class name of the rejection (e.g. "StaleToken")
    """
    auth_failure_counter.add(1, {"reason": reason})


def record_menu_item_write(operation: str) -> None:
    """Record a successful menu item write.

    Args:
        operation: One of "create", "update", "delete"
    """
    menu_item_write_counter.add(1, {"operation": operation})


def record_derived_refresh_failure(kind: str) -> None:
    """Record a swallowed failure of a best-effort refresh.

    Args:
        kind: "category_average" or "review_cascade"
    """
    derived_refresh_failure_counter.add(1, {"kind": kind})
