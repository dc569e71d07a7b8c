"""
Prometheus metrics for the finance service.

Tracks repository operations, registrations, sign-ins and validation failures.
"""

from prometheus_client import Counter

# Store metrics
repository_operations_total = Counter(
    "finance_repository_operations_total",
    "Total repository operations",
    ["collection", "operation", "status"],
)

# Authentication metrics
auth_register_total = Counter(
    "finance_auth_register_total", "Total user registrations", ["status"]
)

auth_login_total = Counter("finance_auth_login_total", "Total user logins", ["status"])

# Validation metrics
validation_failures_total = Counter(
    "finance_validation_failures_total",
    "Total entities rejected by validation",
    ["entity"],
)


def track_repository_operation(collection: str, operation: str, success: bool) -> None:
    """Record a repository operation outcome."""
    status = "success" if success else "error"
    repository_operations_total.labels(
        collection=collection, operation=operation, status=status
    ).inc()
