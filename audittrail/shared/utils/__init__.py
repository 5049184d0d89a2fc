"""Shared utilities: datetime and id generators."""

from audittrail.shared.utils.datetime import days_ago_utc, ensure_utc, utc_now
from audittrail.shared.utils.generators import generate_request_id

__all__ = [
    "generate_request_id",
    "utc_now",
    "ensure_utc",
    "days_ago_utc",
]
