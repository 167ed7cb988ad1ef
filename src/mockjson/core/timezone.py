"""UTC timezone enforcement.

This module sets the TZ environment variable to UTC to ensure
consistent datetime behavior across all environments.
"""

import os
from datetime import datetime, timezone

# Set UTC timezone for the entire application
os.environ["TZ"] = "UTC"


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention for all tables)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def current_period_key(now: datetime | None = None) -> str:
    """Billing period key for monthly API quotas.

    Format is "<year>-<month>" without zero padding, e.g. "2024-1", "2024-12".
    """
    moment = now or utcnow()
    return f"{moment.year}-{moment.month}"
