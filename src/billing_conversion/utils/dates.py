"""Platform timestamp helpers."""

from __future__ import annotations

from datetime import date, datetime, timezone


def date_from_ts(ts: int | None) -> date | None:
    """Return the UTC calendar date of an epoch-seconds timestamp.

    Zero and ``None`` both mean "not set" on the billing platform.
    """
    if not ts:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).date()
