"""Ordering block: the period shared by every line and the purchase order code."""
from __future__ import annotations

from ..models import source
from ..models.document import Line, Ordering, Period


def common_period(lines: list[Line]) -> Period | None:
    """Return the period every line shares, or None if any line differs or has none."""
    if not lines:
        return None
    first = lines[0].period
    if first is None:
        return None
    for line in lines[1:]:
        if line.period != first:
            return None
    return first.model_copy()


def purchase_order_code(custom_fields: list[source.CustomField] | None, field_name: str) -> str | None:
    wanted = field_name.strip().lower()
    for cf in custom_fields or []:
        if cf.name.strip().lower() == wanted and cf.value.strip():
            return cf.value.strip()
    return None


def new_ordering(
    lines: list[Line],
    custom_fields: list[source.CustomField] | None = None,
    field_name: str = "po number",
) -> Ordering | None:
    period = common_period(lines)
    code = purchase_order_code(custom_fields, field_name)
    if period is None and code is None:
        return None
    return Ordering(code=code, period=period)
