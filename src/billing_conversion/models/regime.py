"""Tax regime catalog shapes.

A regime groups tax categories; each category publishes rate definitions
and each rate carries a list of dated values, newest first.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field


class RateValueDef(BaseModel):
    """A percentage valid from ``since`` until superseded by a newer value."""

    percent: Decimal
    since: dt.date | None = None
    surcharge: Decimal | None = None
    ext: dict[str, str] | None = None


class RateDef(BaseModel):
    key: str
    name: str = ""
    values: list[RateValueDef] = Field(default_factory=list)

    def value_on(self, on: dt.date) -> RateValueDef | None:
        """Return the value applicable on the given date, if any."""
        for value in self.values:
            if value.since is None or value.since <= on:
                return value
        return None


class CategoryDef(BaseModel):
    code: str
    name: str = ""
    rates: list[RateDef] = Field(default_factory=list)


class RegimeDef(BaseModel):
    country: str
    currency: str
    categories: list[CategoryDef] = Field(default_factory=list)

    def category_def(self, code: str) -> CategoryDef | None:
        for cat in self.categories:
            if cat.code == code:
                return cat
        return None
