"""Conversion errors.

Only malformed or unsupported input raises. Ambiguous classification and
missing optional data are resolved by omission inside the resolvers.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class ErrorKind(StrEnum):
    UNSUPPORTED_DOCUMENT = "unsupported_document"
    MALFORMED_INPUT = "malformed_input"
    MISSING_FIELD = "missing_field"
    UNSUPPORTED_REGIME = "unsupported_regime"


class FieldError(BaseModel):
    """A single structured problem attached to a conversion error."""

    field: str
    message: str


class ConversionError(Exception):
    """Raised when a source object cannot be converted at all."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str = "",
        *,
        source_id: str | None = None,
        field: str | None = None,
        fields: list[FieldError] | None = None,
        code: str | None = None,
    ):
        self.kind = kind
        self.message = message
        self.source_id = source_id
        self.field = field
        self.fields = fields or []
        self.code = code
        super().__init__(str(self))

    def __str__(self) -> str:
        msg = self.message
        if self.fields:
            detail = "; ".join(f"{fe.field}: {fe.message}" for fe in self.fields)
            msg = f"{msg} ({detail})" if msg else detail
        return f"{self.kind}: {msg}"

    def is_kind(self, *kinds: ErrorKind) -> bool:
        """Return True if this error matches any of *kinds*."""
        return self.kind in kinds

    def context(self) -> dict:
        """Key/value context suitable for a structured log call."""
        return {
            "error_kind": str(self.kind),
            "source_id": self.source_id,
            "field": self.field,
            "code": self.code,
        }


def missing_field(field: str, source_id: str | None = None) -> ConversionError:
    return ConversionError(
        ErrorKind.MISSING_FIELD,
        f"missing {field.replace('_', ' ')}",
        source_id=source_id,
        field=field,
    )
