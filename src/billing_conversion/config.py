"""Conversion configuration via environment variables with BILLING_ prefix."""

from __future__ import annotations

from uuid import UUID

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Billing conversion configuration.

    All settings are read from environment variables prefixed with ``BILLING_``.
    The namespace is optional: without it documents are emitted with a nil
    identifier, which is fine for one-off conversions that are never stored.
    """

    model_config = SettingsConfigDict(env_prefix="BILLING_")

    # ── Identity ────────────────────────────────────────────────────────────
    namespace: UUID | None = None

    # ── Logging ─────────────────────────────────────────────────────────────
    log_level: str = "INFO"

    # ── Metadata prefixes (prefix is stripped when copied) ─────────────────
    item_extension_prefix: str = "bill-item-"
    customer_extension_prefix: str = "bill-customer-"
    line_tax_extension_prefix: str = "bill-line-vat-"

    # ── Ordering ────────────────────────────────────────────────────────────
    purchase_order_field: str = "po number"

    # ── Hand-off ────────────────────────────────────────────────────────────
    calculate: bool = True
