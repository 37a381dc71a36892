"""Tax regime catalogs.

The calculation engine owns the authoritative catalog; the conversion only
needs a read-only lookup. ``StaticRegimeCatalog`` ships the regimes the
conversion is exercised against and can be replaced by any object
implementing ``RegimeCatalog``.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from ..models.regime import CategoryDef, RegimeDef

REGIME_DEFINITIONS: dict[str, dict] = {
    "DE": {
        "currency": "EUR",
        "categories": [{
            "code": "VAT",
            "name": "Umsatzsteuer",
            "rates": [
                {"key": "zero", "values": [{"percent": "0.0"}]},
                {"key": "standard", "values": [
                    {"percent": "19.0", "since": date(2021, 1, 1)},
                    {"percent": "16.0", "since": date(2020, 7, 1)},
                    {"percent": "19.0", "since": date(2007, 1, 1)},
                ]},
                {"key": "reduced", "values": [
                    {"percent": "7.0", "since": date(2021, 1, 1)},
                    {"percent": "5.0", "since": date(2020, 7, 1)},
                    {"percent": "7.0", "since": date(1983, 7, 1)},
                ]},
            ],
        }],
    },
    "ES": {
        "currency": "EUR",
        "categories": [{
            "code": "VAT",
            "name": "IVA",
            "rates": [
                {"key": "zero", "values": [{"percent": "0.0"}]},
                {"key": "standard", "values": [
                    {"percent": "21.0", "since": date(2012, 9, 1)},
                    {"percent": "18.0", "since": date(2010, 7, 1)},
                ]},
                {"key": "standard+eqs", "values": [
                    {"percent": "21.0", "since": date(2012, 9, 1), "surcharge": "5.2"},
                ]},
                {"key": "reduced", "values": [
                    {"percent": "10.0", "since": date(2012, 9, 1)},
                    {"percent": "8.0", "since": date(2010, 7, 1)},
                ]},
                {"key": "reduced+eqs", "values": [
                    {"percent": "10.0", "since": date(2012, 9, 1), "surcharge": "1.4"},
                ]},
                {"key": "super-reduced", "values": [{"percent": "4.0", "since": date(1995, 1, 1)}]},
            ],
        }],
    },
    "FR": {
        "currency": "EUR",
        "categories": [{
            "code": "VAT",
            "name": "TVA",
            "rates": [
                {"key": "zero", "values": [{"percent": "0.0"}]},
                {"key": "standard", "values": [
                    {"percent": "20.0", "since": date(2014, 1, 1)},
                    {"percent": "19.6", "since": date(2000, 4, 1)},
                ]},
                {"key": "intermediate", "values": [{"percent": "10.0", "since": date(2014, 1, 1)}]},
                {"key": "reduced", "values": [{"percent": "5.5", "since": date(2012, 1, 1)}]},
                {"key": "super-reduced", "values": [{"percent": "2.1", "since": date(1986, 7, 1)}]},
            ],
        }],
    },
    "GB": {
        "currency": "GBP",
        "categories": [{
            "code": "VAT",
            "name": "VAT",
            "rates": [
                {"key": "zero", "values": [{"percent": "0.0"}]},
                {"key": "standard", "values": [{"percent": "20.0", "since": date(2011, 1, 4)}]},
                {"key": "reduced", "values": [{"percent": "5.0", "since": date(1997, 9, 1)}]},
            ],
        }],
    },
    "IT": {
        "currency": "EUR",
        "categories": [{
            "code": "VAT",
            "name": "IVA",
            "rates": [
                {"key": "zero", "values": [{"percent": "0.0"}]},
                {"key": "standard", "values": [{"percent": "22.0", "since": date(2013, 10, 1)}]},
                {"key": "intermediate", "values": [{"percent": "10.0", "since": date(1995, 2, 24)}]},
                {"key": "reduced", "values": [{"percent": "5.0", "since": date(2016, 1, 1)}]},
                {"key": "super-reduced", "values": [{"percent": "4.0", "since": date(1989, 1, 1)}]},
            ],
        }],
    },
    "NL": {
        "currency": "EUR",
        "categories": [{
            "code": "VAT",
            "name": "BTW",
            "rates": [
                {"key": "zero", "values": [{"percent": "0.0"}]},
                {"key": "standard", "values": [{"percent": "21.0", "since": date(2012, 10, 1)}]},
                {"key": "reduced", "values": [
                    {"percent": "9.0", "since": date(2019, 1, 1)},
                    {"percent": "6.0", "since": date(1986, 10, 1)},
                ]},
            ],
        }],
    },
    "US": {
        "currency": "USD",
        "categories": [{"code": "ST", "name": "Sales Tax"}],
    },
}


class RegimeCatalog(ABC):
    """Read-only lookup of regime definitions by country."""

    @abstractmethod
    def regime_def(self, country: str) -> RegimeDef | None:
        """Return the regime for *country* or None if it is not supported."""
        ...

    def category_def(self, country: str, category: str) -> CategoryDef | None:
        regime = self.regime_def(country)
        if regime is None:
            return None
        return regime.category_def(category)


class StaticRegimeCatalog(RegimeCatalog):
    """Catalog backed by in-memory definitions, validated once on construction."""

    def __init__(self, definitions: dict[str, dict] | None = None):
        definitions = REGIME_DEFINITIONS if definitions is None else definitions
        self._regimes: dict[str, RegimeDef] = {
            country.upper(): RegimeDef(country=country.upper(), **definition)
            for country, definition in definitions.items()
        }

    def regime_def(self, country: str) -> RegimeDef | None:
        return self._regimes.get((country or "").upper())

    @property
    def countries(self) -> list[str]:
        return sorted(self._regimes)


DEFAULT_CATALOG = StaticRegimeCatalog()
