"""Test tax classification, catalog matching and invoice-level tax flags."""
import pytest
from datetime import date
from decimal import Decimal
from billing_conversion.international.regimes import StaticRegimeCatalog
from billing_conversion.models.source import TaxAmount
from billing_conversion.resolvers.tax import (
    classify, document_tags, match_catalog_rate, percent_for, percent_from_float,
    resolve_combo, resolve_tax_set, tax_info,
)
from tests.factories import make_tax_amount, make_tax_rate

ISSUE_DATE = date(2024, 3, 15)


def tax_amount(**kwargs) -> TaxAmount:
    return TaxAmount.model_validate(make_tax_amount(**kwargs))


class TestClassify:
    def test_known_types(self):
        assert classify("vat") == "VAT"
        assert classify("sales_tax") == "ST"
        assert classify("gst") == "GST"

    @pytest.mark.parametrize("name,expected", [
        ("IVA", "VAT"), ("vat", "VAT"), ("Sales Tax", "ST"), (" GST ", "GST"),
    ])
    def test_display_name_aliases(self, name, expected):
        assert classify(None, name) == expected
        assert classify("", name) == expected

    def test_unknown_type_uses_alias(self):
        assert classify("lease_tax", "VAT") == "VAT"

    def test_opaque_display_name(self):
        assert classify(None, "Kirchensteuer") == "Kirchensteuer"

    def test_nothing_to_go_on(self):
        assert classify(None, None) == ""
        assert classify("", "") == ""


class TestPercentFor:
    def test_effective_percentage_preferred(self):
        ta = tax_amount(tax_rate=make_tax_rate(percentage=19.0, effective_percentage=16.0))
        assert percent_for(ta) == Decimal("16.0")

    def test_at_least_one_decimal(self):
        assert str(percent_from_float(19)) == "19.0"
        assert str(percent_from_float(5.5)) == "5.5"

    def test_ratio_when_rate_not_expanded(self):
        ta = tax_amount(amount=1900, taxable_amount=10000, tax_rate="txr_1")
        assert percent_for(ta) == Decimal("19.0")

    def test_ratio_rounds_to_one_decimal(self):
        ta = tax_amount(amount=1000, taxable_amount=3000, tax_rate="txr_1")
        assert percent_for(ta) == Decimal("33.3")

    def test_no_taxable_amount(self):
        ta = tax_amount(taxable_amount=0, tax_rate="txr_1")
        assert percent_for(ta) is None


class TestMatchCatalogRate:
    def test_unique_match(self, catalog):
        rate, val = match_catalog_rate(Decimal("19.0"), "DE", "VAT", ISSUE_DATE, catalog)
        assert rate.key == "standard"
        assert val.percent == Decimal("19.0")

    def test_surcharge_values_skipped(self, catalog):
        rate, _ = match_catalog_rate(Decimal("21.0"), "ES", "VAT", ISSUE_DATE, catalog)
        assert rate.key == "standard"

    def test_value_must_apply_on_date(self, catalog):
        assert match_catalog_rate(Decimal("19.0"), "DE", "VAT", date(2020, 8, 1), catalog) == (None, None)
        rate, _ = match_catalog_rate(Decimal("16.0"), "DE", "VAT", date(2020, 8, 1), catalog)
        assert rate.key == "standard"

    def test_ambiguous_match_returns_nothing(self):
        catalog = StaticRegimeCatalog({
            "XX": {
                "currency": "EUR",
                "categories": [{
                    "code": "VAT",
                    "rates": [
                        {"key": "standard", "values": [{"percent": "10.0"}]},
                        {"key": "intermediate", "values": [{"percent": "10.0"}]},
                    ],
                }],
            },
        })
        assert match_catalog_rate(Decimal("10.0"), "XX", "VAT", ISSUE_DATE, catalog) == (None, None)

    def test_no_match(self, catalog):
        assert match_catalog_rate(Decimal("12.5"), "DE", "VAT", ISSUE_DATE, catalog) == (None, None)

    def test_unknown_category(self, catalog):
        assert match_catalog_rate(Decimal("19.0"), "DE", "GST", ISSUE_DATE, catalog) == (None, None)

    def test_excess_precision_never_matches(self, catalog):
        assert match_catalog_rate(Decimal("19.04"), "DE", "VAT", ISSUE_DATE, catalog) == (None, None)


class TestResolveCombo:
    def test_matched_rate_key(self, de_regime, catalog):
        tc = resolve_combo(tax_amount(), de_regime, catalog, ISSUE_DATE)
        assert tc.category == "VAT"
        assert tc.country == "DE"
        assert tc.rate == "standard"
        assert tc.percent is None

    def test_unmatched_keeps_percent(self, de_regime, catalog):
        ta = tax_amount(tax_rate=make_tax_rate(percentage=12.5))
        tc = resolve_combo(ta, de_regime, catalog, ISSUE_DATE)
        assert tc.rate is None
        assert tc.percent == Decimal("12.5")

    def test_reverse_charge_uses_regime_country(self, de_regime, catalog):
        ta = tax_amount(
            amount=0, taxability_reason="reverse_charge",
            tax_rate=make_tax_rate(percentage=0.0, country="FR"),
        )
        tc = resolve_combo(ta, de_regime, catalog, ISSUE_DATE)
        assert tc.country == "DE"
        assert tc.rate == "reverse-charge"
        assert tc.percent is None

    def test_zero_rated(self, de_regime, catalog):
        ta = tax_amount(amount=0, taxability_reason="zero_rated", tax_rate=make_tax_rate(percentage=0.0))
        tc = resolve_combo(ta, de_regime, catalog, ISSUE_DATE)
        assert tc.rate == "zero"
        assert tc.percent is None

    @pytest.mark.parametrize("reason", ["customer_exempt", "product_exempt", "not_subject_to_tax"])
    def test_exempt(self, de_regime, catalog, reason):
        ta = tax_amount(amount=0, taxability_reason=reason, tax_rate=make_tax_rate(percentage=0.0))
        tc = resolve_combo(ta, de_regime, catalog, ISSUE_DATE)
        assert tc.rate == "exempt"

    def test_undeterminable_category_dropped(self, de_regime, catalog):
        ta = tax_amount(tax_rate=make_tax_rate(tax_type=None, display_name=None))
        assert resolve_combo(ta, de_regime, catalog, ISSUE_DATE) is None

    def test_unexpanded_rate_uses_regime_category(self, de_regime, catalog):
        ta = tax_amount(amount=700, taxable_amount=10000, tax_rate="txr_1")
        tc = resolve_combo(ta, de_regime, catalog, ISSUE_DATE)
        assert tc.category == "VAT"
        assert tc.rate == "reduced"

    def test_vat_extensions_attached(self, de_regime, catalog):
        tc = resolve_combo(tax_amount(), de_regime, catalog, ISSUE_DATE, ext={"exemption": "E1"})
        assert tc.ext == {"exemption": "E1"}

    def test_extensions_ignored_for_other_categories(self, catalog):
        us = catalog.regime_def("US")
        ta = tax_amount(amount=800, tax_rate=make_tax_rate(percentage=8.0, tax_type="sales_tax", country="US"))
        tc = resolve_combo(ta, us, catalog, ISSUE_DATE, ext={"exemption": "E1"})
        assert tc.category == "ST"
        assert tc.percent == Decimal("8.0")
        assert tc.ext is None


class TestResolveTaxSet:
    def test_no_records_is_none(self, de_regime, catalog):
        assert resolve_tax_set([], de_regime, catalog, ISSUE_DATE) is None

    def test_only_dropped_records_is_none(self, de_regime, catalog):
        ta = tax_amount(tax_rate=make_tax_rate(tax_type=None, display_name=None))
        assert resolve_tax_set([ta], de_regime, catalog, ISSUE_DATE) is None

    def test_one_combo_per_record(self, de_regime, catalog):
        records = [tax_amount(), tax_amount(amount=700, tax_rate=make_tax_rate(percentage=7.0))]
        combos = resolve_tax_set(records, de_regime, catalog, ISSUE_DATE)
        assert [c.rate for c in combos] == ["standard", "reduced"]


class TestTaxInfo:
    def test_zero_entries_absent(self, de_regime):
        assert tax_info([], de_regime) is None

    def test_single_inclusive_entry(self, de_regime):
        info = tax_info([tax_amount(inclusive=True)], de_regime)
        assert info.prices_include == "VAT"

    def test_single_inclusive_sales_tax(self, de_regime):
        ta = tax_amount(inclusive=True, tax_rate=make_tax_rate(tax_type="sales_tax"))
        assert tax_info([ta], de_regime).prices_include == "ST"

    def test_single_exclusive_entry(self, de_regime):
        assert tax_info([tax_amount(inclusive=False)], de_regime) is None

    def test_multiple_with_inclusive_vat(self, de_regime):
        entries = [
            tax_amount(inclusive=False, tax_rate=make_tax_rate(tax_type="sales_tax")),
            tax_amount(inclusive=True),
        ]
        assert tax_info(entries, de_regime).prices_include == "VAT"

    def test_multiple_inclusive_non_vat(self, de_regime):
        entries = [
            tax_amount(inclusive=True, tax_rate=make_tax_rate(tax_type="sales_tax")),
            tax_amount(inclusive=False),
        ]
        assert tax_info(entries, de_regime) is None


class TestDocumentTags:
    def test_no_tags(self):
        assert document_tags([tax_amount()], "none", True) is None

    def test_reverse_charge_from_exempt_status(self):
        assert document_tags([], "reverse", True) == ["reverse-charge"]

    def test_reverse_charge_from_tax_records(self):
        ta = tax_amount(taxability_reason="reverse_charge")
        assert document_tags([ta], "none", True) == ["reverse-charge"]

    def test_simplified_without_customer_tax_id(self):
        assert document_tags([], "reverse", False) == ["reverse-charge", "simplified"]
