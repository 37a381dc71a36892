"""Test the conversion error taxonomy."""
from billing_conversion.errors import ConversionError, ErrorKind, FieldError, missing_field


class TestConversionError:
    def test_is_kind(self):
        err = ConversionError(ErrorKind.MISSING_FIELD, "missing account name")
        assert err.is_kind(ErrorKind.MISSING_FIELD)
        assert err.is_kind(ErrorKind.MALFORMED_INPUT, ErrorKind.MISSING_FIELD)
        assert not err.is_kind(ErrorKind.UNSUPPORTED_REGIME)

    def test_str_with_fields(self):
        err = ConversionError(
            ErrorKind.MALFORMED_INPUT,
            "invalid invoice payload",
            fields=[FieldError(field="lines.data.0.amount", message="Input should be a valid integer")],
        )
        assert str(err) == (
            "malformed_input: invalid invoice payload "
            "(lines.data.0.amount: Input should be a valid integer)"
        )

    def test_str_fields_only(self):
        err = ConversionError(ErrorKind.MALFORMED_INPUT, fields=[FieldError(field="id", message="required")])
        assert str(err) == "malformed_input: id: required"

    def test_context(self):
        err = ConversionError(ErrorKind.UNSUPPORTED_REGIME, "no regime", source_id="inv_1", field="account_country", code="ZZ")
        assert err.context() == {
            "error_kind": "unsupported_regime",
            "source_id": "inv_1",
            "field": "account_country",
            "code": "ZZ",
        }

    def test_defaults(self):
        err = ConversionError(ErrorKind.UNSUPPORTED_DOCUMENT)
        assert err.fields == []
        assert err.source_id is None


class TestMissingField:
    def test_message_and_field(self):
        err = missing_field("account_name", "inv_1")
        assert err.kind == ErrorKind.MISSING_FIELD
        assert err.message == "missing account name"
        assert err.field == "account_name"
        assert err.source_id == "inv_1"
