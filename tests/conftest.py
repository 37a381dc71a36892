"""Shared test fixtures."""
import pytest
from unittest.mock import MagicMock
from billing_conversion.config import Settings
from billing_conversion.international.regimes import DEFAULT_CATALOG
from billing_conversion.processor import DocumentProcessor
from tests.factories import TEST_NAMESPACE


@pytest.fixture
def settings():
    """Settings with a fixed namespace so identifiers are deterministic."""
    return Settings(namespace=TEST_NAMESPACE)


@pytest.fixture
def settings_without_namespace():
    return Settings(namespace=None)


@pytest.fixture
def catalog():
    return DEFAULT_CATALOG


@pytest.fixture
def de_regime(catalog):
    return catalog.regime_def("DE")


@pytest.fixture
def es_regime(catalog):
    return catalog.regime_def("ES")


@pytest.fixture
def mock_processor():
    """A processor that returns the document it is given."""
    processor = MagicMock(spec=DocumentProcessor)
    processor.calculate.side_effect = lambda document: document
    processor.validate.return_value = None
    return processor
