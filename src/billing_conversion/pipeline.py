"""Conversion pipeline: parse → assemble → calculate/validate."""
from __future__ import annotations

import time
from collections.abc import Iterable

from .assembler import assemble
from .config import Settings
from .errors import ConversionError
from .international.regimes import DEFAULT_CATALOG, RegimeCatalog
from .models.document import Document
from .models.source import Account, parse_account, parse_source
from .processor import DocumentProcessor
from .utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


class ConversionPipeline:
    """Converts billing platform payloads into canonical documents.

    Holds only read-only collaborators, so one instance can serve any number
    of concurrent conversions.
    """

    def __init__(
        self,
        settings: Settings,
        catalog: RegimeCatalog | None = None,
        processor: DocumentProcessor | None = None,
    ):
        self.settings = settings
        self.catalog = catalog or DEFAULT_CATALOG
        self.processor = processor

    def convert(self, payload: dict, account: dict | Account | None = None) -> Document:
        """Convert one invoice or credit note payload."""
        start_time = time.monotonic()
        source_id = payload.get("id") if isinstance(payload, dict) else None
        log = logger.bind(source_id=source_id)
        log.info("conversion_started", object=payload.get("object") if isinstance(payload, dict) else None)

        try:
            doc = parse_source(payload)
            document = assemble(doc, self.settings, self.catalog, parse_account(account))
        except ConversionError as e:
            log.warning("conversion_failed", **e.context(), error=str(e))
            raise

        if self.processor is not None and self.settings.calculate:
            document = self.processor.calculate(document)
            self.processor.validate(document)

        log.info(
            "conversion_completed",
            type=str(document.type),
            regime=document.regime,
            lines=len(document.lines),
            duration_ms=int((time.monotonic() - start_time) * 1000),
        )
        return document

    def convert_many(self, payloads: Iterable[dict], account: dict | Account | None = None) -> list[Document]:
        """Convert payloads one after another; the first failure stops the run."""
        return [self.convert(payload, account) for payload in payloads]


def create_pipeline(
    settings: Settings | None = None,
    catalog: RegimeCatalog | None = None,
    processor: DocumentProcessor | None = None,
) -> ConversionPipeline:
    """Create a pipeline for a long-running process.

    Reads settings from the environment when none are given and configures
    logging at ``settings.log_level``.
    """
    if settings is None:
        settings = Settings()
    setup_logging(settings.log_level)
    return ConversionPipeline(settings, catalog=catalog, processor=processor)
