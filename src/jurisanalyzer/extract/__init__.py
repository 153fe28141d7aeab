"""Heuristic extraction of court decisions into LegalRecords."""

from jurisanalyzer.extract.extractor import (
    PARSE_FAILURE,
    ExtractionError,
    ExtractionResult,
    FieldExtractor,
    extract,
    is_markup,
)

__all__ = [
    "PARSE_FAILURE",
    "ExtractionError",
    "ExtractionResult",
    "FieldExtractor",
    "extract",
    "is_markup",
]
