"""JurisAnalyzer ingest pipeline — portal fetcher and capture orchestrator."""

from jurisanalyzer.ingest.fetch import FetchExhausted, FetchResult, FetchStrategy, PortalFetcher
from jurisanalyzer.ingest.orchestrator import (
    BatchReport,
    CaptureResult,
    IngestionSession,
    IngestState,
    Orchestrator,
    Outcome,
)

__all__ = [
    "FetchExhausted",
    "FetchResult",
    "FetchStrategy",
    "PortalFetcher",
    "BatchReport",
    "CaptureResult",
    "IngestionSession",
    "IngestState",
    "Orchestrator",
    "Outcome",
]
