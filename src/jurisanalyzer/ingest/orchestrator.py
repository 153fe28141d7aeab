"""Ingestion orchestrator — candidate → raw capture → LegalRecord.

Per capture event:
  idle → candidate-detected → (url | content) → fetched → extracted → persisted → idle
with ``manual-capture-required`` when every fetch strategy failed.

Raw content is always saved as a RawCapture before extraction, so a failed
extraction never loses the captured text. The RawCapture is deleted only once
its LegalRecord has been saved.
"""

from __future__ import annotations

import enum
import logging
import time
import urllib.parse
from dataclasses import dataclass, field
from typing import Callable, Iterable

from jurisanalyzer.config import IngestCfg
from jurisanalyzer.db.models import LegalRecord
from jurisanalyzer.extract.extractor import ExtractionResult, FieldExtractor
from jurisanalyzer.ingest.fetch import FetchExhausted, PortalFetcher
from jurisanalyzer.store.base import StorageError
from jurisanalyzer.store.service import StorageService

logger = logging.getLogger(__name__)

# Words that mark pasted text as a court decision worth extracting.
CONTENT_MARKERS: tuple[str, ...] = (
    "relator",
    "acórdão",
    "acordão",
    "processo",
    "ecli",
    "sumário",
    "tribunal",
)


class IngestState(str, enum.Enum):
    IDLE = "idle"
    CANDIDATE_DETECTED = "candidate-detected"
    FETCHED = "fetched"
    EXTRACTED = "extracted"
    PERSISTED = "persisted"
    MANUAL_CAPTURE_REQUIRED = "manual-capture-required"


class Outcome(str, enum.Enum):
    PROCESSED = "processed"
    DEFERRED = "deferred"  # raw capture saved, extraction failed
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    BUSY = "busy"
    CANCELLED = "cancelled"
    MANUAL_CAPTURE_REQUIRED = "manual-capture-required"
    FAILED = "failed"


@dataclass
class CaptureResult:
    outcome: Outcome
    name: str | None = None
    record: LegalRecord | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.PROCESSED


@dataclass
class BatchReport:
    succeeded: int = 0
    failed: int = 0
    results: list[CaptureResult] = field(default_factory=list)


@dataclass
class IngestionSession:
    """Mutable per-session state, held explicitly rather than globally."""

    last_candidate: str | None = None
    in_flight: bool = False
    cancelled: bool = False
    state: IngestState = IngestState.IDLE


class Orchestrator:
    """Drive captured candidates through extraction into the store.

    Args:
        store:     A StorageService with a backend already selected.
        fetcher:   PortalFetcher used for portal URLs.
        extractor: FieldExtractor turning raw content into records.
        config:    Ingest settings (portal prefix, thresholds, batch delay).
        session:   Session state; a fresh one is created when omitted.
        sleep:     Delay function between batch items (patched in tests).
        clock:     Current time in seconds, used for ``captura_<millis>`` names.
    """

    def __init__(
        self,
        store: StorageService,
        fetcher: PortalFetcher,
        extractor: FieldExtractor | None = None,
        config: IngestCfg | None = None,
        session: IngestionSession | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._extractor = extractor or FieldExtractor()
        self._cfg = config or IngestCfg()
        self.session = session or IngestionSession()
        self._sleep = sleep
        self._clock = clock

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify(self, candidate: str) -> str | None:
        """Return ``"url"``, ``"content"``, or None for anything else."""
        text = candidate.strip()
        if text.startswith(self._cfg.portal_prefix):
            return "url"
        if len(text) >= self._cfg.min_content_length:
            lowered = text.lower()
            if any(marker in lowered for marker in CONTENT_MARKERS):
                return "content"
        return None

    # ------------------------------------------------------------------
    # Single candidate (focus event / paste)
    # ------------------------------------------------------------------

    def handle_candidate(self, candidate: str) -> CaptureResult:
        """Process one candidate unless it repeats the last processed one.

        Returns immediately with ``busy`` while another run is in flight.
        """
        if self.session.in_flight:
            return CaptureResult(Outcome.BUSY, message="An ingestion run is already in progress.")

        text = (candidate or "").strip()
        if text and text == self.session.last_candidate:
            return CaptureResult(Outcome.DUPLICATE)

        self.session.in_flight = True
        self.session.cancelled = False
        try:
            result = self._process(text)
        finally:
            self.session.in_flight = False
            if self.session.state is not IngestState.MANUAL_CAPTURE_REQUIRED:
                self.session.state = IngestState.IDLE

        if result.outcome is Outcome.PROCESSED:
            self.session.last_candidate = text
        return result

    # ------------------------------------------------------------------
    # Batch (bulk URL list)
    # ------------------------------------------------------------------

    def process_batch(
        self,
        candidates: Iterable[str],
        on_progress: Callable[[int, int, CaptureResult], None] | None = None,
    ) -> BatchReport:
        """Process *candidates* sequentially with a fixed delay between items."""
        report = BatchReport()
        if self.session.in_flight:
            report.results.append(
                CaptureResult(Outcome.BUSY, message="An ingestion run is already in progress.")
            )
            return report

        items = [c.strip() for c in candidates if c and c.strip()]
        self.session.in_flight = True
        self.session.cancelled = False
        try:
            for index, item in enumerate(items):
                if self.session.cancelled:
                    logger.info("Batch cancelled after %d of %d items", index, len(items))
                    break
                if index > 0 and self._cfg.batch_delay > 0:
                    self._sleep(self._cfg.batch_delay)
                result = self._process(item)
                _tally(report, result)
                if on_progress is not None:
                    on_progress(index + 1, len(items), result)
        finally:
            self.session.in_flight = False
            self.session.state = IngestState.IDLE
        return report

    def process_pending(self) -> BatchReport:
        """Re-run extraction over every raw capture still standing in the store."""
        report = BatchReport()
        if self.session.in_flight:
            report.results.append(
                CaptureResult(Outcome.BUSY, message="An ingestion run is already in progress.")
            )
            return report

        self.session.in_flight = True
        self.session.cancelled = False
        try:
            for capture in self._store.list_raw_captures():
                if self.session.cancelled:
                    break
                result = self._extract_and_persist(capture.content, capture.name, capture.name)
                _tally(report, result)
        finally:
            self.session.in_flight = False
            self.session.state = IngestState.IDLE
        return report

    def cancel(self) -> None:
        """Abandon the remaining candidates of the current run."""
        self.session.cancelled = True

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _process(self, candidate: str) -> CaptureResult:
        kind = self.classify(candidate) if candidate else None
        if kind is None:
            return CaptureResult(Outcome.IGNORED, message="Not a portal URL or decision text.")

        self.session.state = IngestState.CANDIDATE_DETECTED
        if kind == "url":
            try:
                fetched = self._fetcher.fetch(candidate)
            except FetchExhausted as exc:
                logger.warning("%s", exc)
                self.session.state = IngestState.MANUAL_CAPTURE_REQUIRED
                return CaptureResult(
                    Outcome.MANUAL_CAPTURE_REQUIRED,
                    message=f"Could not download {candidate}; copy the page text manually.",
                )
            except ValueError as exc:
                return CaptureResult(Outcome.FAILED, message=str(exc))
            self.session.state = IngestState.FETCHED
            name = _name_from_url(candidate, self._clock())
            content, locator = fetched.content, candidate
        else:
            name = f"captura_{int(self._clock() * 1000)}"
            content, locator = candidate, name

        if self.session.cancelled:
            return CaptureResult(Outcome.CANCELLED, name=name)

        try:
            name = self._store.save_raw_capture(name, content)
        except StorageError as exc:
            logger.error("Could not save raw capture %s: %s", name, exc)
            return CaptureResult(Outcome.FAILED, name=name, message=str(exc))

        return self._extract_and_persist(content, locator, name)

    def _extract_and_persist(self, content: str, locator: str, name: str) -> CaptureResult:
        result: ExtractionResult = self._extractor.extract(content, locator)
        if not result.success or result.record is None:
            message = result.error.message if result.error else "extraction failed"
            logger.warning("Extraction deferred for %s: %s", name, message)
            return CaptureResult(Outcome.DEFERRED, name=name, message=message)
        self.session.state = IngestState.EXTRACTED

        record = result.record
        try:
            self._store.save_legal_record(record)
        except StorageError as exc:
            logger.error("Could not save record %s: %s", record.id, exc)
            return CaptureResult(Outcome.FAILED, name=name, record=record, message=str(exc))
        self.session.state = IngestState.PERSISTED

        try:
            self._store.delete_raw_capture(name)
        except StorageError as exc:
            # The record exists; a leftover capture is re-processed idempotently later.
            logger.warning("Could not remove processed capture %s: %s", name, exc)

        return CaptureResult(Outcome.PROCESSED, name=name, record=record)


def _name_from_url(url: str, now: float) -> str:
    path = urllib.parse.urlparse(url).path
    segments = [s for s in path.split("/") if s]
    if segments:
        return urllib.parse.unquote(segments[-1])
    return f"captura_{int(now * 1000)}"


def _tally(report: BatchReport, result: CaptureResult) -> None:
    report.results.append(result)
    if result.ok:
        report.succeeded += 1
    else:
        report.failed += 1
