"""Tests for the ingestion orchestrator — classification, dedup, persistence, batches."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from jurisanalyzer.config import IngestCfg
from jurisanalyzer.extract import ExtractionError, ExtractionResult, FieldExtractor
from jurisanalyzer.ingest import (
    FetchExhausted,
    FetchResult,
    IngestionSession,
    IngestState,
    Orchestrator,
    Outcome,
    PortalFetcher,
)
from jurisanalyzer.store import StorageService, StorageWriteFailure

_PREFIX = "https://jurisprudencia.csm.org.pt/"
_URL = _PREFIX + "ecli/ECLI_PT_STJ_2022_167_15"
_NOW = 1_700_000_000.0


def _decision(relator: str = "João Silva") -> str:
    return "\n".join(
        [
            "Processo: 167/15.9T9GRD.C1.S1",
            f"Relator: {relator}",
            "Data do Acórdão: 27/01/2022",
            "Sumário:",
            "I - O crime de abuso de confiança exige a inversão do título da posse.",
            "Decisão Texto Integral:",
            "Acordam no Supremo Tribunal de Justiça. " * 5,
            relator,
            "Ana Costa",
        ]
    )


_HTML = (
    "<html><body><div class='field-name-relator'><div class='field-item'>João Silva</div></div>"
    "<p>Acórdão</p></body></html>"
)


@pytest.fixture
def store(tmp_path):
    service = StorageService(db_path=tmp_path / "v.db")
    service.select_backend()
    yield service
    service.close()


@pytest.fixture
def fetcher():
    mock = MagicMock(spec=PortalFetcher)
    mock.fetch.return_value = FetchResult(content=_HTML, strategy="direct")
    return mock


@pytest.fixture
def extractor():
    return MagicMock(wraps=FieldExtractor(clock=lambda: _NOW))


@pytest.fixture
def sleep():
    return MagicMock()


@pytest.fixture
def orch(store, fetcher, extractor, sleep):
    return Orchestrator(
        store,
        fetcher,
        extractor=extractor,
        config=IngestCfg(batch_delay=0.5),
        sleep=sleep,
        clock=lambda: _NOW,
    )


# ------------------------------------------------------------------
# Classification
# ------------------------------------------------------------------


def test_classify_portal_url(orch):
    assert orch.classify(_URL) == "url"


def test_classify_decision_text(orch):
    assert orch.classify(_decision()) == "content"


def test_classify_short_text_ignored(orch):
    assert orch.classify("Relator: João Silva") is None


def test_classify_long_text_without_markers_ignored(orch):
    assert orch.classify("lorem ipsum dolor " * 20) is None


def test_classify_other_site_ignored(orch):
    assert orch.classify("https://www.dgsi.pt/jstj.nsf/abc") is None


# ------------------------------------------------------------------
# Single candidate
# ------------------------------------------------------------------


def test_pasted_text_processed_and_raw_capture_removed(orch, store):
    result = orch.handle_candidate(_decision())

    assert result.outcome is Outcome.PROCESSED
    assert result.name == "captura_1700000000000"
    assert result.record.relator == "João Silva"
    assert result.record.adjuntos == ["Ana Costa"]
    assert [r.id for r in store.list_legal_records()] == [result.record.id]
    assert store.list_raw_captures() == []
    assert orch.session.state is IngestState.IDLE


def test_same_candidate_twice_extracts_once(orch, extractor, store):
    first = orch.handle_candidate(_decision())
    second = orch.handle_candidate(_decision())

    assert first.outcome is Outcome.PROCESSED
    assert second.outcome is Outcome.DUPLICATE
    assert extractor.extract.call_count == 1
    assert len(store.list_legal_records()) == 1


def test_new_candidate_after_duplicate_is_processed(orch, extractor):
    orch.handle_candidate(_decision())
    result = orch.handle_candidate(_decision(relator="Maria Santos"))
    assert result.outcome is Outcome.PROCESSED
    assert extractor.extract.call_count == 2


def test_ignored_candidate_stores_nothing(orch, store, extractor):
    result = orch.handle_candidate("texto curto")
    assert result.outcome is Outcome.IGNORED
    assert store.list_raw_captures() == []
    extractor.extract.assert_not_called()


def test_portal_url_fetched_and_named_by_segment(orch, fetcher, store):
    result = orch.handle_candidate(_URL)

    fetcher.fetch.assert_called_once_with(_URL)
    assert result.outcome is Outcome.PROCESSED
    assert result.name == "ECLI_PT_STJ_2022_167_15"
    assert result.record.ecli == "ECLI:PT:STJ:2022:167:15"
    assert result.record.url == _URL
    assert store.list_raw_captures() == []


def test_portal_url_without_path_gets_generated_name(orch):
    result = orch.handle_candidate(_PREFIX)
    assert result.name == "captura_1700000000000"


def test_fetch_exhausted_requires_manual_capture(orch, fetcher, store):
    fetcher.fetch.side_effect = FetchExhausted(_URL, ["direct: timeout"])

    result = orch.handle_candidate(_URL)

    assert result.outcome is Outcome.MANUAL_CAPTURE_REQUIRED
    assert orch.session.state is IngestState.MANUAL_CAPTURE_REQUIRED
    assert store.list_raw_captures() == []
    assert store.list_legal_records() == []


def test_failed_candidate_is_not_remembered(orch, fetcher):
    fetcher.fetch.side_effect = [
        FetchExhausted(_URL, []),
        FetchResult(content=_HTML, strategy="direct"),
    ]
    assert orch.handle_candidate(_URL).outcome is Outcome.MANUAL_CAPTURE_REQUIRED
    assert orch.handle_candidate(_URL).outcome is Outcome.PROCESSED


def test_extraction_failure_keeps_raw_capture(orch, extractor, store):
    extractor.extract.side_effect = None
    extractor.extract.return_value = ExtractionResult(
        success=False, error=ExtractionError("parse-failure", "bad input")
    )

    result = orch.handle_candidate(_decision())

    assert result.outcome is Outcome.DEFERRED
    assert result.message == "bad input"
    assert [c.name for c in store.list_raw_captures()] == ["captura_1700000000000"]
    assert store.list_legal_records() == []


def test_store_failure_reported_and_raw_capture_kept(orch, store, monkeypatch):
    def fail(record):
        raise StorageWriteFailure("disk full")

    monkeypatch.setattr(store, "save_legal_record", fail)

    result = orch.handle_candidate(_decision())

    assert result.outcome is Outcome.FAILED
    assert "disk full" in result.message
    assert len(store.list_raw_captures()) == 1


def test_busy_while_in_flight(orch, extractor):
    orch.session.in_flight = True
    result = orch.handle_candidate(_decision())
    assert result.outcome is Outcome.BUSY
    extractor.extract.assert_not_called()


def test_sessions_are_isolated(store, fetcher):
    a = Orchestrator(store, fetcher, session=IngestionSession(), clock=lambda: 1.0)
    b = Orchestrator(store, fetcher, session=IngestionSession(), clock=lambda: 2.0)
    a.handle_candidate(_decision())
    assert b.handle_candidate(_decision()).outcome is Outcome.PROCESSED


# ------------------------------------------------------------------
# Batches
# ------------------------------------------------------------------


def test_batch_processes_sequentially_with_delay(orch, fetcher, sleep, store):
    urls = [_PREFIX + f"ecli/ECLI_PT_STJ_2022_{i}" for i in range(3)]
    progress = []

    report = orch.process_batch(urls, on_progress=lambda done, total, r: progress.append((done, total)))

    assert report.succeeded == 3
    assert report.failed == 0
    assert progress == [(1, 3), (2, 3), (3, 3)]
    assert sleep.call_count == 2
    sleep.assert_called_with(0.5)
    assert len(store.list_legal_records()) == 3
    assert not orch.session.in_flight


def test_batch_counts_failures(orch, fetcher):
    fetcher.fetch.side_effect = [
        FetchResult(content=_HTML, strategy="direct"),
        FetchExhausted(_URL, []),
    ]
    report = orch.process_batch([_PREFIX + "ecli/ECLI_PT_STJ_2022_1", _PREFIX + "ecli/ECLI_PT_STJ_2022_2"])
    assert (report.succeeded, report.failed) == (1, 1)
    assert report.results[1].outcome is Outcome.MANUAL_CAPTURE_REQUIRED


def test_batch_cancel_stops_remaining_items(orch, store):
    urls = [_PREFIX + f"ecli/ECLI_PT_STJ_2022_{i}" for i in range(4)]

    report = orch.process_batch(urls, on_progress=lambda done, total, r: orch.cancel())

    assert report.succeeded == 1
    assert len(report.results) == 1
    assert len(store.list_legal_records()) == 1


def test_batch_rejected_while_in_flight(orch, fetcher):
    orch.session.in_flight = True
    report = orch.process_batch([_URL])
    assert report.results[0].outcome is Outcome.BUSY
    fetcher.fetch.assert_not_called()


# ------------------------------------------------------------------
# Pending captures
# ------------------------------------------------------------------


def test_process_pending_turns_captures_into_records(orch, store):
    store.save_raw_capture("captura_1", _decision())
    store.save_raw_capture("captura_2", "apenas umas palavras")

    report = orch.process_pending()

    assert report.succeeded == 2
    assert store.list_raw_captures() == []
    assert len(store.list_legal_records()) == 2
