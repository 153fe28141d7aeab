"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from jurisanalyzer.db.connection import Database
from jurisanalyzer.db.migrations import initialize
from jurisanalyzer.db.models import LegalRecord
from jurisanalyzer.store import StorageService

_ENV_VARS = ("JURIS_STORAGE_DIR", "JURIS_DB_PATH", "JURIS_LLM_MODEL")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep developer JURIS_* variables from leaking into config tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".juris.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def make_record():
    """Factory for LegalRecords with sensible defaults."""

    def _make(ecli="ECLI:PT:STJ:2022:167.15.9T9GRD.C1.S1", **overrides) -> LegalRecord:
        fields = dict(
            id=ecli,
            ecli=ecli,
            processo="167/15.9T9GRD.C1.S1",
            data="27/01/2022",
            relator="João Silva",
            descritores=["Abuso de confiança", "Prova"],
            sumario="I - Sumário do acórdão.",
            texto_integral="Acordam no Supremo Tribunal de Justiça...",
            adjuntos=["Ana Costa"],
            url="https://jurisprudencia.csm.org.pt/ecli/ECLI:PT:STJ:2022:167.15.9T9GRD.C1.S1/",
        )
        fields.update(overrides)
        return LegalRecord(**fields)

    return _make


@pytest.fixture(params=["direct", "virtual"])
def store(request, tmp_path):
    """A StorageService on each backend in turn; callers cannot tell them apart."""
    service = StorageService(db_path=tmp_path / "virtual.db")
    directory = tmp_path / "acordaos" if request.param == "direct" else None
    selection = service.select_backend(directory)
    assert selection.success and selection.mode == request.param
    yield service
    service.close()
