"""Tests for the backend-specific layouts: files on disk and SQLite rows."""

from __future__ import annotations

import json
import logging

import pytest

from jurisanalyzer.db.models import RawCapture
from jurisanalyzer.store import DirectoryBackend, StorageUnavailable, VirtualBackend


@pytest.fixture
def backend(tmp_path):
    return DirectoryBackend(tmp_path / "acordaos")


# ------------------------------------------------------------------
# DirectoryBackend
# ------------------------------------------------------------------


def test_directory_created_on_acquire(tmp_path):
    DirectoryBackend(tmp_path / "a" / "b")
    assert (tmp_path / "a" / "b").is_dir()
    assert list((tmp_path / "a" / "b").iterdir()) == []


def test_directory_on_file_is_unavailable(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(StorageUnavailable, match="not writable"):
        DirectoryBackend(blocker)


def test_record_file_named_by_key(backend, make_record):
    record = make_record()
    backend.save_legal_record(record, "ECLI_PT_STJ_2022_167.15.9T9GRD.C1.S1")

    path = backend.root / "ECLI_PT_STJ_2022_167.15.9T9GRD.C1.S1.json"
    assert backend.record_path("ECLI_PT_STJ_2022_167.15.9T9GRD.C1.S1") == path
    text = path.read_text(encoding="utf-8")
    assert '\n  "ecli": ' in text  # indent=2
    assert "João Silva" in text  # non-ASCII kept as-is
    assert json.loads(text)["textoIntegral"] == record.texto_integral


def test_no_temp_files_left_after_write(backend, make_record):
    backend.save_legal_record(make_record(), "rec")
    backend.save_raw_capture(RawCapture(name="doc", content="x"))
    leftovers = [p.name for p in backend.root.iterdir() if p.name.startswith(".tmp-")]
    assert leftovers == []


def test_raw_capture_file_layout(backend):
    backend.save_raw_capture(RawCapture(name="doc", content="texto", subfolder="stj"))
    assert (backend.root / "stj" / "doc.txt").read_text(encoding="utf-8") == "texto"


def test_raw_capture_moved_between_subfolders_keeps_one(backend):
    backend.save_raw_capture(RawCapture(name="doc", content="a", subfolder="stj"))
    backend.save_raw_capture(RawCapture(name="doc", content="b"))
    captures = backend.list_raw_captures()
    assert [(c.name, c.content, c.subfolder) for c in captures] == [("doc", "b", None)]


def test_raw_capture_name_with_brackets(backend):
    backend.save_raw_capture(RawCapture(name="doc[1]", content="x"))
    backend.delete_raw_capture("doc[1]")
    assert backend.list_raw_captures() == []


def test_list_records_skips_unreadable_file(backend, make_record, caplog):
    backend.save_legal_record(make_record(), "rec")
    (backend.root / "broken.json").write_text("{not json", encoding="utf-8")
    (backend.root / "no-ecli.json").write_text('{"processo": "1/20"}', encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="jurisanalyzer.store.directory"):
        records = backend.list_legal_records()

    assert len(records) == 1
    assert "broken.json" in caplog.text
    assert "no-ecli.json" in caplog.text


def test_list_is_recursive(backend, make_record):
    sub = backend.root / "2022"
    sub.mkdir()
    (sub / "x.json").write_text(json.dumps(make_record().to_dict()), encoding="utf-8")
    (sub / "pending.txt").write_text("texto", encoding="utf-8")
    assert len(backend.list_legal_records()) == 1
    assert backend.list_raw_captures()[0].subfolder == "2022"


# ------------------------------------------------------------------
# VirtualBackend
# ------------------------------------------------------------------


def test_virtual_backend_in_memory(make_record):
    backend = VirtualBackend(":memory:")
    backend.save_raw_capture(RawCapture(name="doc", content="x"))
    backend.save_legal_record(make_record(), "rec")
    assert [c.name for c in backend.list_raw_captures()] == ["doc"]
    assert len(backend.list_legal_records()) == 1
    backend.close()


def test_virtual_backend_persists_across_sessions(tmp_path, make_record):
    first = VirtualBackend(tmp_path / "v.db")
    first.save_legal_record(make_record(), "rec")
    first.close()

    second = VirtualBackend(tmp_path / "v.db")
    assert len(second.list_legal_records()) == 1
    second.close()


def test_virtual_backend_unopenable_path(tmp_path):
    with pytest.raises(StorageUnavailable):
        VirtualBackend(tmp_path / "missing" / "v.db")
