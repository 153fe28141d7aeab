"""Tests for export / import of the record collection."""

from __future__ import annotations

import json
from datetime import date

import pytest

from jurisanalyzer.db.models import ImportMalformed
from jurisanalyzer.store import export_all, export_filename, parse_import


def test_export_all_pretty_utf8(make_record):
    data = export_all([make_record()])
    text = data.decode("utf-8")
    assert text.startswith("[\n  {")
    assert "João Silva" in text
    assert json.loads(text)[0]["relator"] == "João Silva"


def test_export_then_import_preserves_records(make_record):
    records = [make_record("ECLI:PT:STJ:2022:1"), make_record("ECLI:PT:STJ:2022:2", fundamentacao="x")]
    report = parse_import(export_all(records))
    assert report.records == records
    assert report.errors == []


def test_export_filename_is_date_stamped():
    assert export_filename(date(2026, 10, 19)) == "jurisprudencia_total_2026-10-19.json"


def test_parse_import_accepts_bom():
    data = "\ufeff" + json.dumps({"ecli": "ECLI:PT:STJ:2022:1"})
    report = parse_import(data.encode("utf-8"))
    assert [r.ecli for r in report.records] == ["ECLI:PT:STJ:2022:1"]


def test_parse_import_collects_errors_with_position():
    report = parse_import(json.dumps([{"ecli": "ECLI:PT:STJ:2022:1"}, 42]))
    assert len(report.records) == 1
    assert "entry 1" in str(report.errors[0])


@pytest.mark.parametrize("payload", ["not json", "42", '"texto"', b"\xff\xfe"])
def test_parse_import_rejects_whole_file(payload):
    with pytest.raises(ImportMalformed):
        parse_import(payload)
