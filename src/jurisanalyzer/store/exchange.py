"""Export / import of the processed collection as a single JSON document."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date

from jurisanalyzer.db.models import ImportMalformed, LegalRecord


@dataclass
class ImportReport:
    """Records accepted from an import file, and why the others were rejected."""

    records: list[LegalRecord] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)


def export_all(records: list[LegalRecord]) -> bytes:
    """Serialize *records* to a pretty-printed UTF-8 JSON array."""
    payload = [r.to_dict() for r in records]
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


def export_filename(today: date | None = None) -> str:
    """Date-stamped download name, e.g. ``jurisprudencia_total_2026-10-19.json``."""
    day = today or date.today()
    return f"jurisprudencia_total_{day.isoformat()}.json"


def parse_import(data: bytes | str) -> ImportReport:
    """Parse an export file holding one record or a list of records.

    Entries that do not form a valid record are collected in
    ``ImportReport.errors``; the remaining entries are still returned.

    Raises:
        ImportMalformed: If *data* is not JSON at all, or its top level is
            neither an object nor a list.
    """
    try:
        text = data.decode("utf-8-sig") if isinstance(data, bytes) else data
        parsed = json.loads(text)
    except ValueError as exc:
        raise ImportMalformed(f"not a JSON document: {exc}") from exc

    if isinstance(parsed, dict):
        entries = [parsed]
    elif isinstance(parsed, list):
        entries = parsed
    else:
        raise ImportMalformed(
            f"expected a record or a list of records, got {type(parsed).__name__}"
        )

    report = ImportReport()
    for index, entry in enumerate(entries):
        try:
            report.records.append(LegalRecord.from_dict(entry))
        except ImportMalformed as exc:
            report.errors.append(ImportMalformed(f"entry {index}: {exc}"))
    return report
