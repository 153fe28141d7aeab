"""Repository pattern for the virtual backend's SQLite tables.

Two independent keyed collections: raw captures (by name) and legal records
(by id). Every write is an upsert, so repeated ingestion never duplicates.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time

from jurisanalyzer.db.models import ImportMalformed, LegalRecord, RawCapture

logger = logging.getLogger(__name__)


class Repository:
    """Data access layer for raw captures and legal records.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see jurisanalyzer.db.migrations.initialize).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Raw captures
    # ------------------------------------------------------------------

    def upsert_raw_capture(self, capture: RawCapture) -> None:
        """Insert or replace the raw capture stored under ``capture.name``."""
        timestamp = capture.timestamp if capture.timestamp is not None else time.time()
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO raw_captures (name, content, subfolder, timestamp)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET
                    content = excluded.content,
                    subfolder = excluded.subfolder,
                    timestamp = excluded.timestamp
                """,
                (capture.name, capture.content, capture.subfolder, timestamp),
            )

    def get_raw_capture(self, name: str) -> RawCapture | None:
        row = self._conn.execute(
            "SELECT name, content, subfolder, timestamp FROM raw_captures WHERE name = ?",
            (name,),
        ).fetchone()
        return _row_to_capture(row) if row else None

    def list_raw_captures(self) -> list[RawCapture]:
        """Return every raw capture (oldest first)."""
        rows = self._conn.execute(
            "SELECT name, content, subfolder, timestamp FROM raw_captures ORDER BY timestamp"
        ).fetchall()
        return [_row_to_capture(r) for r in rows]

    def delete_raw_capture(self, name: str) -> None:
        """Delete a raw capture by name. Missing names are ignored."""
        with self._conn:
            self._conn.execute("DELETE FROM raw_captures WHERE name = ?", (name,))

    # ------------------------------------------------------------------
    # Legal records
    # ------------------------------------------------------------------

    def upsert_legal_record(self, record: LegalRecord, key: str | None = None) -> None:
        """Insert or replace the record stored under *key* (default: ``record.id``)."""
        payload = json.dumps(record.to_dict(), ensure_ascii=False)
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO legal_records (id, ecli, payload)
                VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    ecli = excluded.ecli,
                    payload = excluded.payload,
                    updated_at = datetime('now')
                """,
                (key or record.id, record.ecli, payload),
            )

    def get_legal_record(self, record_id: str) -> LegalRecord | None:
        row = self._conn.execute(
            "SELECT id, payload FROM legal_records WHERE id = ?", (record_id,)
        ).fetchone()
        if row is None:
            return None
        return _row_to_record(row)

    def list_legal_records(self) -> list[LegalRecord]:
        """Return all records that parse; malformed payloads are logged and skipped."""
        rows = self._conn.execute(
            "SELECT id, payload FROM legal_records ORDER BY updated_at, id"
        ).fetchall()
        records: list[LegalRecord] = []
        for row in rows:
            try:
                records.append(_row_to_record(row))
            except (ValueError, ImportMalformed) as exc:
                logger.warning("Skipping stored record %r: %s", row["id"], exc)
        return records

    def count_legal_records(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM legal_records").fetchone()[0]

    def delete_legal_record(self, record_id: str) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM legal_records WHERE id = ?", (record_id,))


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------


def _row_to_capture(row: sqlite3.Row) -> RawCapture:
    return RawCapture(
        name=row["name"],
        content=row["content"],
        subfolder=row["subfolder"],
        timestamp=row["timestamp"],
    )


def _row_to_record(row: sqlite3.Row) -> LegalRecord:
    # json.JSONDecodeError is a ValueError subclass
    return LegalRecord.from_dict(json.loads(row["payload"]))
