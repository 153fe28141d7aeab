"""Virtual backend — embedded SQLite database with two keyed tables."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from jurisanalyzer.db.connection import Database
from jurisanalyzer.db.migrations import initialize
from jurisanalyzer.db.models import LegalRecord, RawCapture
from jurisanalyzer.db.repository import Repository
from jurisanalyzer.store.base import VIRTUAL, StorageBackend, StorageUnavailable


class VirtualBackend(StorageBackend):
    """Store captures and records in a local SQLite file.

    Used when no directory was granted or the directory is not writable.
    Every write runs in its own transaction.
    """

    mode = VIRTUAL

    def __init__(self, db_path: Path | str) -> None:
        try:
            self._conn = Database(db_path).connect()
            initialize(self._conn)
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"Cannot open database '{db_path}': {exc}") from exc
        self._repo = Repository(self._conn)

    def save_raw_capture(self, capture: RawCapture) -> None:
        self._repo.upsert_raw_capture(capture)

    def list_raw_captures(self) -> list[RawCapture]:
        return self._repo.list_raw_captures()

    def delete_raw_capture(self, name: str) -> None:
        self._repo.delete_raw_capture(name)

    def save_legal_record(self, record: LegalRecord, key: str) -> None:
        self._repo.upsert_legal_record(record, key=key)

    def list_legal_records(self) -> list[LegalRecord]:
        return self._repo.list_legal_records()

    def close(self) -> None:
        self._conn.close()
