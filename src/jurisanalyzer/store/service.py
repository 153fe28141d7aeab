"""StorageService — one storage surface over the direct and virtual backends.

The service picks a backend once per session (directory first, SQLite
fallback) and then exposes the same operations whichever backend was granted.
Callers only look at ``mode`` to show a status indicator.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from jurisanalyzer.config import StorageCfg
from jurisanalyzer.db.models import LegalRecord, RawCapture, sanitize_name
from jurisanalyzer.store.base import (
    VIRTUAL,
    StorageBackend,
    StorageError,
    StorageUnavailable,
    StorageWriteFailure,
)
from jurisanalyzer.store.directory import DirectoryBackend
from jurisanalyzer.store.exchange import ImportReport, parse_import
from jurisanalyzer.store.virtual import VirtualBackend

logger = logging.getLogger(__name__)


@dataclass
class BackendSelection:
    success: bool
    mode: str | None = None


class StorageService:
    """Session-scoped storage facade.

    Args:
        db_path: SQLite file used by the virtual backend.
    """

    def __init__(self, db_path: Path | str = ".juris.db") -> None:
        self._db_path = db_path
        self._backend: StorageBackend | None = None

    @classmethod
    def from_config(cls, cfg: StorageCfg) -> StorageService:
        return cls(db_path=cfg.db_path)

    # ------------------------------------------------------------------
    # Backend selection
    # ------------------------------------------------------------------

    def select_backend(self, directory: Path | str | None = None) -> BackendSelection:
        """Acquire the directory backend, or fall back to the virtual one.

        The fallback is silent: callers only learn which mode was granted.
        A failed selection is reported in the result, never raised.
        """
        self.close()

        if directory is not None:
            try:
                self._backend = DirectoryBackend(directory)
                return BackendSelection(success=True, mode=self._backend.mode)
            except StorageUnavailable as exc:
                logger.info("Direct storage unavailable, using virtual backend: %s", exc)

        try:
            self._backend = VirtualBackend(self._db_path)
        except StorageUnavailable as exc:
            logger.error("No storage backend available: %s", exc)
            return BackendSelection(success=False, mode=VIRTUAL)
        return BackendSelection(success=True, mode=self._backend.mode)

    def is_ready(self) -> bool:
        return self._backend is not None

    @property
    def mode(self) -> str | None:
        return self._backend.mode if self._backend is not None else None

    def close(self) -> None:
        if self._backend is not None:
            self._backend.close()
            self._backend = None

    def __enter__(self) -> StorageService:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Raw captures
    # ------------------------------------------------------------------

    def save_raw_capture(self, name: str, content: str, subfolder: str | None = None) -> str:
        """Upsert a raw capture; returns the sanitized name it was stored under.

        A name with nothing left after sanitizing is replaced by
        ``captura_<millis>``.
        """
        safe_name = sanitize_name(name) or f"captura_{int(time.time() * 1000)}"
        safe_subfolder = sanitize_name(subfolder) if subfolder else None
        with self._writing(f"save capture '{safe_name}'"):
            self._require().save_raw_capture(
                RawCapture(name=safe_name, content=content, subfolder=safe_subfolder)
            )
        return safe_name

    def list_raw_captures(self) -> list[RawCapture]:
        with self._reading("list captures"):
            return self._require().list_raw_captures()

    def delete_raw_capture(self, name: str) -> None:
        with self._writing(f"delete capture '{name}'"):
            self._require().delete_raw_capture(sanitize_name(name))

    # ------------------------------------------------------------------
    # Legal records
    # ------------------------------------------------------------------

    def save_legal_record(self, record: LegalRecord) -> None:
        """Upsert *record* keyed by its sanitized id; re-saving the same case overwrites it.

        Ids that differ only in unsafe characters share one entry on every backend.
        """
        if not record.id:
            record.id = record.ecli
        key = sanitize_name(record.id)
        with self._writing(f"save record '{record.id}'"):
            self._require().save_legal_record(record, key)

    def list_legal_records(self) -> list[LegalRecord]:
        with self._reading("list records"):
            return self._require().list_legal_records()

    def import_records(self, data: bytes | str) -> ImportReport:
        """Parse an export file and save every valid record in it.

        Malformed entries and individual write failures are reported in the
        returned ImportReport; they do not stop the import.
        """
        report = parse_import(data)
        saved: list[LegalRecord] = []
        for record in report.records:
            try:
                self.save_legal_record(record)
            except StorageWriteFailure as exc:
                logger.warning("Import skipped %s: %s", record.id, exc)
                report.errors.append(exc)
                continue
            saved.append(record)
        for error in report.errors:
            logger.warning("Import entry rejected: %s", error)
        report.records = saved
        return report

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self) -> StorageBackend:
        if self._backend is None:
            raise StorageUnavailable("No storage backend selected. Call select_backend() first.")
        return self._backend

    @contextmanager
    def _writing(self, action: str) -> Iterator[None]:
        try:
            yield
        except (OSError, sqlite3.Error) as exc:
            raise StorageWriteFailure(f"Could not {action}: {exc}") from exc

    @contextmanager
    def _reading(self, action: str) -> Iterator[None]:
        try:
            yield
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(f"Could not {action}: {exc}") from exc
