"""Storage backend contract shared by the directory and virtual backends."""

from __future__ import annotations

from abc import ABC, abstractmethod

from jurisanalyzer.db.models import LegalRecord, RawCapture

DIRECT = "direct"
VIRTUAL = "virtual"


class StorageError(RuntimeError):
    """Base class for storage failures."""


class StorageUnavailable(StorageError):
    """Raised when a backend cannot be acquired, or none has been selected."""


class StorageWriteFailure(StorageError):
    """Raised when a single save or delete could not be completed."""


class StorageBackend(ABC):
    """Abstract base for all storage backends.

    Names handed to a backend are already sanitized; backends store raw
    captures keyed by name and legal records keyed by their sanitized id, and
    every save is an upsert.
    """

    mode: str

    @abstractmethod
    def save_raw_capture(self, capture: RawCapture) -> None:
        """Create or overwrite the raw capture stored under ``capture.name``."""

    @abstractmethod
    def list_raw_captures(self) -> list[RawCapture]:
        """Return every raw capture; order is not guaranteed."""

    @abstractmethod
    def delete_raw_capture(self, name: str) -> None:
        """Remove the raw capture called *name*; a missing entry is not an error."""

    @abstractmethod
    def save_legal_record(self, record: LegalRecord, key: str) -> None:
        """Create or overwrite the record stored under *key* (its sanitized id)."""

    @abstractmethod
    def list_legal_records(self) -> list[LegalRecord]:
        """Return every record that parses; unreadable entries are skipped."""

    def close(self) -> None:
        """Release backend resources. Default: nothing to release."""
