"""Dual-backend persistent store for raw captures and legal records."""

from jurisanalyzer.store.base import (
    DIRECT,
    VIRTUAL,
    StorageBackend,
    StorageError,
    StorageUnavailable,
    StorageWriteFailure,
)
from jurisanalyzer.store.directory import DirectoryBackend
from jurisanalyzer.store.exchange import ImportReport, export_all, export_filename, parse_import
from jurisanalyzer.store.service import BackendSelection, StorageService
from jurisanalyzer.store.virtual import VirtualBackend

__all__ = [
    "DIRECT",
    "VIRTUAL",
    "BackendSelection",
    "DirectoryBackend",
    "ImportReport",
    "StorageBackend",
    "StorageError",
    "StorageService",
    "StorageUnavailable",
    "StorageWriteFailure",
    "VirtualBackend",
    "export_all",
    "export_filename",
    "parse_import",
]
