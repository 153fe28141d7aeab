"""JurisAnalyzer database layer and domain models."""

from jurisanalyzer.db.connection import Database
from jurisanalyzer.db.migrations import MIGRATIONS, initialize, run_migrations
from jurisanalyzer.db.models import (
    UNKNOWN,
    ImportMalformed,
    LegalRecord,
    RawCapture,
    sanitize_name,
)
from jurisanalyzer.db.repository import Repository

__all__ = [
    "Database",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "ImportMalformed",
    "LegalRecord",
    "RawCapture",
    "Repository",
    "UNKNOWN",
    "sanitize_name",
]
