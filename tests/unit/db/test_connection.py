"""Tests for the Database connection layer."""

from __future__ import annotations

import sqlite3

from jurisanalyzer.db.connection import Database


def test_connect_creates_file(tmp_path):
    db_path = tmp_path / ".juris.db"
    conn = Database(db_path).connect()
    conn.close()
    assert db_path.exists()


def test_wal_journal_mode(tmp_path):
    conn = Database(tmp_path / ".juris.db").connect()
    mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
    conn.close()
    assert mode == "wal"


def test_memory_database_supported():
    conn = Database(":memory:").connect()
    conn.execute("CREATE TABLE t (x INTEGER)")
    conn.close()


def test_row_factory_set(tmp_path):
    conn = Database(tmp_path / ".juris.db").connect()
    conn.execute("CREATE TABLE t (x INTEGER)")
    conn.execute("INSERT INTO t VALUES (42)")
    row = conn.execute("SELECT x FROM t").fetchone()
    conn.close()
    assert isinstance(row, sqlite3.Row)
    assert row["x"] == 42


def test_context_manager_closes(tmp_path):
    db = Database(tmp_path / ".juris.db")
    with db as conn:
        conn.execute("SELECT 1")
    assert db._conn is None
