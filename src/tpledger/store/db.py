from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Union

SCHEMA_VERSION = 1

MEMORY = ":memory:"


def connect(db_path: Union[Path, str]) -> sqlite3.Connection:
    if str(db_path) != MEMORY:
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
    # The ledger facade serializes access, so one connection may be shared across threads.
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def create_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS meta(
          key TEXT PRIMARY KEY,
          value TEXT
        );

        CREATE TABLE IF NOT EXISTS sources(
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          identity TEXT UNIQUE NOT NULL,
          label TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS actions(
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          subject_did TEXT NOT NULL,
          trust BLOB NOT NULL,
          performance BLOB NOT NULL,
          action_type TEXT NOT NULL,
          action_date TEXT NOT NULL,
          block_date TEXT NOT NULL,
          source_label TEXT NOT NULL,
          source TEXT NOT NULL,
          identifier TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS type_sets(
          source TEXT PRIMARY KEY
        );

        CREATE TABLE IF NOT EXISTS type_set_members(
          source TEXT NOT NULL,
          ord INTEGER NOT NULL,
          action_type TEXT NOT NULL,
          PRIMARY KEY(source, action_type),
          FOREIGN KEY(source) REFERENCES type_sets(source)
        );

        CREATE INDEX IF NOT EXISTS idx_actions_subject ON actions(subject_did, id);
        CREATE INDEX IF NOT EXISTS idx_type_set_members_ord ON type_set_members(source, ord);
        """
    )
    conn.execute(
        "INSERT INTO meta(key, value) VALUES('schema_version', ?) "
        "ON CONFLICT(key) DO NOTHING",
        (str(SCHEMA_VERSION),),
    )
    conn.commit()


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    row = conn.execute("SELECT value FROM meta WHERE key = 'schema_version'").fetchone()
    return int(row["value"]) if row is not None else None
