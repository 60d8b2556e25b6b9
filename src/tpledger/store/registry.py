"""Source registry: identity -> label, gating who may write."""

from __future__ import annotations

import sqlite3
from typing import Optional

from ..errors import AlreadyExists, NotFound
from ..models import Source


class SourceRegistry:
    """Authoritative mapping of source identity to display label.

    Privilege checks belong to the caller; this class only enforces key
    uniqueness. Labels are not required to be unique.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def add(self, identity: str, label: str) -> Source:
        if self.is_registered(identity):
            raise AlreadyExists()
        self.conn.execute(
            "INSERT INTO sources(identity, label) VALUES(?, ?)",
            (identity, label),
        )
        return Source(identity=identity, label=label)

    def remove(self, identity: str) -> None:
        """Deregister a source. Its actions and type set are left in place."""
        cur = self.conn.execute("DELETE FROM sources WHERE identity = ?", (identity,))
        if cur.rowcount == 0:
            raise NotFound()

    def is_registered(self, identity: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM sources WHERE identity = ?", (identity,)
        ).fetchone()
        return row is not None

    def get_label(self, identity: str) -> Optional[str]:
        row = self.conn.execute(
            "SELECT label FROM sources WHERE identity = ?", (identity,)
        ).fetchone()
        return str(row["label"]) if row is not None else None

    def list_sources(self) -> list[Source]:
        rows = self.conn.execute("SELECT identity, label FROM sources ORDER BY id").fetchall()
        return [Source(identity=r["identity"], label=r["label"]) for r in rows]
