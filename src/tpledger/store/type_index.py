"""Per-source index of the action types a source has ever written."""

from __future__ import annotations

import sqlite3
from typing import Iterable, Optional

from ..errors import SourceNotFound


class SourceActionTypeIndex:
    """Distinct action types per source, in first-seen order.

    Entries only grow. Deregistering a source does not remove its entry.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def load(self, source: str) -> Optional[list[str]]:
        """Return the stored type set, or None when the source has no entry."""
        row = self.conn.execute(
            "SELECT 1 FROM type_sets WHERE source = ?", (source,)
        ).fetchone()
        if row is None:
            return None
        rows = self.conn.execute(
            "SELECT action_type FROM type_set_members WHERE source = ? ORDER BY ord",
            (source,),
        ).fetchall()
        return [r["action_type"] for r in rows]

    def save(self, source: str, types: Iterable[str]) -> None:
        """Persist a type set, creating the entry if absent.

        Types already stored keep their position; new ones are appended.
        """
        self.conn.execute(
            "INSERT INTO type_sets(source) VALUES(?) ON CONFLICT(source) DO NOTHING",
            (source,),
        )
        row = self.conn.execute(
            "SELECT COALESCE(MAX(ord), -1) AS last FROM type_set_members WHERE source = ?",
            (source,),
        ).fetchone()
        ord_ = int(row["last"])
        for action_type in types:
            ord_ += 1
            self.conn.execute(
                "INSERT INTO type_set_members(source, ord, action_type) VALUES(?, ?, ?) "
                "ON CONFLICT(source, action_type) DO NOTHING",
                (source, ord_, action_type),
            )

    def record_type(self, source: str, action_type: str) -> None:
        self.save(source, [action_type])

    def list_types(self, source: str) -> list[str]:
        """Return the source's action types in first-seen order.

        Raises:
            SourceNotFound: The source has never recorded an action.
        """
        types = self.load(source)
        if types is None:
            raise SourceNotFound()
        return types
