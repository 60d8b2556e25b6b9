"""Per-subject append-only action sequences."""

from __future__ import annotations

import sqlite3
import struct
from typing import Callable

from ..errors import SubjectNotFound
from ..models import Action

ActionPredicate = Callable[[Action], bool]


def _pack_f32(value: float) -> bytes:
    # SQLite REAL turns NaN into NULL; a packed float32 keeps every bit.
    return struct.pack("<f", value)


def _unpack_f32(blob: bytes) -> float:
    return struct.unpack("<f", blob)[0]


def _row_to_action(row: sqlite3.Row) -> Action:
    return Action(
        trust=_unpack_f32(row["trust"]),
        performance=_unpack_f32(row["performance"]),
        action_type=row["action_type"],
        action_date=row["action_date"],
        block_date=row["block_date"],
        source_label=row["source_label"],
        source=row["source"],
        identifier=row["identifier"],
    )


def by_label(source_label: str) -> ActionPredicate:
    """All actions written under a source label."""
    return lambda action: action.source_label == source_label


def trust_by_label(source_label: str) -> ActionPredicate:
    """Actions under a source label with a positive trust score."""
    return lambda action: action.source_label == source_label and action.trust > 0


def performance_by_label(source_label: str) -> ActionPredicate:
    """Actions under a source label with a positive performance score."""
    return lambda action: action.source_label == source_label and action.performance > 0


class ActionLog:
    """Append-only log of actions keyed by subject DID.

    A subject's sequence exists from its first append onward. Records are
    never updated or deleted, and reads return them in append order.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def append(self, subject_did: str, action: Action) -> None:
        self.conn.execute(
            """
            INSERT INTO actions(
              subject_did, trust, performance, action_type, action_date,
              block_date, source_label, source, identifier
            )
            VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                subject_did,
                _pack_f32(action.trust),
                _pack_f32(action.performance),
                action.action_type,
                action.action_date,
                action.block_date,
                action.source_label,
                action.source,
                action.identifier,
            ),
        )

    def has_subject(self, subject_did: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM actions WHERE subject_did = ? LIMIT 1", (subject_did,)
        ).fetchone()
        return row is not None

    def count(self, subject_did: str) -> int:
        row = self.conn.execute(
            "SELECT COUNT(1) AS n FROM actions WHERE subject_did = ?", (subject_did,)
        ).fetchone()
        return int(row["n"])

    def query(self, subject_did: str, predicate: ActionPredicate) -> list[Action]:
        """Return the subject's actions matching ``predicate``, in append order.

        Raises:
            SubjectNotFound: The subject has never had an action appended.
        """
        rows = self.conn.execute(
            "SELECT * FROM actions WHERE subject_did = ? ORDER BY id", (subject_did,)
        ).fetchall()
        if not rows:
            raise SubjectNotFound()
        actions = (_row_to_action(r) for r in rows)
        return [a for a in actions if predicate(a)]
