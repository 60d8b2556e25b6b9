"""SQLite-backed keyed stores behind the ledger facade."""

from .action_log import ActionLog, by_label, performance_by_label, trust_by_label
from .db import connect, create_schema
from .registry import SourceRegistry
from .type_index import SourceActionTypeIndex

__all__ = [
    "ActionLog",
    "SourceActionTypeIndex",
    "SourceRegistry",
    "by_label",
    "connect",
    "create_schema",
    "performance_by_label",
    "trust_by_label",
]
