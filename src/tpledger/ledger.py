"""Ledger facade: the only entry point external callers use.

Writes are authorized against the source registry, appended to the action
log keyed by subject DID, and folded into the writer's action-type index.
Reads re-scan the subject's full sequence and filter by source label.

Known limitations, kept on purpose because fixing them changes query results:
  - Filtering matches the label string, so two identities registered under the
    same label are indistinguishable to readers.
  - A deregistered source keeps its action-type index entry.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from .context import AuthorizationContext, BlockClock, Clock, DiagnosticSink, LoggingSink
from .errors import InvalidSigner, Unauthorized
from .models import Action, ActionRequest, Source
from .store import (
    ActionLog,
    SourceActionTypeIndex,
    SourceRegistry,
    by_label,
    connect,
    create_schema,
    performance_by_label,
    trust_by_label,
)

logger = logging.getLogger(__name__)


class TrustLedger:
    """Permissioned, append-only trust & performance ledger.

    Every public call runs under one lock, and every write runs in one SQLite
    transaction, so a call either commits all of its mutations or none.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        clock: Optional[Clock] = None,
        sink: Optional[DiagnosticSink] = None,
    ):
        """Initialize the ledger over an open connection.

        Args:
            conn: SQLite connection; the schema is created if missing
            clock: Timestamp source for block_date (default: BlockClock)
            sink: Diagnostic sink for the scoring stubs (default: LoggingSink)
        """
        self.conn = conn
        self.clock = clock or BlockClock()
        self.sink = sink or LoggingSink()
        self._lock = threading.RLock()

        create_schema(conn)
        self.registry = SourceRegistry(conn)
        self.actions = ActionLog(conn)
        self.type_index = SourceActionTypeIndex(conn)

    @classmethod
    def open(
        cls,
        db_path: Union[Path, str],
        clock: Optional[Clock] = None,
        sink: Optional[DiagnosticSink] = None,
    ) -> "TrustLedger":
        """Open (or create) a ledger stored at ``db_path``."""
        return cls(connect(db_path), clock=clock, sink=sink)

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "TrustLedger":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # --- Source registry (privileged) ---

    def add_source(self, ctx: AuthorizationContext, identity: str, label: str) -> None:
        with self._lock, self.conn:
            self._require_privileged(ctx)
            self.registry.add(identity, label)
        logger.info(f"Registered source {identity} as {label!r}")

    def remove_source(self, ctx: AuthorizationContext, identity: str) -> None:
        with self._lock, self.conn:
            self._require_privileged(ctx)
            self.registry.remove(identity)
        logger.info(f"Deregistered source {identity}")

    def list_sources(self) -> list[Source]:
        with self._lock:
            return self.registry.list_sources()

    def is_registered(self, identity: str) -> bool:
        with self._lock:
            return self.registry.is_registered(identity)

    # --- Write path ---

    def save_action(
        self,
        ctx: AuthorizationContext,
        account_did: str,
        trust: float,
        performance: float,
        action_type: str,
        action_date: str,
        identifier: str,
    ) -> None:
        """Record one action about ``account_did`` written by the caller."""
        request = ActionRequest(
            trust=trust,
            performance=performance,
            action_type=action_type,
            action_date=action_date,
            account_did=account_did,
            identifier=identifier,
        )
        self._save(ctx, [request])

    def save_actions_batch(
        self,
        ctx: AuthorizationContext,
        batch: Iterable[Union[ActionRequest, Mapping[str, Any]]],
    ) -> None:
        """Record a batch of actions written by the caller.

        Authorization is checked once for the whole batch; an unregistered
        caller has every record rejected before anything is appended.
        """
        requests = [
            r if isinstance(r, ActionRequest) else ActionRequest.model_validate(r)
            for r in batch
        ]
        self._save(ctx, requests)

    def _save(self, ctx: AuthorizationContext, requests: list[ActionRequest]) -> None:
        with self._lock, self.conn:
            caller = ctx.caller_id
            label = self.registry.get_label(caller)
            if label is None:
                logger.warning(f"Rejected write from unregistered signer {caller}")
                raise InvalidSigner()

            block_date = self.clock()
            types = self.type_index.load(caller) or []
            for request in requests:
                action = Action(
                    trust=request.trust,
                    performance=request.performance,
                    action_type=request.action_type,
                    action_date=request.action_date,
                    identifier=request.identifier,
                    block_date=block_date,
                    source_label=label,
                    source=caller,
                )
                self.actions.append(request.account_did, action)
                if action.action_type not in types:
                    types.append(action.action_type)

            # One persistence of the type set per call, after every append.
            self.type_index.save(caller, types)

        logger.debug(f"Appended {len(requests)} action(s) from {caller} at {block_date}")

    # --- Read path ---

    def get_user_actions(self, source_label: str, account_did: str) -> list[Action]:
        with self._lock:
            return self.actions.query(account_did, by_label(source_label))

    def get_user_trust_actions(self, source_label: str, account_did: str) -> list[Action]:
        with self._lock:
            return self.actions.query(account_did, trust_by_label(source_label))

    def get_user_performance_actions(self, source_label: str, account_did: str) -> list[Action]:
        with self._lock:
            return self.actions.query(account_did, performance_by_label(source_label))

    def get_source_action_types(self, source: str) -> list[str]:
        with self._lock:
            return self.type_index.list_types(source)

    # Scoring is not implemented; these always report a neutral 0.0.

    def get_user_trust(self, source_label: str, account_did: str) -> float:
        self.sink(f"{source_label} {account_did}")
        return 0.0

    def get_user_performance(self, source_label: str, account_did: str) -> float:
        self.sink(f"{source_label} {account_did}")
        return 0.0

    @staticmethod
    def _require_privileged(ctx: AuthorizationContext) -> None:
        if not ctx.privileged:
            logger.warning(f"Rejected privileged call from {ctx.caller_id}")
            raise Unauthorized()
