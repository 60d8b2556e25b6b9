"""Pytest fixtures for tpledger tests."""

import pytest

from tpledger.context import AuthorizationContext, MemorySink
from tpledger.ledger import TrustLedger

CONTROLLER = "ledger.near"
SOURCE = "site.near"
SOURCE_LABEL = "site"


@pytest.fixture
def sink():
    """Collect diagnostic lines emitted by the ledger."""
    return MemorySink()


@pytest.fixture
def ledger(tmp_path, sink):
    """Create an empty ledger backed by a temporary SQLite file.

    Args:
        tmp_path: pytest's built-in temporary directory fixture
        sink: In-memory diagnostic sink

    Returns:
        TrustLedger instance (closed after the test)
    """
    instance = TrustLedger.open(tmp_path / "ledger.sqlite", sink=sink)
    yield instance
    instance.close()


@pytest.fixture
def controller():
    """Privileged caller: the ledger's own controlling identity."""
    return AuthorizationContext.for_caller(CONTROLLER, CONTROLLER)


@pytest.fixture
def source_ctx():
    """Non-privileged caller acting as the test source."""
    return AuthorizationContext.for_caller(SOURCE, CONTROLLER)


@pytest.fixture
def registered(ledger, controller):
    """Ledger with SOURCE registered under SOURCE_LABEL."""
    ledger.add_source(controller, SOURCE, SOURCE_LABEL)
    return ledger
