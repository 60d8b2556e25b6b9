"""Tests for the SQLite-backed registry, action log and type index."""

import math

import pytest

from tpledger.errors import AlreadyExists, NotFound, SourceNotFound, SubjectNotFound
from tpledger.models import Action, ActionRequest, to_float32
from tpledger.store import (
    ActionLog,
    SourceActionTypeIndex,
    SourceRegistry,
    by_label,
    connect,
    create_schema,
    performance_by_label,
    trust_by_label,
)
from tpledger.store.db import SCHEMA_VERSION, get_schema_version


@pytest.fixture
def conn(tmp_path):
    c = connect(tmp_path / "nested" / "stores.sqlite")
    create_schema(c)
    yield c
    c.close()


def _action(label="site", trust=1.0, performance=1.0, identifier="1", action_type="reaction"):
    return Action(
        trust=trust,
        performance=performance,
        action_type=action_type,
        action_date="1640995200",
        block_date="42",
        source_label=label,
        source=f"{label}.near",
        identifier=identifier,
    )


def test_schema_version_recorded(conn):
    assert get_schema_version(conn) == SCHEMA_VERSION
    # Re-running is idempotent.
    create_schema(conn)
    assert get_schema_version(conn) == SCHEMA_VERSION


def test_registry_add_remove(conn):
    registry = SourceRegistry(conn)
    source = registry.add("a.near", "site")
    assert source.identity == "a.near"
    assert registry.is_registered("a.near")
    assert registry.get_label("a.near") == "site"

    with pytest.raises(AlreadyExists):
        registry.add("a.near", "other")
    assert registry.get_label("a.near") == "site"

    registry.remove("a.near")
    assert not registry.is_registered("a.near")
    assert registry.get_label("a.near") is None
    with pytest.raises(NotFound):
        registry.remove("a.near")


def test_registry_lists_in_registration_order(conn):
    registry = SourceRegistry(conn)
    registry.add("b.near", "blog")
    registry.add("a.near", "site")
    registry.add("c.near", "site")
    assert [(s.identity, s.label) for s in registry.list_sources()] == [
        ("b.near", "blog"),
        ("a.near", "site"),
        ("c.near", "site"),
    ]


def test_action_log_append_and_query(conn):
    log = ActionLog(conn)
    assert not log.has_subject("d1")
    with pytest.raises(SubjectNotFound):
        log.query("d1", lambda a: True)

    log.append("d1", _action(identifier="1"))
    log.append("d2", _action(identifier="x"))
    log.append("d1", _action(identifier="2", label="blog"))

    assert log.has_subject("d1")
    assert log.count("d1") == 2
    assert [a.identifier for a in log.query("d1", lambda a: True)] == ["1", "2"]
    assert [a.identifier for a in log.query("d1", by_label("blog"))] == ["2"]
    # Existing subject with no matches is an empty result, not an error.
    assert log.query("d1", by_label("nobody")) == []


def test_action_log_predicates(conn):
    log = ActionLog(conn)
    log.append("d1", _action(trust=1.0, performance=0.0, identifier="t"))
    log.append("d1", _action(trust=0.0, performance=1.0, identifier="p"))
    log.append("d1", _action(trust=-2.0, performance=-2.0, identifier="n"))
    log.append("d1", _action(label="blog", trust=1.0, performance=1.0, identifier="b"))

    assert [a.identifier for a in log.query("d1", trust_by_label("site"))] == ["t"]
    assert [a.identifier for a in log.query("d1", performance_by_label("site"))] == ["p"]


def test_action_log_keeps_special_floats(conn):
    log = ActionLog(conn)
    log.append("d1", _action(trust=float("nan"), performance=float("-inf")))

    (stored,) = log.query("d1", lambda a: True)
    assert math.isnan(stored.trust)
    assert stored.performance == float("-inf")


def test_type_index_first_seen_order(conn):
    index = SourceActionTypeIndex(conn)
    assert index.load("a.near") is None
    with pytest.raises(SourceNotFound):
        index.list_types("a.near")

    index.record_type("a.near", "reaction")
    index.record_type("a.near", "article")
    index.record_type("a.near", "reaction")
    index.save("a.near", ["vote", "article", "share"])

    assert index.list_types("a.near") == ["reaction", "article", "vote", "share"]
    with pytest.raises(SourceNotFound):
        index.list_types("b.near")


def test_type_index_empty_entry(conn):
    index = SourceActionTypeIndex(conn)
    index.save("a.near", [])
    assert index.list_types("a.near") == []


def test_float32_narrowing():
    assert to_float32(10.0) == 10.0
    assert to_float32(0.1) != 0.1
    assert to_float32(0.1) == pytest.approx(0.1, rel=1e-7)
    assert to_float32(1e39) == float("inf")
    assert to_float32(-1e39) == float("-inf")
    assert math.isnan(to_float32(float("nan")))

    request = ActionRequest(
        trust=0.1,
        performance=-3,
        action_type="reaction",
        action_date="",
        account_did="d1",
        identifier="",
    )
    assert request.trust == to_float32(0.1)
    assert request.performance == -3.0


def test_action_is_immutable():
    action = _action()
    with pytest.raises(Exception):
        action.trust = 5.0
