"""Tests for the capabilities injected into the ledger."""

import logging

from tpledger.context import AuthorizationContext, BlockClock, FixedClock, LoggingSink, MemorySink


def test_for_caller_derives_privilege():
    assert AuthorizationContext.for_caller("ledger.near", "ledger.near").privileged
    assert not AuthorizationContext.for_caller("site.near", "ledger.near").privileged
    assert not AuthorizationContext("site.near").privileged


def test_block_clock_strictly_increasing():
    """Test that a stalled or rewound system clock still yields increasing stamps."""
    readings = iter([100, 100, 50, 200])
    clock = BlockClock(time_ns=lambda: next(readings))

    assert [clock() for _ in range(4)] == ["100", "101", "102", "200"]


def test_block_clock_default_is_epoch_nanoseconds():
    stamp = BlockClock()()
    assert stamp.isdigit()
    assert len(stamp) >= 19


def test_fixed_clock():
    assert FixedClock("7")() == "7"
    assert FixedClock()() == "0"


def test_sinks(caplog):
    memory = MemorySink()
    memory("a b")
    assert memory.lines == ["a b"]

    logger = logging.getLogger("tpledger.test_sink")
    with caplog.at_level(logging.INFO, logger="tpledger.test_sink"):
        LoggingSink(logger)("site d1")
    assert caplog.records[-1].getMessage() == "site d1"
