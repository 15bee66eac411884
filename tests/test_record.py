"""
Tests for the trading record.
"""
from datetime import datetime, timedelta

import pytest

from tradeperf.record import TradingRecord
from tradeperf.types import OrderType, TradeType

T0 = datetime(2024, 1, 1)


def day(n: int) -> datetime:
    return T0 + timedelta(days=n)


@pytest.fixture
def record() -> TradingRecord:
    """Two closed long positions and one open position."""
    record = TradingRecord(name="fixture")
    record.enter(day(0), 10, 2)
    record.exit(day(2), 12)
    record.enter(day(3), 12, 1)
    record.exit(day(5), 11)
    record.enter(day(6), 11, 4)
    return record


def test_empty_record() -> None:
    """A fresh record has no trades and a new current position."""
    record = TradingRecord()
    assert record.is_empty
    assert record.is_closed
    assert record.position_count == 0
    assert record.current_position.is_new
    assert record.last_trade is None
    assert record.last_position is None


def test_enter_and_exit_build_positions(record: TradingRecord) -> None:
    """Each exit freezes the current position and opens a new one."""
    assert record.position_count == 2
    assert len(record.trades) == 5
    assert not record.is_closed
    assert record.current_position.is_opened

    first, second = record.positions
    assert first.is_closed and second.is_closed
    assert float(first.profit) == pytest.approx(4.0)
    assert float(second.profit) == pytest.approx(-1.0)


def test_exit_amount_defaults_to_entry_amount(record: TradingRecord) -> None:
    """The exit trade reuses the amount of the entry."""
    assert record.positions[0].exit.amount == 2


def test_wrong_state_calls_are_soft_failures() -> None:
    """Exit while flat and entry while open return False and record nothing."""
    record = TradingRecord()
    assert record.exit(day(0), 10) is False
    assert record.is_empty

    assert record.enter(day(1), 10) is True
    assert record.enter(day(2), 11) is False
    assert len(record.trades) == 1


def test_trade_stream_alternates_from_starting_type() -> None:
    """Every position of a short record enters with SELL and exits with BUY."""
    record = TradingRecord(TradeType.SELL)
    for start in (0, 2):
        record.operate(day(start), 100)
        record.operate(day(start + 1), 95)

    assert [t.type for t in record.trades] == [TradeType.SELL, TradeType.BUY] * 2
    assert all(not p.is_long for p in record.positions)


def test_last_trade_accessors(record: TradingRecord) -> None:
    """Accessors look back through the trade history."""
    assert record.last_trade.order_type is OrderType.OPEN
    assert record.last_entry.time == day(6)
    assert record.last_exit.time == day(5)
    assert record.get_last_trade(TradeType.SELL).time == day(5)
    assert record.last_position is record.positions[-1]


def test_positions_tuple_is_a_snapshot(record: TradingRecord) -> None:
    """Closing a position later does not change a previously read tuple."""
    before = record.positions
    record.exit(day(7), 12)
    assert len(before) == 2
    assert record.position_count == 3
