"""
Tests for trades, positions and cost models.
"""
from datetime import datetime, timedelta

import pytest

from tradeperf.cost import (
    CostModel,
    FixedTransactionCostModel,
    LinearBorrowingCostModel,
    LinearTransactionCostModel,
    ZeroCostModel,
)
from tradeperf.num import DecimalNumFactory, DoubleNumFactory
from tradeperf.position import Position, directional_return
from tradeperf.types import OrderType, TradeType

T0 = datetime(2024, 1, 1)


def _closed(starting_type: TradeType, entry: float, exit: float, amount: float = 1, **kwargs) -> Position:
    position = Position(starting_type, **kwargs)
    position.operate(T0, entry, amount)
    position.operate(T0 + timedelta(days=5), exit, amount)
    return position


def test_lifecycle_and_trade_types() -> None:
    """A position goes NEW -> OPENED -> CLOSED with complementary trades."""
    position = Position(TradeType.SELL)
    assert position.is_new

    entry = position.operate(T0, 100, 2)
    assert position.is_opened
    assert entry.type is TradeType.SELL
    assert entry.order_type is OrderType.OPEN

    exit_trade = position.operate(T0 + timedelta(days=1), 90, 2)
    assert position.is_closed
    assert exit_trade.type is TradeType.BUY
    assert exit_trade.order_type is OrderType.CLOSE
    assert not position.is_long


def test_operate_on_closed_position_is_ignored(caplog: pytest.LogCaptureFixture) -> None:
    """A third operation records nothing and logs a warning."""
    position = _closed(TradeType.BUY, 10, 12)
    exit_before = position.exit

    assert position.operate(T0 + timedelta(days=9), 13, 1) is None
    assert position.exit is exit_before
    assert "already closed" in caplog.text


@pytest.mark.parametrize(
    "starting_type, entry, exit, amount, expected",
    [
        (TradeType.BUY, 100, 110, 3, 30),
        (TradeType.BUY, 100, 90, 3, -30),
        (TradeType.SELL, 100, 90, 3, 30),
        (TradeType.SELL, 100, 110, 3, -30),
    ],
)
def test_profit_follows_direction(starting_type, entry, exit, amount, expected) -> None:
    """BUY earns (exit - entry) * amount, SELL earns (entry - exit) * amount."""
    position = _closed(starting_type, entry, exit, amount)
    assert float(position.profit) == pytest.approx(expected)
    assert float(position.gross_profit) == pytest.approx(expected)
    assert position.has_profit() == (expected > 0)
    assert position.has_loss() == (expected < 0)


def test_returns_of_long_and_short_positions() -> None:
    """Short returns use the multiplicative form 2 - exit / entry."""
    assert float(_closed(TradeType.BUY, 100, 120).gross_return) == pytest.approx(1.2)
    assert float(_closed(TradeType.SELL, 100, 80).gross_return) == pytest.approx(1.2)
    assert float(_closed(TradeType.SELL, 100, 130).gross_return) == pytest.approx(0.7)


def test_unfinished_position_defaults() -> None:
    """Open and new positions report zero profit and a base return of 1."""
    new = Position()
    assert new.profit.is_zero
    assert new.gross_return == 1
    assert new.net_return == 1

    opened = Position()
    opened.operate(T0, 50, 2)
    assert opened.profit.is_zero
    assert opened.gross_return == 1
    assert float(opened.get_gross_profit(55)) == pytest.approx(10)
    assert float(opened.get_gross_return(55)) == pytest.approx(1.1)
    assert opened.time_in_trade == timedelta(0)


def test_directional_return_with_zero_entry_price() -> None:
    """A zero entry price means no value change rather than NaN."""
    factory = DoubleNumFactory()
    assert directional_return(TradeType.BUY, factory.zero(), factory.num_of(5)) == 1
    assert directional_return(TradeType.SELL, factory.zero(), factory.num_of(5)) == 1


def test_linear_transaction_costs_shift_net_prices() -> None:
    """A BUY pays above the price, a SELL receives below it."""
    position = _closed(TradeType.BUY, 100, 110, 10, transaction_cost_model=LinearTransactionCostModel(0.01))

    assert float(position.entry.cost) == pytest.approx(10.0)
    assert float(position.entry.net_price) == pytest.approx(101.0)
    assert float(position.exit.net_price) == pytest.approx(108.9)
    assert float(position.position_cost) == pytest.approx(21.0)
    assert float(position.profit) == pytest.approx(100 - 21)
    assert float(position.gross_profit) == pytest.approx(100)
    assert float(position.net_return) == pytest.approx(108.9 / 101.0)


def test_fixed_transaction_costs() -> None:
    """A fixed fee is charged once per trade."""
    position = _closed(TradeType.BUY, 100, 110, 2, transaction_cost_model=FixedTransactionCostModel(1.5))
    assert float(position.position_cost) == pytest.approx(3.0)
    assert float(position.profit) == pytest.approx(17.0)


def test_borrowing_cost_applies_to_short_positions_only() -> None:
    """Borrowing is charged on the entry value for every whole period held."""
    model = LinearBorrowingCostModel(0.01, timedelta(days=1))
    short = _closed(TradeType.SELL, 100, 90, 1, holding_cost_model=model)
    long = _closed(TradeType.BUY, 100, 110, 1, holding_cost_model=model)

    assert float(short.holding_cost) == pytest.approx(5.0)
    assert float(short.profit) == pytest.approx(5.0)
    assert float(short.net_return) == pytest.approx(2 - 95 / 100)
    assert long.holding_cost.is_zero

    opened = Position(TradeType.SELL, holding_cost_model=model)
    opened.operate(T0, 100, 1)
    assert float(opened.get_holding_cost(T0 + timedelta(days=3, hours=12))) == pytest.approx(3.0)


@pytest.mark.parametrize(
    "build",
    [
        lambda: FixedTransactionCostModel(-1),
        lambda: LinearTransactionCostModel(-0.01),
        lambda: LinearBorrowingCostModel(-0.01),
        lambda: LinearBorrowingCostModel(0.01, timedelta(0)),
    ],
)
def test_invalid_cost_models_are_rejected(build) -> None:
    """Negative rates and empty periods fail at construction."""
    with pytest.raises(ValueError):
        build()


def test_zero_cost_model_and_decimal_backend() -> None:
    """Profits are exact with the decimal backend."""
    factory = DecimalNumFactory()
    position = _closed(TradeType.BUY, 0.1, 0.3, 1, transaction_cost_model=ZeroCostModel(), num_factory=factory)
    assert position.profit == factory.num_of(0.2)
    assert position.time_in_trade == timedelta(days=5)


def test_cost_model_requires_position_cost() -> None:
    with pytest.raises(TypeError):
        CostModel()


def test_positions_compare_by_identity() -> None:
    """Two fresh positions are distinct, and a position keeps its hash while it trades."""
    first, second = Position(), Position()
    assert first != second

    seen = {first}
    first.operate(T0, 10, 1)
    first.operate(T0 + timedelta(days=1), 11, 1)
    assert first in seen
    assert second not in seen
