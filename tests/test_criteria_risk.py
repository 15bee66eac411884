"""
Tests for drawdown and tail risk criteria.
"""
from typing import List

import pandas as pd
import pytest

from tradeperf.criteria.risk import (
    ExpectedShortfallCriterion,
    MaximumDrawdownCriterion,
    ReturnOverMaxDrawdownCriterion,
    ValueAtRiskCriterion,
    _TailRiskCriterion,
)
from tradeperf.num import DecimalNumFactory, DoubleNumFactory, NumFactory
from tradeperf.position import Position
from tradeperf.record import TradingRecord
from tradeperf.series import BarSeries
from tradeperf.types import TradeType


def make_series(closes: List[float], factory: NumFactory = DoubleNumFactory()) -> BarSeries:
    return BarSeries(pd.date_range("2024-01-01", periods=len(closes), freq="D"), closes, num_factory=factory)


def hold_all(series: BarSeries, starting_type: TradeType = TradeType.BUY) -> TradingRecord:
    """One position spanning the whole series."""
    record = TradingRecord(starting_type, num_factory=series.num_factory)
    record.enter(series.time_at(0), series.first_price)
    record.exit(series.end_time, series.last_price)
    return record


def test_maximum_drawdown_over_price_path() -> None:
    """Peak 20 followed by a trough of 1 gives (20 - 1) / 20."""
    series = make_series([1, 2, 20, 1, 8, 3])
    record = hold_all(series)

    assert float(MaximumDrawdownCriterion(series).calculate(record)) == pytest.approx(0.95)
    assert float(MaximumDrawdownCriterion(series).calculate(record.positions[0])) == pytest.approx(0.95)


def test_maximum_drawdown_is_exact_with_decimals() -> None:
    series = make_series([1, 2, 20, 1, 8, 3], DecimalNumFactory())
    value = MaximumDrawdownCriterion(series).calculate(hold_all(series))
    assert value == DecimalNumFactory().num_of("0.95")


def test_maximum_drawdown_edge_cases() -> None:
    """Empty records, unentered positions and rising curves have no drawdown."""
    series = make_series([1, 2, 3])
    criterion = MaximumDrawdownCriterion(series)
    assert criterion.calculate(TradingRecord()).is_zero
    assert criterion.calculate(Position()).is_zero
    assert criterion.calculate(hold_all(series)).is_zero
    assert criterion.better_than(DoubleNumFactory().num_of(0.1), DoubleNumFactory().num_of(0.2))


def test_drawdown_of_a_short_position() -> None:
    """A rising price is a drawdown for a short position."""
    series = make_series([100, 120, 90])
    value = MaximumDrawdownCriterion(series).calculate(hold_all(series, TradeType.SELL))
    assert float(value) == pytest.approx(0.2)


def test_return_over_max_drawdown() -> None:
    """Net return without base divided by the maximum drawdown."""
    series = make_series([1, 2, 20, 1, 8, 3])
    criterion = ReturnOverMaxDrawdownCriterion(series)
    assert float(criterion.calculate(hold_all(series))) == pytest.approx(2 / 0.95)


def test_return_over_max_drawdown_without_drawdown() -> None:
    """No drawdown: the net return itself, no division."""
    series = make_series([1, 2, 3])
    criterion = ReturnOverMaxDrawdownCriterion(series)
    assert float(criterion.calculate(hold_all(series))) == pytest.approx(2)
    assert criterion.calculate(TradingRecord()).is_zero

    opened = Position()
    opened.operate(series.time_at(0), 1, 1)
    assert criterion.calculate(opened).is_zero


@pytest.fixture
def losing_series() -> BarSeries:
    """Bar returns of -0.05 then -0.3 for a long position."""
    return make_series([100, 95, 66.5])


def test_expected_shortfall_takes_the_worst_return(losing_series: BarSeries) -> None:
    """At 95% confidence over two returns only the single worst one is kept."""
    criterion = ExpectedShortfallCriterion(losing_series, 0.95)
    assert float(criterion.calculate(hold_all(losing_series))) == pytest.approx(-0.3)


def test_expected_shortfall_averages_the_tail(losing_series: BarSeries) -> None:
    """A lower confidence widens the tail."""
    criterion = ExpectedShortfallCriterion(losing_series, 0.5)
    assert float(criterion.calculate(hold_all(losing_series))) == pytest.approx(-0.3)

    criterion = ExpectedShortfallCriterion(losing_series, 0.1)
    assert float(criterion.calculate(hold_all(losing_series))) == pytest.approx((-0.05 - 0.3) / 2)


def test_value_at_risk(losing_series: BarSeries) -> None:
    """The boundary return of the tail."""
    assert float(ValueAtRiskCriterion(losing_series, 0.95).calculate(hold_all(losing_series))) == pytest.approx(-0.3)
    assert float(ValueAtRiskCriterion(losing_series, 0.1).calculate(hold_all(losing_series))) == pytest.approx(-0.05)


def test_value_at_risk_is_never_positive() -> None:
    """Only gains in the tail still report a VaR of 0."""
    series = make_series([100, 110, 121])
    assert ValueAtRiskCriterion(series, 0.95).calculate(hold_all(series)).is_zero
    assert float(ExpectedShortfallCriterion(series, 0.95).calculate(hold_all(series))) == pytest.approx(0.1)


def test_tail_criteria_on_empty_or_open_subjects(losing_series: BarSeries) -> None:
    """Nothing closed yet: 0."""
    opened = Position()
    opened.operate(losing_series.time_at(0), 100, 1)
    for criterion in (ExpectedShortfallCriterion(losing_series, 0.95), ValueAtRiskCriterion(losing_series, 0.95)):
        assert criterion.calculate(TradingRecord()).is_zero
        assert criterion.calculate(opened).is_zero


@pytest.mark.parametrize("confidence", [0, 1, -0.5, 1.5])
def test_confidence_must_be_a_probability(losing_series: BarSeries, confidence: float) -> None:
    with pytest.raises(ValueError, match="confidence"):
        ExpectedShortfallCriterion(losing_series, confidence)
    with pytest.raises(ValueError, match="confidence"):
        ValueAtRiskCriterion(losing_series, confidence)


def test_less_negative_shortfall_is_better(losing_series: BarSeries) -> None:
    factory = DoubleNumFactory()
    criterion = ExpectedShortfallCriterion(losing_series, 0.95)
    assert criterion.better_than(factory.num_of(-0.1), factory.num_of(-0.3))
    assert ValueAtRiskCriterion(losing_series, 0.95).better_than(factory.num_of(-0.1), factory.num_of(-0.3))


def test_calculating_twice_gives_the_same_result(losing_series: BarSeries) -> None:
    """Criteria keep no state between calls."""
    record = hold_all(losing_series)
    criterion = ExpectedShortfallCriterion(losing_series, 0.95)
    assert criterion.calculate(record) == criterion.calculate(record)


@pytest.fixture
def twenty_returns() -> BarSeries:
    """21 bars: 18 gains of 1%, one loss of 10% and one of 50%."""
    changes = [0.01] * 18 + [-0.1, -0.5]
    closes = [100.0]
    for change in changes:
        closes.append(closes[-1] * (1 + change))
    return make_series(closes)


def test_tail_size_is_exact_at_common_confidences(twenty_returns: BarSeries) -> None:
    """20 returns at 95% confidence leave exactly one value in the tail."""
    record = hold_all(twenty_returns)
    assert float(ExpectedShortfallCriterion(twenty_returns, 0.95).calculate(record)) == pytest.approx(-0.5)
    assert float(ValueAtRiskCriterion(twenty_returns, 0.95).calculate(record)) == pytest.approx(-0.5)
    assert float(ExpectedShortfallCriterion(twenty_returns, 0.9).calculate(record)) == pytest.approx(-0.3)


def test_tail_base_needs_a_reduction(losing_series: BarSeries) -> None:
    with pytest.raises(TypeError):
        _TailRiskCriterion(losing_series, 0.95)
