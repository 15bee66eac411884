"""
Risk criteria computed from the equity curve and the per-bar returns.
"""
import logging
import math
from abc import abstractmethod
from decimal import Decimal
from typing import List

from tradeperf.analysis.cashflow import CashFlow
from tradeperf.analysis.returns import Returns, ReturnType
from tradeperf.criteria.base import AnalysisCriterion
from tradeperf.criteria.returns import NetReturnCriterion
from tradeperf.num import Num, NumFactory
from tradeperf.position import Position
from tradeperf.record import TradingRecord
from tradeperf.series import BarSeries

__all__ = [
    "MaximumDrawdownCriterion",
    "ReturnOverMaxDrawdownCriterion",
    "ExpectedShortfallCriterion",
    "ValueAtRiskCriterion",
]

log = logging.getLogger(__name__)


def _validate_confidence(confidence: float) -> float:
    if not 0 < confidence < 1:
        raise ValueError(f"confidence must be between 0 and 1 (exclusive), got {confidence}")
    return confidence


class MaximumDrawdownCriterion(AnalysisCriterion):
    """
    Largest relative decline of the equity curve from its running peak:
    max((peak - value) / peak). The peak starts at the base 1.
    """

    def __init__(self, series: BarSeries):
        self.series = series

    def calculate_position(self, position: Position) -> Num:
        if position.is_new:
            return position.num_factory.zero()
        return self._drawdown(CashFlow(self.series, position), position.num_factory)

    def calculate_record(self, record: TradingRecord) -> Num:
        if record.is_empty:
            return record.num_factory.zero()
        return self._drawdown(CashFlow(self.series, record), record.num_factory)

    @staticmethod
    def _drawdown(cash_flow: CashFlow, factory: NumFactory) -> Num:
        peak = factory.one()
        maximum = factory.zero()
        for value in cash_flow.values:
            if value > peak:
                peak = value
            drawdown = (peak - value) / peak
            if drawdown > maximum:
                maximum = drawdown
        return maximum

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 < value2


class ReturnOverMaxDrawdownCriterion(AnalysisCriterion):
    """
    Net return (without base) divided by the maximum drawdown. Without any
    drawdown the net return itself is returned.
    """

    def __init__(self, series: BarSeries):
        self.series = series
        self._net_return = NetReturnCriterion(add_base=False)
        self._drawdown = MaximumDrawdownCriterion(series)

    @staticmethod
    def _ratio(net_return: Num, drawdown: Num) -> Num:
        if drawdown.is_zero:
            return net_return
        return net_return / drawdown

    def calculate_position(self, position: Position) -> Num:
        if not position.is_closed:
            return position.num_factory.zero()
        return self._ratio(
            self._net_return.calculate_position(position),
            self._drawdown.calculate_position(position),
        )

    def calculate_record(self, record: TradingRecord) -> Num:
        if record.is_empty:
            return record.num_factory.zero()
        return self._ratio(
            self._net_return.calculate_record(record),
            self._drawdown.calculate_record(record),
        )

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 > value2


class _TailRiskCriterion(AnalysisCriterion):
    """
    Base of the criteria reading the worst tail of the non-zero arithmetic
    per-bar returns. Bars without a position have a return of exactly 0 and
    are left out.
    """

    def __init__(self, series: BarSeries, confidence: float):
        self.series = series
        self.confidence = _validate_confidence(confidence)

    def _tail(self, returns: Returns) -> List[Num]:
        values = sorted(r for r in returns.values if not r.is_zero and not r.is_nan)
        if not values:
            return []
        # Decimal keeps e.g. 20 * (1 - 0.95) at exactly 1.
        size = max(1, math.ceil(len(values) * (1 - Decimal(str(self.confidence)))))
        return values[:size]

    @abstractmethod
    def _from_tail(self, tail: List[Num], factory: NumFactory) -> Num:
        raise NotImplementedError

    def calculate_position(self, position: Position) -> Num:
        if not position.is_closed:
            return position.num_factory.zero()
        returns = Returns(self.series, position, ReturnType.ARITHMETIC)
        return self._from_tail(self._tail(returns), position.num_factory)

    def calculate_record(self, record: TradingRecord) -> Num:
        if record.position_count == 0:
            return record.num_factory.zero()
        returns = Returns(self.series, record, ReturnType.ARITHMETIC)
        return self._from_tail(self._tail(returns), record.num_factory)

    def better_than(self, value1: Num, value2: Num) -> bool:
        # Both measures are losses: less negative is better.
        return value1 > value2

    def __repr__(self) -> str:
        return f"{type(self).__name__}(confidence={self.confidence})"


class ExpectedShortfallCriterion(_TailRiskCriterion):
    """Mean of the worst returns beyond the confidence level (CVaR)."""

    def _from_tail(self, tail: List[Num], factory: NumFactory) -> Num:
        if not tail:
            return factory.zero()
        total = factory.zero()
        for value in tail:
            total = total + value
        result = total / factory.num_of(len(tail))
        log.debug(f"Expected shortfall over the {len(tail)} worst returns: {result}")
        return result


class ValueAtRiskCriterion(_TailRiskCriterion):
    """Boundary return of the worst tail, never above 0."""

    def _from_tail(self, tail: List[Num], factory: NumFactory) -> Num:
        zero = factory.zero()
        if not tail:
            return zero
        return tail[-1].min(zero)
