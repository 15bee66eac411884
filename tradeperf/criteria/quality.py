"""System quality criteria combining win rate and profit distribution."""

from typing import Optional

from tradeperf.criteria.base import AnalysisCriterion
from tradeperf.criteria.helpers import StandardDeviationCriterion
from tradeperf.criteria.pnl import ProfitLossCriterion, ProfitLossRatioCriterion
from tradeperf.criteria.positions import NumberOfPositionsCriterion, NumberOfWinningPositionsCriterion
from tradeperf.num import Num
from tradeperf.position import Position
from tradeperf.record import TradingRecord

__all__ = ["ExpectancyCriterion", "SqnCriterion"]


class ExpectancyCriterion(AnalysisCriterion):
    """
    Expected gain per unit risked: ((1 + profit_loss_ratio) * win_probability) - 1.

    0 when there are no positions or when the profit/loss ratio is exactly
    zero, which is also what a record with only losing positions produces.
    """

    def __init__(self):
        self._ratio = ProfitLossRatioCriterion()
        self._positions = NumberOfPositionsCriterion()
        self._winners = NumberOfWinningPositionsCriterion()

    @staticmethod
    def _expectancy(ratio: Num, winners: Num, positions: Num) -> Num:
        factory = ratio.factory
        if positions.is_zero or ratio.is_zero:
            return factory.zero()
        return (factory.one() + ratio) * (winners / positions) - factory.one()

    def calculate_position(self, position: Position) -> Num:
        return self._expectancy(
            self._ratio.calculate_position(position),
            self._winners.calculate_position(position),
            self._positions.calculate_position(position),
        )

    def calculate_record(self, record: TradingRecord) -> Num:
        return self._expectancy(
            self._ratio.calculate_record(record),
            self._winners.calculate_record(record),
            self._positions.calculate_record(record),
        )

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 > value2


class SqnCriterion(AnalysisCriterion):
    """
    System Quality Number: (mean(x) / stddev(x)) * sqrt(N), where x is the
    per-position value of `criterion` and N the number of positions.

    With more than 100 positions and `n_positions` given, `n_positions`
    replaces N inside the square root. 0 when the standard deviation is zero.
    """

    def __init__(self, criterion: Optional[AnalysisCriterion] = None, n_positions: Optional[int] = None):
        if n_positions is not None and n_positions <= 0:
            raise ValueError(f"n_positions must be positive, got {n_positions}")
        self.criterion = criterion or ProfitLossCriterion()
        self.n_positions = n_positions
        self._deviation = StandardDeviationCriterion(self.criterion)
        self._positions = NumberOfPositionsCriterion()

    def calculate_position(self, position: Position) -> Num:
        deviation = self._deviation.calculate_position(position)
        if deviation.is_zero:
            return position.num_factory.zero()
        count = self._positions.calculate_position(position)
        mean = self.criterion.calculate_position(position) / count
        return mean / deviation * count.sqrt()

    def calculate_record(self, record: TradingRecord) -> Num:
        factory = record.num_factory
        deviation = self._deviation.calculate_record(record)
        if deviation.is_zero:
            return factory.zero()
        count = self._positions.calculate_record(record)
        mean = self.criterion.calculate_record(record) / count
        if self.n_positions is not None and count > 100:
            count = factory.num_of(self.n_positions)
        return mean / deviation * count.sqrt()

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 > value2

    def __repr__(self) -> str:
        return f"SqnCriterion(criterion={self.criterion!r}, n_positions={self.n_positions})"
