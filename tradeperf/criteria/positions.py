"""Criteria counting positions and the time spent in them."""

from datetime import timedelta

from tradeperf.criteria.base import AnalysisCriterion, PositionFilter
from tradeperf.num import Num
from tradeperf.position import Position
from tradeperf.record import TradingRecord
from tradeperf.series import BarSeries

__all__ = [
    "NumberOfPositionsCriterion",
    "NumberOfWinningPositionsCriterion",
    "NumberOfLosingPositionsCriterion",
    "NumberOfBreakEvenPositionsCriterion",
    "WinningPositionsRatioCriterion",
    "NumberOfConsecutivePositionsCriterion",
    "NumberOfBarsCriterion",
    "TimeInTradeCriterion",
]


class NumberOfPositionsCriterion(AnalysisCriterion):
    """Number of closed positions."""

    def calculate_position(self, position: Position) -> Num:
        return position.num_factory.one()

    def calculate_record(self, record: TradingRecord) -> Num:
        return record.num_factory.num_of(record.position_count)

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 < value2


class NumberOfWinningPositionsCriterion(AnalysisCriterion):
    def calculate_position(self, position: Position) -> Num:
        factory = position.num_factory
        return factory.one() if position.has_profit() else factory.zero()

    def calculate_record(self, record: TradingRecord) -> Num:
        return record.num_factory.num_of(sum(1 for p in record.positions if p.has_profit()))

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 > value2


class NumberOfLosingPositionsCriterion(AnalysisCriterion):
    def calculate_position(self, position: Position) -> Num:
        factory = position.num_factory
        return factory.one() if position.has_loss() else factory.zero()

    def calculate_record(self, record: TradingRecord) -> Num:
        return record.num_factory.num_of(sum(1 for p in record.positions if p.has_loss()))

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 < value2


def _is_break_even(position: Position) -> bool:
    return position.is_closed and position.profit.is_zero


class NumberOfBreakEvenPositionsCriterion(AnalysisCriterion):
    """Closed positions with a net profit of exactly zero."""

    def calculate_position(self, position: Position) -> Num:
        factory = position.num_factory
        return factory.one() if _is_break_even(position) else factory.zero()

    def calculate_record(self, record: TradingRecord) -> Num:
        return record.num_factory.num_of(sum(1 for p in record.positions if _is_break_even(p)))

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 < value2


class WinningPositionsRatioCriterion(AnalysisCriterion):
    """Share of winning positions; 0 when there are no positions."""

    def __init__(self):
        self._winning = NumberOfWinningPositionsCriterion()
        self._positions = NumberOfPositionsCriterion()

    def calculate_position(self, position: Position) -> Num:
        return self._winning.calculate_position(position)

    def calculate_record(self, record: TradingRecord) -> Num:
        count = self._positions.calculate_record(record)
        if count.is_zero:
            return record.num_factory.zero()
        return self._winning.calculate_record(record) / count

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 > value2


class NumberOfConsecutivePositionsCriterion(AnalysisCriterion):
    """
    Longest streak of consecutive winning (PROFIT) or losing (LOSS)
    positions. An open position never extends a streak.
    """

    def __init__(self, position_filter: PositionFilter = PositionFilter.PROFIT):
        self.position_filter = position_filter

    def _matches(self, position: Position) -> bool:
        if not position.is_closed:
            return False
        if self.position_filter is PositionFilter.PROFIT:
            return position.profit.is_positive
        return position.profit.is_negative

    def calculate_position(self, position: Position) -> Num:
        factory = position.num_factory
        return factory.one() if self._matches(position) else factory.zero()

    def calculate_record(self, record: TradingRecord) -> Num:
        longest = current = 0
        for position in record.positions:
            if self._matches(position):
                current += 1
                longest = max(longest, current)
            else:
                current = 0
        return record.num_factory.num_of(longest)

    def better_than(self, value1: Num, value2: Num) -> bool:
        if self.position_filter is PositionFilter.PROFIT:
            return value1 > value2
        return value1 < value2

    def __repr__(self) -> str:
        return f"NumberOfConsecutivePositionsCriterion(position_filter={self.position_filter.name})"


class NumberOfBarsCriterion(AnalysisCriterion):
    """
    Number of bars spanned by closed positions, counting both the entry bar
    and the exit bar.
    """

    def __init__(self, series: BarSeries):
        self.series = series

    def calculate_position(self, position: Position) -> Num:
        factory = position.num_factory
        if not position.is_closed:
            return factory.zero()
        entry_index = max(self.series.index_of(position.entry.time), 0)
        exit_index = self.series.index_of(position.exit.time)
        if exit_index < 0:
            return factory.zero()
        return factory.num_of(exit_index - entry_index + 1)

    def calculate_record(self, record: TradingRecord) -> Num:
        total = record.num_factory.zero()
        for position in record.positions:
            total = total + self.calculate_position(position)
        return total

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 < value2


class TimeInTradeCriterion(AnalysisCriterion):
    """Whole `unit`s spent in closed positions."""

    def __init__(self, unit: timedelta = timedelta(days=1)):
        if unit <= timedelta(0):
            raise ValueError(f"unit must be a positive duration, got {unit}")
        self.unit = unit

    def calculate_position(self, position: Position) -> Num:
        return position.num_factory.num_of(position.time_in_trade // self.unit)

    def calculate_record(self, record: TradingRecord) -> Num:
        total = record.num_factory.zero()
        for position in record.positions:
            total = total + self.calculate_position(position)
        return total

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 < value2

    def __repr__(self) -> str:
        return f"TimeInTradeCriterion(unit={self.unit})"
