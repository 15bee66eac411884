"""
Profit and loss criteria, in price units or percent of invested value.

Open positions contribute nothing: their profit is zero until they close.
"""
from abc import abstractmethod

from tradeperf.criteria.base import AnalysisCriterion
from tradeperf.criteria.positions import NumberOfLosingPositionsCriterion, NumberOfWinningPositionsCriterion
from tradeperf.num import Num
from tradeperf.position import Position
from tradeperf.record import TradingRecord

__all__ = [
    "ProfitLossCriterion",
    "GrossProfitLossCriterion",
    "ProfitCriterion",
    "LossCriterion",
    "AverageProfitCriterion",
    "AverageLossCriterion",
    "ProfitLossRatioCriterion",
    "ProfitLossPercentageCriterion",
    "GrossProfitLossPercentageCriterion",
]


class _SummedCriterion(AnalysisCriterion):
    """Sums the per-position value over the closed positions of a record."""

    def calculate_record(self, record: TradingRecord) -> Num:
        total = record.num_factory.zero()
        for position in record.positions:
            total = total + self.calculate_position(position)
        return total

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 > value2


class ProfitLossCriterion(_SummedCriterion):
    """Net profit and loss, trading and holding costs included."""

    def calculate_position(self, position: Position) -> Num:
        return position.profit


class GrossProfitLossCriterion(_SummedCriterion):
    def calculate_position(self, position: Position) -> Num:
        return position.gross_profit


class ProfitCriterion(_SummedCriterion):
    """Sum of the profits of winning positions."""

    def __init__(self, exclude_costs: bool = False):
        self.exclude_costs = exclude_costs

    def calculate_position(self, position: Position) -> Num:
        value = position.gross_profit if self.exclude_costs else position.profit
        return value if value.is_positive else position.num_factory.zero()

    def __repr__(self) -> str:
        return f"ProfitCriterion(exclude_costs={self.exclude_costs})"


class LossCriterion(_SummedCriterion):
    """Sum of the losses of losing positions, as a negative number."""

    def __init__(self, exclude_costs: bool = False):
        self.exclude_costs = exclude_costs

    def calculate_position(self, position: Position) -> Num:
        value = position.gross_profit if self.exclude_costs else position.profit
        return value if value.is_negative else position.num_factory.zero()

    def __repr__(self) -> str:
        return f"LossCriterion(exclude_costs={self.exclude_costs})"


class AverageProfitCriterion(AnalysisCriterion):
    """Net profit per winning position; 0 without winners."""

    def __init__(self):
        self._profit = ProfitCriterion()
        self._winners = NumberOfWinningPositionsCriterion()

    def _average(self, profit: Num, winners: Num) -> Num:
        if winners.is_zero:
            return winners.factory.zero()
        return profit / winners

    def calculate_position(self, position: Position) -> Num:
        return self._average(self._profit.calculate_position(position), self._winners.calculate_position(position))

    def calculate_record(self, record: TradingRecord) -> Num:
        return self._average(self._profit.calculate_record(record), self._winners.calculate_record(record))

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 > value2


class AverageLossCriterion(AnalysisCriterion):
    """Net loss per losing position (negative); 0 without losers."""

    def __init__(self):
        self._loss = LossCriterion()
        self._losers = NumberOfLosingPositionsCriterion()

    def _average(self, loss: Num, losers: Num) -> Num:
        if losers.is_zero:
            return losers.factory.zero()
        return loss / losers

    def calculate_position(self, position: Position) -> Num:
        return self._average(self._loss.calculate_position(position), self._losers.calculate_position(position))

    def calculate_record(self, record: TradingRecord) -> Num:
        return self._average(self._loss.calculate_record(record), self._losers.calculate_record(record))

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 > value2


class ProfitLossRatioCriterion(AnalysisCriterion):
    """
    Average profit over average loss, as an absolute value.

    0 when there is no average profit (only losses or nothing at all), 1 when
    there is no average loss.
    """

    def __init__(self):
        self._average_profit = AverageProfitCriterion()
        self._average_loss = AverageLossCriterion()

    def _ratio(self, average_profit: Num, average_loss: Num) -> Num:
        factory = average_profit.factory
        if average_profit.is_zero:
            return factory.zero()
        if average_loss.is_zero:
            return factory.one()
        return abs(average_profit / average_loss)

    def calculate_position(self, position: Position) -> Num:
        return self._ratio(
            self._average_profit.calculate_position(position),
            self._average_loss.calculate_position(position),
        )

    def calculate_record(self, record: TradingRecord) -> Num:
        return self._ratio(
            self._average_profit.calculate_record(record),
            self._average_loss.calculate_record(record),
        )

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 > value2


class _ProfitLossPercentageCriterion(AnalysisCriterion):
    """Profit in percent of the value invested at entry; 0 when nothing was invested."""

    @abstractmethod
    def _profit(self, position: Position) -> Num:
        raise NotImplementedError

    def calculate_position(self, position: Position) -> Num:
        factory = position.num_factory
        if not position.is_closed:
            return factory.zero()
        invested = position.entry.value
        if invested.is_zero:
            return factory.zero()
        return self._profit(position) / invested * factory.hundred()

    def calculate_record(self, record: TradingRecord) -> Num:
        factory = record.num_factory
        invested = factory.zero()
        profit = factory.zero()
        for position in record.positions:
            invested = invested + position.entry.value
            profit = profit + self._profit(position)
        if invested.is_zero:
            return factory.zero()
        return profit / invested * factory.hundred()

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 > value2


class ProfitLossPercentageCriterion(_ProfitLossPercentageCriterion):
    """Net profit relative to the value invested at entry."""

    def _profit(self, position: Position) -> Num:
        return position.profit


class GrossProfitLossPercentageCriterion(_ProfitLossPercentageCriterion):
    def _profit(self, position: Position) -> Num:
        return position.gross_profit
