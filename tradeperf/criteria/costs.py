"""Trading cost criterion for a linear fee schedule."""

from typing import Optional

from tradeperf.criteria.base import AnalysisCriterion
from tradeperf.criteria.returns import GrossReturnCriterion
from tradeperf.num import Num, NumFactory
from tradeperf.position import Position
from tradeperf.record import TradingRecord
from tradeperf.types import Trade

__all__ = ["LinearTransactionCostCriterion"]


class LinearTransactionCostCriterion(AnalysisCriterion):
    """
    Total cost of the trades when each one costs `a * traded_amount + b`.

    The traded amount starts at `initial_amount` and follows the record: after
    each position it loses the entry cost, is multiplied by the gross return
    and loses the exit cost. An open position adds its entry cost.
    """

    def __init__(self, initial_amount: float, a: float, b: float = 0.0):
        if initial_amount <= 0:
            raise ValueError(f"initial_amount must be positive, got {initial_amount}")
        self.initial_amount = initial_amount
        self.a = a
        self.b = b
        self._gross_return = GrossReturnCriterion()

    def _trade_cost(self, trade: Optional[Trade], traded_amount: Num) -> Num:
        factory = traded_amount.factory
        if trade is None:
            return factory.zero()
        return factory.num_of(self.a) * traded_amount + factory.num_of(self.b)

    def _position_cost(self, position: Position, traded_amount: Num) -> Num:
        if position.is_new:
            return traded_amount.factory.zero()
        cost = self._trade_cost(position.entry, traded_amount)
        if position.is_closed:
            grown = (traded_amount - cost) * self._gross_return.calculate_position(position)
            cost = cost + self._trade_cost(position.exit, grown)
        return cost

    def _initial(self, factory: NumFactory) -> Num:
        return factory.num_of(self.initial_amount)

    def calculate_position(self, position: Position) -> Num:
        return self._position_cost(position, self._initial(position.num_factory))

    def calculate_record(self, record: TradingRecord) -> Num:
        traded_amount = self._initial(record.num_factory)
        total = record.num_factory.zero()
        for position in record.positions:
            total = total + self._position_cost(position, traded_amount)
            traded_amount = traded_amount - self._trade_cost(position.entry, traded_amount)
            traded_amount = traded_amount * self._gross_return.calculate_position(position)
            traded_amount = traded_amount - self._trade_cost(position.exit, traded_amount)

        current = record.current_position
        if current.is_opened:
            total = total + self._trade_cost(current.entry, traded_amount)
        return total

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 < value2

    def __repr__(self) -> str:
        return f"LinearTransactionCostCriterion(initial_amount={self.initial_amount}, a={self.a}, b={self.b})"
