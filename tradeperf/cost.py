"""Cost models for transactions and for holding a position."""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional

from tradeperf.num import Num

if TYPE_CHECKING:
    from tradeperf.position import Position

__all__ = [
    "CostModel",
    "ZeroCostModel",
    "FixedTransactionCostModel",
    "LinearTransactionCostModel",
    "LinearBorrowingCostModel",
]


class CostModel(ABC):
    """Base class. Costs are expressed in the currency of the traded asset."""

    def calculate_trade(self, price: Num, amount: Num) -> Num:
        """Cost of executing a single trade."""
        return price.factory.zero()

    @abstractmethod
    def calculate_position(self, position: "Position", final_time: Optional[datetime] = None) -> Num:
        """
        Cost of a position. `final_time` is only used for open positions and
        marks the instant up to which holding costs accrue.
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ZeroCostModel(CostModel):
    """Trading and holding are free."""

    def calculate_position(self, position: "Position", final_time: Optional[datetime] = None) -> Num:
        return position.num_factory.zero()


class FixedTransactionCostModel(CostModel):
    """A flat fee charged on every trade."""

    def __init__(self, fee_per_trade: float):
        if fee_per_trade < 0:
            raise ValueError(f"fee_per_trade must be non-negative, got {fee_per_trade}")
        self.fee_per_trade = fee_per_trade

    def calculate_trade(self, price: Num, amount: Num) -> Num:
        return price.factory.num_of(self.fee_per_trade)

    def calculate_position(self, position: "Position", final_time: Optional[datetime] = None) -> Num:
        factory = position.num_factory
        trades = sum(1 for trade in (position.entry, position.exit) if trade is not None)
        return factory.num_of(self.fee_per_trade) * trades

    def __repr__(self) -> str:
        return f"FixedTransactionCostModel(fee_per_trade={self.fee_per_trade})"


class LinearTransactionCostModel(CostModel):
    """A fee proportional to the traded value."""

    def __init__(self, fee_rate: float):
        if fee_rate < 0:
            raise ValueError(f"fee_rate must be non-negative, got {fee_rate}")
        self.fee_rate = fee_rate

    def calculate_trade(self, price: Num, amount: Num) -> Num:
        return price * amount * self.fee_rate

    def calculate_position(self, position: "Position", final_time: Optional[datetime] = None) -> Num:
        total = position.num_factory.zero()
        for trade in (position.entry, position.exit):
            if trade is not None:
                total = total + trade.cost
        return total

    def __repr__(self) -> str:
        return f"LinearTransactionCostModel(fee_rate={self.fee_rate})"


class LinearBorrowingCostModel(CostModel):
    """
    Borrowing fee for short positions, charged on the entry value for every
    whole `period` the position stays open. Long positions are free to hold.
    """

    def __init__(self, fee_per_period: float, period: timedelta = timedelta(days=1)):
        if fee_per_period < 0:
            raise ValueError(f"fee_per_period must be non-negative, got {fee_per_period}")
        if period <= timedelta(0):
            raise ValueError(f"period must be positive, got {period}")
        self.fee_per_period = fee_per_period
        self.period = period

    def calculate_position(self, position: "Position", final_time: Optional[datetime] = None) -> Num:
        factory = position.num_factory
        entry = position.entry
        if entry is None or entry.is_buy:
            return factory.zero()

        end_time = position.exit.time if position.exit is not None else final_time
        if end_time is None or end_time <= entry.time:
            return factory.zero()

        periods = (end_time - entry.time) // self.period
        return entry.value * self.fee_per_period * periods

    def __repr__(self) -> str:
        return f"LinearBorrowingCostModel(fee_per_period={self.fee_per_period}, period={self.period})"
