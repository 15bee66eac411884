"""
Common interface of all analysis criteria.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Union

from tradeperf.num import Num
from tradeperf.position import Position
from tradeperf.record import TradingRecord

__all__ = ["AnalysisCriterion", "PositionFilter"]


class PositionFilter(Enum):
    """Selects winning or losing positions."""

    PROFIT = "profit"
    LOSS = "loss"


class AnalysisCriterion(ABC):
    """
    A performance or risk measure over a single position or a trading record.

    Criteria only hold configuration, so calculating twice on the same record
    gives the same result. Each criterion states its own ordering in
    `better_than`; there is no global "higher is better" rule.
    """

    def calculate(self, subject: Union[Position, TradingRecord]) -> Num:
        if isinstance(subject, Position):
            return self.calculate_position(subject)
        return self.calculate_record(subject)

    @abstractmethod
    def calculate_position(self, position: Position) -> Num:
        """Criterion value for one position."""

    @abstractmethod
    def calculate_record(self, record: TradingRecord) -> Num:
        """Criterion value for the positions of a trading record."""

    @abstractmethod
    def better_than(self, value1: Num, value2: Num) -> bool:
        """True when `value1` is better than `value2` for this criterion."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
