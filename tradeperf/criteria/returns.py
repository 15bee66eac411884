"""Compounded return criteria."""

import logging
from abc import abstractmethod
from datetime import datetime

from tradeperf.criteria.base import AnalysisCriterion
from tradeperf.criteria.positions import NumberOfBarsCriterion
from tradeperf.num import Num, NumFactory
from tradeperf.position import Position, directional_return
from tradeperf.record import TradingRecord
from tradeperf.series import BarSeries
from tradeperf.types import TradeType

__all__ = [
    "GrossReturnCriterion",
    "NetReturnCriterion",
    "AverageReturnPerBarCriterion",
    "EnterAndHoldReturnCriterion",
    "VersusEnterAndHoldCriterion",
]

log = logging.getLogger(__name__)


class _CompoundedReturnCriterion(AnalysisCriterion):
    """
    Product of the returns of the closed positions. With `add_base=False`
    the base 1 is subtracted from the result, e.g. 1.1 becomes 0.1.
    """

    def __init__(self, add_base: bool = True):
        self.add_base = add_base

    @abstractmethod
    def _position_return(self, position: Position) -> Num:
        raise NotImplementedError

    def _finish(self, value: Num) -> Num:
        return value if self.add_base else value - 1

    def calculate_position(self, position: Position) -> Num:
        return self._finish(self._position_return(position))

    def calculate_record(self, record: TradingRecord) -> Num:
        value = record.num_factory.one()
        for position in record.positions:
            value = value * self._position_return(position)
        return self._finish(value)

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 > value2

    def __repr__(self) -> str:
        return f"{type(self).__name__}(add_base={self.add_base})"


class GrossReturnCriterion(_CompoundedReturnCriterion):
    """Compounded return from raw trade prices, costs ignored."""

    def _position_return(self, position: Position) -> Num:
        return position.gross_return


class NetReturnCriterion(_CompoundedReturnCriterion):
    """Compounded return from net trade prices, holding costs included."""

    def _position_return(self, position: Position) -> Num:
        return position.net_return


class AverageReturnPerBarCriterion(AnalysisCriterion):
    """
    Geometric mean gross return per bar held: `gross_return ** (1 / bars)`.
    A simple division would ignore compounding. 1 when no bar was held.
    """

    def __init__(self, series: BarSeries):
        self.series = series
        self._gross_return = GrossReturnCriterion()
        self._bars = NumberOfBarsCriterion(series)

    def _per_bar(self, gross_return: Num, bars: Num) -> Num:
        if bars.is_zero:
            return bars.factory.one()
        return gross_return.pow(bars.factory.one() / bars)

    def calculate_position(self, position: Position) -> Num:
        return self._per_bar(self._gross_return.calculate_position(position), self._bars.calculate_position(position))

    def calculate_record(self, record: TradingRecord) -> Num:
        return self._per_bar(self._gross_return.calculate_record(record), self._bars.calculate_record(record))

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 > value2


class EnterAndHoldReturnCriterion(AnalysisCriterion):
    """
    Return of entering at the first close of the series and exiting at the
    last one, whatever the analysed positions did. 1 for an empty series.
    """

    def __init__(self, series: BarSeries, trade_type: TradeType = TradeType.BUY):
        self.series = series
        self.trade_type = trade_type

    def _calculate(self, factory: NumFactory) -> Num:
        if self.series.is_empty:
            return factory.one()
        first = factory.num_of(self.series.first_price)
        last = factory.num_of(self.series.last_price)
        return directional_return(self.trade_type, first, last)

    def calculate_position(self, position: Position) -> Num:
        return self._calculate(position.num_factory)

    def calculate_record(self, record: TradingRecord) -> Num:
        return self._calculate(record.num_factory)

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 > value2

    def __repr__(self) -> str:
        return f"EnterAndHoldReturnCriterion(trade_type={self.trade_type.value})"


class VersusEnterAndHoldCriterion(AnalysisCriterion):
    """
    Ratio of `criterion` on the analysed subject to `criterion` on a record
    holding a single unit over the same span. A position is compared with
    holding between its own entry and exit; a record with holding over the
    whole series.
    """

    def __init__(self, series: BarSeries, criterion: AnalysisCriterion, trade_type: TradeType = TradeType.BUY):
        self.series = series
        self.criterion = criterion
        self.trade_type = trade_type

    def _enter_and_hold(self, factory: NumFactory, begin: datetime, end: datetime) -> TradingRecord:
        record = TradingRecord(self.trade_type, name="enter-and-hold", num_factory=factory)
        begin_price = self.series.price_at_time(begin)
        end_price = self.series.price_at_time(end)
        if begin_price is None:
            begin_price = self.series.first_price
        if begin_price is not None and end_price is not None:
            record.enter(begin, begin_price, factory.one())
            record.exit(end, end_price, factory.one())
        return record

    def calculate_position(self, position: Position) -> Num:
        factory = position.num_factory
        if not position.is_closed or self.series.is_empty:
            return factory.one()
        hold = self._enter_and_hold(factory, position.entry.time, position.exit.time)
        return self.criterion.calculate_position(position) / self.criterion.calculate_record(hold)

    def calculate_record(self, record: TradingRecord) -> Num:
        factory = record.num_factory
        if self.series.is_empty:
            return factory.one()
        hold = self._enter_and_hold(factory, self.series.begin_time, self.series.end_time)
        if record.position_count == 0:
            # Doing nothing is compared as a flat return of 1.
            return factory.one() / self.criterion.calculate_record(hold)
        value = self.criterion.calculate_record(record) / self.criterion.calculate_record(hold)
        log.debug(f"{self.criterion!r} versus enter-and-hold: {value}")
        return value

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 > value2

    def __repr__(self) -> str:
        return f"VersusEnterAndHoldCriterion(criterion={self.criterion!r}, trade_type={self.trade_type.value})"
