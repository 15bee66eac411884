"""
Equity curve reconstruction.

The curve is the multiplicative value of one unit of capital invested in
the positions one after the other. It starts at 1, moves with the price
while a position is open and stays flat between positions.

Everything is computed at construction into a list of checkpoints, so a
cash flow never reads its source record again.
"""
import logging
from bisect import bisect_right
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple, Union

import pandas as pd

from tradeperf.num import Num
from tradeperf.position import Position, directional_return
from tradeperf.record import TradingRecord
from tradeperf.series import BarSeries
from tradeperf.types import TradeType

__all__ = ["CashFlow", "RealizedCashFlow"]

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Checkpoint:
    time: pd.Timestamp
    value: Num
    holding: bool  # a position stays open right after this instant


@dataclass(frozen=True)
class _Segment:
    entry_time: pd.Timestamp
    exit_time: Optional[pd.Timestamp]
    base: Num
    trade_type: TradeType
    entry_price: Num

    def contains(self, time: pd.Timestamp) -> bool:
        """True when `time` lies strictly inside the holding period."""
        return self.entry_time < time and (self.exit_time is None or time < self.exit_time)


def _positions_of(subject: Union[Position, TradingRecord]) -> List[Position]:
    if isinstance(subject, Position):
        return [subject] if subject.entry is not None else []
    positions = [p for p in subject.positions if p.entry is not None]
    if subject.current_position.is_opened:
        positions.append(subject.current_position)
    return positions


class CashFlow:
    """
    Equity multiplier as a function of time, for a single position or a
    whole trading record (closed positions plus the open one, valued up to
    the last bar of the series).
    """

    def __init__(self, series: BarSeries, subject: Union[Position, TradingRecord]):
        self.series = series
        self.num_factory = subject.num_factory
        self._checkpoints: List[_Checkpoint] = []
        self._segments: List[_Segment] = []
        self._build(_positions_of(subject))
        self._times = [cp.time for cp in self._checkpoints]
        log.debug(f"Cash flow built with {len(self._checkpoints)} checkpoints over {len(self._segments)} positions.")

    def _build(self, positions: Sequence[Position]) -> None:
        accumulated = self.num_factory.one()
        for position in positions:
            entry = position.entry
            entry_time = pd.Timestamp(entry.time)
            exit_time = pd.Timestamp(position.exit.time) if position.is_closed else None

            self._segments.append(
                _Segment(entry_time, exit_time, accumulated, entry.type, entry.net_price)
            )
            self._checkpoints.append(_Checkpoint(entry_time, accumulated, True))

            for index in self.series.indices_between(entry_time, exit_time):
                ratio = directional_return(entry.type, entry.net_price, self.series.price_at(index))
                self._checkpoints.append(
                    _Checkpoint(self.series.time_at(index), accumulated * ratio, True)
                )

            if exit_time is not None:
                accumulated = accumulated * position.net_return
                self._checkpoints.append(_Checkpoint(exit_time, accumulated, False))

    @property
    def values(self) -> Tuple[Num, ...]:
        """Curve values at every checkpoint, in chronological order."""
        return tuple(cp.value for cp in self._checkpoints)

    def items(self) -> List[Tuple[pd.Timestamp, Num]]:
        return [(cp.time, cp.value) for cp in self._checkpoints]

    def __len__(self) -> int:
        return len(self._checkpoints)

    def _floor(self, time: pd.Timestamp) -> int:
        return bisect_right(self._times, time) - 1

    def get_value(self, time: datetime) -> Num:
        """Value of the curve at `time`; 1 before the first entry."""
        index = self._floor(pd.Timestamp(time))
        if index < 0:
            return self.num_factory.one()
        return self._checkpoints[index].value

    def is_active(self, start: datetime, end: datetime) -> bool:
        """True when some position is held during the interval (start, end]."""
        start, end = pd.Timestamp(start), pd.Timestamp(end)
        return any(
            seg.entry_time < end and (seg.exit_time is None or seg.exit_time > start)
            for seg in self._segments
        )

    def to_series(self) -> pd.Series:
        """Checkpoint values as floats indexed by time (last value per instant)."""
        data = pd.Series([float(v) for v in self.values], index=pd.DatetimeIndex(self._times), dtype=float)
        return data[~data.index.duplicated(keep="last")]


class RealizedCashFlow(CashFlow):
    """
    Cash flow that also values instants falling strictly between two bars of
    an open position, by linear interpolation of the bar close prices.
    """

    def _segment_at(self, time: pd.Timestamp) -> Optional[_Segment]:
        for segment in self._segments:
            if segment.contains(time):
                return segment
        return None

    def get_value(self, time: datetime) -> Num:
        ts = pd.Timestamp(time)
        segment = self._segment_at(ts)
        if segment is None:
            return super().get_value(ts)

        index = self.series.index_of(ts)
        if index < 0 or index + 1 >= len(self.series) or self.series.time_at(index) == ts:
            return super().get_value(ts)

        # Only interpolate between bars that both lie inside the holding period.
        previous_bar, next_bar = self.series.time_at(index), self.series.time_at(index + 1)
        if previous_bar < segment.entry_time:
            return super().get_value(ts)
        if segment.exit_time is not None and next_bar > segment.exit_time:
            return super().get_value(ts)

        price = self.series.interpolated_price(ts)
        return segment.base * directional_return(segment.trade_type, segment.entry_price, price)
