"""
Per-bar return series derived from a cash flow.
"""
import logging
from datetime import datetime
from enum import Enum
from typing import List, Tuple, Union

import pandas as pd

from tradeperf.analysis.cashflow import CashFlow
from tradeperf.num import Num
from tradeperf.position import Position
from tradeperf.record import TradingRecord
from tradeperf.series import BarSeries

__all__ = ["Returns", "ReturnType"]

log = logging.getLogger(__name__)


class ReturnType(Enum):
    ARITHMETIC = "arithmetic"
    LOG = "log"

    def calculate(self, new_value: Num, old_value: Num) -> Num:
        if self is ReturnType.LOG:
            return (new_value / old_value).log()
        return new_value / old_value - 1


class Returns:
    """
    One return per bar of the series, from the cash flow sampled at
    consecutive bar ends. The first bar and every bar during which no
    position is held have a return of exactly 0.
    """

    def __init__(
        self,
        series: BarSeries,
        subject: Union[Position, TradingRecord],
        return_type: ReturnType = ReturnType.ARITHMETIC,
    ):
        self.series = series
        self.type = return_type
        self.num_factory = subject.num_factory
        self._values = self._calculate(CashFlow(series, subject))
        log.debug(f"Computed {len(self._values)} {return_type.value} returns.")

    def _calculate(self, cash_flow: CashFlow) -> Tuple[Num, ...]:
        zero = self.num_factory.zero()
        if self.series.is_empty:
            return ()

        values: List[Num] = [zero]
        for index in range(1, len(self.series)):
            previous_time, time = self.series.time_at(index - 1), self.series.time_at(index)
            if not cash_flow.is_active(previous_time, time):
                values.append(zero)
                continue
            values.append(self.type.calculate(cash_flow.get_value(time), cash_flow.get_value(previous_time)))
        return tuple(values)

    @property
    def values(self) -> Tuple[Num, ...]:
        return self._values

    def __len__(self) -> int:
        return len(self._values)

    def get_value(self, time: datetime) -> Num:
        """Return of the bar ending at or before `time`; 0 before the first bar."""
        index = self.series.index_of(time)
        if index < 0:
            return self.num_factory.zero()
        return self._values[index]

    def to_series(self) -> pd.Series:
        return pd.Series([float(v) for v in self._values], index=pd.DatetimeIndex(self.series.times), dtype=float)
