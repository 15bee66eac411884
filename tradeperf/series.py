"""
Bar price series used to value positions between trade events.

Timestamps must be strictly increasing; this is checked at construction.
"""
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from tradeperf.num import DEFAULT_NUM_FACTORY, Num, NumFactory

__all__ = ["BarSeries"]


class BarSeries:
    """Bar end times with one close price per bar."""

    def __init__(
        self,
        times: Iterable[datetime],
        closes: Iterable[float],
        num_factory: NumFactory = DEFAULT_NUM_FACTORY,
        name: str = "",
    ):
        index = pd.DatetimeIndex(list(times))
        raw_closes = list(closes)
        if len(index) != len(raw_closes):
            raise ValueError(f"Got {len(index)} timestamps but {len(raw_closes)} close prices.")
        if len(index) > 1 and not (index.is_monotonic_increasing and index.is_unique):
            raise ValueError("Bar timestamps must be strictly increasing.")

        self.name = name
        self.num_factory = num_factory
        self._index = index
        self._closes: List[Num] = [num_factory.num_of(c) for c in raw_closes]

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        close_column: str = "Close",
        num_factory: NumFactory = DEFAULT_NUM_FACTORY,
        name: str = "",
    ) -> "BarSeries":
        """
        Builds a series from a DataFrame with a DatetimeIndex.

        Args:
            df: Bars, one row per bar, indexed by bar end time.
            close_column: Column holding the close price.
            num_factory: Numeric backend for the prices.
            name: Optional series name, e.g. the symbol.

        Returns:
            A new BarSeries.
        """
        if close_column not in df.columns:
            raise ValueError(f"Input DataFrame must contain a '{close_column}' column.")
        if not isinstance(df.index, pd.DatetimeIndex):
            raise ValueError("Input DataFrame must have a DatetimeIndex.")

        closes = df[close_column].to_numpy(dtype=np.float64)
        if not np.isfinite(closes).all():
            raise ValueError(f"Column '{close_column}' contains missing or non-finite prices.")
        return cls(df.index, closes.tolist(), num_factory=num_factory, name=name)

    def __len__(self) -> int:
        return len(self._closes)

    @property
    def is_empty(self) -> bool:
        return not self._closes

    @property
    def times(self) -> Sequence[pd.Timestamp]:
        return list(self._index)

    @property
    def begin_time(self) -> Optional[pd.Timestamp]:
        return self._index[0] if len(self._index) else None

    @property
    def end_time(self) -> Optional[pd.Timestamp]:
        return self._index[-1] if len(self._index) else None

    @property
    def first_price(self) -> Optional[Num]:
        return self._closes[0] if self._closes else None

    @property
    def last_price(self) -> Optional[Num]:
        return self._closes[-1] if self._closes else None

    def time_at(self, index: int) -> pd.Timestamp:
        return self._index[index]

    def price_at(self, index: int) -> Num:
        return self._closes[index]

    def index_of(self, time: datetime) -> int:
        """Index of the last bar ending at or before `time`, -1 if none."""
        return int(self._index.searchsorted(pd.Timestamp(time), side="right")) - 1

    def price_at_time(self, time: datetime) -> Optional[Num]:
        """Close of the last bar ending at or before `time`."""
        index = self.index_of(time)
        return self._closes[index] if index >= 0 else None

    def interpolated_price(self, time: datetime) -> Optional[Num]:
        """
        Close price at `time`, linearly interpolated when `time` falls strictly
        between two bar ends. Flat after the last bar, None before the first.
        """
        index = self.index_of(time)
        if index < 0:
            return None
        ts = pd.Timestamp(time)
        if ts == self._index[index] or index + 1 >= len(self._index):
            return self._closes[index]
        start, end = self._index[index], self._index[index + 1]
        fraction = self.num_factory.num_of((ts - start) / (end - start))
        low, high = self._closes[index], self._closes[index + 1]
        return low + (high - low) * fraction

    def indices_between(self, start: datetime, end: Optional[datetime]) -> range:
        """
        Indices of bars ending strictly after `start` and strictly before `end`
        (through the last bar when `end` is None).
        """
        first = int(self._index.searchsorted(pd.Timestamp(start), side="right"))
        if end is None:
            last = len(self._index)
        else:
            last = int(self._index.searchsorted(pd.Timestamp(end), side="left"))
        return range(first, max(first, last))

    def __repr__(self) -> str:
        return f"BarSeries(name={self.name!r}, bars={len(self)})"
