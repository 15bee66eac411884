"""
The trading record: the ordered history of positions produced by a strategy.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from tradeperf.cost import CostModel, ZeroCostModel
from tradeperf.num import DEFAULT_NUM_FACTORY, Num, NumFactory
from tradeperf.position import Position
from tradeperf.types import OrderType, Trade, TradeType

__all__ = ["TradingRecord"]

log = logging.getLogger(__name__)


class TradingRecord:
    """
    Append-only record of closed positions plus one current position.

    A strategy loop calls `enter` and `exit` in non-decreasing time order.
    Calls made in the wrong state return False and record nothing, so a
    bar-by-bar loop may call them unconditionally.
    """

    def __init__(
        self,
        starting_type: TradeType = TradeType.BUY,
        name: str = "",
        transaction_cost_model: Optional[CostModel] = None,
        holding_cost_model: Optional[CostModel] = None,
        num_factory: NumFactory = DEFAULT_NUM_FACTORY,
    ):
        self.starting_type = starting_type
        self.name = name
        self.transaction_cost_model = transaction_cost_model or ZeroCostModel()
        self.holding_cost_model = holding_cost_model or ZeroCostModel()
        self.num_factory = num_factory
        self._trades: List[Trade] = []
        self._positions: List[Position] = []
        self._current = self._new_position()

    def _new_position(self) -> Position:
        return Position(
            self.starting_type,
            self.transaction_cost_model,
            self.holding_cost_model,
            self.num_factory,
        )

    def enter(self, time: datetime, price: Num, amount: Optional[Num] = None) -> bool:
        """Places an entry trade. Returns False unless the current position is new."""
        if not self._current.is_new:
            log.debug(f"Entry at {time} ignored: a position is already open.")
            return False
        if amount is None:
            amount = self.num_factory.one()
        self._record(self._current.operate(time, price, amount))
        return True

    def exit(self, time: datetime, price: Num, amount: Optional[Num] = None) -> bool:
        """
        Places an exit trade. Returns False unless the current position is
        opened. The amount defaults to the entry amount.
        """
        if not self._current.is_opened:
            log.debug(f"Exit at {time} ignored: no open position.")
            return False
        if amount is None:
            amount = self._current.entry.amount
        self._record(self._current.operate(time, price, amount))
        return True

    def operate(self, time: datetime, price: Num, amount: Optional[Num] = None) -> bool:
        """Enters when flat, exits when a position is open."""
        if self._current.is_new:
            return self.enter(time, price, amount)
        return self.exit(time, price, amount)

    def _record(self, trade: Trade) -> None:
        self._trades.append(trade)
        if self._current.is_closed:
            self._positions.append(self._current)
            self._current = self._new_position()

    @property
    def positions(self) -> Tuple[Position, ...]:
        """The closed positions, in the order they were closed."""
        return tuple(self._positions)

    @property
    def position_count(self) -> int:
        return len(self._positions)

    @property
    def current_position(self) -> Position:
        return self._current

    @property
    def is_closed(self) -> bool:
        """True when no position is open."""
        return not self._current.is_opened

    @property
    def is_empty(self) -> bool:
        return not self._trades

    @property
    def trades(self) -> Tuple[Trade, ...]:
        return tuple(self._trades)

    @property
    def last_position(self) -> Optional[Position]:
        return self._positions[-1] if self._positions else None

    @property
    def last_trade(self) -> Optional[Trade]:
        return self._trades[-1] if self._trades else None

    def get_last_trade(self, trade_type: TradeType) -> Optional[Trade]:
        for trade in reversed(self._trades):
            if trade.type is trade_type:
                return trade
        return None

    def _last_of(self, order_type: OrderType) -> Optional[Trade]:
        for trade in reversed(self._trades):
            if trade.order_type is order_type:
                return trade
        return None

    @property
    def last_entry(self) -> Optional[Trade]:
        return self._last_of(OrderType.OPEN)

    @property
    def last_exit(self) -> Optional[Trade]:
        return self._last_of(OrderType.CLOSE)

    def __repr__(self) -> str:
        return (
            f"TradingRecord(name={self.name!r}, starting_type={self.starting_type.value}, "
            f"positions={len(self._positions)}, open={self._current.is_opened})"
        )
