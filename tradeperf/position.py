"""
A position: one round trip made of an entry trade and an exit trade.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from tradeperf.cost import CostModel, ZeroCostModel
from tradeperf.num import DEFAULT_NUM_FACTORY, Num, NumFactory
from tradeperf.types import OrderType, Trade, TradeType

__all__ = ["Position", "directional_return"]

log = logging.getLogger(__name__)


def directional_return(trade_type: TradeType, entry_price: Num, price: Num) -> Num:
    """
    Return multiplier (base 1) of a position entered at `entry_price` and
    valued at `price`.

    BUY: price / entry. SELL: 2 - price / entry, the multiplicative form of
    1 + (entry - price) / entry. A zero entry price means no value change.
    """
    factory = entry_price.factory
    if entry_price.is_zero:
        return factory.one()
    if trade_type is TradeType.BUY:
        return price / entry_price
    return factory.two() - price / entry_price


class Position:
    """
    A pair of complementary trades. The entry has `starting_type`, the exit
    the opposite type. Lifecycle: NEW -> OPENED -> CLOSED.

    Profit and return getters never fail on an unfinished position: profits
    are zero and returns are the base 1 until the position is closed.
    """

    def __init__(
        self,
        starting_type: TradeType = TradeType.BUY,
        transaction_cost_model: Optional[CostModel] = None,
        holding_cost_model: Optional[CostModel] = None,
        num_factory: NumFactory = DEFAULT_NUM_FACTORY,
    ):
        self.starting_type = starting_type
        self.transaction_cost_model = transaction_cost_model or ZeroCostModel()
        self.holding_cost_model = holding_cost_model or ZeroCostModel()
        self.num_factory = num_factory
        self._entry: Optional[Trade] = None
        self._exit: Optional[Trade] = None

    @property
    def entry(self) -> Optional[Trade]:
        return self._entry

    @property
    def exit(self) -> Optional[Trade]:
        return self._exit

    @property
    def is_new(self) -> bool:
        return self._entry is None

    @property
    def is_opened(self) -> bool:
        return self._entry is not None and self._exit is None

    @property
    def is_closed(self) -> bool:
        return self._entry is not None and self._exit is not None

    @property
    def is_long(self) -> bool:
        return self.starting_type is TradeType.BUY

    def operate(self, time: datetime, price: Num, amount: Num) -> Optional[Trade]:
        """
        Records the entry of a new position or the exit of an opened one.

        Returns the recorded trade, or None when the position is already
        closed (nothing is recorded).
        """
        if self.is_closed:
            log.warning(f"Ignoring trade at {time}: position is already closed.")
            return None

        price = self.num_factory.num_of(price)
        amount = self.num_factory.num_of(amount)
        if self.is_new:
            trade_type, order_type = self.starting_type, OrderType.OPEN
        else:
            trade_type, order_type = self.starting_type.complement(), OrderType.CLOSE

        trade = Trade.create(time, price, amount, trade_type, order_type, self.transaction_cost_model)
        if self.is_new:
            self._entry = trade
        else:
            self._exit = trade
        log.debug(f"Recorded {trade}")
        return trade

    # §1. Profit
    # --------------------------------------------------------------------------------------

    @property
    def profit(self) -> Num:
        """Net profit of a closed position (trading and holding costs deducted)."""
        if not self.is_closed:
            return self.num_factory.zero()
        return self.get_gross_profit(self._exit.price) - self.position_cost

    @property
    def gross_profit(self) -> Num:
        """Profit of a closed position, ignoring all costs."""
        if not self.is_closed:
            return self.num_factory.zero()
        return self.get_gross_profit(self._exit.price)

    def get_gross_profit(self, final_price: Num) -> Num:
        """Gross profit if the position exited at `final_price`."""
        if self.is_new:
            return self.num_factory.zero()
        final_price = self.num_factory.num_of(final_price)
        gross = self._entry.amount * final_price - self._entry.value
        # Profits of a long position are losses of a short one.
        return -gross if self._entry.is_sell else gross

    def get_profit(self, final_time: datetime, final_price: Num) -> Num:
        """Net profit of a (possibly open) position valued at `final_price`."""
        return self.get_gross_profit(final_price) - self.get_position_cost(final_time)

    def has_profit(self) -> bool:
        return self.profit.is_positive

    def has_loss(self) -> bool:
        return self.profit.is_negative

    # §2. Return
    # --------------------------------------------------------------------------------------

    @property
    def gross_return(self) -> Num:
        """Return (base included) of a closed position from raw trade prices."""
        if not self.is_closed:
            return self.num_factory.one()
        return directional_return(self._entry.type, self._entry.price, self._exit.price)

    def get_gross_return(self, final_price: Num) -> Num:
        """Gross return (base included) if the position exited at `final_price`."""
        if self.is_new:
            return self.num_factory.one()
        return directional_return(self._entry.type, self._entry.price, self.num_factory.num_of(final_price))

    @property
    def net_return(self) -> Num:
        """
        Return (base included) of a closed position from net trade prices,
        with the holding cost per asset charged on the exit price.
        """
        if not self.is_closed:
            return self.num_factory.one()
        holding_per_asset = self.holding_cost / self._entry.amount
        if self._entry.is_buy:
            exit_price = self._exit.net_price - holding_per_asset
        else:
            exit_price = self._exit.net_price + holding_per_asset
        return directional_return(self._entry.type, self._entry.net_price, exit_price)

    # §3. Costs
    # --------------------------------------------------------------------------------------

    @property
    def holding_cost(self) -> Num:
        return self.holding_cost_model.calculate_position(self)

    def get_holding_cost(self, final_time: datetime) -> Num:
        return self.holding_cost_model.calculate_position(self, final_time)

    @property
    def position_cost(self) -> Num:
        """Transaction plus holding cost of a closed position."""
        return self.transaction_cost_model.calculate_position(self) + self.holding_cost

    def get_position_cost(self, final_time: datetime) -> Num:
        transaction = self.transaction_cost_model.calculate_position(self, final_time)
        return transaction + self.get_holding_cost(final_time)

    @property
    def time_in_trade(self) -> timedelta:
        """Time between entry and exit; zero until the position is closed."""
        if not self.is_closed:
            return timedelta(0)
        return self._exit.time - self._entry.time

    def __repr__(self) -> str:
        return f"Position(entry={self._entry}, exit={self._exit})"
