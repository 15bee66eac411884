"""
Shared data structures for trade analysis.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from tradeperf.num import Num

if TYPE_CHECKING:
    from tradeperf.cost import CostModel

__all__ = ["TradeType", "OrderType", "Trade"]


class TradeType(Enum):
    BUY = "BUY"
    SELL = "SELL"

    def complement(self) -> "TradeType":
        return TradeType.SELL if self is TradeType.BUY else TradeType.BUY


class OrderType(Enum):
    OPEN = "OPEN"
    CLOSE = "CLOSE"


@dataclass(frozen=True)
class Trade:
    """
    A single executed order.

    `net_price` is the price per asset once the transaction cost is spread
    over the traded amount: higher than `price` for a BUY, lower for a SELL.
    """

    time: datetime
    price: Num
    amount: Num
    type: TradeType
    order_type: OrderType
    cost: Num
    net_price: Num

    @classmethod
    def create(
        cls,
        time: datetime,
        price: Num,
        amount: Num,
        trade_type: TradeType,
        order_type: OrderType,
        cost_model: "CostModel",
    ) -> "Trade":
        """Builds a trade, charging it through the given transaction cost model."""
        cost = cost_model.calculate_trade(price, amount)
        cost_per_asset = cost / amount
        if cost.is_zero:
            net_price = price
        elif trade_type is TradeType.BUY:
            net_price = price + cost_per_asset
        else:
            net_price = price - cost_per_asset
        return cls(
            time=time,
            price=price,
            amount=amount,
            type=trade_type,
            order_type=order_type,
            cost=cost,
            net_price=net_price,
        )

    @property
    def is_buy(self) -> bool:
        return self.type is TradeType.BUY

    @property
    def is_sell(self) -> bool:
        return self.type is TradeType.SELL

    @property
    def value(self) -> Num:
        """Market value of the trade, without transaction cost."""
        return self.price * self.amount

    def __str__(self) -> str:
        return f"{self.type.value} {self.order_type.value} {self.time} | {self.amount} @ {self.price}"
