"""
Loading of bars and trade events, and replay of the events into a record.
"""
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Literal, Optional, Tuple

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from rich.console import Console

from tradeperf.config import Config, CostsConfig, RunConfig
from tradeperf.cost import (
    CostModel,
    FixedTransactionCostModel,
    LinearBorrowingCostModel,
    LinearTransactionCostModel,
    ZeroCostModel,
)
from tradeperf.num import DecimalNumFactory, DoubleNumFactory, NumFactory
from tradeperf.record import TradingRecord
from tradeperf.series import BarSeries
from tradeperf.types import TradeType

__all__ = [
    "TradeEvent",
    "build_num_factory",
    "build_cost_models",
    "load_bars",
    "load_trade_events",
    "build_record",
]

log = logging.getLogger(__name__)


class TradeEvent(BaseModel):
    """
    One decision of a strategy: enter or exit the market at a price.
    """

    model_config = ConfigDict(frozen=True)

    time: datetime = Field(..., description="When the order was executed.")
    action: Literal["ENTER", "EXIT"] = Field(..., description="Open a new position or close the current one.")
    price: float = Field(..., gt=0, description="Execution price per asset.")
    amount: Optional[float] = Field(None, gt=0, description="Traded amount; defaults to 1 on entry.")


def build_num_factory(run: RunConfig) -> NumFactory:
    if run.num_backend == "decimal":
        return DecimalNumFactory(run.decimal_precision)
    return DoubleNumFactory()


def build_cost_models(costs: CostsConfig) -> Tuple[CostModel, CostModel]:
    """Returns the (transaction, holding) cost models described by `costs`."""
    transaction: CostModel
    if costs.transaction_model == "fixed":
        transaction = FixedTransactionCostModel(costs.transaction_rate)
    elif costs.transaction_model == "linear":
        transaction = LinearTransactionCostModel(costs.transaction_rate)
    else:
        transaction = ZeroCostModel()

    holding: CostModel
    if costs.holding_model == "borrowing":
        holding = LinearBorrowingCostModel(costs.holding_rate, timedelta(days=costs.holding_period_days))
    else:
        holding = ZeroCostModel()
    return transaction, holding


def _read_csv(path: Path, time_column: str) -> pd.DataFrame:
    if not path.is_file():
        raise FileNotFoundError(f"Data file not found: {path}")
    df = pd.read_csv(path)
    if time_column not in df.columns:
        raise ValueError(f"{path} must contain a '{time_column}' column.")
    df[time_column] = pd.to_datetime(df[time_column])
    return df


# impure
def load_bars(config: Config, console: Console) -> BarSeries:
    """
    Loads the bar CSV into a BarSeries using the configured numeric backend.
    #impure: Reads from the filesystem.
    """
    df = _read_csv(config.data.bars_path, config.data.time_column).set_index(config.data.time_column)
    series = BarSeries.from_frame(
        df,
        close_column=config.data.close_column,
        num_factory=build_num_factory(config.run),
        name=config.data.bars_path.stem,
    )
    console.print(f"Loaded {len(series)} bars from [cyan]{config.data.bars_path}[/cyan]")
    return series


# impure
def load_trade_events(config: Config, console: Console) -> List[TradeEvent]:
    """
    Loads and validates the trade event CSV (columns: time, action, price and
    an optional amount). Events must be in chronological order.
    #impure: Reads from the filesystem.
    """
    path = config.data.trades_path
    df = _read_csv(path, "time")
    if "amount" in df.columns:
        df["amount"] = df["amount"].astype(object).where(df["amount"].notna(), None)

    events = []
    for row_number, row in enumerate(df.to_dict("records"), start=1):
        try:
            events.append(TradeEvent(**row))
        except ValidationError as e:
            raise ValueError(f"Invalid trade event on row {row_number} of {path}: {e}") from e

    times = [event.time for event in events]
    if any(later < earlier for earlier, later in zip(times, times[1:])):
        raise ValueError(f"Trade events in {path} are not in chronological order.")

    console.print(f"Loaded {len(events)} trade events from [cyan]{path}[/cyan]")
    return events


def build_record(events: List[TradeEvent], config: Config, num_factory: NumFactory) -> TradingRecord:
    """
    Replays trade events into a TradingRecord. Events the record refuses
    (an entry while a position is open, an exit while flat) are skipped.
    """
    transaction, holding = build_cost_models(config.costs)
    record = TradingRecord(
        TradeType(config.run.starting_type),
        name=config.run.name,
        transaction_cost_model=transaction,
        holding_cost_model=holding,
        num_factory=num_factory,
    )

    skipped = 0
    for event in events:
        amount = None if event.amount is None else num_factory.num_of(event.amount)
        price = num_factory.num_of(event.price)
        if event.action == "ENTER":
            accepted = record.enter(event.time, price, amount)
        else:
            accepted = record.exit(event.time, price, amount)
        if not accepted:
            skipped += 1
            log.warning(f"Skipped {event.action} event at {event.time}: invalid for the current position.")

    log.info(f"Built record '{record.name}' with {record.position_count} closed positions ({skipped} events skipped).")
    return record
