"""
Criterion registry and evaluation of a trading record.

Criteria are referred to by snake_case names in the configuration. Each
registry entry builds one criterion from the bar series and the `params`
mapping given for it.
"""
import logging
from datetime import timedelta
from typing import Any, Callable, Dict, List, Union

import pandas as pd

from tradeperf.config import Config, CriterionConfig
from tradeperf.criteria.base import AnalysisCriterion, PositionFilter
from tradeperf.criteria.costs import LinearTransactionCostCriterion
from tradeperf.criteria.helpers import (
    AverageCriterion,
    RelativeStandardDeviationCriterion,
    StandardDeviationCriterion,
    StandardErrorCriterion,
    VarianceCriterion,
)
from tradeperf.criteria.pnl import (
    AverageLossCriterion,
    AverageProfitCriterion,
    GrossProfitLossCriterion,
    GrossProfitLossPercentageCriterion,
    LossCriterion,
    ProfitCriterion,
    ProfitLossCriterion,
    ProfitLossPercentageCriterion,
    ProfitLossRatioCriterion,
)
from tradeperf.criteria.positions import (
    NumberOfBarsCriterion,
    NumberOfBreakEvenPositionsCriterion,
    NumberOfConsecutivePositionsCriterion,
    NumberOfLosingPositionsCriterion,
    NumberOfPositionsCriterion,
    NumberOfWinningPositionsCriterion,
    TimeInTradeCriterion,
    WinningPositionsRatioCriterion,
)
from tradeperf.criteria.quality import ExpectancyCriterion, SqnCriterion
from tradeperf.criteria.returns import (
    AverageReturnPerBarCriterion,
    EnterAndHoldReturnCriterion,
    GrossReturnCriterion,
    NetReturnCriterion,
    VersusEnterAndHoldCriterion,
)
from tradeperf.criteria.risk import (
    ExpectedShortfallCriterion,
    MaximumDrawdownCriterion,
    ReturnOverMaxDrawdownCriterion,
    ValueAtRiskCriterion,
)
from tradeperf.position import Position
from tradeperf.record import TradingRecord
from tradeperf.series import BarSeries
from tradeperf.types import TradeType

__all__ = ["CRITERIA", "create_criterion", "build_criteria", "evaluate_record"]

log = logging.getLogger(__name__)

Builder = Callable[[BarSeries, Dict[str, Any]], AnalysisCriterion]


def _trade_type(params: Dict[str, Any]) -> TradeType:
    return TradeType(str(params.pop("trade_type", "BUY")).upper())


def _inner(series: BarSeries, params: Dict[str, Any]) -> AnalysisCriterion:
    """Builds the nested criterion named by `criterion` (with `criterion_params`)."""
    name = params.pop("criterion", "profit_loss")
    return create_criterion(series, name, params.pop("criterion_params", {}))


def _time_in_trade(series: BarSeries, params: Dict[str, Any]) -> AnalysisCriterion:
    unit = timedelta(days=params.pop("unit_days", 1.0))
    return TimeInTradeCriterion(unit)


def _consecutive(series: BarSeries, params: Dict[str, Any]) -> AnalysisCriterion:
    position_filter = PositionFilter(str(params.pop("position_filter", "profit")).lower())
    return NumberOfConsecutivePositionsCriterion(position_filter)


def _statistic(criterion_class: type) -> Builder:
    def build(series: BarSeries, params: Dict[str, Any]) -> AnalysisCriterion:
        inner = _inner(series, params)
        return criterion_class(inner, **params)

    return build


CRITERIA: Dict[str, Builder] = {
    # returns
    "gross_return": lambda series, params: GrossReturnCriterion(**params),
    "net_return": lambda series, params: NetReturnCriterion(**params),
    "average_return_per_bar": lambda series, params: AverageReturnPerBarCriterion(series, **params),
    "enter_and_hold_return": lambda series, params: EnterAndHoldReturnCriterion(series, _trade_type(params), **params),
    "versus_enter_and_hold": lambda series, params: VersusEnterAndHoldCriterion(
        series, _inner(series, params), _trade_type(params), **params
    ),
    # profit and loss
    "profit_loss": lambda series, params: ProfitLossCriterion(**params),
    "gross_profit_loss": lambda series, params: GrossProfitLossCriterion(**params),
    "profit": lambda series, params: ProfitCriterion(**params),
    "loss": lambda series, params: LossCriterion(**params),
    "average_profit": lambda series, params: AverageProfitCriterion(**params),
    "average_loss": lambda series, params: AverageLossCriterion(**params),
    "profit_loss_ratio": lambda series, params: ProfitLossRatioCriterion(**params),
    "profit_loss_percentage": lambda series, params: ProfitLossPercentageCriterion(**params),
    "gross_profit_loss_percentage": lambda series, params: GrossProfitLossPercentageCriterion(**params),
    # positions
    "number_of_positions": lambda series, params: NumberOfPositionsCriterion(**params),
    "number_of_winning_positions": lambda series, params: NumberOfWinningPositionsCriterion(**params),
    "number_of_losing_positions": lambda series, params: NumberOfLosingPositionsCriterion(**params),
    "number_of_break_even_positions": lambda series, params: NumberOfBreakEvenPositionsCriterion(**params),
    "winning_positions_ratio": lambda series, params: WinningPositionsRatioCriterion(**params),
    "number_of_consecutive_positions": _consecutive,
    "number_of_bars": lambda series, params: NumberOfBarsCriterion(series, **params),
    "time_in_trade": _time_in_trade,
    # risk
    "maximum_drawdown": lambda series, params: MaximumDrawdownCriterion(series, **params),
    "return_over_max_drawdown": lambda series, params: ReturnOverMaxDrawdownCriterion(series, **params),
    "expected_shortfall": lambda series, params: ExpectedShortfallCriterion(series, **params),
    "value_at_risk": lambda series, params: ValueAtRiskCriterion(series, **params),
    # quality
    "expectancy": lambda series, params: ExpectancyCriterion(**params),
    "sqn": lambda series, params: SqnCriterion(_inner(series, params), **params),
    # costs
    "linear_transaction_cost": lambda series, params: LinearTransactionCostCriterion(**params),
    # statistics of another criterion
    "average": _statistic(AverageCriterion),
    "variance": _statistic(VarianceCriterion),
    "standard_deviation": _statistic(StandardDeviationCriterion),
    "standard_error": _statistic(StandardErrorCriterion),
    "relative_standard_deviation": _statistic(RelativeStandardDeviationCriterion),
}


def create_criterion(series: BarSeries, name: str, params: Dict[str, Any]) -> AnalysisCriterion:
    """
    Builds the criterion registered under `name`.

    Raises:
        ValueError: for an unknown name or parameters the criterion rejects.
    """
    builder = CRITERIA.get(name)
    if builder is None:
        raise ValueError(f"Unknown criterion '{name}'. Available: {', '.join(sorted(CRITERIA))}")
    try:
        return builder(series, dict(params))
    except TypeError as e:
        raise ValueError(f"Invalid parameters for criterion '{name}': {e}") from e


def _label(entry: CriterionConfig) -> str:
    if not entry.params:
        return entry.name
    args = ", ".join(f"{k}={v}" for k, v in sorted(entry.params.items()))
    return f"{entry.name}({args})"


def build_criteria(config: Config, series: BarSeries) -> Dict[str, AnalysisCriterion]:
    """Builds the configured criteria, keyed by a label unique per name and parameters."""
    criteria: Dict[str, AnalysisCriterion] = {}
    for entry in config.evaluation.criteria:
        criteria[_label(entry)] = create_criterion(series, entry.name, entry.params)
    log.info(f"Built {len(criteria)} criteria.")
    return criteria


def evaluate_record(
    subject: Union[Position, TradingRecord], criteria: Dict[str, AnalysisCriterion]
) -> pd.Series:
    """Calculates every criterion on `subject`; NaN results are kept as NaN."""
    values: List[float] = []
    for label, criterion in criteria.items():
        value = criterion.calculate(subject)
        log.debug(f"{label} = {value}")
        values.append(float(value))
    return pd.Series(values, index=list(criteria), dtype=float, name=getattr(subject, "name", None))
