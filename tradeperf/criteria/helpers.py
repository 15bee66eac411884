"""
Statistics of an inner criterion taken over the positions of a record.

Each helper owns the criterion it summarises; a single position is treated
as a population of one.
"""
from tradeperf.criteria.base import AnalysisCriterion
from tradeperf.num import Num
from tradeperf.position import Position
from tradeperf.record import TradingRecord

__all__ = [
    "AverageCriterion",
    "VarianceCriterion",
    "StandardDeviationCriterion",
    "StandardErrorCriterion",
    "RelativeStandardDeviationCriterion",
]


class _StatisticCriterion(AnalysisCriterion):
    def __init__(self, criterion: AnalysisCriterion, less_is_better: bool = False):
        self.criterion = criterion
        self.less_is_better = less_is_better

    def better_than(self, value1: Num, value2: Num) -> bool:
        if self.less_is_better:
            return value1 < value2
        return value1 > value2

    def __repr__(self) -> str:
        return f"{type(self).__name__}(criterion={self.criterion!r}, less_is_better={self.less_is_better})"


class AverageCriterion(_StatisticCriterion):
    """Mean of the inner criterion per closed position; 0 without positions."""

    def calculate_position(self, position: Position) -> Num:
        return self.criterion.calculate_position(position)

    def calculate_record(self, record: TradingRecord) -> Num:
        if record.position_count == 0:
            return record.num_factory.zero()
        count = record.num_factory.num_of(record.position_count)
        return self.criterion.calculate_record(record) / count


class VarianceCriterion(_StatisticCriterion):
    """Population variance of the inner criterion across closed positions."""

    def __init__(self, criterion: AnalysisCriterion, less_is_better: bool = False):
        super().__init__(criterion, less_is_better)
        self._average = AverageCriterion(criterion)

    def calculate_position(self, position: Position) -> Num:
        return position.num_factory.zero()

    def calculate_record(self, record: TradingRecord) -> Num:
        factory = record.num_factory
        if record.position_count == 0:
            return factory.zero()
        average = self._average.calculate_record(record)
        total = factory.zero()
        for position in record.positions:
            deviation = self.criterion.calculate_position(position) - average
            total = total + deviation * deviation
        return total / factory.num_of(record.position_count)


class StandardDeviationCriterion(_StatisticCriterion):
    def __init__(self, criterion: AnalysisCriterion, less_is_better: bool = False):
        super().__init__(criterion, less_is_better)
        self._variance = VarianceCriterion(criterion)

    def calculate_position(self, position: Position) -> Num:
        return self._variance.calculate_position(position).sqrt()

    def calculate_record(self, record: TradingRecord) -> Num:
        return self._variance.calculate_record(record).sqrt()


class StandardErrorCriterion(_StatisticCriterion):
    """Standard deviation divided by the square root of the position count."""

    def __init__(self, criterion: AnalysisCriterion, less_is_better: bool = True):
        super().__init__(criterion, less_is_better)
        self._deviation = StandardDeviationCriterion(criterion)

    def calculate_position(self, position: Position) -> Num:
        return self._deviation.calculate_position(position)

    def calculate_record(self, record: TradingRecord) -> Num:
        factory = record.num_factory
        if record.position_count == 0:
            return factory.zero()
        count = factory.num_of(record.position_count)
        return self._deviation.calculate_record(record) / count.sqrt()


class RelativeStandardDeviationCriterion(_StatisticCriterion):
    """
    Standard deviation relative to the mean (coefficient of variation).
    NaN when the mean is zero.
    """

    def __init__(self, criterion: AnalysisCriterion, less_is_better: bool = False):
        super().__init__(criterion, less_is_better)
        self._average = AverageCriterion(criterion)
        self._deviation = StandardDeviationCriterion(criterion)

    def calculate_position(self, position: Position) -> Num:
        return self._deviation.calculate_position(position) / self._average.calculate_position(position)

    def calculate_record(self, record: TradingRecord) -> Num:
        if record.position_count == 0:
            return record.num_factory.zero()
        return self._deviation.calculate_record(record) / self._average.calculate_record(record)
