"""
Tests for the numeric value abstraction.
"""
from decimal import Decimal

import pytest

from tradeperf.num import DecimalNumFactory, DoubleNumFactory, NumFactory


@pytest.fixture(params=[DoubleNumFactory(), DecimalNumFactory()], ids=["double", "decimal"])
def factory(request: pytest.FixtureRequest) -> NumFactory:
    """Runs a test once per numeric backend."""
    return request.param


def test_basic_arithmetic(factory: NumFactory) -> None:
    """Plain numbers are coerced through the factory of the left operand."""
    a = factory.num_of(6)
    assert a + 2 == 8
    assert 2 + a == 8
    assert a - 2 == 4
    assert 10 - a == 4
    assert a * 0.5 == 3
    assert a / 4 == 1.5
    assert 3 / a == 0.5
    assert -a == -6
    assert abs(factory.num_of(-2)) == 2


def test_division_by_zero_is_nan(factory: NumFactory) -> None:
    """Dividing by zero yields the NaN sentinel instead of raising."""
    result = factory.one() / factory.zero()
    assert result.is_nan
    assert (result + 1).is_nan


def test_nan_comparisons_are_false(factory: NumFactory) -> None:
    """Every ordering comparison involving NaN is False."""
    nan = factory.nan()
    one = factory.one()
    assert not nan < one
    assert not nan > one
    assert not nan <= one
    assert not nan >= one
    assert not nan == nan
    assert not one > nan
    assert not nan.is_zero and not nan.is_positive and not nan.is_negative


def test_sqrt_log_and_pow(factory: NumFactory) -> None:
    """Math helpers return NaN outside of their domain."""
    assert float(factory.num_of(16).sqrt()) == pytest.approx(4.0)
    assert factory.num_of(-1).sqrt().is_nan
    assert float(factory.num_of(1).log()) == pytest.approx(0.0)
    assert factory.zero().log().is_nan
    assert float(factory.num_of(1.21).pow(0.5)) == pytest.approx(1.1)
    assert float(factory.num_of(2) ** 3) == pytest.approx(8.0)


def test_min_max_and_sign_helpers(factory: NumFactory) -> None:
    """min/max pick the expected operand and sign helpers are exact."""
    a, b = factory.num_of(3), factory.num_of(-1)
    assert a.min(b) == -1
    assert a.max(b) == 3
    assert a.is_positive and b.is_negative
    assert factory.zero().is_zero


def test_decimal_backend_is_exact() -> None:
    """Floats are converted through their shortest representation."""
    factory = DecimalNumFactory()
    value = factory.num_of(0.1) + factory.num_of(0.2)
    assert value.raw == Decimal("0.3")
    assert value == 0.3


def test_decimal_precision_must_be_positive() -> None:
    """A decimal factory without precision is rejected at construction."""
    with pytest.raises(ValueError, match="precision must be positive"):
        DecimalNumFactory(precision=0)


def test_conversion_between_factories() -> None:
    """num_of rebinds a value from another backend, NaN included."""
    double, decimal = DoubleNumFactory(), DecimalNumFactory()
    converted = decimal.num_of(double.num_of(2.5))
    assert converted.factory is decimal
    assert converted.raw == Decimal("2.5")
    assert decimal.num_of(double.nan()).is_nan


def test_factory_hooks_are_abstract() -> None:
    """A backend missing any conversion hook cannot be instantiated."""
    with pytest.raises(TypeError):
        NumFactory()

    class _NoLog(NumFactory):
        def coerce(self, value):
            return float(value)

        def nan_value(self):
            return float("nan")

        def is_nan_value(self, value):
            return value != value

        def sqrt_value(self, value):
            return value ** 0.5

        def pow_value(self, base, exponent):
            return base ** exponent

    with pytest.raises(TypeError):
        _NoLog()
