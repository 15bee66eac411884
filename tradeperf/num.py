"""
Numeric value abstraction shared by every analysis formula.

A `Num` wraps a backend value (a float or a `decimal.Decimal`) together with
the `NumFactory` that produced it. All criteria are written against `Num`, so
the float and decimal backends satisfy the same tests.

Two rules are enforced here rather than in every formula:
- division by zero yields the NaN sentinel instead of raising;
- any ordering comparison involving NaN is False.
"""
import math
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any, Union

__all__ = ["Num", "NumFactory", "DoubleNumFactory", "DecimalNumFactory", "DEFAULT_NUM_FACTORY"]

Number = Union[int, float, Decimal, "Num"]


class NumFactory(ABC):
    """Creates `Num` values for one numeric backend."""

    name = "abstract"

    @abstractmethod
    def coerce(self, value: Any) -> Any:
        """Converts a plain number into the backend representation."""
        raise NotImplementedError

    @abstractmethod
    def nan_value(self) -> Any:
        raise NotImplementedError

    @abstractmethod
    def is_nan_value(self, value: Any) -> bool:
        raise NotImplementedError

    @abstractmethod
    def sqrt_value(self, value: Any) -> Any:
        raise NotImplementedError

    @abstractmethod
    def log_value(self, value: Any) -> Any:
        raise NotImplementedError

    @abstractmethod
    def pow_value(self, base: Any, exponent: Any) -> Any:
        raise NotImplementedError

    def num_of(self, value: Number) -> "Num":
        if isinstance(value, Num):
            if value.factory is self:
                return value
            if value.is_nan:
                return self.nan()
            value = value.raw
        return Num(self.coerce(value), self)

    def zero(self) -> "Num":
        return self.num_of(0)

    def one(self) -> "Num":
        return self.num_of(1)

    def two(self) -> "Num":
        return self.num_of(2)

    def hundred(self) -> "Num":
        return self.num_of(100)

    def nan(self) -> "Num":
        return Num(self.nan_value(), self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class DoubleNumFactory(NumFactory):
    """Binary floating point backend."""

    name = "double"

    def coerce(self, value: Any) -> float:
        return float(value)

    def nan_value(self) -> float:
        return float("nan")

    def is_nan_value(self, value: float) -> bool:
        return math.isnan(value)

    def sqrt_value(self, value: float) -> float:
        if value < 0:
            return self.nan_value()
        return math.sqrt(value)

    def log_value(self, value: float) -> float:
        if value <= 0:
            return self.nan_value()
        return math.log(value)

    def pow_value(self, base: float, exponent: float) -> float:
        # A negative base with a fractional exponent would produce a complex number.
        if base < 0 and not float(exponent).is_integer():
            return self.nan_value()
        try:
            return base ** exponent
        except (OverflowError, ZeroDivisionError):
            return self.nan_value()


class DecimalNumFactory(NumFactory):
    """Arbitrary precision decimal backend."""

    name = "decimal"

    def __init__(self, precision: int = 32):
        if precision <= 0:
            raise ValueError(f"precision must be positive, got {precision}")
        self.precision = precision

    def coerce(self, value: Any) -> Decimal:
        if isinstance(value, Decimal):
            return value
        if isinstance(value, float):
            # repr() keeps the shortest round-tripping form, e.g. 0.1 -> Decimal("0.1")
            return Decimal(repr(value))
        return Decimal(value)

    def nan_value(self) -> Decimal:
        return Decimal("NaN")

    def is_nan_value(self, value: Decimal) -> bool:
        return value.is_nan()

    def sqrt_value(self, value: Decimal) -> Decimal:
        if value < 0:
            return self.nan_value()
        with localcontext() as ctx:
            ctx.prec = self.precision
            return value.sqrt()

    def log_value(self, value: Decimal) -> Decimal:
        if value <= 0:
            return self.nan_value()
        with localcontext() as ctx:
            ctx.prec = self.precision
            return value.ln()

    def pow_value(self, base: Decimal, exponent: Decimal) -> Decimal:
        with localcontext() as ctx:
            ctx.prec = self.precision
            try:
                return base ** exponent
            except (InvalidOperation, ArithmeticError):
                return self.nan_value()

    def divide(self, left: Decimal, right: Decimal) -> Decimal:
        with localcontext() as ctx:
            ctx.prec = self.precision
            return left / right

    def __repr__(self) -> str:
        return f"DecimalNumFactory(precision={self.precision})"


class Num:
    """An immutable number bound to a backend factory."""

    __slots__ = ("_value", "_factory")

    def __init__(self, value: Any, factory: NumFactory):
        self._value = value
        self._factory = factory

    @property
    def raw(self) -> Any:
        """The backend value (float or Decimal)."""
        return self._value

    @property
    def factory(self) -> NumFactory:
        return self._factory

    @property
    def is_nan(self) -> bool:
        return self._factory.is_nan_value(self._value)

    @property
    def is_zero(self) -> bool:
        return not self.is_nan and self._value == 0

    @property
    def is_positive(self) -> bool:
        return not self.is_nan and self._value > 0

    @property
    def is_negative(self) -> bool:
        return not self.is_nan and self._value < 0

    def _operand(self, other: Number) -> "Num":
        return self._factory.num_of(other)

    def _nan_if_any(self, other: "Num") -> bool:
        return self.is_nan or other.is_nan

    def __add__(self, other: Number) -> "Num":
        other = self._operand(other)
        if self._nan_if_any(other):
            return self._factory.nan()
        return Num(self._value + other._value, self._factory)

    __radd__ = __add__

    def __sub__(self, other: Number) -> "Num":
        other = self._operand(other)
        if self._nan_if_any(other):
            return self._factory.nan()
        return Num(self._value - other._value, self._factory)

    def __rsub__(self, other: Number) -> "Num":
        return self._operand(other) - self

    def __mul__(self, other: Number) -> "Num":
        other = self._operand(other)
        if self._nan_if_any(other):
            return self._factory.nan()
        return Num(self._value * other._value, self._factory)

    __rmul__ = __mul__

    def __truediv__(self, other: Number) -> "Num":
        other = self._operand(other)
        if self._nan_if_any(other) or other._value == 0:
            return self._factory.nan()
        if isinstance(self._factory, DecimalNumFactory):
            return Num(self._factory.divide(self._value, other._value), self._factory)
        return Num(self._value / other._value, self._factory)

    def __rtruediv__(self, other: Number) -> "Num":
        return self._operand(other) / self

    def __neg__(self) -> "Num":
        if self.is_nan:
            return self
        return Num(-self._value, self._factory)

    def __abs__(self) -> "Num":
        if self.is_nan:
            return self
        return Num(abs(self._value), self._factory)

    def sqrt(self) -> "Num":
        if self.is_nan:
            return self
        return Num(self._factory.sqrt_value(self._value), self._factory)

    def log(self) -> "Num":
        """Natural logarithm; NaN for non-positive values."""
        if self.is_nan:
            return self
        return Num(self._factory.log_value(self._value), self._factory)

    def pow(self, exponent: Number) -> "Num":
        exponent = self._operand(exponent)
        if self._nan_if_any(exponent):
            return self._factory.nan()
        return Num(self._factory.pow_value(self._value, exponent._value), self._factory)

    __pow__ = pow

    def _compare(self, other: Number, op) -> bool:
        other = self._operand(other)
        if self._nan_if_any(other):
            return False
        return op(self._value, other._value)

    def __lt__(self, other: Number) -> bool:
        return self._compare(other, lambda a, b: a < b)

    def __le__(self, other: Number) -> bool:
        return self._compare(other, lambda a, b: a <= b)

    def __gt__(self, other: Number) -> bool:
        return self._compare(other, lambda a, b: a > b)

    def __ge__(self, other: Number) -> bool:
        return self._compare(other, lambda a, b: a >= b)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, (Num, int, float, Decimal)):
            return NotImplemented
        return self._compare(other, lambda a, b: a == b)

    def __hash__(self) -> int:
        return hash(self._value)

    def min(self, other: Number) -> "Num":
        other = self._operand(other)
        return other if other < self else self

    def max(self, other: Number) -> "Num":
        other = self._operand(other)
        return other if other > self else self

    def __float__(self) -> float:
        return float(self._value)

    def __repr__(self) -> str:
        return f"Num({self._value!r})"

    def __str__(self) -> str:
        return str(self._value)


DEFAULT_NUM_FACTORY = DoubleNumFactory()
