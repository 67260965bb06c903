# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Fixed-point money type.

Amounts are held as ``decimal.Decimal`` quantized to six decimal places.
Binary floats are refused everywhere except the explicit ``to_float``
output conversion, and every division names its rounding mode.
"""

from __future__ import annotations

import decimal
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Any, Iterable, Tuple, Union

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

from ..core.errors import DivisionByZero, InvalidMoney

SCALE = 6
QUANTUM = Decimal(1).scaleb(-SCALE)  # Decimal("0.000001")
MINOR_UNITS_PER_MAJOR = 10**SCALE
DEFAULT_ROUNDING = ROUND_HALF_EVEN  # Banker's rounding

Scalar = Union[int, Decimal]


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise InvalidMoney(f"Cannot build Money from bool {value!r}")
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidMoney(f"Money must be finite, got {value}")
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, str):
        try:
            parsed = Decimal(value.strip().replace(",", "").replace("_", ""))
        except decimal.InvalidOperation as e:
            raise InvalidMoney(f"Invalid money string {value!r}") from e
        if not parsed.is_finite():
            raise InvalidMoney(f"Money must be finite, got {value!r}")
        return parsed
    if isinstance(value, float):
        raise InvalidMoney(
            f"Refusing to build Money from float {value!r}; pass a string or Decimal"
        )
    raise InvalidMoney(f"Cannot build Money from {type(value).__name__}")


def _check_scalar(value: Any) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, Decimal)):
        raise TypeError(
            f"Money scalars must be int or Decimal, got {type(value).__name__}"
        )
    return Decimal(value)


class Money:
    """
    Signed fixed-point monetary amount with six decimal places.

    Construct from a decimal string, an integer number of whole units, a
    ``Decimal``, or ``Money.from_minor_units``. Values beyond the sixth decimal
    are rounded with banker's rounding at construction.
    """

    __slots__ = ("amount",)

    def __init__(self, value: Union[str, int, Decimal, "Money"] = 0):
        if isinstance(value, Money):
            self.amount = value.amount
        else:
            self.amount = _to_decimal(value).quantize(
                QUANTUM, rounding=DEFAULT_ROUNDING
            )

    @classmethod
    def from_minor_units(cls, units: int) -> "Money":
        """Create Money from an integer count of 1e-6 units."""
        if isinstance(units, bool) or not isinstance(units, int):
            raise InvalidMoney(f"Minor units must be an int, got {units!r}")
        return cls(Decimal(units).scaleb(-SCALE))

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    @classmethod
    def total(cls, values: Iterable["Money"]) -> "Money":
        """Sum an iterable of Money (empty sums to zero)."""
        result = cls.zero()
        for value in values:
            result = result + value
        return result

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    @property
    def minor_units(self) -> int:
        return int(self.amount.scaleb(SCALE))

    def to_decimal(self) -> Decimal:
        return self.amount

    def to_float(self) -> float:
        """Float view for display and plotting only."""
        return float(self.amount)

    def __float__(self) -> float:
        return self.to_float()

    def __str__(self) -> str:
        return f"{self.amount:f}"

    def __repr__(self) -> str:
        return f"Money('{self.amount:f}')"

    def __format__(self, format_spec: str) -> str:
        return format(self.amount, format_spec)

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_negative(self) -> bool:
        return self.amount < 0

    def is_positive(self) -> bool:
        return self.amount > 0

    def __bool__(self) -> bool:
        return not self.is_zero()

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def __neg__(self) -> "Money":
        return Money(-self.amount)

    def __abs__(self) -> "Money":
        return Money(abs(self.amount))

    def __add__(self, other: "Money") -> "Money":
        if isinstance(other, Money):
            return Money(self.amount + other.amount)
        return NotImplemented

    def __radd__(self, other: Any) -> "Money":
        # Lets builtin sum() start from 0
        if isinstance(other, int) and not isinstance(other, bool) and other == 0:
            return self
        return NotImplemented

    def __sub__(self, other: "Money") -> "Money":
        if isinstance(other, Money):
            return Money(self.amount - other.amount)
        return NotImplemented

    def mul(self, factor: Scalar, rounding: str = DEFAULT_ROUNDING) -> "Money":
        """Multiply by an int or Decimal scalar, rounding to the money scale."""
        factor = _check_scalar(factor)
        product = self.amount * factor
        return Money(product.quantize(QUANTUM, rounding=rounding))

    def __mul__(self, other: Scalar) -> "Money":
        if isinstance(other, Money) or isinstance(other, float):
            return NotImplemented
        return self.mul(other)

    def __rmul__(self, other: Scalar) -> "Money":
        return self.__mul__(other)

    def div(self, divisor: Scalar, rounding: str = DEFAULT_ROUNDING) -> "Money":
        """Divide by an int or Decimal scalar with an explicit rounding mode."""
        divisor = _check_scalar(divisor)
        if divisor == 0:
            raise DivisionByZero(f"Cannot divide {self!r} by zero")
        return Money((self.amount / divisor).quantize(QUANTUM, rounding=rounding))

    def ratio(self, other: "Money") -> Decimal:
        """Unrounded ratio of two amounts (full Decimal context precision)."""
        if not isinstance(other, Money):
            raise TypeError(f"ratio() expects Money, got {type(other).__name__}")
        if other.is_zero():
            raise DivisionByZero(f"Cannot take ratio of {self!r} to zero")
        return self.amount / other.amount

    def __truediv__(self, other: Union[Scalar, "Money"]):
        if isinstance(other, Money):
            return self.ratio(other)
        if isinstance(other, float):
            return NotImplemented
        return self.div(other)

    def split(
        self, fraction: Scalar, rounding: str = DEFAULT_ROUNDING
    ) -> Tuple["Money", "Money"]:
        """
        Split into ``(self * fraction, remainder)``.

        The two parts always add back to ``self`` exactly, so no minor unit
        is lost to rounding.
        """
        part = self.mul(fraction, rounding=rounding)
        return part, self - part

    def min(self, other: "Money") -> "Money":
        return self if self <= other else other

    def max(self, other: "Money") -> "Money":
        return self if self >= other else other

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def _other_amount(self, other: Any) -> Decimal:
        if isinstance(other, Money):
            return other.amount
        if isinstance(other, int) and not isinstance(other, bool) and other == 0:
            return Decimal(0)
        raise TypeError(f"Cannot compare Money with {type(other).__name__}")

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Money):
            return self.amount == other.amount
        if isinstance(other, int) and not isinstance(other, bool) and other == 0:
            return self.is_zero()
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("Money", self.amount))

    def __lt__(self, other: Any) -> bool:
        return self.amount < self._other_amount(other)

    def __le__(self, other: Any) -> bool:
        return self.amount <= self._other_amount(other)

    def __gt__(self, other: Any) -> bool:
        return self.amount > self._other_amount(other)

    def __ge__(self, other: Any) -> bool:
        return self.amount >= self._other_amount(other)

    # ------------------------------------------------------------------
    # Pydantic integration
    # ------------------------------------------------------------------

    @classmethod
    def _validate(cls, value: Any) -> "Money":
        if isinstance(value, Money):
            return value
        return cls(value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda value: str(value), when_used="json"
            ),
        )


__all__ = [
    "DEFAULT_ROUNDING",
    "MINOR_UNITS_PER_MAJOR",
    "Money",
    "QUANTUM",
    "SCALE",
]
