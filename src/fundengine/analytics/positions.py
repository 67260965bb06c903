# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from datetime import date
from typing import List, Optional, Tuple

from pydantic import Field, model_validator

from ..core.errors import ValidationError
from ..core.primitives import CashFlow, CohortDimensionEnum, Model, PositionStatusEnum
from ..utils.money import Money


class Position(Model):
    """
    A portfolio company holding.

    ``current_value`` is realized plus unrealized value. Paid-in capital is
    the invested amount plus fees. When ``cash_flows`` is empty, dated flows
    are derived from the amounts: investment and fees out on
    ``investment_date``, realized value back on ``exit_date`` (or the as-of
    date), and unrealized value on the as-of date.
    """

    name: str
    vintage: int = Field(..., description="Year of first investment")
    sector: str
    stage: str
    invested_amount: Money
    realized_value: Money = Field(default_factory=Money.zero)
    unrealized_value: Money = Field(default_factory=Money.zero)
    fees_paid: Money = Field(default_factory=Money.zero)
    investment_date: date
    exit_date: Optional[date] = None
    status: PositionStatusEnum = Field(default=PositionStatusEnum.ACTIVE)
    cash_flows: Tuple[CashFlow, ...] = Field(
        default=(), description="Explicit investor flows (negative = paid in)"
    )

    @model_validator(mode="after")
    def validate_amounts(self) -> "Position":
        for label in ("invested_amount", "realized_value", "unrealized_value", "fees_paid"):
            value = getattr(self, label)
            if value.is_negative():
                raise ValueError(f"Position '{self.name}': {label} must be >= 0, got {value}")
        if self.exit_date is not None and self.exit_date < self.investment_date:
            raise ValueError(f"Position '{self.name}': exit_date precedes investment_date")
        return self

    @property
    def current_value(self) -> Money:
        return self.realized_value + self.unrealized_value

    @property
    def paid_in(self) -> Money:
        return self.invested_amount + self.fees_paid

    @property
    def is_exited(self) -> bool:
        return self.status.is_exited

    def group_key(self, dimension: CohortDimensionEnum) -> str:
        if dimension is CohortDimensionEnum.VINTAGE:
            return str(self.vintage)
        if dimension is CohortDimensionEnum.SECTOR:
            return self.sector
        if dimension is CohortDimensionEnum.STAGE:
            return self.stage
        if dimension is CohortDimensionEnum.COMPANY:
            return self.name
        raise ValidationError(f"Unknown grouping dimension: {dimension}")

    def dated_flows(self, as_of_date: date) -> List[CashFlow]:
        """Investor-perspective flows up to ``as_of_date``."""
        if self.cash_flows:
            return [f for f in self.cash_flows if f.flow_date <= as_of_date]

        flows = []
        if self.paid_in.is_positive():
            flows.append(CashFlow.of(self.investment_date, -self.paid_in))
        if self.realized_value.is_positive():
            realized_on = min(self.exit_date or as_of_date, as_of_date)
            flows.append(CashFlow.of(realized_on, self.realized_value))
        if self.unrealized_value.is_positive():
            flows.append(CashFlow.of(as_of_date, self.unrealized_value))
        return flows


__all__ = ["Position"]
