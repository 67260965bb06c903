# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Fund cash-flow events: capital calls and distribution events.

Both are frozen records. Status changes return a new instance and are
checked against the allowed transitions, so an event log can be replayed
without ever moving an event backwards.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from pydantic import Field, computed_field, model_validator

from ..core.errors import (
    ImmutableEventError,
    InvalidStatusTransition,
    ValidationError,
)
from ..core.primitives import (
    CapitalCallStatusEnum,
    CashFlow,
    DistributionEventTypeEnum,
    DistributionStatusEnum,
    Model,
)
from ..utils.money import Money


class CapitalCall(Model):
    """
    A drawdown of LP commitments.

    ``amount_received`` can never exceed ``total_amount``. Status moves
    forward only (draft -> sent -> in-progress -> completed); skipping ahead
    is allowed.
    """

    fund_id: str = Field(..., description="Fund identifier")
    call_number: int = Field(..., ge=1, description="Sequential call number")
    total_amount: Money = Field(..., description="Amount called")
    amount_received: Money = Field(default_factory=Money.zero)
    due_date: date = Field(..., description="Payment due date")
    status: CapitalCallStatusEnum = Field(default=CapitalCallStatusEnum.DRAFT)
    purpose: Optional[str] = None

    @model_validator(mode="after")
    def validate_amounts(self) -> "CapitalCall":
        if self.total_amount.is_negative():
            raise ValueError(f"total_amount must be >= 0, got {self.total_amount}")
        if self.amount_received.is_negative():
            raise ValueError(f"amount_received must be >= 0, got {self.amount_received}")
        if self.amount_received > self.total_amount:
            raise ValueError(
                f"amount_received ({self.amount_received}) exceeds "
                f"total_amount ({self.total_amount})"
            )
        return self

    @property
    def outstanding(self) -> Money:
        return self.total_amount - self.amount_received

    @property
    def fraction_received(self) -> Optional[float]:
        if self.total_amount.is_zero():
            return None
        return float(self.amount_received.ratio(self.total_amount))

    def advance(self, status: CapitalCallStatusEnum) -> "CapitalCall":
        """Move to ``status``; raises InvalidStatusTransition when moving backwards."""
        if status.rank < self.status.rank:
            raise InvalidStatusTransition(
                f"Capital call #{self.call_number} cannot move from "
                f"{self.status.value} back to {status.value}"
            )
        return self.model_copy(update={"status": status})

    def record_payment(self, amount: Money) -> "CapitalCall":
        """
        New call with ``amount`` more received.

        The status becomes in-progress on the first payment and completed
        once the call is fully paid.
        """
        if not amount.is_positive():
            raise ValidationError(f"Payment must be > 0, got {amount}")
        received = self.amount_received + amount
        if received > self.total_amount:
            raise ValidationError(
                f"Payment of {amount} over-funds call #{self.call_number} "
                f"({self.outstanding} outstanding)"
            )
        status = (
            CapitalCallStatusEnum.COMPLETED
            if received == self.total_amount
            else max(self.status, CapitalCallStatusEnum.IN_PROGRESS, key=lambda s: s.rank)
        )
        return self.model_copy(update={"amount_received": received, "status": status})


_DISTRIBUTION_TRANSITIONS: Dict[DistributionStatusEnum, FrozenSet[DistributionStatusEnum]] = {
    DistributionStatusEnum.DRAFT: frozenset(
        {DistributionStatusEnum.PENDING_APPROVAL, DistributionStatusEnum.CANCELLED}
    ),
    DistributionStatusEnum.PENDING_APPROVAL: frozenset(
        {
            DistributionStatusEnum.APPROVED,
            DistributionStatusEnum.REJECTED,
            DistributionStatusEnum.CANCELLED,
        }
    ),
    DistributionStatusEnum.APPROVED: frozenset(
        {DistributionStatusEnum.PROCESSING, DistributionStatusEnum.CANCELLED}
    ),
    DistributionStatusEnum.PROCESSING: frozenset({DistributionStatusEnum.COMPLETED}),
    DistributionStatusEnum.COMPLETED: frozenset(),
    DistributionStatusEnum.REJECTED: frozenset({DistributionStatusEnum.DRAFT}),
    DistributionStatusEnum.CANCELLED: frozenset(),
}


class DistributionEvent(Model):
    """
    Proceeds available to distribute from one liquidity event.

    ``net_proceeds`` is ``gross_proceeds - expenses``. A completed event is
    immutable: ``amend`` and ``advance`` both refuse to change it.
    """

    fund_id: str
    event_date: date
    event_type: DistributionEventTypeEnum = Field(default=DistributionEventTypeEnum.EXIT)
    gross_proceeds: Money
    expenses: Money = Field(default_factory=Money.zero)
    status: DistributionStatusEnum = Field(default=DistributionStatusEnum.DRAFT)
    description: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def drop_derived_fields(cls, data: Any) -> Any:
        """``net_proceeds`` is always recomputed; a dumped event may carry it back in."""
        if isinstance(data, dict) and "net_proceeds" in data:
            data = {k: v for k, v in data.items() if k != "net_proceeds"}
        return data

    @model_validator(mode="after")
    def validate_amounts(self) -> "DistributionEvent":
        if self.gross_proceeds.is_negative():
            raise ValueError(f"gross_proceeds must be >= 0, got {self.gross_proceeds}")
        if self.expenses.is_negative():
            raise ValueError(f"expenses must be >= 0, got {self.expenses}")
        if self.expenses > self.gross_proceeds:
            raise ValueError(
                f"expenses ({self.expenses}) exceed gross_proceeds ({self.gross_proceeds})"
            )
        return self

    @computed_field
    @property
    def net_proceeds(self) -> Money:
        return self.gross_proceeds - self.expenses

    @property
    def is_completed(self) -> bool:
        return self.status is DistributionStatusEnum.COMPLETED

    def advance(self, status: DistributionStatusEnum) -> "DistributionEvent":
        if self.is_completed:
            raise ImmutableEventError(
                f"Distribution on {self.event_date} is completed and cannot change status"
            )
        if status not in _DISTRIBUTION_TRANSITIONS[self.status]:
            raise InvalidStatusTransition(
                f"Distribution cannot move from {self.status.value} to {status.value}"
            )
        return self.model_copy(update={"status": status})

    def amend(self, **changes) -> "DistributionEvent":
        """New event with ``changes`` applied (re-validated)."""
        if self.is_completed:
            raise ImmutableEventError(
                f"Distribution on {self.event_date} is completed and cannot be amended"
            )
        if "status" in changes:
            raise InvalidStatusTransition("Use advance() to change status")
        data = self.model_dump()
        data.update(changes)
        return DistributionEvent.model_validate(data)


def contributions_from_calls(calls: Iterable[CapitalCall]) -> List[CashFlow]:
    """
    Paid-in capital as dated flows (positive amounts), one per funded call.

    Only money actually received counts, dated at the call's due date.
    Draft calls are ignored.
    """
    flows = [
        CashFlow.of(call.due_date, call.amount_received)
        for call in sorted(calls, key=lambda c: (c.due_date, c.call_number))
        if call.status is not CapitalCallStatusEnum.DRAFT
        and call.amount_received.is_positive()
    ]
    return flows


__all__ = [
    "CapitalCall",
    "DistributionEvent",
    "contributions_from_calls",
]
