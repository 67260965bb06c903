# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Sequence, Tuple, Union

from pydantic import Field

from ...utils.money import Money
from .model import Model


class CashFlow(Model):
    """A dated signed amount. Negative = paid in, positive = paid out."""

    flow_date: date = Field(..., description="Value date of the flow")
    amount: Money = Field(..., description="Signed amount")

    @classmethod
    def of(cls, on: date, amount: Union[Money, str, int]) -> "CashFlow":
        return cls(flow_date=on, amount=Money(amount))


def sort_flows(flows: Iterable[CashFlow]) -> List[CashFlow]:
    """Stable sort by date (same-day flows keep their input order)."""
    return sorted(flows, key=lambda flow: flow.flow_date)


def as_dated_pairs(flows: Sequence[CashFlow]) -> Tuple[List[date], List[float]]:
    """Split flows into the (dates, amounts) arrays numerical routines expect."""
    ordered = sort_flows(flows)
    return [f.flow_date for f in ordered], [f.amount.to_float() for f in ordered]
