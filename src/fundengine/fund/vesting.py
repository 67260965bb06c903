# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Carry vesting.

Converts a vesting schedule, a grant date, and an as-of date into the vested
fraction of accrued carry.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from ..core.primitives import AccelerationTriggerEnum
from ..utils.money import Money
from .terms import (
    CliffVesting,
    GradedVesting,
    ImmediateVesting,
    VestingSchedule,
    validate_schedule,
)

ZERO = Decimal(0)
ONE = Decimal(1)
DAYS_PER_MONTH_FRACTION = Decimal(31)  # Leftover days never reach 31


def elapsed_months(grant_date: date, as_of_date: date) -> Decimal:
    """
    Calendar months from grant to as-of, with partial months as days / 31.

    Whole months come from ``relativedelta`` so month-end grants roll the way
    calendars do. The leftover day count is always below 31, so the result
    never decreases as ``as_of_date`` moves forward. Dates before the grant
    give 0.
    """
    if as_of_date <= grant_date:
        return ZERO
    delta = relativedelta(as_of_date, grant_date)
    whole = delta.years * 12 + delta.months
    return Decimal(whole) + Decimal(delta.days) / DAYS_PER_MONTH_FRACTION


class VestingScheduler:
    """Pure vesting calculator; holds no state."""

    @staticmethod
    def vested_fraction(
        schedule: VestingSchedule,
        grant_date: date,
        as_of_date: date,
        acceleration_triggered: bool = False,
        trigger: Optional[AccelerationTriggerEnum] = None,
    ) -> Decimal:
        """
        Fraction of carry vested at ``as_of_date``, in [0, 1].

        Args:
            schedule: Immediate, cliff, or graded schedule.
            grant_date: Date the carry was granted.
            as_of_date: Measurement date.
            acceleration_triggered: Whether a liquidity event has occurred.
            trigger: Which event occurred. When omitted, any trigger declared
                on the schedule counts.

        Raises:
            InvalidSchedule: Negative months or cliff beyond total.
        """
        validate_schedule(schedule)

        if acceleration_triggered and schedule.declares(trigger):
            return ONE

        if isinstance(schedule, ImmediateVesting):
            return ONE

        months = elapsed_months(grant_date, as_of_date)

        if isinstance(schedule, CliffVesting):
            return ONE if months >= schedule.cliff_months else ZERO

        if isinstance(schedule, GradedVesting):
            if months < schedule.cliff_months:
                return ZERO
            span = schedule.total_months - schedule.cliff_months
            if span == 0:
                return ONE
            fraction = (months - schedule.cliff_months) / Decimal(span)
            return min(ONE, max(ZERO, fraction))

        raise TypeError(f"Unknown vesting schedule: {type(schedule).__name__}")

    @classmethod
    def vested_amount(
        cls,
        accrued: Money,
        schedule: VestingSchedule,
        grant_date: date,
        as_of_date: date,
        acceleration_triggered: bool = False,
        trigger: Optional[AccelerationTriggerEnum] = None,
    ) -> Money:
        """Accrued carry times the vested fraction, rounded to the money scale."""
        fraction = cls.vested_fraction(
            schedule, grant_date, as_of_date, acceleration_triggered, trigger
        )
        return accrued.mul(fraction)
