# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Carry Accrual Reporting

Read-only projections of a waterfall state at an as-of date:

- ``build_carry_accrual``: the carry snapshot shown on the carried interest
  tracker (preferred return, catch-up, accrued/vested/distributed carry,
  fund IRR and MOIC).
- ``assess_clawback``: LP shortfall against the compounded hurdle and the
  carry the GP would have to return.
- ``assess_lookback``: GP carry inside a trailing window that stays exposed
  to earlier losses.
- ``sensitivity_analysis``: LP/GP outcome of a hypothetical exit across a
  range of exit values, with the exit value at which each tier first
  receives money.

None of these functions change the state they are given.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta
from pydantic import Field

from ..core.calculations import FinancialCalculations, IRRSolver
from ..core.errors import ConsistencyError, ValidationError
from ..core.primitives import (
    DEFAULT_SETTINGS,
    CashFlow,
    ClawbackStatusEnum,
    EngineSettings,
    LookbackStatusEnum,
    Model,
)
from ..utils.money import Money
from .terms import CarryTerm, LookbackProvision, WaterfallTier
from .waterfall import CarryAccrualState, WaterfallCalculator

logger = logging.getLogger(__name__)


# =============================================================================
# CARRY ACCRUAL SNAPSHOT
# =============================================================================


class CarryAccrual(Model):
    """
    Carry position of a fund at ``as_of_date``.

    ``accrued_carry == vested_carry + unvested_carry`` and
    ``remaining_carry == vested_carry - distributed_carry >= 0`` hold for every
    snapshot; ``build_carry_accrual`` raises ConsistencyError otherwise.
    ``irr`` is None when the fund's flows have no IRR.
    """

    as_of_date: date
    total_contributions: Money
    total_distributions: Money
    unrealized_value: Money
    lp_preferred_return: Money = Field(
        ..., description="Hurdle return accrued on LP capital to the as-of date"
    )
    lp_preferred_return_paid: Money
    catchup_amount: Money = Field(
        ..., description="Full GP catch-up on the preferred return paid so far"
    )
    catchup_paid: Money
    accrued_carry: Money
    vested_carry: Money
    unvested_carry: Money
    distributed_carry: Money
    remaining_carry: Money
    unrealized_carry: Money = Field(
        default_factory=Money.zero,
        description="GP share if the unrealized value were distributed on the as-of date",
    )
    irr: Optional[float] = None
    moic: Optional[Decimal] = None

    @property
    def is_preferred_return_paid(self) -> bool:
        return self.lp_preferred_return_paid >= self.lp_preferred_return


def _fund_flows(
    state: CarryAccrualState, unrealized_value: Money, as_of_date: date
) -> List[CashFlow]:
    """Paid-in as negative, everything paid out (and residual value) as positive."""
    flows = [CashFlow.of(f.flow_date, -f.amount) for f in state.contributions]
    flows.extend(state.lp_distributions)
    flows.extend(state.gp_distributions)
    if unrealized_value.is_positive():
        flows.append(CashFlow.of(as_of_date, unrealized_value))
    return flows


def build_carry_accrual(
    state: CarryAccrualState,
    terms: CarryTerm,
    as_of_date: date,
    unrealized_value: Optional[Money] = None,
    tiers: Optional[Sequence[WaterfallTier]] = None,
    settings: Optional[EngineSettings] = None,
) -> CarryAccrual:
    """
    Project ``state`` into a CarryAccrual snapshot at ``as_of_date``.

    Args:
        state: Waterfall state after all events up to ``as_of_date``.
        terms: Carry terms the state was built with.
        as_of_date: Measurement date for vesting and the preferred return.
        unrealized_value: Fund value not yet distributed (usually NAV).
        tiers: Waterfall tiers, for the hypothetical unrealized carry.
        settings: Engine settings (IRR controls).

    Raises:
        ConsistencyError: The carry invariants do not hold.
    """
    settings = settings or DEFAULT_SETTINGS
    unrealized = unrealized_value if unrealized_value is not None else Money.zero()
    calculator = WaterfallCalculator()

    contributed = state.total_contributions
    distributed = state.cumulative_distributed

    owed = FinancialCalculations.calculate_future_value(
        state.contributions, terms.hurdle_rate, as_of_date
    )
    lp_preferred_return = (owed - contributed).max(Money.zero())

    catchup_amount = Money.zero()
    if terms.has_catchup and terms.gp_carry_pct < 1:
        carry = terms.gp_carry_pct
        catchup_amount = state.preferred_return_paid.mul(carry / (1 - carry))
        if terms.catchup_cap is not None:
            catchup_amount = catchup_amount.min(terms.catchup_cap)

    vested = calculator.vested_carry_at(state, terms, as_of_date)
    accrued = state.accrued_carry
    unvested = accrued - vested
    remaining = vested - state.distributed_carry

    if unvested.is_negative() or remaining.is_negative():
        raise ConsistencyError(
            f"Carry invariants violated at {as_of_date}: accrued={accrued} "
            f"vested={vested} distributed={state.distributed_carry}",
            details={
                "accrued": str(accrued),
                "vested": str(vested),
                "distributed": str(state.distributed_carry),
            },
        )

    unrealized_carry = Money.zero()
    if unrealized.is_positive():
        if state.last_event_date is None or as_of_date >= state.last_event_date:
            hypothetical = calculator.allocate(
                unrealized, state, terms, tiers, as_of_date
            )
            unrealized_carry = hypothetical.gp_amount
        else:
            logger.debug(
                f"Unrealized carry skipped: as-of {as_of_date} precedes "
                f"last event {state.last_event_date}"
            )

    irr = IRRSolver(settings.irr).try_solve(_fund_flows(state, unrealized, as_of_date))
    moic = FinancialCalculations.calculate_multiple(distributed + unrealized, contributed)

    return CarryAccrual(
        as_of_date=as_of_date,
        total_contributions=contributed,
        total_distributions=distributed,
        unrealized_value=unrealized,
        lp_preferred_return=lp_preferred_return,
        lp_preferred_return_paid=state.preferred_return_paid,
        catchup_amount=catchup_amount,
        catchup_paid=state.catchup_paid,
        accrued_carry=accrued,
        vested_carry=vested,
        unvested_carry=unvested,
        distributed_carry=state.distributed_carry,
        remaining_carry=remaining,
        unrealized_carry=unrealized_carry,
        irr=irr,
        moic=moic,
    )


# =============================================================================
# CLAWBACK
# =============================================================================


class ClawbackAssessment(Model):
    """GP clawback exposure against a compounded LP hurdle."""

    total_carry_paid: Money
    required_return: Money = Field(
        ..., description="LP capital compounded at the hurdle to the as-of date"
    )
    lp_value: Money = Field(
        ..., description="LP receipts compounded to the as-of date plus unrealized value"
    )
    shortfall: Money
    clawback_due: Money
    net_carry_after_clawback: Money
    status: ClawbackStatusEnum


def assess_clawback(
    state: CarryAccrualState,
    terms: CarryTerm,
    as_of_date: date,
    unrealized_value: Optional[Money] = None,
    clawback_rate: Decimal = Decimal(1),
) -> ClawbackAssessment:
    """
    Clawback exposure at ``as_of_date``.

    The shortfall is how far LP value falls short of LP capital compounded
    at ``terms.hurdle_rate``. The GP owes ``clawback_rate`` of the shortfall,
    never more than the carry it was actually paid.

    Status:
        - TRIGGERED: clawback is due.
        - AT_RISK: LPs are short but no carry has been paid.
        - CLEAR: LPs have met the hurdle.
    """
    if not 0 <= clawback_rate <= 1:
        raise ValidationError(f"clawback_rate must be in [0, 1], got {clawback_rate}")

    rate = terms.hurdle_rate
    unrealized = unrealized_value if unrealized_value is not None else Money.zero()
    required = FinancialCalculations.calculate_future_value(
        state.contributions, rate, as_of_date
    )
    received = FinancialCalculations.calculate_future_value(
        state.lp_distributions, rate, as_of_date
    )
    lp_value = received + unrealized
    shortfall = (required - lp_value).max(Money.zero())

    paid = state.distributed_carry
    clawback_due = shortfall.mul(clawback_rate).min(paid)
    net_carry = (paid - clawback_due).max(Money.zero())

    if clawback_due.is_positive():
        status = ClawbackStatusEnum.TRIGGERED
    elif shortfall.is_positive():
        status = ClawbackStatusEnum.AT_RISK
    else:
        status = ClawbackStatusEnum.CLEAR

    return ClawbackAssessment(
        total_carry_paid=paid,
        required_return=required,
        lp_value=lp_value,
        shortfall=shortfall,
        clawback_due=clawback_due,
        net_carry_after_clawback=net_carry,
        status=status,
    )


class LookbackAssessment(Model):
    """Carry held back under a lookback provision at an as-of date."""

    lookback_years: int
    window_start: date = Field(..., description="Exclusive start of the lookback window")
    carry_in_window: Money = Field(
        ..., description="GP receipts dated inside the window"
    )
    losses_to_recover: Money
    carry_at_risk: Money
    carry_released: Money
    status: LookbackStatusEnum


def assess_lookback(
    state: CarryAccrualState,
    as_of_date: date,
    provision: LookbackProvision,
) -> LookbackAssessment:
    """
    Carry exposed to earlier losses at ``as_of_date``.

    GP receipts dated after ``as_of_date - lookback_years`` and no later than
    ``as_of_date`` are in the window. While losses remain, the provision's
    rate of that carry is at risk, capped at the losses themselves.

    Status:
        - AT_RISK: losses remain and some carry is held back.
        - MONITOR: losses remain but no carry in the window is exposed.
        - CLEARED: there are no losses to recover.
    """
    window_start = as_of_date - relativedelta(years=provision.lookback_years)
    carry_in_window = Money.total(
        f.amount
        for f in state.gp_distributions
        if window_start < f.flow_date <= as_of_date
    )

    losses = provision.loss_carry_forward
    if losses.is_positive():
        at_risk = carry_in_window.mul(provision.carry_at_risk_rate).min(losses)
        status = (
            LookbackStatusEnum.AT_RISK
            if at_risk.is_positive()
            else LookbackStatusEnum.MONITOR
        )
    else:
        at_risk = Money.zero()
        status = LookbackStatusEnum.CLEARED

    logger.debug(
        f"Lookback {provision.lookback_years}y from {window_start}: "
        f"carry={carry_in_window} at_risk={at_risk} status={status.value}"
    )
    return LookbackAssessment(
        lookback_years=provision.lookback_years,
        window_start=window_start,
        carry_in_window=carry_in_window,
        losses_to_recover=losses,
        carry_at_risk=at_risk,
        carry_released=carry_in_window - at_risk,
        status=status,
    )


# =============================================================================
# SENSITIVITY
# =============================================================================


class SensitivityPoint(Model):
    exit_value: Money
    lp_amount: Money
    gp_amount: Money
    gp_share: Optional[Decimal] = Field(
        default=None, description="GP fraction of the exit value (None at zero)"
    )
    lp_multiple: Optional[Decimal] = Field(
        default=None, description="Total LP receipts over LP contributions"
    )


class TierBreakEven(Model):
    tier_index: int
    tier_name: str
    exit_value: Money


class SensitivityAnalysis(Model):
    min_exit_value: Money
    max_exit_value: Money
    step: Money
    points: Tuple[SensitivityPoint, ...]
    break_even_points: Tuple[TierBreakEven, ...]


def sensitivity_analysis(
    state: CarryAccrualState,
    terms: CarryTerm,
    tiers: Optional[Sequence[WaterfallTier]],
    exit_date: date,
    min_exit_value: Money,
    max_exit_value: Money,
    steps: int = 20,
) -> SensitivityAnalysis:
    """
    Allocate ``steps + 1`` evenly spaced exit values from ``state``.

    A tier's break-even point is the first exit value at which it receives
    money after receiving nothing at the previous step. Tiers already funded
    at ``min_exit_value`` have no break-even point.
    """
    if steps < 1:
        raise ValidationError(f"steps must be >= 1, got {steps}")
    if min_exit_value.is_negative() or max_exit_value < min_exit_value:
        raise ValidationError(
            f"Exit range must satisfy 0 <= min <= max, got {min_exit_value}..{max_exit_value}"
        )

    calculator = WaterfallCalculator()
    step = (max_exit_value - min_exit_value).div(steps)
    contributed = state.total_contributions
    prior_lp = state.total_lp_distributions

    points: List[SensitivityPoint] = []
    break_evens: List[TierBreakEven] = []
    funded = set()

    for i in range(steps + 1):
        exit_value = max_exit_value if i == steps else min_exit_value + step.mul(i)
        allocation = calculator.allocate(exit_value, state, terms, tiers, exit_date)

        gp_share = (
            allocation.gp_amount.ratio(exit_value) if exit_value.is_positive() else None
        )
        points.append(
            SensitivityPoint(
                exit_value=exit_value,
                lp_amount=allocation.lp_amount,
                gp_amount=allocation.gp_amount,
                gp_share=gp_share,
                lp_multiple=FinancialCalculations.calculate_multiple(
                    prior_lp + allocation.lp_amount, contributed
                ),
            )
        )

        for tier in allocation.tier_allocations:
            if not tier.total_amount.is_positive() or tier.tier_index in funded:
                continue
            funded.add(tier.tier_index)
            if i > 0:
                break_evens.append(
                    TierBreakEven(
                        tier_index=tier.tier_index,
                        tier_name=tier.name,
                        exit_value=exit_value,
                    )
                )

    return SensitivityAnalysis(
        min_exit_value=min_exit_value,
        max_exit_value=max_exit_value,
        step=step,
        points=tuple(points),
        break_even_points=tuple(break_evens),
    )


__all__ = [
    "CarryAccrual",
    "ClawbackAssessment",
    "LookbackAssessment",
    "SensitivityAnalysis",
    "SensitivityPoint",
    "TierBreakEven",
    "assess_clawback",
    "assess_lookback",
    "build_carry_accrual",
    "sensitivity_analysis",
]
