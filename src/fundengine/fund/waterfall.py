# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Distribution Waterfall Calculator

This module implements the fund distribution waterfall. A single
distribution event is allocated across ordered tiers between LPs and the
GP (plus a third party where a tier says so), and the running carry state is
rolled forward.

Tier capacities at the distribution date:

1. Return of Capital: LP contributions not yet returned.
2. Preferred Return: LP contributions compounded at the hurdle rate, less
   LP receipts compounded the same way (Decimal, Act/365).
3. GP Catch-up: the tier total that brings GP carry to ``gp_carry_pct`` of
   all profit distributed so far, limited by the catch-up cap.
4. Residual: unbounded.
5. Custom: a fixed window of cumulative distributed amount.

Each tier is filled to capacity before the next receives anything. The
calculator is pure: the same prior state and input always give the same
allocation and new state.

The American model leaves the catch-up tier empty. The blended model runs
both and weights every tier line by ``blend_european_weight``. When investor
classes are given, each side of every tier is shared among them pro rata.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_UP, Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import Field, field_validator

from ..core.calculations import FinancialCalculations
from ..core.errors import (
    CarryOverdraw,
    ConsistencyError,
    InvalidDistribution,
    NegativeContribution,
    ValidationError,
)
from ..core.primitives import (
    AccelerationTriggerEnum,
    CashFlow,
    InvestorTypeEnum,
    Model,
    TierKindEnum,
    WaterfallModelEnum,
)
from ..utils.money import Money
from .terms import (
    CarryTerm,
    InvestorClass,
    WaterfallTier,
    standard_tiers,
    validate_investor_classes,
    validate_tiers,
)
from .vesting import VestingScheduler

logger = logging.getLogger(__name__)


# =============================================================================
# STATE
# =============================================================================


class CarryAccrualState(Model):
    """
    Running totals of a fund's waterfall, rolled forward event by event.

    Amounts in ``contributions`` and the distribution tuples are positive.
    ``accrued_carry`` is every GP allocation from a profit tier (preferred
    return GP share, catch-up, residual, custom). ``distributed_carry`` only
    moves through ``record_carry_distribution``.
    """

    grant_date: date = Field(..., description="Carry grant date for vesting")
    contributions: Tuple[CashFlow, ...] = Field(default=())
    lp_distributions: Tuple[CashFlow, ...] = Field(default=())
    gp_distributions: Tuple[CashFlow, ...] = Field(default=())
    carry_payments: Tuple[CashFlow, ...] = Field(default=())

    cumulative_distributed: Money = Field(default_factory=Money.zero)
    return_of_capital_paid: Money = Field(default_factory=Money.zero)
    preferred_return_paid: Money = Field(default_factory=Money.zero)
    lp_profit_paid: Money = Field(default_factory=Money.zero)
    catchup_paid: Money = Field(default_factory=Money.zero)
    third_party_paid: Money = Field(default_factory=Money.zero)

    accrued_carry: Money = Field(default_factory=Money.zero)
    vested_carry: Money = Field(default_factory=Money.zero)
    distributed_carry: Money = Field(default_factory=Money.zero)

    last_event_date: Optional[date] = None
    acceleration_triggered: bool = False
    acceleration_trigger: Optional[AccelerationTriggerEnum] = None

    @field_validator("contributions")
    @classmethod
    def validate_contributions(cls, v: Tuple[CashFlow, ...]) -> Tuple[CashFlow, ...]:
        for flow in v:
            if flow.amount.is_negative():
                raise NegativeContribution(
                    f"Contribution on {flow.flow_date} is negative ({flow.amount})"
                )
        return v

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def start(
        cls, grant_date: date, contributions: Sequence[CashFlow] = ()
    ) -> "CarryAccrualState":
        return cls(grant_date=grant_date, contributions=tuple(contributions))

    def with_contribution(self, on: date, amount: Money) -> "CarryAccrualState":
        """New state with one more LP contribution."""
        if amount.is_negative():
            raise NegativeContribution(f"Contribution on {on} is negative ({amount})")
        if amount.is_zero():
            return self
        return self.model_copy(
            update={"contributions": self.contributions + (CashFlow.of(on, amount),)}
        )

    def with_acceleration(
        self, trigger: Optional[AccelerationTriggerEnum] = None
    ) -> "CarryAccrualState":
        """New state recording that a liquidity event occurred."""
        return self.model_copy(
            update={"acceleration_triggered": True, "acceleration_trigger": trigger}
        )

    # ------------------------------------------------------------------
    # Derived totals
    # ------------------------------------------------------------------

    @property
    def total_contributions(self) -> Money:
        return Money.total(f.amount for f in self.contributions)

    @property
    def total_lp_distributions(self) -> Money:
        return Money.total(f.amount for f in self.lp_distributions)

    @property
    def total_gp_distributions(self) -> Money:
        return Money.total(f.amount for f in self.gp_distributions)

    @property
    def unreturned_capital(self) -> Money:
        return (self.total_contributions - self.return_of_capital_paid).max(Money.zero())

    @property
    def unvested_carry(self) -> Money:
        return self.accrued_carry - self.vested_carry

    @property
    def remaining_carry(self) -> Money:
        return self.vested_carry - self.distributed_carry


# =============================================================================
# RESULTS
# =============================================================================


class TierAllocation(Model):
    """How much of one distribution landed in one tier."""

    tier_index: int
    name: str
    kind: TierKindEnum
    capacity: Optional[Money] = Field(
        default=None, description="Room in the tier before this event (None = unbounded)"
    )
    total_amount: Money
    lp_amount: Money
    gp_amount: Money
    third_party_amount: Money
    cumulative_amount: Money = Field(
        ..., description="Running total of this distribution through this tier"
    )
    exhausted: bool = Field(
        ..., description="Tier filled to capacity by this distribution"
    )


class InvestorClassResult(Model):
    """One investor class's share of a distribution."""

    class_name: str
    investor_type: InvestorTypeEnum
    invested: Money = Field(..., description="Commitment, capital called, or their blend")
    distributed: Money
    carry: Money = Field(
        default_factory=Money.zero, description="GP receipts from profit tiers"
    )
    tier_amounts: Dict[int, Money] = Field(
        default_factory=dict, description="Receipts by tier_index"
    )
    multiple: Optional[Decimal] = None


class WaterfallAllocation(Model):
    """Outcome of allocating one distribution event."""

    distribution_date: date
    distribution_amount: Money
    waterfall_model: WaterfallModelEnum = WaterfallModelEnum.EUROPEAN
    lp_amount: Money
    gp_amount: Money
    third_party_amount: Money
    tier_allocations: Tuple[TierAllocation, ...]
    catchup_capped: bool = False
    class_results: Tuple[InvestorClassResult, ...] = ()
    new_state: CarryAccrualState


@dataclass
class _Capacity:
    amount: Optional[Money]
    capped: bool = False


@dataclass
class _Fill:
    allocations: List[TierAllocation]
    running: "_RunningTotals"
    catchup_capped: bool = False


@dataclass
class _RunningTotals:
    """Mutable scratch totals for one allocate() call; never escapes it."""

    state: CarryAccrualState
    lp_receipts: List[CashFlow] = field(default_factory=list)
    gp_receipts: List[CashFlow] = field(default_factory=list)

    def __post_init__(self):
        s = self.state
        self.cumulative = s.cumulative_distributed
        self.roc_paid = s.return_of_capital_paid
        self.pref_paid = s.preferred_return_paid
        self.lp_profit = s.lp_profit_paid
        self.catchup_paid = s.catchup_paid
        self.third_party = s.third_party_paid
        self.accrued = s.accrued_carry

    def all_lp_receipts(self) -> List[CashFlow]:
        return list(self.state.lp_distributions) + self.lp_receipts


# =============================================================================
# CALCULATOR
# =============================================================================


class WaterfallCalculator:
    """
    Allocates distributions through the tiered waterfall.

    The calculator holds no per-fund state; all history arrives in the
    ``CarryAccrualState`` argument and leaves in the returned allocation.
    """

    def allocate(
        self,
        distribution_amount: Money,
        prior_state: CarryAccrualState,
        terms: CarryTerm,
        tiers: Optional[Sequence[WaterfallTier]] = None,
        distribution_date: Optional[date] = None,
        investor_classes: Optional[Sequence[InvestorClass]] = None,
    ) -> WaterfallAllocation:
        """
        Allocate one distribution between LP, GP, and third parties.

        Args:
            distribution_amount: Net proceeds to distribute (>= 0).
            prior_state: Waterfall state before this event.
            terms: Carry terms (hurdle, carry, catch-up, vesting).
            tiers: Ordered tiers; defaults to ``standard_tiers(terms)``.
            distribution_date: Event date; defaults to the last event date
                (or the grant date for a fresh state).
            investor_classes: Classes to share each side of every tier;
                ``class_results`` stays empty without them.

        Returns:
            WaterfallAllocation whose LP, GP, and third-party amounts add up
            to ``distribution_amount`` exactly.

        Raises:
            InvalidDistribution: Negative amount, or a date earlier than the
                last recorded event.
            TierRangeOverlap: Tiers are misconfigured.
            ValidationError: Tiers cannot absorb the full amount, or the
                investor classes cannot take their side's share.
        """
        if distribution_amount.is_negative():
            raise InvalidDistribution(
                f"Distribution amount must be >= 0, got {distribution_amount}"
            )

        on = distribution_date or prior_state.last_event_date or prior_state.grant_date
        if prior_state.last_event_date is not None and on < prior_state.last_event_date:
            raise InvalidDistribution(
                f"Distribution dated {on} precedes last recorded event "
                f"{prior_state.last_event_date}"
            )

        ordered = validate_tiers(tiers if tiers is not None else standard_tiers(terms))
        classes = validate_investor_classes(investor_classes or ())

        model = terms.waterfall_model
        if model is WaterfallModelEnum.BLENDED:
            european = self._fill(
                distribution_amount, prior_state, terms, ordered, on, include_catchup=True
            )
            american = self._fill(
                distribution_amount, prior_state, terms, ordered, on, include_catchup=False
            )
            fill = self._blend(
                european,
                american,
                terms.blend_european_weight,
                distribution_amount,
                prior_state,
                ordered,
                on,
            )
        else:
            fill = self._fill(
                distribution_amount,
                prior_state,
                terms,
                ordered,
                on,
                include_catchup=model is WaterfallModelEnum.EUROPEAN,
            )
        allocations = fill.allocations

        lp_total = Money.total(a.lp_amount for a in allocations)
        gp_total = Money.total(a.gp_amount for a in allocations)
        third_total = Money.total(a.third_party_amount for a in allocations)
        if lp_total + gp_total + third_total != distribution_amount:
            raise ConsistencyError(
                f"Allocation leaks value: {lp_total} + {gp_total} + {third_total} "
                f"!= {distribution_amount}"
            )

        new_state = self._next_state(fill.running, terms, on)
        return WaterfallAllocation(
            distribution_date=on,
            distribution_amount=distribution_amount,
            waterfall_model=model,
            lp_amount=lp_total,
            gp_amount=gp_total,
            third_party_amount=third_total,
            tier_allocations=tuple(allocations),
            catchup_capped=fill.catchup_capped,
            class_results=self._class_results(allocations, classes, terms),
            new_state=new_state,
        )

    def _fill(
        self,
        distribution_amount: Money,
        prior_state: CarryAccrualState,
        terms: CarryTerm,
        ordered: Sequence[WaterfallTier],
        on: date,
        include_catchup: bool,
    ) -> _Fill:
        """Fill the tiers in order; without catch-up the catch-up tier stays empty."""
        running = _RunningTotals(state=prior_state)

        remaining = distribution_amount
        allocations: List[TierAllocation] = []
        catchup_capped = False

        for tier in ordered:
            if tier.kind is TierKindEnum.CATCH_UP and not include_catchup:
                capacity = _Capacity(Money.zero())
            else:
                capacity = self._tier_capacity(tier, running, terms, on)
            if capacity.amount is None:
                take = remaining
            else:
                take = remaining.min(capacity.amount)

            lp, gp, third = self._split(take, tier)
            self._apply(running, tier, lp, gp, third, on)
            remaining = remaining - take

            exhausted = capacity.amount is not None and take == capacity.amount
            if capacity.capped and exhausted and remaining.is_positive():
                catchup_capped = True
                logger.info(
                    f"Catch-up capped at {terms.catchup_cap}; "
                    f"{remaining} flows to later tiers"
                )

            allocations.append(
                TierAllocation(
                    tier_index=tier.tier_index,
                    name=tier.name,
                    kind=tier.kind,
                    capacity=capacity.amount,
                    total_amount=take,
                    lp_amount=lp,
                    gp_amount=gp,
                    third_party_amount=third,
                    cumulative_amount=distribution_amount - remaining,
                    exhausted=exhausted,
                )
            )
            logger.debug(
                f"Tier {tier.tier_index} '{tier.name}': capacity="
                f"{'unbounded' if capacity.amount is None else capacity.amount} "
                f"take={take} lp={lp} gp={gp}"
            )

        if remaining.is_positive():
            raise ValidationError(
                f"Waterfall tiers absorb only {distribution_amount - remaining} of "
                f"{distribution_amount}; add a residual tier"
            )
        return _Fill(allocations, running, catchup_capped)

    def _blend(
        self,
        european: _Fill,
        american: _Fill,
        weight: Decimal,
        distribution_amount: Money,
        prior_state: CarryAccrualState,
        ordered: Sequence[WaterfallTier],
        on: date,
    ) -> _Fill:
        """
        Weight every tier line of the two fills, then roll the state forward
        with the blended lines.

        Rounding drift from the weighting lands on the largest line so the
        blend still adds up to ``distribution_amount``.
        """
        rest = Decimal(1) - weight
        lines = [
            [
                e.lp_amount.mul(weight) + a.lp_amount.mul(rest),
                e.gp_amount.mul(weight) + a.gp_amount.mul(rest),
                e.third_party_amount.mul(weight) + a.third_party_amount.mul(rest),
            ]
            for e, a in zip(european.allocations, american.allocations)
        ]
        drift = distribution_amount - Money.total(m for line in lines for m in line)
        if not drift.is_zero():
            row, col = max(
                ((i, j) for i in range(len(lines)) for j in range(3)),
                key=lambda ij: lines[ij[0]][ij[1]],
            )
            lines[row][col] = lines[row][col] + drift

        running = _RunningTotals(state=prior_state)
        allocations: List[TierAllocation] = []
        cumulative = Money.zero()
        for tier, e, a, (lp, gp, third) in zip(
            ordered, european.allocations, american.allocations, lines
        ):
            self._apply(running, tier, lp, gp, third, on)
            take = lp + gp + third
            cumulative = cumulative + take
            if e.capacity is None or a.capacity is None:
                capacity = None
            else:
                capacity = e.capacity.mul(weight) + a.capacity.mul(rest)
            allocations.append(
                TierAllocation(
                    tier_index=tier.tier_index,
                    name=tier.name,
                    kind=tier.kind,
                    capacity=capacity,
                    total_amount=take,
                    lp_amount=lp,
                    gp_amount=gp,
                    third_party_amount=third,
                    cumulative_amount=cumulative,
                    exhausted=e.exhausted and a.exhausted,
                )
            )
        return _Fill(allocations, running, european.catchup_capped)

    @staticmethod
    def _class_results(
        allocations: Sequence[TierAllocation],
        classes: Sequence[InvestorClass],
        terms: CarryTerm,
    ) -> Tuple[InvestorClassResult, ...]:
        """
        Share each tier's LP amount across LP classes and its GP amount
        across GP classes, pro rata to ``ownership_pct`` within the side.

        Third-party amounts belong to no class.

        Raises:
            ValidationError: A side received money but none of its classes
                holds a positive ownership share.
        """
        if not classes:
            return ()

        received: Dict[str, Dict[int, Money]] = {c.name: {} for c in classes}
        carry: Dict[str, Money] = {c.name: Money.zero() for c in classes}
        for allocation in allocations:
            for side, amount in (
                (InvestorTypeEnum.LP, allocation.lp_amount),
                (InvestorTypeEnum.GP, allocation.gp_amount),
            ):
                members = [c for c in classes if c.investor_type is side]
                for member, part in zip(members, _pro_rata(amount, members, side)):
                    received[member.name][allocation.tier_index] = part
                    if (
                        side is InvestorTypeEnum.GP
                        and allocation.kind is not TierKindEnum.RETURN_OF_CAPITAL
                    ):
                        carry[member.name] = carry[member.name] + part

        weight = terms.blend_european_weight
        results = []
        for c in classes:
            if terms.waterfall_model is WaterfallModelEnum.EUROPEAN:
                invested = c.commitment
            elif terms.waterfall_model is WaterfallModelEnum.AMERICAN:
                invested = c.capital_called
            else:
                invested = c.commitment.mul(weight) + c.capital_called.mul(
                    Decimal(1) - weight
                )
            distributed = Money.total(received[c.name].values())
            results.append(
                InvestorClassResult(
                    class_name=c.name,
                    investor_type=c.investor_type,
                    invested=invested,
                    distributed=distributed,
                    carry=carry[c.name],
                    tier_amounts=received[c.name],
                    multiple=FinancialCalculations.calculate_multiple(
                        distributed, invested
                    ),
                )
            )
        return tuple(results)

    def record_carry_distribution(
        self,
        state: CarryAccrualState,
        amount: Money,
        payment_date: date,
        terms: CarryTerm,
    ) -> CarryAccrualState:
        """
        Record carry actually paid to the GP.

        Calculating an allocation never changes ``distributed_carry``; only
        this action does. Vesting is re-measured at ``payment_date`` first,
        and the payment may not exceed vested, undistributed carry.

        Raises:
            InvalidDistribution: Non-positive amount or backdated payment.
            CarryOverdraw: Amount exceeds remaining vested carry.
        """
        if not amount.is_positive():
            raise InvalidDistribution(f"Carry payment must be > 0, got {amount}")
        if state.last_event_date is not None and payment_date < state.last_event_date:
            raise InvalidDistribution(
                f"Carry payment dated {payment_date} precedes last recorded event "
                f"{state.last_event_date}"
            )

        vested = self.vested_carry_at(state, terms, payment_date)
        available = vested - state.distributed_carry
        if amount > available:
            raise CarryOverdraw(
                f"Carry payment {amount} exceeds vested, undistributed carry {available}",
                details={"vested": str(vested), "distributed": str(state.distributed_carry)},
            )

        return state.model_copy(
            update={
                "vested_carry": vested,
                "distributed_carry": state.distributed_carry + amount,
                "carry_payments": state.carry_payments
                + (CashFlow.of(payment_date, amount),),
                "last_event_date": payment_date,
            }
        )

    @staticmethod
    def vested_carry_at(
        state: CarryAccrualState, terms: CarryTerm, as_of_date: date
    ) -> Money:
        """Accrued carry times the vested fraction at ``as_of_date``."""
        vested = VestingScheduler.vested_amount(
            state.accrued_carry,
            terms.vesting_schedule,
            state.grant_date,
            as_of_date,
            acceleration_triggered=state.acceleration_triggered,
            trigger=state.acceleration_trigger,
        )
        # Vesting never reverses for carry already recognized as vested
        return vested.max(state.vested_carry)

    # ------------------------------------------------------------------
    # Tier mechanics
    # ------------------------------------------------------------------

    def _tier_capacity(
        self,
        tier: WaterfallTier,
        running: _RunningTotals,
        terms: CarryTerm,
        on: date,
    ) -> _Capacity:
        kind = tier.kind

        if kind is TierKindEnum.RESIDUAL:
            return _Capacity(None)

        if kind is TierKindEnum.CUSTOM:
            # Closed until cumulative distributions reach the range start
            if running.cumulative < tier.range_start:
                return _Capacity(Money.zero())
            if tier.range_end is None:
                return _Capacity(None)
            return _Capacity((tier.range_end - running.cumulative).max(Money.zero()))

        if kind is TierKindEnum.RETURN_OF_CAPITAL:
            needed = self._unreturned_capital(running)
            return _Capacity(self._gross_up(needed, tier.lp_allocation_pct))

        if kind is TierKindEnum.PREFERRED_RETURN:
            needed = self._hurdle_shortfall(running, terms, on)
            return _Capacity(self._gross_up(needed, tier.lp_allocation_pct))

        if kind is TierKindEnum.CATCH_UP:
            return self._catchup_capacity(tier, running, terms)

        raise TypeError(f"Unhandled tier kind: {kind}")

    @staticmethod
    def _gross_up(lp_needed: Money, lp_pct: Decimal) -> Money:
        """Tier total whose LP share covers ``lp_needed``."""
        if not lp_needed.is_positive() or lp_pct == 0:
            return Money.zero()
        if lp_pct == 1:
            return lp_needed
        return lp_needed.div(lp_pct, rounding=ROUND_UP)

    @staticmethod
    def _unreturned_capital(running: _RunningTotals) -> Money:
        contributed = running.state.total_contributions
        return (contributed - running.roc_paid).max(Money.zero())

    @staticmethod
    def _hurdle_shortfall(
        running: _RunningTotals, terms: CarryTerm, on: date
    ) -> Money:
        """
        LP amount still owed to reach the hurdle at ``on``.

        Contributions and LP receipts are both compounded at the hurdle rate
        to the distribution date, so the LP is whole exactly when its IRR
        reaches the hurdle.
        """
        rate = terms.hurdle_rate
        owed = FinancialCalculations.calculate_future_value(
            running.state.contributions, rate, on
        )
        received = FinancialCalculations.calculate_future_value(
            running.all_lp_receipts(), rate, on
        )
        return (owed - received).max(Money.zero())

    @staticmethod
    def _catchup_capacity(
        tier: WaterfallTier, running: _RunningTotals, terms: CarryTerm
    ) -> _Capacity:
        """
        Tier total T with ``G + g*T = c * (P + G + T)``.

        P is LP profit paid so far, G is GP carry paid so far, g is the
        tier's GP share, and c is ``gp_carry_pct``.
        """
        carry = terms.gp_carry_pct
        gp_share = tier.gp_allocation_pct
        if gp_share <= carry:
            logger.warning(
                f"Catch-up tier '{tier.name}' GP share {gp_share} does not exceed "
                f"carry {carry}; tier skipped"
            )
            return _Capacity(Money.zero())

        target_gap = (running.lp_profit + running.accrued).mul(carry) - running.accrued
        if not target_gap.is_positive():
            return _Capacity(Money.zero())
        total = target_gap.div(gp_share - carry, rounding=ROUND_UP)

        if terms.catchup_cap is not None:
            cap_room = (terms.catchup_cap - running.catchup_paid).max(Money.zero())
            cap_total = cap_room.div(gp_share, rounding=ROUND_UP)
            if cap_total < total:
                return _Capacity(cap_total, capped=True)
        return _Capacity(total)

    @staticmethod
    def _split(take: Money, tier: WaterfallTier) -> Tuple[Money, Money, Money]:
        """LP/GP/third-party split; the remainder absorbs rounding."""
        lp = take.mul(tier.lp_allocation_pct)
        if tier.third_party_pct == 0:
            return lp, take - lp, Money.zero()
        gp = take.mul(tier.gp_allocation_pct)
        return lp, gp, take - lp - gp

    @staticmethod
    def _apply(
        running: _RunningTotals,
        tier: WaterfallTier,
        lp: Money,
        gp: Money,
        third: Money,
        on: date,
    ) -> None:
        if lp.is_positive():
            running.lp_receipts.append(CashFlow.of(on, lp))
        if gp.is_positive():
            running.gp_receipts.append(CashFlow.of(on, gp))
        running.cumulative = running.cumulative + lp + gp + third
        running.third_party = running.third_party + third

        if tier.kind is TierKindEnum.RETURN_OF_CAPITAL:
            running.roc_paid = running.roc_paid + lp
            return

        # LP receipts in later tiers first settle any capital still outstanding
        outstanding = (running.state.total_contributions - running.roc_paid).max(
            Money.zero()
        )
        capital_part = lp.min(outstanding)
        profit_part = lp - capital_part
        running.roc_paid = running.roc_paid + capital_part
        running.lp_profit = running.lp_profit + profit_part
        running.accrued = running.accrued + gp

        if tier.kind is TierKindEnum.PREFERRED_RETURN:
            running.pref_paid = running.pref_paid + profit_part
        elif tier.kind is TierKindEnum.CATCH_UP:
            running.catchup_paid = running.catchup_paid + gp

    def _next_state(
        self, running: _RunningTotals, terms: CarryTerm, on: date
    ) -> CarryAccrualState:
        prior = running.state
        draft = prior.model_copy(
            update={
                "lp_distributions": prior.lp_distributions + tuple(running.lp_receipts),
                "gp_distributions": prior.gp_distributions + tuple(running.gp_receipts),
                "cumulative_distributed": running.cumulative,
                "return_of_capital_paid": running.roc_paid,
                "preferred_return_paid": running.pref_paid,
                "lp_profit_paid": running.lp_profit,
                "catchup_paid": running.catchup_paid,
                "third_party_paid": running.third_party,
                "accrued_carry": running.accrued,
                "last_event_date": on,
            }
        )
        vested = self.vested_carry_at(draft, terms, on)
        if draft.distributed_carry > vested:
            raise ConsistencyError(
                f"Distributed carry {draft.distributed_carry} exceeds vested carry {vested}"
            )
        return draft.model_copy(update={"vested_carry": vested})


def _pro_rata(
    amount: Money, members: Sequence[InvestorClass], side: InvestorTypeEnum
) -> List[Money]:
    """
    Split ``amount`` by ``ownership_pct`` so the parts add up exactly.

    Each part is the difference of rounded cumulative shares, so no part is
    negative and the last cumulative share is ``amount`` itself.
    """
    total = sum((m.ownership_pct for m in members), Decimal(0))
    if total == 0:
        if amount.is_positive():
            raise ValidationError(
                f"No {side.value} investor class holds a positive share of {amount}"
            )
        return [Money.zero() for _ in members]

    parts: List[Money] = []
    running = Decimal(0)
    allotted = Money.zero()
    for member in members:
        running += member.ownership_pct
        reached = amount if running == total else amount.mul(running / total)
        parts.append(reached - allotted)
        allotted = reached
    return parts


def replay(
    events: Sequence[Tuple[date, Money]],
    initial_state: CarryAccrualState,
    terms: CarryTerm,
    tiers: Optional[Sequence[WaterfallTier]] = None,
    investor_classes: Optional[Sequence[InvestorClass]] = None,
) -> Tuple[List[WaterfallAllocation], CarryAccrualState]:
    """
    Allocate a date-ordered sequence of distributions from ``initial_state``.

    Useful for audit recalculation: replaying the same events from the same
    state reproduces every allocation.
    """
    calculator = WaterfallCalculator()
    state = initial_state
    allocations: List[WaterfallAllocation] = []
    for on, amount in sorted(events, key=lambda e: e[0]):
        allocation = calculator.allocate(
            amount, state, terms, tiers, on, investor_classes
        )
        allocations.append(allocation)
        state = allocation.new_state
    return allocations, state


__all__ = [
    "CarryAccrualState",
    "InvestorClassResult",
    "TierAllocation",
    "WaterfallAllocation",
    "WaterfallCalculator",
    "replay",
]
