# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Carried Interest Terms and Waterfall Tiers

This module defines the contractual inputs of the distribution waterfall:
how carry vests, what the GP earns above the hurdle, and the ordered tiers a
distribution fills.

Key Features:
- Vesting schedules as a closed tagged union (immediate, cliff, graded)
  with optional acceleration triggers
- CarryTerm with hurdle, catch-up, and an optional catch-up cap
- WaterfallTier with per-tier LP/GP split and a documented third-party share
- Validation of tier ordering and contiguous custom ranges
- A four-tier European layout built from carry terms
- Investor classes that share each side of a tier pro rata, and a lookback
  provision holding carry against earlier losses

Example:
    ```python
    terms = CarryTerm(
        gp_carry_pct=Decimal("0.20"),
        hurdle_rate=Decimal("0.08"),
        catchup_pct=Decimal("1"),
        vesting_schedule=GradedVesting(cliff_months=12, total_months=48),
    )
    tiers = standard_tiers(terms)
    # return-of-capital -> preferred-return -> catch-up -> residual (80/20)
    ```
"""

from __future__ import annotations

from decimal import Decimal
from typing import FrozenSet, List, Literal, Optional, Sequence, Tuple, Union

from pydantic import Field, field_validator, model_validator
from typing_extensions import Annotated

from ..core.errors import InvalidSchedule, TierRangeOverlap, ValidationError
from ..core.primitives import (
    AccelerationTriggerEnum,
    Fraction,
    InvestorTypeEnum,
    Model,
    TierKindEnum,
    VestingKindEnum,
    WaterfallModelEnum,
)
from ..utils.money import Money

# =============================================================================
# VESTING SCHEDULES
# =============================================================================


class VestingSchedule(Model):
    """Base class for carry vesting schedules."""

    acceleration_triggers: FrozenSet[AccelerationTriggerEnum] = Field(
        default_factory=frozenset,
        description="Events that fully vest outstanding carry when they occur",
    )

    def declares(self, trigger: Optional[AccelerationTriggerEnum]) -> bool:
        """True if the schedule accelerates on ``trigger`` (or on anything, when None)."""
        if trigger is None:
            return bool(self.acceleration_triggers)
        return trigger in self.acceleration_triggers


class ImmediateVesting(VestingSchedule):
    """Carry is fully vested from the grant date."""

    kind: Literal[VestingKindEnum.IMMEDIATE] = VestingKindEnum.IMMEDIATE


class CliffVesting(VestingSchedule):
    """Nothing vests until ``cliff_months`` have elapsed, then everything does."""

    kind: Literal[VestingKindEnum.CLIFF] = VestingKindEnum.CLIFF
    cliff_months: int = Field(..., description="Months until the cliff")

    @model_validator(mode="after")
    def check_months(self) -> "CliffVesting":
        validate_schedule(self)
        return self


class GradedVesting(VestingSchedule):
    """Nothing vests before the cliff; vesting is linear from the cliff to ``total_months``."""

    kind: Literal[VestingKindEnum.GRADED] = VestingKindEnum.GRADED
    cliff_months: int = Field(..., description="Months until vesting starts")
    total_months: int = Field(..., description="Months until fully vested")

    @model_validator(mode="after")
    def check_months(self) -> "GradedVesting":
        validate_schedule(self)
        return self


AnyVestingSchedule = Annotated[
    Union[ImmediateVesting, CliffVesting, GradedVesting],
    Field(discriminator="kind"),
]


def validate_schedule(schedule: VestingSchedule) -> None:
    """
    Raise InvalidSchedule for negative months or a cliff beyond the total.

    Runs on construction and again in the scheduler, since ``model_construct``
    skips validators.
    """
    if isinstance(schedule, CliffVesting):
        if schedule.cliff_months < 0:
            raise InvalidSchedule(
                f"cliff_months must be >= 0, got {schedule.cliff_months}"
            )
    elif isinstance(schedule, GradedVesting):
        if schedule.cliff_months < 0 or schedule.total_months < 0:
            raise InvalidSchedule(
                "Vesting months must be >= 0, got "
                f"cliff={schedule.cliff_months}, total={schedule.total_months}"
            )
        if schedule.cliff_months > schedule.total_months:
            raise InvalidSchedule(
                f"cliff_months ({schedule.cliff_months}) exceeds "
                f"total_months ({schedule.total_months})"
            )


# =============================================================================
# CARRY TERMS
# =============================================================================


class CarryTerm(Model):
    """
    Carried interest economics for one fund.

    All rates and shares are fractions in [0, 1]. The preferred return tier
    compounds LP capital at ``hurdle_rate``. ``preferred_return_pct`` is the
    LP's share of that tier (1 means the full preferred return goes to LPs),
    and ``standard_tiers`` uses it to build the tier.

    ``waterfall_model`` picks European, American, or a blend of the two
    weighted by ``blend_european_weight``.
    """

    gp_carry_pct: Fraction = Field(
        ..., description="GP share of profits once caught up (e.g., 0.20)"
    )
    hurdle_rate: Fraction = Field(
        ..., description="Annual compounding rate of the LP preferred return"
    )
    preferred_return_pct: Fraction = Field(
        default=Decimal("1"), description="LP share of the preferred return tier"
    )
    catchup_pct: Fraction = Field(
        default=Decimal("1"),
        description="GP share of catch-up tier distributions (0 disables catch-up)",
    )
    catchup_cap: Optional[Money] = Field(
        default=None, description="Maximum cumulative GP catch-up receipts"
    )
    vesting_schedule: AnyVestingSchedule = Field(
        default_factory=ImmediateVesting, description="How accrued carry vests"
    )
    waterfall_model: WaterfallModelEnum = Field(default=WaterfallModelEnum.EUROPEAN)
    blend_european_weight: Fraction = Field(
        default=Decimal("0.5"),
        description="European weight of a blended waterfall; American gets the rest",
    )

    @field_validator("catchup_cap")
    @classmethod
    def validate_cap(cls, v: Optional[Money]) -> Optional[Money]:
        if v is not None and v.is_negative():
            raise ValueError(f"catchup_cap must be non-negative, got {v}")
        return v

    @model_validator(mode="after")
    def validate_catchup(self) -> "CarryTerm":
        """A catch-up at or below the carry rate can never close the gap."""
        if 0 < self.catchup_pct <= self.gp_carry_pct:
            raise ValueError(
                f"catchup_pct ({self.catchup_pct}) must exceed gp_carry_pct "
                f"({self.gp_carry_pct}) or be 0"
            )
        return self

    @property
    def has_catchup(self) -> bool:
        return self.catchup_pct > 0


# =============================================================================
# WATERFALL TIERS
# =============================================================================


class WaterfallTier(Model):
    """
    One step of the distribution waterfall.

    ``lp_allocation_pct + gp_allocation_pct`` may be below 1 when a third
    party participates in the tier; the shortfall is reported separately as
    the third-party amount. ``range_start``/``range_end`` bound CUSTOM tiers
    by cumulative distributed amount; standard tiers derive their size from
    fund history and ignore them.
    """

    tier_index: int = Field(..., ge=0, description="Fill order (ascending)")
    name: str = Field(..., description="Display name")
    kind: TierKindEnum = Field(default=TierKindEnum.CUSTOM)
    lp_allocation_pct: Fraction = Field(..., description="LP share of the tier")
    gp_allocation_pct: Fraction = Field(..., description="GP share of the tier")
    range_start: Money = Field(default_factory=Money.zero)
    range_end: Optional[Money] = Field(default=None)

    @model_validator(mode="after")
    def validate_allocations(self) -> "WaterfallTier":
        if self.lp_allocation_pct + self.gp_allocation_pct > 1:
            raise ValueError(
                f"Tier '{self.name}': lp + gp allocation exceeds 100% "
                f"({self.lp_allocation_pct} + {self.gp_allocation_pct})"
            )
        if self.range_start.is_negative():
            raise ValueError(f"Tier '{self.name}': range_start must be >= 0")
        if self.range_end is not None and self.range_end <= self.range_start:
            raise ValueError(f"Tier '{self.name}': range_end must exceed range_start")
        return self

    @property
    def third_party_pct(self) -> Decimal:
        return Decimal(1) - self.lp_allocation_pct - self.gp_allocation_pct

    @property
    def is_unbounded(self) -> bool:
        return self.kind is TierKindEnum.RESIDUAL or (
            self.kind is TierKindEnum.CUSTOM and self.range_end is None
        )


_STANDARD_ORDER = [
    TierKindEnum.RETURN_OF_CAPITAL,
    TierKindEnum.PREFERRED_RETURN,
    TierKindEnum.CATCH_UP,
    TierKindEnum.RESIDUAL,
]


def validate_tiers(tiers: Sequence[WaterfallTier]) -> List[WaterfallTier]:
    """
    Return tiers sorted by ``tier_index`` after checking the layout.

    Raises:
        ValidationError: No tiers supplied.
        TierRangeOverlap: The tier indices or standard tier kinds repeat, the
            standard kinds are out of order, a tier follows an unbounded
            tier, custom ranges overlap or leave gaps, or a custom first tier
            does not start at 0.
    """
    if not tiers:
        raise ValidationError("A waterfall needs at least one tier")

    ordered = sorted(tiers, key=lambda t: t.tier_index)

    indices = [t.tier_index for t in ordered]
    if len(set(indices)) != len(indices):
        raise TierRangeOverlap(f"Duplicate tier_index in {indices}")

    standard = [t.kind for t in ordered if t.kind is not TierKindEnum.CUSTOM]
    if len(set(standard)) != len(standard):
        raise TierRangeOverlap(f"Standard tier kinds repeat: {[k.value for k in standard]}")
    ranks = [_STANDARD_ORDER.index(k) for k in standard]
    if ranks != sorted(ranks):
        raise TierRangeOverlap(
            f"Standard tiers out of order: {[k.value for k in standard]}"
        )

    for previous, current in zip(ordered[:-1], ordered[1:]):
        if previous.is_unbounded:
            raise TierRangeOverlap(
                f"Tier '{current.name}' follows unbounded tier '{previous.name}'"
            )

    first = ordered[0]
    if first.kind is TierKindEnum.CUSTOM and first.range_start.is_positive():
        raise TierRangeOverlap(
            f"Gap before first tier '{first.name}': its range starts at "
            f"{first.range_start}, not 0"
        )

    customs = [t for t in ordered if t.kind is TierKindEnum.CUSTOM]
    for previous, current in zip(customs[:-1], customs[1:]):
        # previous.range_end is set; an open-ended custom tier must be last
        if current.range_start < previous.range_end:
            raise TierRangeOverlap(
                f"Tier '{current.name}' starts at {current.range_start} inside "
                f"'{previous.name}' (ends {previous.range_end})"
            )
        if current.range_start > previous.range_end:
            raise TierRangeOverlap(
                f"Gap between '{previous.name}' (ends {previous.range_end}) and "
                f"'{current.name}' (starts {current.range_start})"
            )

    return ordered


def standard_tiers(terms: CarryTerm) -> List[WaterfallTier]:
    """Four-tier European waterfall derived from carry terms."""
    one = Decimal(1)
    tiers = [
        WaterfallTier(
            tier_index=1,
            name="Return of Capital",
            kind=TierKindEnum.RETURN_OF_CAPITAL,
            lp_allocation_pct=one,
            gp_allocation_pct=Decimal(0),
        ),
        WaterfallTier(
            tier_index=2,
            name="Preferred Return",
            kind=TierKindEnum.PREFERRED_RETURN,
            lp_allocation_pct=terms.preferred_return_pct,
            gp_allocation_pct=one - terms.preferred_return_pct,
        ),
    ]
    if terms.has_catchup:
        tiers.append(
            WaterfallTier(
                tier_index=3,
                name="GP Catch-up",
                kind=TierKindEnum.CATCH_UP,
                lp_allocation_pct=one - terms.catchup_pct,
                gp_allocation_pct=terms.catchup_pct,
            )
        )
    tiers.append(
        WaterfallTier(
            tier_index=4,
            name="Carried Interest Split",
            kind=TierKindEnum.RESIDUAL,
            lp_allocation_pct=one - terms.gp_carry_pct,
            gp_allocation_pct=terms.gp_carry_pct,
        )
    )
    return tiers


# =============================================================================
# INVESTOR CLASSES AND LOOKBACK
# =============================================================================


class InvestorClass(Model):
    """
    A group of investors sharing one side of every tier pro rata.

    ``ownership_pct`` weights the class against the other classes of the same
    ``investor_type``; the weights are normalized within each side, so they
    need not add up to 1. ``commitment`` is the invested basis of a European
    waterfall and ``capital_called`` that of an American one.
    """

    name: str = Field(..., min_length=1)
    investor_type: InvestorTypeEnum = Field(default=InvestorTypeEnum.LP)
    ownership_pct: Fraction = Field(..., description="Share of its side's allocations")
    commitment: Money = Field(default_factory=Money.zero)
    capital_called: Money = Field(default_factory=Money.zero)

    @field_validator("commitment", "capital_called")
    @classmethod
    def validate_amounts(cls, v: Money) -> Money:
        if v.is_negative():
            raise ValueError(f"Investor class amounts must be non-negative, got {v}")
        return v


def validate_investor_classes(
    classes: Sequence[InvestorClass],
) -> Tuple[InvestorClass, ...]:
    """Raise ValidationError when two classes share a name."""
    names = [c.name for c in classes]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValidationError(f"Duplicate investor class names: {duplicates}")
    return tuple(classes)


class LookbackProvision(Model):
    """
    Carry held back against earlier losses.

    Over the trailing ``lookback_years``, ``carry_at_risk_rate`` of the GP's
    receipts stays exposed until ``loss_carry_forward`` has been recovered.
    """

    lookback_years: int = Field(..., ge=1)
    loss_carry_forward: Money = Field(default_factory=Money.zero)
    carry_at_risk_rate: Fraction = Field(default=Decimal("1"))

    @field_validator("loss_carry_forward")
    @classmethod
    def validate_losses(cls, v: Money) -> Money:
        if v.is_negative():
            raise ValueError(f"loss_carry_forward must be non-negative, got {v}")
        return v


__all__ = [
    "AnyVestingSchedule",
    "CarryTerm",
    "CliffVesting",
    "GradedVesting",
    "ImmediateVesting",
    "InvestorClass",
    "LookbackProvision",
    "VestingSchedule",
    "WaterfallTier",
    "standard_tiers",
    "validate_investor_classes",
    "validate_schedule",
    "validate_tiers",
]
