# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from enum import Enum
from typing import List


class CapitalCallStatusEnum(str, Enum):
    """
    Lifecycle of a capital call. Transitions only move forward.

    DRAFT -> SENT -> IN_PROGRESS -> COMPLETED
    """

    DRAFT = "draft"
    SENT = "sent"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    @property
    def rank(self) -> int:
        return _CAPITAL_CALL_ORDER.index(self)


_CAPITAL_CALL_ORDER: List[CapitalCallStatusEnum] = [
    CapitalCallStatusEnum.DRAFT,
    CapitalCallStatusEnum.SENT,
    CapitalCallStatusEnum.IN_PROGRESS,
    CapitalCallStatusEnum.COMPLETED,
]


class DistributionStatusEnum(str, Enum):
    """Approval workflow of a distribution event."""

    DRAFT = "draft"
    PENDING_APPROVAL = "pending-approval"
    APPROVED = "approved"
    PROCESSING = "processing"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (
            DistributionStatusEnum.COMPLETED,
            DistributionStatusEnum.REJECTED,
            DistributionStatusEnum.CANCELLED,
        )


class DistributionEventTypeEnum(str, Enum):
    """What produced the distributable proceeds."""

    EXIT = "exit"
    DIVIDEND = "dividend"
    RECAPITALIZATION = "recapitalization"
    REFINANCING = "refinancing"
    PARTIAL_EXIT = "partial-exit"
    OTHER = "other"


class VestingKindEnum(str, Enum):
    """Discriminator for vesting schedule variants."""

    IMMEDIATE = "immediate"
    CLIFF = "cliff"
    GRADED = "graded"


class AccelerationTriggerEnum(str, Enum):
    """Liquidity events that can fully vest outstanding carry."""

    EXIT = "exit"
    IPO = "ipo"
    CHANGE_OF_CONTROL = "change-of-control"


class TierKindEnum(str, Enum):
    """
    Role of a waterfall tier.

    The first four have capacities derived from fund history and carry terms.
    CUSTOM tiers cover a fixed window of cumulative distributed amount given
    by their ``range_start`` and ``range_end``.
    """

    RETURN_OF_CAPITAL = "return-of-capital"
    PREFERRED_RETURN = "preferred-return"
    CATCH_UP = "catch-up"
    RESIDUAL = "residual"
    CUSTOM = "custom"


class NAVComponentCategoryEnum(str, Enum):
    """Balance sheet line categories. Liabilities subtract from net assets."""

    INVESTMENT = "investment"
    CASH = "cash"
    RECEIVABLE = "receivable"
    LIABILITY = "liability"
    OTHER = "other"

    @property
    def is_liability(self) -> bool:
        return self is NAVComponentCategoryEnum.LIABILITY


class NAVAdjustmentTypeEnum(str, Enum):
    """
    Valuation adjustments applied on top of NAV components.

    Gains and write-ups always increase net assets, and losses and
    write-downs always decrease them, whatever sign the amount is entered
    with. OTHER keeps the sign it was given.
    """

    UNREALIZED_GAIN = "unrealized-gain"
    UNREALIZED_LOSS = "unrealized-loss"
    WRITE_UP = "write-up"
    WRITE_DOWN = "write-down"
    OTHER = "other"

    @property
    def direction(self) -> int:
        if self in (
            NAVAdjustmentTypeEnum.UNREALIZED_GAIN,
            NAVAdjustmentTypeEnum.WRITE_UP,
        ):
            return 1
        if self in (
            NAVAdjustmentTypeEnum.UNREALIZED_LOSS,
            NAVAdjustmentTypeEnum.WRITE_DOWN,
        ):
            return -1
        return 0


class ValuationMethodEnum(str, Enum):
    COST = "cost"
    FAIR_VALUE = "fair-value"
    MARK_TO_MARKET = "mark-to-market"
    DISCOUNTED_CASH_FLOW = "discounted-cash-flow"


class ConfidenceEnum(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PositionStatusEnum(str, Enum):
    """Realization status of a portfolio position."""

    ACTIVE = "active"
    PARTIALLY_REALIZED = "partially-realized"
    EXITED = "exited"
    WRITTEN_OFF = "written-off"

    @property
    def is_exited(self) -> bool:
        return self in (PositionStatusEnum.EXITED, PositionStatusEnum.WRITTEN_OFF)


class CohortDimensionEnum(str, Enum):
    """Grouping keys for cohort and concentration analysis."""

    VINTAGE = "vintage"
    SECTOR = "sector"
    STAGE = "stage"
    COMPANY = "company"


class RiskBandEnum(str, Enum):
    """Per-group concentration band (percentage of fund value)."""

    LOW = "low"  # < 15%
    MEDIUM = "medium"  # 15% - 25%
    HIGH = "high"  # >= 25%


class HHIBandEnum(str, Enum):
    """Fund-level Herfindahl-Hirschman Index band."""

    LOW = "low"  # < 1500
    MODERATE = "moderate"  # 1500 - 2500
    HIGH = "high"  # > 2500


class ClawbackStatusEnum(str, Enum):
    CLEAR = "clear"
    AT_RISK = "at-risk"
    TRIGGERED = "triggered"


class LookbackStatusEnum(str, Enum):
    CLEARED = "cleared"
    MONITOR = "monitor"
    AT_RISK = "at-risk"


class InvestorTypeEnum(str, Enum):
    LP = "lp"
    GP = "gp"


class WaterfallModelEnum(str, Enum):
    """
    How carry is measured.

    EUROPEAN runs every tier on whole-fund capital. AMERICAN skips the GP
    catch-up and measures investors on capital called. BLENDED weights the
    two.
    """

    EUROPEAN = "european"
    AMERICAN = "american"
    BLENDED = "blended"


class ErrorFamilyEnum(str, Enum):
    """Serialized error family for batch outcomes."""

    VALIDATION = "ValidationError"
    CALCULATION = "ArithmeticError"
    CONSISTENCY = "ConsistencyError"
