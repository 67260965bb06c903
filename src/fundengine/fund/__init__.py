# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Fund economics: events, carry terms, vesting, the distribution waterfall,
and carry accrual reporting.
"""

from .accrual import (
    CarryAccrual,
    ClawbackAssessment,
    LookbackAssessment,
    SensitivityAnalysis,
    SensitivityPoint,
    TierBreakEven,
    assess_clawback,
    assess_lookback,
    build_carry_accrual,
    sensitivity_analysis,
)
from .events import CapitalCall, DistributionEvent, contributions_from_calls
from .terms import (
    AnyVestingSchedule,
    CarryTerm,
    CliffVesting,
    GradedVesting,
    ImmediateVesting,
    InvestorClass,
    LookbackProvision,
    VestingSchedule,
    WaterfallTier,
    standard_tiers,
    validate_investor_classes,
    validate_schedule,
    validate_tiers,
)
from .vesting import VestingScheduler, elapsed_months
from .waterfall import (
    CarryAccrualState,
    InvestorClassResult,
    TierAllocation,
    WaterfallAllocation,
    WaterfallCalculator,
    replay,
)

__all__ = [
    # Events
    "CapitalCall",
    "DistributionEvent",
    "contributions_from_calls",
    # Terms
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
    # Vesting
    "VestingScheduler",
    "elapsed_months",
    # Waterfall
    "CarryAccrualState",
    "InvestorClassResult",
    "TierAllocation",
    "WaterfallAllocation",
    "WaterfallCalculator",
    "replay",
    # Accrual
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
