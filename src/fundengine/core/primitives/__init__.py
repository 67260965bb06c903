# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
fundengine core primitives

Building blocks shared by every calculator: the frozen base model, dated
cash flows, closed enums, constrained types, and engine settings.
"""

from .cash_flow import CashFlow, as_dated_pairs, sort_flows
from .enums import (
    AccelerationTriggerEnum,
    CapitalCallStatusEnum,
    ClawbackStatusEnum,
    CohortDimensionEnum,
    ConfidenceEnum,
    DistributionEventTypeEnum,
    DistributionStatusEnum,
    ErrorFamilyEnum,
    HHIBandEnum,
    InvestorTypeEnum,
    LookbackStatusEnum,
    NAVAdjustmentTypeEnum,
    NAVComponentCategoryEnum,
    PositionStatusEnum,
    RiskBandEnum,
    TierKindEnum,
    ValuationMethodEnum,
    VestingKindEnum,
    WaterfallModelEnum,
)
from .model import Model
from .settings import (
    DEFAULT_SETTINGS,
    BatchSettings,
    ConcentrationSettings,
    EngineSettings,
    IRRSettings,
)
from .types import (
    Fraction,
    PositiveFloat,
    PositiveInt,
)

__all__ = [
    # Core models
    "Model",
    "CashFlow",
    "as_dated_pairs",
    "sort_flows",
    # Settings
    "DEFAULT_SETTINGS",
    "EngineSettings",
    "IRRSettings",
    "ConcentrationSettings",
    "BatchSettings",
    # Enums
    "AccelerationTriggerEnum",
    "CapitalCallStatusEnum",
    "ClawbackStatusEnum",
    "CohortDimensionEnum",
    "ConfidenceEnum",
    "DistributionEventTypeEnum",
    "DistributionStatusEnum",
    "ErrorFamilyEnum",
    "HHIBandEnum",
    "InvestorTypeEnum",
    "LookbackStatusEnum",
    "NAVAdjustmentTypeEnum",
    "NAVComponentCategoryEnum",
    "PositionStatusEnum",
    "RiskBandEnum",
    "TierKindEnum",
    "ValuationMethodEnum",
    "VestingKindEnum",
    "WaterfallModelEnum",
    # Types
    "Fraction",
    "PositiveFloat",
    "PositiveInt",
]
