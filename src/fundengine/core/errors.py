# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Error taxonomy for the fund economics engine.

Three families are exposed to callers:

- ``ValidationError``: malformed or out-of-range input (negative amounts,
  misordered tiers, impossible vesting schedules).
- ``CalculationError``: arithmetic that has no answer for the given input
  (division by zero shares, IRR without a root). It serializes under the
  ``ArithmeticError`` family name; the class is named apart from the
  builtin so ``except ArithmeticError`` never catches it.
- ``ConsistencyError``: an invariant was violated during computation. This
  signals a programming bug and is logged loudly by the batch runner.

Each error carries a stable ``code`` so batch results can be serialized
without the exception object.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class FundEngineError(Exception):
    """Base class for every error raised by fundengine."""

    code: str = "fund_engine_error"
    family: str = "FundEngineError"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# =============================================================================
# VALIDATION
# =============================================================================


class ValidationError(FundEngineError):
    """Input is malformed or outside its allowed range."""

    code = "validation_error"
    family = "ValidationError"


class InvalidMoney(ValidationError):
    code = "invalid_money"


class InvalidSchedule(ValidationError):
    code = "invalid_schedule"


class InvalidDistribution(ValidationError):
    code = "invalid_distribution"


class NegativeContribution(ValidationError):
    code = "negative_contribution"


class TierRangeOverlap(ValidationError):
    code = "tier_range_overlap"


class InvalidStatusTransition(ValidationError):
    code = "invalid_status_transition"


class ImmutableEventError(ValidationError):
    """A completed distribution event was asked to change."""

    code = "immutable_event"


class CarryOverdraw(ValidationError):
    """A carry payment would exceed the vested, undistributed balance."""

    code = "carry_overdraw"


# =============================================================================
# CALCULATION
# =============================================================================


class CalculationError(FundEngineError):
    """Arithmetic failure: the requested quantity is undefined for the input."""

    code = "calculation_error"
    family = "ArithmeticError"


class DivisionByZero(CalculationError):
    code = "division_by_zero"


class ZeroOutstandingShares(DivisionByZero):
    code = "zero_outstanding_shares"


class NoConvergence(CalculationError):
    """IRR has no root in the search range. Callers report it as N/A."""

    code = "no_convergence"


# =============================================================================
# CONSISTENCY
# =============================================================================


class ConsistencyError(FundEngineError):
    """An engine invariant failed. Always a bug, never bad user input."""

    code = "consistency_error"
    family = "ConsistencyError"


__all__ = [
    "FundEngineError",
    "ValidationError",
    "InvalidMoney",
    "InvalidSchedule",
    "InvalidDistribution",
    "NegativeContribution",
    "TierRangeOverlap",
    "InvalidStatusTransition",
    "ImmutableEventError",
    "CarryOverdraw",
    "CalculationError",
    "DivisionByZero",
    "ZeroOutstandingShares",
    "NoConvergence",
    "ConsistencyError",
]
