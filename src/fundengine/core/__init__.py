# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
fundengine core

Errors, primitives, and the numerical routines (IRR, NPV, multiples) that
every calculator shares. Submodules are imported explicitly by callers to
keep this package free of import cycles with ``fundengine.utils``.
"""

from .errors import (
    CalculationError,
    ConsistencyError,
    FundEngineError,
    ValidationError,
)

__all__ = [
    "CalculationError",
    "ConsistencyError",
    "FundEngineError",
    "ValidationError",
]
