# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Fund valuation: net asset value and NAV per share.
"""

from .nav import NAVAdjustment, NAVCalculation, NAVComponent, NAVEngine

__all__ = [
    "NAVAdjustment",
    "NAVCalculation",
    "NAVComponent",
    "NAVEngine",
]
