# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from .money import DEFAULT_ROUNDING, QUANTUM, SCALE, Money

__all__ = ["DEFAULT_ROUNDING", "Money", "QUANTUM", "SCALE"]
