# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

import importlib
import logging

"""
fundengine - Fund Economics Calculation Engine

Pure, stateless calculators for venture and private equity fund
administration: NAV per share, the carried interest waterfall with hurdle,
catch-up and vesting, cohort performance, and concentration risk.

Key Entry Points:
- fundengine.engine.analyze_fund() - Full calculation chain for one fund
- fundengine.engine.analyze_funds() - Parallel batch with per-fund error isolation
- fundengine.fund.* - Capital calls, distributions, carry terms, waterfall
- fundengine.valuation.* - NAV calculation
- fundengine.analytics.* - Cohorts and concentration risk

Example Usage:
    ```python
    from fundengine.fund import CarryTerm, CarryAccrualState, WaterfallCalculator
    from fundengine.utils.money import Money

    terms = CarryTerm(gp_carry_pct="0.20", hurdle_rate="0.08")
    state = CarryAccrualState.start(date(2020, 1, 1)).with_contribution(
        date(2020, 1, 1), Money("10000000")
    )
    allocation = WaterfallCalculator().allocate(
        Money("3000000"), state, terms, distribution_date=date(2023, 1, 1)
    )
    print(allocation.lp_amount, allocation.gp_amount)
    ```
"""

# Add a NullHandler so applications that don't configure logging see no
# "No handlers could be found" warnings. Applications configure their own.
logging.getLogger(__name__).addHandler(logging.NullHandler())


# Public API surface (lazy-loaded on first attribute access)
__all__ = [  # noqa: F822 - lazy loading
    "analytics",
    "core",
    "engine",
    "fund",
    "utils",
    "valuation",
]


_LAZY_MODULES = {
    "analytics": "fundengine.analytics",
    "core": "fundengine.core",
    "engine": "fundengine.engine",
    "fund": "fundengine.fund",
    "utils": "fundengine.utils",
    "valuation": "fundengine.valuation",
}


def __getattr__(name: str):
    module_path = _LAZY_MODULES.get(name)
    if module_path is None:
        raise AttributeError(f"module 'fundengine' has no attribute '{name}'")
    module = importlib.import_module(module_path)
    globals()[name] = module
    return module
