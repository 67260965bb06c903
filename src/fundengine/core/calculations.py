# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Financial calculation functions.

Contains the IRR root-finder and the static helpers for discounted cash flow
and return multiples. These functions are pure (math-only) and independent
of fund structure; the waterfall, NAV, and cohort calculators delegate here
so there is a single source of truth for every return metric.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from decimal import ROUND_HALF_EVEN, Decimal, localcontext
from typing import List, Optional, Sequence, Tuple

import numpy as np
from pyxirr import xnpv
from scipy.optimize import bisect

from ..utils.money import QUANTUM, Money
from .errors import NoConvergence
from .primitives.cash_flow import CashFlow, as_dated_pairs
from .primitives.settings import DEFAULT_SETTINGS, IRRSettings

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.0  # Act/365, the XIRR/XNPV convention
_DAYS_PER_YEAR_EXACT = Decimal(365)

# Significant digits for hurdle compounding; leaves the sixth decimal exact
# for amounts far beyond any fund size.
FV_PRECISION = 40


class IRRSolver:
    """
    Internal rate of return for irregularly dated cash flows.

    Newton-Raphson from ``initial_guess`` until ``|NPV| < tolerance`` or
    ``max_iterations`` is reached. When Newton stalls (zero slope, a step
    below -100%, or no convergence) the solver scans the bounded bracket for
    a sign change and bisects it.

    Example:
        ```python
        flows = [
            CashFlow.of(date(2020, 1, 1), "-1000"),
            CashFlow.of(date(2021, 1, 1), "1100"),
        ]
        IRRSolver().solve(flows)  # ~0.10
        ```
    """

    def __init__(self, settings: Optional[IRRSettings] = None):
        self.settings = settings or DEFAULT_SETTINGS.irr

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def solve(self, cash_flows: Sequence[CashFlow]) -> float:
        """
        Solve for the annual rate at which the flows' NPV is zero.

        Raises:
            NoConvergence: empty input, flows that are all one sign, or no
                root within ``[lower_bound, upper_bound]``.
        """
        years, amounts = self._prepare(cash_flows)

        rate = self._newton(years, amounts)
        if rate is not None:
            return rate

        logger.debug("IRR: Newton-Raphson did not converge, falling back to bisection")
        return self._bisect(years, amounts)

    def try_solve(self, cash_flows: Sequence[CashFlow]) -> Optional[float]:
        """Same as ``solve`` but returns None ("N/A") instead of raising."""
        try:
            return self.solve(cash_flows)
        except NoConvergence as e:
            logger.debug(f"IRR undefined: {e}")
            return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _prepare(cash_flows: Sequence[CashFlow]) -> Tuple[np.ndarray, np.ndarray]:
        if len(cash_flows) < 2:
            raise NoConvergence("IRR needs at least two cash flows")

        dates, amounts = as_dated_pairs(cash_flows)
        values = np.asarray(amounts, dtype=float)
        if not ((values < 0).any() and (values > 0).any()):
            raise NoConvergence(
                "IRR undefined: cash flows need both a negative and a positive amount"
            )

        start = dates[0]
        years = np.asarray(
            [(d - start).days / DAYS_PER_YEAR for d in dates], dtype=float
        )
        return years, values

    @staticmethod
    def _npv(rate: float, years: np.ndarray, amounts: np.ndarray) -> float:
        with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
            return float(np.sum(amounts / np.power(1.0 + rate, years)))

    @staticmethod
    def _npv_slope(rate: float, years: np.ndarray, amounts: np.ndarray) -> float:
        with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
            return float(np.sum(-years * amounts / np.power(1.0 + rate, years + 1.0)))

    def _newton(self, years: np.ndarray, amounts: np.ndarray) -> Optional[float]:
        rate = self.settings.initial_guess
        for _ in range(self.settings.max_iterations):
            value = self._npv(rate, years, amounts)
            if not math.isfinite(value):
                return None
            if abs(value) < self.settings.tolerance:
                return rate

            slope = self._npv_slope(rate, years, amounts)
            if slope == 0 or not math.isfinite(slope):
                return None

            rate = rate - value / slope
            if not math.isfinite(rate) or rate <= -1.0:
                return None
        return None

    def _find_bracket(
        self, years: np.ndarray, amounts: np.ndarray
    ) -> Optional[Tuple[float, float]]:
        lower, upper = self.settings.lower_bound, self.settings.upper_bound
        pivot = min(max(1.0, lower), upper)
        grid = np.unique(
            np.concatenate(
                [
                    np.linspace(lower, pivot, 400),
                    np.geomspace(max(pivot, 1e-6), upper, 200) if upper > pivot else [],
                ]
            )
        )
        values = np.array([self._npv(r, years, amounts) for r in grid])

        brackets: List[Tuple[float, float]] = []
        for a, b, fa, fb in zip(grid[:-1], grid[1:], values[:-1], values[1:]):
            if not (math.isfinite(fa) and math.isfinite(fb)):
                continue
            if fa == 0:
                return float(a), float(a)
            if fa * fb < 0:
                brackets.append((float(a), float(b)))
        if not brackets:
            return None

        # Several roots are possible for non-conventional flows; keep the one
        # nearest the initial guess so results match Newton where it works.
        guess = self.settings.initial_guess
        return min(brackets, key=lambda ab: abs((ab[0] + ab[1]) / 2 - guess))

    def _bisect(self, years: np.ndarray, amounts: np.ndarray) -> float:
        bracket = self._find_bracket(years, amounts)
        if bracket is None:
            raise NoConvergence(
                f"IRR has no root between {self.settings.lower_bound:.2%} "
                f"and {self.settings.upper_bound:.2%}"
            )
        a, b = bracket
        if a == b:
            return a

        root, result = bisect(
            self._npv,
            a,
            b,
            args=(years, amounts),
            xtol=1e-14,
            maxiter=self.settings.max_iterations,
            full_output=True,
            disp=False,
        )
        if not result.converged:
            raise NoConvergence(
                f"IRR bisection did not converge in {self.settings.max_iterations} iterations"
            )
        return float(root)


def solve_irr(
    cash_flows: Sequence[CashFlow], settings: Optional[IRRSettings] = None
) -> float:
    """Module-level convenience for ``IRRSolver(settings).solve``."""
    return IRRSolver(settings).solve(cash_flows)


class FinancialCalculations:
    """
    Pure mathematical helpers for fund return metrics.

    Static methods, independent of fund structure or business logic.
    """

    @staticmethod
    def calculate_irr(
        cash_flows: Sequence[CashFlow], settings: Optional[IRRSettings] = None
    ) -> Optional[float]:
        """
        IRR as decimal (e.g., 0.15 for 15%) or None when undefined.

        Edge Cases Handled:
            - Empty or single flow -> None
            - All negative / all positive flows -> None
            - No root in the search bracket -> None
        """
        return IRRSolver(settings).try_solve(cash_flows)

    @staticmethod
    def calculate_npv(cash_flows: Sequence[CashFlow], discount_rate: float) -> float:
        """
        Net present value at the earliest flow date using PyXIRR's XNPV.

        Example:
            ```python
            flows = [CashFlow.of(date(2024, 1, 1), "-1000"),
                     CashFlow.of(date(2025, 1, 1), "1100")]
            FinancialCalculations.calculate_npv(flows, 0.10)  # ~0.0
            ```
        """
        if not cash_flows:
            return 0.0
        dates, amounts = as_dated_pairs(cash_flows)
        return float(xnpv(discount_rate, dates, amounts))

    @staticmethod
    def calculate_future_value(
        cash_flows: Sequence[CashFlow], rate: Decimal, as_of: date
    ) -> Money:
        """
        Value of the flows compounded (or discounted) at ``rate`` to ``as_of``.

        Each flow grows by ``(1 + rate) ** (days / 365)``, evaluated in
        ``Decimal`` at ``FV_PRECISION`` significant digits and rounded to the
        money scale once, half-even. This is how preferred-return hurdles are
        measured, so it never passes through binary floats.
        """
        if not cash_flows:
            return Money.zero()
        if isinstance(rate, float):
            raise TypeError("calculate_future_value expects a Decimal rate, got float")

        with localcontext() as ctx:
            ctx.prec = FV_PRECISION
            base = Decimal(1) + Decimal(rate)
            total = Decimal(0)
            for flow in cash_flows:
                exponent = Decimal((as_of - flow.flow_date).days) / _DAYS_PER_YEAR_EXACT
                total += flow.amount.to_decimal() * base**exponent
            return Money(total.quantize(QUANTUM, rounding=ROUND_HALF_EVEN))

    @staticmethod
    def calculate_multiple(numerator: Money, denominator: Money) -> Optional[Decimal]:
        """
        Ratio of two amounts, or None when the denominator is not positive.

        A zero denominator means the multiple is undefined, not zero.
        """
        if not denominator.is_positive():
            return None
        return numerator.ratio(denominator)

    @staticmethod
    def calculate_equity_multiple(cash_flows: Sequence[CashFlow]) -> Optional[Decimal]:
        """Total inflows over total outflows (absolute), or None without outflows."""
        invested = Money.total(-f.amount for f in cash_flows if f.amount.is_negative())
        returned = Money.total(f.amount for f in cash_flows if f.amount.is_positive())
        return FinancialCalculations.calculate_multiple(returned, invested)
