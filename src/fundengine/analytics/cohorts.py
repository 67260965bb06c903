# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Cohort Performance

Groups portfolio positions by vintage, sector, or stage and computes return
multiples and IRR per cohort. Cohorts come back in the order their key
first appears in the input, not sorted by performance.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

import pandas as pd
from pydantic import Field

from ..core.calculations import FinancialCalculations, IRRSolver
from ..core.primitives import DEFAULT_SETTINGS, CohortDimensionEnum, EngineSettings, Model
from ..utils.money import Money
from .positions import Position

logger = logging.getLogger(__name__)


class CohortPerformance(Model):
    """
    Aggregate performance of one cohort.

    Multiples are None when their denominator is zero. ``percentage_exited``
    is realized value as a share of total value, on the 0-100 scale.
    """

    cohort_key: str
    count: int
    total_invested: Money
    paid_in: Money
    realized_value: Money
    unrealized_value: Money
    current_value: Money
    moic: Optional[Decimal] = None
    irr: Optional[float] = None
    tvpi: Optional[Decimal] = None
    dpi: Optional[Decimal] = None
    percentage_exited: float = 0.0


class CohortSummary(Model):
    """
    Cross-cohort averages.

    Both the simple mean (what the dashboard shows) and the invested-capital
    weighted mean are reported; cohorts without a MOIC or IRR are left out of
    the respective averages.
    """

    cohort_count: int
    total_invested: Money
    total_current_value: Money
    average_moic: Optional[float] = None
    weighted_average_moic: Optional[float] = None
    average_irr: Optional[float] = None
    weighted_average_irr: Optional[float] = None
    best_moic_cohort: Optional[str] = None
    best_irr_cohort: Optional[str] = None
    cohort_keys: Tuple[str, ...] = Field(default=())


class CohortAggregator:
    """Stateless cohort calculator."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or DEFAULT_SETTINGS

    def aggregate(
        self,
        positions: Sequence[Position],
        group_by: CohortDimensionEnum,
        as_of_date: date,
    ) -> List[CohortPerformance]:
        """
        Cohort performance for each distinct ``group_by`` key.

        Args:
            positions: Portfolio positions.
            group_by: Vintage, sector, stage (or company).
            as_of_date: Date unrealized value is measured at, for IRR.
        """
        if not positions:
            return []

        keys = pd.Series([p.group_key(group_by) for p in positions], dtype="object")
        cohorts = []
        for key in pd.unique(keys):
            members = [positions[i] for i in keys.index[keys == key]]
            cohorts.append(self._cohort(str(key), members, as_of_date))
        return cohorts

    def _cohort(
        self, key: str, members: List[Position], as_of_date: date
    ) -> CohortPerformance:
        invested = Money.total(p.invested_amount for p in members)
        paid_in = Money.total(p.paid_in for p in members)
        realized = Money.total(p.realized_value for p in members)
        unrealized = Money.total(p.unrealized_value for p in members)
        current = realized + unrealized

        flows = [flow for p in members for flow in p.dated_flows(as_of_date)]
        irr = IRRSolver(self.settings.irr).try_solve(flows)
        if irr is None:
            logger.debug(f"Cohort '{key}': IRR undefined, reported as N/A")

        percentage_exited = 0.0
        if current.is_positive():
            percentage_exited = min(100.0, float(realized.ratio(current) * 100))

        return CohortPerformance(
            cohort_key=key,
            count=len(members),
            total_invested=invested,
            paid_in=paid_in,
            realized_value=realized,
            unrealized_value=unrealized,
            current_value=current,
            moic=FinancialCalculations.calculate_multiple(current, invested),
            irr=irr,
            tvpi=FinancialCalculations.calculate_multiple(current, paid_in),
            dpi=FinancialCalculations.calculate_multiple(realized, paid_in),
            percentage_exited=percentage_exited,
        )

    @staticmethod
    def summarize(cohorts: Sequence[CohortPerformance]) -> CohortSummary:
        """Simple and invested-weighted average MOIC/IRR across cohorts."""
        frame = pd.DataFrame(
            {
                "key": [c.cohort_key for c in cohorts],
                "invested": [c.total_invested.to_float() for c in cohorts],
                "moic": [float(c.moic) if c.moic is not None else None for c in cohorts],
                "irr": [c.irr for c in cohorts],
            },
            columns=["key", "invested", "moic", "irr"],
        )
        frame[["moic", "irr"]] = frame[["moic", "irr"]].astype(float)

        def _means(column: str) -> Tuple[Optional[float], Optional[float], Optional[str]]:
            valid = frame.dropna(subset=[column])
            if valid.empty:
                return None, None, None
            simple = float(valid[column].mean())
            weights = valid["invested"]
            weighted = (
                float((valid[column] * weights).sum() / weights.sum())
                if weights.sum() > 0
                else None
            )
            best = str(valid.loc[valid[column].idxmax(), "key"])
            return simple, weighted, best

        avg_moic, weighted_moic, best_moic = _means("moic")
        avg_irr, weighted_irr, best_irr = _means("irr")

        return CohortSummary(
            cohort_count=len(cohorts),
            total_invested=Money.total(c.total_invested for c in cohorts),
            total_current_value=Money.total(c.current_value for c in cohorts),
            average_moic=avg_moic,
            weighted_average_moic=weighted_moic,
            average_irr=avg_irr,
            weighted_average_irr=weighted_irr,
            best_moic_cohort=best_moic,
            best_irr_cohort=best_irr,
            cohort_keys=tuple(c.cohort_key for c in cohorts),
        )


__all__ = [
    "CohortAggregator",
    "CohortPerformance",
    "CohortSummary",
]
