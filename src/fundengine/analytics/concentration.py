# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Concentration Risk

Share of fund value held by each group along one dimension, the per-group
risk band, and the fund-level Herfindahl-Hirschman Index (HHI).

Percentages are on the 0-100 scale, so a fund held entirely in one company
has an HHI of 10,000. Metrics are sorted by percentage, largest first; the
top-3 and top-5 concentrations read off that order.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..core.primitives import (
    DEFAULT_SETTINGS,
    CohortDimensionEnum,
    ConcentrationSettings,
    EngineSettings,
    HHIBandEnum,
    Model,
    RiskBandEnum,
)
from ..utils.money import Money
from .positions import Position

logger = logging.getLogger(__name__)


class ConcentrationMetric(Model):
    category: str
    value: Money
    percentage: float
    count: int
    risk_band: RiskBandEnum


class ConcentrationReport(Model):
    """
    Concentration along one dimension.

    ``hhi`` is computed over every group, not only the top positions.
    """

    dimension: CohortDimensionEnum
    total_value: Money
    metrics: Tuple[ConcentrationMetric, ...]
    hhi: float
    hhi_band: HHIBandEnum
    top3_concentration: float
    top5_concentration: float
    high_risk_count: int
    medium_risk_count: int
    low_risk_count: int


def risk_band(percentage: float, settings: ConcentrationSettings) -> RiskBandEnum:
    if percentage >= settings.high_threshold:
        return RiskBandEnum.HIGH
    if percentage >= settings.medium_threshold:
        return RiskBandEnum.MEDIUM
    return RiskBandEnum.LOW


def hhi_band(hhi: float, settings: ConcentrationSettings) -> HHIBandEnum:
    if hhi > settings.hhi_high_threshold:
        return HHIBandEnum.HIGH
    if hhi >= settings.hhi_moderate_threshold:
        return HHIBandEnum.MODERATE
    return HHIBandEnum.LOW


def herfindahl_index(percentages: Sequence[float]) -> float:
    """Sum of squared percentages (0-100 scale)."""
    values = np.asarray(list(percentages), dtype=float)
    return float(np.sum(values**2))


class ConcentrationRiskAnalyzer:
    """Stateless concentration calculator."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or DEFAULT_SETTINGS

    def analyze(
        self, positions: Sequence[Position], group_by: CohortDimensionEnum
    ) -> ConcentrationReport:
        """
        Concentration of current (unrealized) value by ``group_by``.

        An empty portfolio, or one with no remaining value, yields no
        metrics and an HHI of 0.
        """
        bands = self.settings.concentration
        grouped = self._group_values(positions, group_by)
        total = Money.total(value for _, value, _ in grouped)

        if not total.is_positive():
            logger.debug(f"No portfolio value to analyze by {group_by.value}")
            return self._report(group_by, total, ())

        frame = pd.DataFrame(
            {
                "category": [key for key, _, _ in grouped],
                "value": [value for _, value, _ in grouped],
                "positions": [count for _, _, count in grouped],
                "percentage": [
                    float(value.ratio(total) * 100) for _, value, _ in grouped
                ],
            }
        )
        frame = frame.sort_values("percentage", ascending=False, kind="stable")

        metrics = tuple(
            ConcentrationMetric(
                category=row.category,
                value=row.value,
                percentage=float(row.percentage),
                count=int(row.positions),
                risk_band=risk_band(float(row.percentage), bands),
            )
            for row in frame.itertuples(index=False)
        )
        return self._report(group_by, total, metrics)

    @staticmethod
    def _group_values(
        positions: Sequence[Position], group_by: CohortDimensionEnum
    ) -> Tuple[Tuple[str, Money, int], ...]:
        values = {}
        counts = {}
        for position in positions:
            key = position.group_key(group_by)
            values[key] = values.get(key, Money.zero()) + position.unrealized_value
            counts[key] = counts.get(key, 0) + 1
        return tuple((key, values[key], counts[key]) for key in values)

    def _report(
        self,
        group_by: CohortDimensionEnum,
        total: Money,
        metrics: Tuple[ConcentrationMetric, ...],
    ) -> ConcentrationReport:
        bands = self.settings.concentration
        percentages = [m.percentage for m in metrics]
        hhi = herfindahl_index(percentages)
        return ConcentrationReport(
            dimension=group_by,
            total_value=total,
            metrics=metrics,
            hhi=hhi,
            hhi_band=hhi_band(hhi, bands),
            top3_concentration=float(sum(percentages[:3])),
            top5_concentration=float(sum(percentages[:5])),
            high_risk_count=sum(1 for m in metrics if m.risk_band is RiskBandEnum.HIGH),
            medium_risk_count=sum(
                1 for m in metrics if m.risk_band is RiskBandEnum.MEDIUM
            ),
            low_risk_count=sum(1 for m in metrics if m.risk_band is RiskBandEnum.LOW),
        )


__all__ = [
    "ConcentrationMetric",
    "ConcentrationReport",
    "ConcentrationRiskAnalyzer",
    "herfindahl_index",
    "hhi_band",
    "risk_band",
]
