# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Portfolio analytics: cohort performance and concentration risk over
portfolio positions.
"""

from .cohorts import CohortAggregator, CohortPerformance, CohortSummary
from .concentration import (
    ConcentrationMetric,
    ConcentrationReport,
    ConcentrationRiskAnalyzer,
    herfindahl_index,
    hhi_band,
    risk_band,
)
from .positions import Position

__all__ = [
    "CohortAggregator",
    "CohortPerformance",
    "CohortSummary",
    "ConcentrationMetric",
    "ConcentrationReport",
    "ConcentrationRiskAnalyzer",
    "Position",
    "herfindahl_index",
    "hhi_band",
    "risk_band",
]
