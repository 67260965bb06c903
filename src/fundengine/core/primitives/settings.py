# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from pydantic import Field, model_validator

from .model import Model
from .types import PositiveFloat, PositiveInt


class IRRSettings(Model):
    """Numerical controls for the IRR solver."""

    initial_guess: float = Field(
        default=0.1, gt=-1.0, description="Starting rate for Newton-Raphson."
    )
    tolerance: PositiveFloat = Field(
        default=1e-7, description="Convergence tolerance on |NPV|."
    )
    max_iterations: PositiveInt = Field(
        default=100, description="Iteration cap for Newton and for bisection."
    )
    lower_bound: float = Field(
        default=-0.9999,
        gt=-1.0,
        description="Lowest annual rate searched by the bisection fallback.",
    )
    upper_bound: float = Field(
        default=100.0,
        description="Highest annual rate searched by the bisection fallback (10,000%).",
    )

    @model_validator(mode="after")
    def check_bracket(self) -> "IRRSettings":
        if self.upper_bound <= self.lower_bound:
            raise ValueError("upper_bound must exceed lower_bound")
        if not self.lower_bound < self.initial_guess < self.upper_bound:
            raise ValueError("initial_guess must lie inside the search bracket")
        return self


class ConcentrationSettings(Model):
    """Risk band thresholds. Percentages are on the 0-100 scale."""

    medium_threshold: PositiveFloat = Field(
        default=15.0, description="Group percentage at which risk becomes medium."
    )
    high_threshold: PositiveFloat = Field(
        default=25.0, description="Group percentage at which risk becomes high."
    )
    hhi_moderate_threshold: PositiveFloat = Field(
        default=1500.0, description="HHI at which concentration becomes moderate."
    )
    hhi_high_threshold: PositiveFloat = Field(
        default=2500.0,
        description="HHI above which concentration is high (the threshold itself is moderate).",
    )

    @model_validator(mode="after")
    def check_ordering(self) -> "ConcentrationSettings":
        if self.high_threshold < self.medium_threshold:
            raise ValueError("high_threshold must be >= medium_threshold")
        if self.hhi_high_threshold < self.hhi_moderate_threshold:
            raise ValueError("hhi_high_threshold must be >= hhi_moderate_threshold")
        return self


class BatchSettings(Model):
    """Controls for multi-fund recomputation."""

    max_workers: PositiveInt = Field(
        default=4, description="Thread pool size for analyze_funds (0 = run inline)."
    )


class EngineSettings(Model):
    """Engine settings

    Groups the tunable parameters by functional area. Every public operation
    accepts an optional ``settings`` argument and falls back to these
    defaults.
    """

    irr: IRRSettings = Field(default_factory=IRRSettings)
    concentration: ConcentrationSettings = Field(default_factory=ConcentrationSettings)
    batch: BatchSettings = Field(default_factory=BatchSettings)


DEFAULT_SETTINGS = EngineSettings()
