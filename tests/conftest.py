# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Test utilities and fixtures for fundengine testing.

This module provides convenient factories for creating test objects
without repeating every required field.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence, Tuple

import pytest

from fundengine.analytics import Position
from fundengine.core.primitives import CashFlow, PositionStatusEnum, WaterfallModelEnum
from fundengine.fund import (
    CarryAccrualState,
    CarryTerm,
    GradedVesting,
    ImmediateVesting,
    VestingSchedule,
)
from fundengine.utils.money import Money


def money(value) -> Money:
    """Shorthand used across the suite: money("1_000_000")."""
    return Money(value)


# Carry Term Utilities
def create_carry_terms(
    gp_carry_pct: str = "0.20",
    hurdle_rate: str = "0.08",
    catchup_pct: str = "1",
    catchup_cap: Optional[Money] = None,
    vesting_schedule: Optional[VestingSchedule] = None,
    waterfall_model: WaterfallModelEnum = WaterfallModelEnum.EUROPEAN,
    blend_european_weight: str = "0.5",
) -> CarryTerm:
    """
    Create carry terms for testing.

    Defaults to the common 20% carry, 8% hurdle, 100% catch-up, fully
    vested layout.

    Example:
        >>> terms = create_carry_terms(catchup_pct="0")
        >>> terms.has_catchup
        False
    """
    return CarryTerm(
        gp_carry_pct=Decimal(gp_carry_pct),
        hurdle_rate=Decimal(hurdle_rate),
        catchup_pct=Decimal(catchup_pct),
        catchup_cap=catchup_cap,
        vesting_schedule=vesting_schedule or ImmediateVesting(),
        waterfall_model=waterfall_model,
        blend_european_weight=Decimal(blend_european_weight),
    )


# State Utilities
def create_state(
    contributions: Sequence[Tuple[date, str]] = ((date(2021, 1, 1), "10000000"),),
    grant_date: Optional[date] = None,
) -> CarryAccrualState:
    """Fresh waterfall state with the given (date, amount) contributions."""
    flows = [CashFlow.of(on, amount) for on, amount in contributions]
    start = grant_date or (flows[0].flow_date if flows else date(2021, 1, 1))
    return CarryAccrualState.start(start, flows)


# Position Utilities
def create_position(
    name: str = "Acme",
    invested: str = "1000000",
    realized: str = "0",
    unrealized: str = "1000000",
    vintage: int = 2020,
    sector: str = "Software",
    stage: str = "Series A",
    investment_date: date = date(2020, 1, 1),
    exit_date: Optional[date] = None,
    status: PositionStatusEnum = PositionStatusEnum.ACTIVE,
    fees: str = "0",
) -> Position:
    return Position(
        name=name,
        vintage=vintage,
        sector=sector,
        stage=stage,
        invested_amount=Money(invested),
        realized_value=Money(realized),
        unrealized_value=Money(unrealized),
        fees_paid=Money(fees),
        investment_date=investment_date,
        exit_date=exit_date,
        status=status,
    )


@pytest.fixture
def standard_terms() -> CarryTerm:
    return create_carry_terms()


@pytest.fixture
def graded_terms() -> CarryTerm:
    return create_carry_terms(
        vesting_schedule=GradedVesting(cliff_months=12, total_months=48)
    )


@pytest.fixture
def funded_state() -> CarryAccrualState:
    """$10M contributed on 2021-01-01, nothing distributed yet."""
    return create_state()


@pytest.fixture
def sample_positions() -> Tuple[Position, ...]:
    return (
        create_position("Alpha", "1000000", "0", "2000000", 2019, "Software", "Seed"),
        create_position("Beta", "2000000", "500000", "1500000", 2020, "Fintech", "Series A"),
        create_position("Gamma", "3000000", "0", "3000000", 2019, "Software", "Series B"),
        create_position("Delta", "500000", "0", "0", 2021, "Health", "Seed",
                        status=PositionStatusEnum.WRITTEN_OFF),
    )
