# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
NAV Engine Unit Tests

Balance sheet roll-up, signed adjustments, NAV per share rounding, and
period-over-period change.
"""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from fundengine.core.errors import (
    CalculationError,
    ValidationError,
    ZeroOutstandingShares,
)
from fundengine.core.primitives import (
    CashFlow,
    NAVAdjustmentTypeEnum,
    NAVComponentCategoryEnum,
)
from fundengine.utils.money import Money
from fundengine.valuation import NAVAdjustment, NAVComponent, NAVEngine


def _component(category, value):
    return NAVComponent(category=category, value=Money(value))


def _adjustment(kind, amount, justification="quarterly mark"):
    return NAVAdjustment(type=kind, amount=Money(amount), justification=justification)


@pytest.fixture
def components():
    return [
        _component(NAVComponentCategoryEnum.INVESTMENT, "9000000"),
        _component(NAVComponentCategoryEnum.CASH, "1500000"),
        _component(NAVComponentCategoryEnum.RECEIVABLE, "500000"),
        _component(NAVComponentCategoryEnum.LIABILITY, "1000000"),
    ]


@pytest.fixture
def adjustments():
    return [
        _adjustment(NAVAdjustmentTypeEnum.WRITE_DOWN, "500000"),
        # Gains always add, whatever sign they are entered with
        _adjustment(NAVAdjustmentTypeEnum.UNREALIZED_GAIN, "-200000"),
    ]


class TestNAVCalculation:
    def test_balance_sheet_roll_up(self, components, adjustments):
        nav = NAVEngine().calculate(components, adjustments, 1_000_000)

        assert nav.total_adjustments == Money("-300000")
        assert nav.total_assets == Money("10700000")
        assert nav.total_liabilities == Money("1000000")
        assert nav.net_assets == Money("9700000")
        assert nav.net_assets == nav.total_assets - nav.total_liabilities
        assert nav.nav_per_share == Money("9.7")
        assert nav.assets_by_category[NAVComponentCategoryEnum.CASH] == Money("1500000")
        assert nav.previous_nav_per_share is None
        assert nav.change_percent is None

    def test_categories_are_summed(self):
        nav = NAVEngine().calculate(
            [
                _component(NAVComponentCategoryEnum.INVESTMENT, "100"),
                _component(NAVComponentCategoryEnum.INVESTMENT, "250"),
                _component(NAVComponentCategoryEnum.OTHER, "-50"),
            ],
            [],
            Decimal("10"),
        )
        assert nav.assets_by_category[NAVComponentCategoryEnum.INVESTMENT] == Money("350")
        assert nav.net_assets == Money("300")
        assert nav.nav_per_share == Money("30")

    def test_other_adjustment_keeps_its_sign(self):
        nav = NAVEngine().calculate(
            [_component(NAVComponentCategoryEnum.CASH, "100")],
            [_adjustment(NAVAdjustmentTypeEnum.OTHER, "-10")],
            1,
        )
        assert nav.net_assets == Money("90")

    def test_nav_per_share_rounds_half_even(self):
        nav = NAVEngine().calculate(
            [_component(NAVComponentCategoryEnum.CASH, "10")], [], 3
        )
        assert nav.nav_per_share == Money("3.333333")

    def test_negative_net_assets_are_reported(self):
        nav = NAVEngine().calculate(
            [
                _component(NAVComponentCategoryEnum.CASH, "100"),
                _component(NAVComponentCategoryEnum.LIABILITY, "150"),
            ],
            [],
            10,
        )
        assert nav.net_assets == Money("-50")
        assert nav.nav_per_share == Money("-5")

    @pytest.mark.parametrize("shares", [0, -1, Decimal("0")])
    def test_zero_outstanding_shares(self, components, shares):
        with pytest.raises(ZeroOutstandingShares) as exc_info:
            NAVEngine().calculate(components, [], shares)
        assert isinstance(exc_info.value, CalculationError)

    def test_liabilities_entered_positive(self):
        with pytest.raises(PydanticValidationError):
            _component(NAVComponentCategoryEnum.LIABILITY, "-1")


class TestPeriodChange:
    def test_change_against_previous(self, components, adjustments):
        engine = NAVEngine()
        previous = engine.calculate(
            [_component(NAVComponentCategoryEnum.INVESTMENT, "9000000")],
            [],
            1_000_000,
            as_of_date=date(2023, 1, 1),
        )
        current = engine.calculate(
            components,
            adjustments,
            1_000_000,
            previous_nav=previous,
            as_of_date=date(2024, 1, 1),
        )
        assert current.previous_nav_per_share == Money("9")
        assert current.change_amount == Money("0.7")
        assert current.change_percent == Decimal("0.7") / Decimal("9")
        assert current.period_return == pytest.approx(0.7 / 9, abs=1e-7)

    def test_period_return_with_interim_flows(self):
        engine = NAVEngine()
        result = engine.period_return(
            Money("1000"),
            date(2023, 1, 1),
            Money("1650"),
            date(2024, 1, 1),
            [
                CashFlow.of(date(2023, 1, 1), "-500"),
                CashFlow.of(date(2022, 6, 1), "-999"),  # outside the window
            ],
        )
        assert result == pytest.approx(0.10, abs=1e-7)

    def test_period_must_move_forward(self):
        with pytest.raises(ValidationError):
            NAVEngine().period_return(
                Money("1"), date(2024, 1, 1), Money("1"), date(2024, 1, 1)
            )

    def test_no_period_return_without_dates(self, components):
        engine = NAVEngine()
        previous = engine.calculate(components, [], 1)
        current = engine.calculate(components, [], 1, previous_nav=previous)
        assert current.change_amount == Money.zero()
        assert current.change_percent == Decimal(0)
        assert current.period_return is None

    def test_previous_zero_nav_has_no_percent_change(self):
        engine = NAVEngine()
        previous = engine.calculate([], [], 1)
        current = engine.calculate(
            [_component(NAVComponentCategoryEnum.CASH, "5")], [], 1, previous_nav=previous
        )
        assert current.change_amount == Money("5")
        assert current.change_percent is None
