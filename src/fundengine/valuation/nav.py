# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Net Asset Value

Rolls a fund's balance sheet components and valuation adjustments forward
into net assets and NAV per share.

Sign convention:
    - Investment, cash, receivable, and other components add to assets.
    - Liability components subtract from net assets.
    - Adjustments add to assets. Gains and write-ups always raise NAV and
      losses and write-downs always lower it, whatever sign they are
      entered with.

So ``net_assets == total_assets - total_liabilities`` where ``total_assets``
already includes the adjustments.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Optional, Sequence, Union

from pydantic import Field, model_validator

from ..core.calculations import IRRSolver
from ..core.errors import ValidationError, ZeroOutstandingShares
from ..core.primitives import (
    DEFAULT_SETTINGS,
    CashFlow,
    ConfidenceEnum,
    EngineSettings,
    Model,
    NAVAdjustmentTypeEnum,
    NAVComponentCategoryEnum,
    ValuationMethodEnum,
)
from ..utils.money import Money

logger = logging.getLogger(__name__)


class NAVComponent(Model):
    """One balance sheet line. Values are entered as positive amounts
    (liabilities included); only OTHER may be negative."""

    category: NAVComponentCategoryEnum
    value: Money
    description: Optional[str] = None
    valuation_method: ValuationMethodEnum = Field(default=ValuationMethodEnum.FAIR_VALUE)
    last_valuation_date: Optional[date] = None
    confidence: ConfidenceEnum = Field(default=ConfidenceEnum.MEDIUM)

    @model_validator(mode="after")
    def validate_value(self) -> "NAVComponent":
        if (
            self.category is not NAVComponentCategoryEnum.OTHER
            and self.value.is_negative()
        ):
            raise ValueError(
                f"{self.category.value} component value must be >= 0, got {self.value}"
            )
        return self

    @property
    def signed_value(self) -> Money:
        """Contribution to net assets."""
        return -self.value if self.category.is_liability else self.value


class NAVAdjustment(Model):
    type: NAVAdjustmentTypeEnum
    amount: Money
    justification: str = ""
    description: Optional[str] = None

    @property
    def signed_amount(self) -> Money:
        direction = self.type.direction
        if direction > 0:
            return abs(self.amount)
        if direction < 0:
            return -abs(self.amount)
        return self.amount


class NAVCalculation(Model):
    """
    NAV result.

    ``change_percent`` is a signed fraction (0.05 = +5%) against the previous
    NAV per share; it is None without a previous calculation or when the
    previous NAV per share was zero. ``period_return`` is the money-weighted
    return since the previous calculation, when one could be computed.
    """

    as_of_date: Optional[date] = None
    total_assets: Money
    total_liabilities: Money
    total_adjustments: Money
    net_assets: Money
    outstanding_shares: Decimal
    nav_per_share: Money
    assets_by_category: Dict[NAVComponentCategoryEnum, Money] = Field(default_factory=dict)
    previous_nav_per_share: Optional[Money] = None
    change_amount: Optional[Money] = None
    change_percent: Optional[Decimal] = None
    period_return: Optional[float] = None


class NAVEngine:
    """Stateless NAV calculator."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or DEFAULT_SETTINGS

    def calculate(
        self,
        components: Sequence[NAVComponent],
        adjustments: Sequence[NAVAdjustment],
        outstanding_shares: Union[int, Decimal],
        previous_nav: Optional[NAVCalculation] = None,
        as_of_date: Optional[date] = None,
        period_flows: Sequence[CashFlow] = (),
    ) -> NAVCalculation:
        """
        Calculate NAV and NAV per share.

        Args:
            components: Balance sheet lines.
            adjustments: Valuation adjustments, applied additively.
            outstanding_shares: Units outstanding (> 0).
            previous_nav: Prior calculation for period-over-period change.
            as_of_date: Valuation date.
            period_flows: Investor flows between ``previous_nav`` and
                ``as_of_date`` (negative = paid in), used for the period return.

        Raises:
            ZeroOutstandingShares: ``outstanding_shares <= 0``.
        """
        shares = Decimal(outstanding_shares)
        if shares <= 0:
            raise ZeroOutstandingShares(
                f"Outstanding shares must be > 0, got {outstanding_shares}"
            )

        by_category: Dict[NAVComponentCategoryEnum, Money] = {}
        for component in components:
            by_category[component.category] = (
                by_category.get(component.category, Money.zero()) + component.value
            )

        total_liabilities = by_category.get(
            NAVComponentCategoryEnum.LIABILITY, Money.zero()
        )
        component_assets = Money.total(
            value for category, value in by_category.items() if not category.is_liability
        )
        total_adjustments = Money.total(a.signed_amount for a in adjustments)
        total_assets = component_assets + total_adjustments
        net_assets = total_assets - total_liabilities
        nav_per_share = net_assets.div(shares)

        previous_ps = None
        change_amount = None
        change_percent = None
        period_return = None
        if previous_nav is not None:
            previous_ps = previous_nav.nav_per_share
            change_amount = nav_per_share - previous_ps
            if not previous_ps.is_zero():
                change_percent = change_amount.ratio(previous_ps)
            if previous_nav.as_of_date is not None and as_of_date is not None:
                period_return = self.period_return(
                    previous_nav.net_assets,
                    previous_nav.as_of_date,
                    net_assets,
                    as_of_date,
                    period_flows,
                )

        logger.debug(
            f"NAV {as_of_date or ''}: assets={total_assets} liabilities={total_liabilities} "
            f"net={net_assets} per_share={nav_per_share}"
        )

        return NAVCalculation(
            as_of_date=as_of_date,
            total_assets=total_assets,
            total_liabilities=total_liabilities,
            total_adjustments=total_adjustments,
            net_assets=net_assets,
            outstanding_shares=shares,
            nav_per_share=nav_per_share,
            assets_by_category=by_category,
            previous_nav_per_share=previous_ps,
            change_amount=change_amount,
            change_percent=change_percent,
            period_return=period_return,
        )

    def period_return(
        self,
        opening_value: Money,
        opening_date: date,
        closing_value: Money,
        closing_date: date,
        flows: Sequence[CashFlow] = (),
    ) -> Optional[float]:
        """
        Money-weighted annualized return over a period, or None (N/A).

        The opening NAV is treated as an investment, the closing NAV as a
        receipt, and interim investor flows keep their sign.
        """
        if closing_date <= opening_date:
            raise ValidationError(
                f"Closing date {closing_date} must follow opening date {opening_date}"
            )
        series = [CashFlow.of(opening_date, -opening_value)]
        series.extend(f for f in flows if opening_date <= f.flow_date <= closing_date)
        series.append(CashFlow.of(closing_date, closing_value))
        return IRRSolver(self.settings.irr).try_solve(series)


__all__ = [
    "NAVAdjustment",
    "NAVCalculation",
    "NAVComponent",
    "NAVEngine",
]
