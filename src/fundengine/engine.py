# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Fund Analysis API

Public entry point that runs every calculator over one fund snapshot, and a
batch runner that does the same for many funds in parallel.

Workflow for one fund (``analyze_fund``):
  1) NAV from components and adjustments (with the period return when the
     previous NAV is dated)
  2) Cohort performance and concentration for each requested dimension
  3) Replay of contributions, completed distributions, and carry payments
     through the waterfall, in date order
  4) Allocation of the pending distribution, if any
  5) Carry accrual snapshot at the as-of date, valuing undistributed
     holdings at NAV
  6) Lookback exposure, when the fund has a lookback provision

Every step is a pure function of the snapshot. ``analyze_funds`` isolates
failures per fund and returns typed outcomes instead of raising.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import Field
from pydantic import ValidationError as PydanticValidationError

from .analytics import (
    CohortAggregator,
    CohortPerformance,
    CohortSummary,
    ConcentrationReport,
    ConcentrationRiskAnalyzer,
    Position,
)
from .core.errors import ConsistencyError, FundEngineError, InvalidDistribution
from .core.primitives import (
    DEFAULT_SETTINGS,
    AccelerationTriggerEnum,
    CashFlow,
    CohortDimensionEnum,
    EngineSettings,
    ErrorFamilyEnum,
    Model,
)
from .fund import (
    CapitalCall,
    CarryAccrual,
    CarryAccrualState,
    CarryTerm,
    DistributionEvent,
    InvestorClass,
    LookbackAssessment,
    LookbackProvision,
    WaterfallAllocation,
    WaterfallCalculator,
    WaterfallTier,
    assess_lookback,
    build_carry_accrual,
    contributions_from_calls,
)
from .utils.money import Money
from .valuation import NAVAdjustment, NAVCalculation, NAVComponent, NAVEngine

logger = logging.getLogger(__name__)

# Same-day ordering: capital arrives before it can be returned, and carry is
# paid only after the distribution that accrued it.
_CONTRIBUTION, _DISTRIBUTION, _CARRY_PAYMENT = 0, 1, 2

_FAMILIES = {family.value: family for family in ErrorFamilyEnum}


# =============================================================================
# INPUT / OUTPUT MODELS
# =============================================================================


class FundSnapshot(Model):
    """Everything the engine needs to know about one fund at one date."""

    fund_id: str
    as_of_date: date
    capital_calls: Tuple[CapitalCall, ...] = Field(default=())
    distributions: Tuple[DistributionEvent, ...] = Field(default=())
    carry_payments: Tuple[CashFlow, ...] = Field(
        default=(), description="Carry actually paid to the GP"
    )
    pending_distribution: Optional[DistributionEvent] = None

    nav_components: Tuple[NAVComponent, ...] = Field(default=())
    nav_adjustments: Tuple[NAVAdjustment, ...] = Field(default=())
    outstanding_shares: Decimal
    previous_nav: Optional[NAVCalculation] = None

    carry_terms: CarryTerm
    tiers: Optional[Tuple[WaterfallTier, ...]] = None
    investor_classes: Tuple[InvestorClass, ...] = Field(default=())
    lookback_provision: Optional[LookbackProvision] = None
    carry_grant_date: Optional[date] = Field(
        default=None, description="Defaults to the first contribution date"
    )
    acceleration_trigger: Optional[AccelerationTriggerEnum] = None
    acceleration_date: Optional[date] = None

    positions: Tuple[Position, ...] = Field(default=())
    cohort_dimensions: Tuple[CohortDimensionEnum, ...] = (
        CohortDimensionEnum.VINTAGE,
        CohortDimensionEnum.SECTOR,
        CohortDimensionEnum.STAGE,
    )
    concentration_dimensions: Tuple[CohortDimensionEnum, ...] = (
        CohortDimensionEnum.COMPANY,
        CohortDimensionEnum.SECTOR,
        CohortDimensionEnum.STAGE,
    )


class FundAnalysis(Model):
    fund_id: str
    as_of_date: date
    nav: NAVCalculation
    cohorts: Dict[CohortDimensionEnum, Tuple[CohortPerformance, ...]]
    cohort_summaries: Dict[CohortDimensionEnum, CohortSummary]
    concentration: Dict[CohortDimensionEnum, ConcentrationReport]
    distribution_allocations: Tuple[WaterfallAllocation, ...]
    pending_allocation: Optional[WaterfallAllocation] = None
    carry_state: CarryAccrualState
    carry_accrual: CarryAccrual
    lookback: Optional[LookbackAssessment] = None


class ErrorInfo(Model):
    family: ErrorFamilyEnum
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class FundAnalysisOutcome(Model):
    """Result of one fund in a batch: exactly one of analysis or error is set."""

    fund_id: str
    analysis: Optional[FundAnalysis] = None
    error: Optional[ErrorInfo] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# =============================================================================
# SINGLE FUND
# =============================================================================


def _investor_flows(
    contributions: Sequence[CashFlow], distributions: Sequence[DistributionEvent]
) -> List[CashFlow]:
    flows = [CashFlow.of(c.flow_date, -c.amount) for c in contributions]
    flows.extend(CashFlow.of(d.event_date, d.net_proceeds) for d in distributions)
    return flows


def _replay_history(
    snapshot: FundSnapshot,
    contributions: Sequence[CashFlow],
    distributions: Sequence[DistributionEvent],
) -> Tuple[List[WaterfallAllocation], CarryAccrualState]:
    calculator = WaterfallCalculator()
    terms = snapshot.carry_terms

    grant_date = snapshot.carry_grant_date
    if grant_date is None:
        grant_date = contributions[0].flow_date if contributions else snapshot.as_of_date
    state = CarryAccrualState.start(grant_date)

    timeline: List[Tuple[date, int, Union[CashFlow, DistributionEvent]]] = []
    timeline.extend((c.flow_date, _CONTRIBUTION, c) for c in contributions)
    timeline.extend((d.event_date, _DISTRIBUTION, d) for d in distributions)
    timeline.extend(
        (p.flow_date, _CARRY_PAYMENT, p)
        for p in snapshot.carry_payments
        if p.flow_date <= snapshot.as_of_date
    )
    timeline.sort(key=lambda item: (item[0], item[1]))

    accelerated = False
    allocations: List[WaterfallAllocation] = []
    for on, kind, item in timeline:
        if (
            not accelerated
            and snapshot.acceleration_trigger is not None
            and (snapshot.acceleration_date is None or on >= snapshot.acceleration_date)
        ):
            state = state.with_acceleration(snapshot.acceleration_trigger)
            accelerated = True

        if kind == _CONTRIBUTION:
            state = state.with_contribution(on, item.amount)
        elif kind == _DISTRIBUTION:
            allocation = calculator.allocate(
                item.net_proceeds,
                state,
                terms,
                snapshot.tiers,
                on,
                snapshot.investor_classes,
            )
            allocations.append(allocation)
            state = allocation.new_state
        else:
            state = calculator.record_carry_distribution(state, item.amount, on, terms)

    if (
        not accelerated
        and snapshot.acceleration_trigger is not None
        and (
            snapshot.acceleration_date is None
            or snapshot.acceleration_date <= snapshot.as_of_date
        )
    ):
        state = state.with_acceleration(snapshot.acceleration_trigger)

    return allocations, state


def analyze_fund(
    snapshot: FundSnapshot, settings: Optional[EngineSettings] = None
) -> FundAnalysis:
    """
    Run the full calculation chain for one fund.

    Events dated after ``snapshot.as_of_date`` are ignored, as are
    distributions that are not completed.

    Raises:
        FundEngineError: Any validation, calculation, or consistency failure.
    """
    settings = settings or DEFAULT_SETTINGS
    as_of = snapshot.as_of_date

    contributions = [
        c for c in contributions_from_calls(snapshot.capital_calls) if c.flow_date <= as_of
    ]
    completed = sorted(
        (d for d in snapshot.distributions if d.is_completed and d.event_date <= as_of),
        key=lambda d: d.event_date,
    )

    # 1) NAV
    period_flows: List[CashFlow] = []
    if snapshot.previous_nav is not None and snapshot.previous_nav.as_of_date is not None:
        opened = snapshot.previous_nav.as_of_date
        period_flows = [
            f
            for f in _investor_flows(contributions, completed)
            if opened < f.flow_date <= as_of
        ]
    nav = NAVEngine(settings).calculate(
        snapshot.nav_components,
        snapshot.nav_adjustments,
        snapshot.outstanding_shares,
        previous_nav=snapshot.previous_nav,
        as_of_date=as_of,
        period_flows=period_flows,
    )

    # 2) Cohorts and concentration
    aggregator = CohortAggregator(settings)
    analyzer = ConcentrationRiskAnalyzer(settings)
    cohorts: Dict[CohortDimensionEnum, Tuple[CohortPerformance, ...]] = {}
    summaries: Dict[CohortDimensionEnum, CohortSummary] = {}
    for dimension in snapshot.cohort_dimensions:
        rows = aggregator.aggregate(snapshot.positions, dimension, as_of)
        cohorts[dimension] = tuple(rows)
        summaries[dimension] = aggregator.summarize(rows)
    concentration = {
        dimension: analyzer.analyze(snapshot.positions, dimension)
        for dimension in snapshot.concentration_dimensions
    }

    # 3) Waterfall history
    allocations, state = _replay_history(snapshot, contributions, completed)

    # 4) Pending distribution
    pending_allocation = None
    pending = snapshot.pending_distribution
    if pending is not None:
        if pending.is_completed:
            raise InvalidDistribution(
                f"Pending distribution on {pending.event_date} is already completed"
            )
        pending_allocation = WaterfallCalculator().allocate(
            pending.net_proceeds,
            state,
            snapshot.carry_terms,
            snapshot.tiers,
            pending.event_date,
            snapshot.investor_classes,
        )

    # 5) Carry accrual
    unrealized = nav.net_assets.max(Money.zero())
    accrual = build_carry_accrual(
        state,
        snapshot.carry_terms,
        as_of,
        unrealized_value=unrealized,
        tiers=snapshot.tiers,
        settings=settings,
    )

    # 6) Lookback
    lookback = None
    if snapshot.lookback_provision is not None:
        lookback = assess_lookback(state, as_of, snapshot.lookback_provision)

    logger.debug(
        f"Fund {snapshot.fund_id} @ {as_of}: NAV/share={nav.nav_per_share} "
        f"accrued carry={accrual.accrued_carry} events={len(allocations)}"
    )

    return FundAnalysis(
        fund_id=snapshot.fund_id,
        as_of_date=as_of,
        nav=nav,
        cohorts=cohorts,
        cohort_summaries=summaries,
        concentration=concentration,
        distribution_allocations=tuple(allocations),
        pending_allocation=pending_allocation,
        carry_state=state,
        carry_accrual=accrual,
        lookback=lookback,
    )


# =============================================================================
# BATCH
# =============================================================================


def _error_info(error: Exception) -> ErrorInfo:
    if isinstance(error, FundEngineError):
        return ErrorInfo(
            family=_FAMILIES.get(error.family, ErrorFamilyEnum.CONSISTENCY),
            code=error.code,
            message=error.message,
            details={k: str(v) for k, v in error.details.items()},
        )
    if isinstance(error, PydanticValidationError):
        return ErrorInfo(
            family=ErrorFamilyEnum.VALIDATION,
            code="invalid_input",
            message=str(error),
            details={"errors": str(error.errors(include_url=False))},
        )
    return ErrorInfo(
        family=ErrorFamilyEnum.CONSISTENCY,
        code="unexpected_error",
        message=f"{type(error).__name__}: {error}",
    )


def _run_one(snapshot: FundSnapshot, settings: EngineSettings) -> FundAnalysisOutcome:
    try:
        analysis = analyze_fund(snapshot, settings)
    except ConsistencyError as e:
        logger.error(
            f"Consistency violation in fund {snapshot.fund_id}: {e.message}; "
            f"snapshot={snapshot.model_dump_json()}"
        )
        return FundAnalysisOutcome(fund_id=snapshot.fund_id, error=_error_info(e))
    except (FundEngineError, PydanticValidationError) as e:
        logger.warning(f"Fund {snapshot.fund_id} skipped: {e}")
        return FundAnalysisOutcome(fund_id=snapshot.fund_id, error=_error_info(e))
    except Exception as e:
        logger.exception(
            f"Unexpected failure in fund {snapshot.fund_id}; "
            f"snapshot={snapshot.model_dump_json()}"
        )
        return FundAnalysisOutcome(fund_id=snapshot.fund_id, error=_error_info(e))
    return FundAnalysisOutcome(fund_id=snapshot.fund_id, analysis=analysis)


def analyze_funds(
    snapshots: Sequence[FundSnapshot],
    settings: Optional[EngineSettings] = None,
    max_workers: Optional[int] = None,
) -> List[FundAnalysisOutcome]:
    """
    Analyze many funds independently; one fund failing never affects another.

    Args:
        snapshots: One snapshot per fund (or per fund and as-of date).
        settings: Engine settings shared by every fund.
        max_workers: Thread pool size; defaults to ``settings.batch.max_workers``.
            0 or 1 runs inline.

    Returns:
        One outcome per snapshot, in input order.
    """
    settings = settings or DEFAULT_SETTINGS
    workers = settings.batch.max_workers if max_workers is None else max_workers

    if workers <= 1 or len(snapshots) <= 1:
        outcomes = [_run_one(s, settings) for s in snapshots]
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(lambda s: _run_one(s, settings), snapshots))

    failed = sum(1 for o in outcomes if not o.ok)
    if failed:
        logger.warning(f"{failed} of {len(outcomes)} fund analyses failed")
    return outcomes


__all__ = [
    "ErrorInfo",
    "FundAnalysis",
    "FundAnalysisOutcome",
    "FundSnapshot",
    "analyze_fund",
    "analyze_funds",
]
