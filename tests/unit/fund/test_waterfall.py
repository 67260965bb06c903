# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall Calculator Unit Tests

Test Coverage:
1. Four-tier European allocation against a hand-computed $10M fund
2. Catch-up cap diverting the excess to the residual split
3. Conservation and strict tier ordering across many amounts
4. Custom tiers with a third-party share
5. Carry payments, vesting, and overdraw protection
6. Replay of an event sequence
7. American and blended models
8. Investor class pro-rata shares
"""

from datetime import date
from decimal import Decimal

import pytest

from fundengine.core.errors import (
    CarryOverdraw,
    InvalidDistribution,
    NegativeContribution,
    TierRangeOverlap,
    ValidationError,
)
from fundengine.core.primitives import (
    AccelerationTriggerEnum,
    CashFlow,
    InvestorTypeEnum,
    TierKindEnum,
    WaterfallModelEnum,
)
from fundengine.fund import (
    CarryAccrualState,
    GradedVesting,
    InvestorClass,
    WaterfallCalculator,
    WaterfallTier,
    replay,
    standard_tiers,
)
from fundengine.utils.money import Money
from tests.conftest import create_carry_terms, create_state

CENT = Money("0.01")


@pytest.fixture
def calculator():
    return WaterfallCalculator()


@pytest.fixture
def partially_returned_state(calculator, funded_state, standard_terms):
    """$10M contributed and $8M returned on 2021-01-01."""
    return calculator.allocate(
        Money("8000000"), funded_state, standard_terms, distribution_date=date(2021, 1, 1)
    ).new_state


def _tier(allocation, kind):
    return next(t for t in allocation.tier_allocations if t.kind is kind)


class TestFourTierAllocation:
    def test_first_distribution_is_return_of_capital(self, partially_returned_state):
        state = partially_returned_state
        assert state.return_of_capital_paid == Money("8000000")
        assert state.cumulative_distributed == Money("8000000")
        assert state.accrued_carry == Money.zero()
        assert state.last_event_date == date(2021, 1, 1)

    def test_hand_computed_split(self, calculator, partially_returned_state, standard_terms):
        allocation = calculator.allocate(
            Money("3000000"),
            partially_returned_state,
            standard_terms,
            distribution_date=date(2022, 1, 1),
        )

        roc = _tier(allocation, TierKindEnum.RETURN_OF_CAPITAL)
        pref = _tier(allocation, TierKindEnum.PREFERRED_RETURN)
        catchup = _tier(allocation, TierKindEnum.CATCH_UP)
        residual = _tier(allocation, TierKindEnum.RESIDUAL)

        assert roc.lp_amount == Money("2000000")
        assert roc.exhausted
        assert abs(pref.lp_amount - Money("160000")) <= CENT
        assert abs(catchup.gp_amount - Money("40000")) <= CENT
        assert catchup.lp_amount == Money.zero()
        assert abs(residual.lp_amount - Money("640000")) <= CENT
        assert abs(residual.gp_amount - Money("160000")) <= CENT

        assert abs(allocation.lp_amount - Money("2800000")) <= CENT
        assert abs(allocation.gp_amount - Money("200000")) <= CENT
        assert allocation.lp_amount + allocation.gp_amount == Money("3000000")
        assert allocation.third_party_amount == Money.zero()
        assert not allocation.catchup_capped

    def test_gp_reaches_carry_share_of_profit(
        self, calculator, partially_returned_state, standard_terms
    ):
        state = calculator.allocate(
            Money("3000000"),
            partially_returned_state,
            standard_terms,
            distribution_date=date(2022, 1, 1),
        ).new_state
        profit = state.lp_profit_paid + state.accrued_carry
        assert abs(profit - Money("1000000")) <= CENT
        assert abs(state.accrued_carry - profit.mul(Decimal("0.2"))) <= CENT
        assert state.vested_carry == state.accrued_carry
        assert state.distributed_carry == Money.zero()

    def test_catchup_cap_diverts_excess(self, calculator, partially_returned_state):
        terms = create_carry_terms(catchup_cap=Money("10000"))
        allocation = calculator.allocate(
            Money("3000000"),
            partially_returned_state,
            terms,
            distribution_date=date(2022, 1, 1),
        )
        catchup = _tier(allocation, TierKindEnum.CATCH_UP)
        residual = _tier(allocation, TierKindEnum.RESIDUAL)

        assert allocation.catchup_capped
        assert catchup.gp_amount == Money("10000")
        assert abs(residual.total_amount - Money("830000")) <= CENT
        assert abs(residual.gp_amount - Money("166000")) <= CENT
        assert allocation.new_state.catchup_paid == Money("10000")

    def test_no_catchup_terms(self, calculator, partially_returned_state):
        terms = create_carry_terms(catchup_pct="0")
        allocation = calculator.allocate(
            Money("3000000"),
            partially_returned_state,
            terms,
            distribution_date=date(2022, 1, 1),
        )
        residual = _tier(allocation, TierKindEnum.RESIDUAL)
        # 840,000 left after ROC and pref, split 80/20
        assert abs(residual.gp_amount - Money("168000")) <= CENT
        assert allocation.gp_amount == residual.gp_amount

    def test_amount_exactly_filling_return_of_capital(
        self, calculator, funded_state, standard_terms
    ):
        allocation = calculator.allocate(
            Money("10000000"),
            funded_state,
            standard_terms,
            distribution_date=date(2022, 1, 1),
        )
        roc = _tier(allocation, TierKindEnum.RETURN_OF_CAPITAL)
        pref = _tier(allocation, TierKindEnum.PREFERRED_RETURN)
        assert roc.total_amount == Money("10000000")
        assert roc.exhausted
        assert pref.total_amount == Money.zero()
        assert not pref.exhausted
        assert allocation.gp_amount == Money.zero()

    def test_zero_distribution(self, calculator, funded_state, standard_terms):
        allocation = calculator.allocate(Money.zero(), funded_state, standard_terms)
        assert allocation.lp_amount == Money.zero()
        assert allocation.gp_amount == Money.zero()
        assert allocation.distribution_date == funded_state.grant_date


class TestInvariants:
    @pytest.mark.parametrize(
        "amount",
        ["0.000001", "1", "999999.999999", "10000000", "10800000", "12345678.901234", "50000000"],
    )
    def test_conservation_and_tier_order(
        self, calculator, funded_state, standard_terms, amount
    ):
        allocation = calculator.allocate(
            Money(amount), funded_state, standard_terms, distribution_date=date(2023, 6, 30)
        )
        assert (
            allocation.lp_amount + allocation.gp_amount + allocation.third_party_amount
            == Money(amount)
        )
        tiers = allocation.tier_allocations
        for earlier, later in zip(tiers[:-1], tiers[1:]):
            if later.total_amount.is_positive():
                assert earlier.exhausted

    def test_same_input_same_output(self, calculator, funded_state, standard_terms):
        first = calculator.allocate(
            Money("15000000"), funded_state, standard_terms, distribution_date=date(2023, 1, 1)
        )
        second = calculator.allocate(
            Money("15000000"), funded_state, standard_terms, distribution_date=date(2023, 1, 1)
        )
        assert first == second

    def test_prior_state_is_untouched(self, calculator, funded_state, standard_terms):
        before = funded_state.model_dump()
        calculator.allocate(
            Money("15000000"), funded_state, standard_terms, distribution_date=date(2023, 1, 1)
        )
        assert funded_state.model_dump() == before

    def test_allocation_never_pays_carry(self, calculator, funded_state, standard_terms):
        state = calculator.allocate(
            Money("30000000"), funded_state, standard_terms, distribution_date=date(2023, 1, 1)
        ).new_state
        assert state.accrued_carry.is_positive()
        assert state.distributed_carry == Money.zero()


class TestInvalidInput:
    def test_negative_distribution(self, calculator, funded_state, standard_terms):
        with pytest.raises(InvalidDistribution):
            calculator.allocate(Money("-1"), funded_state, standard_terms)

    def test_backdated_distribution(self, calculator, partially_returned_state, standard_terms):
        with pytest.raises(InvalidDistribution):
            calculator.allocate(
                Money("1"),
                partially_returned_state,
                standard_terms,
                distribution_date=date(2020, 12, 31),
            )

    def test_negative_contribution(self):
        with pytest.raises(NegativeContribution):
            create_state(contributions=((date(2021, 1, 1), "-5"),))
        with pytest.raises(NegativeContribution):
            create_state().with_contribution(date(2021, 2, 1), Money("-1"))

    def test_tiers_must_absorb_everything(self, calculator, funded_state, standard_terms):
        bounded = [
            WaterfallTier(
                tier_index=1,
                name="Only",
                lp_allocation_pct=Decimal("1"),
                gp_allocation_pct=Decimal("0"),
                range_end=Money("1000000"),
            )
        ]
        with pytest.raises(ValidationError):
            calculator.allocate(Money("2000000"), funded_state, standard_terms, bounded)


class TestCustomTiers:
    @pytest.fixture
    def third_party_tiers(self):
        return [
            WaterfallTier(
                tier_index=1,
                name="Senior",
                lp_allocation_pct=Decimal("0.9"),
                gp_allocation_pct=Decimal("0.05"),
                range_end=Money("1000000"),
            ),
            WaterfallTier(
                tier_index=2,
                name="Remainder",
                lp_allocation_pct=Decimal("0.8"),
                gp_allocation_pct=Decimal("0.2"),
                range_start=Money("1000000"),
            ),
        ]

    def test_third_party_share_is_reported(
        self, calculator, funded_state, standard_terms, third_party_tiers
    ):
        allocation = calculator.allocate(
            Money("1500000"), funded_state, standard_terms, third_party_tiers
        )
        assert allocation.lp_amount == Money("1300000")
        assert allocation.gp_amount == Money("150000")
        assert allocation.third_party_amount == Money("50000")
        assert allocation.new_state.third_party_paid == Money("50000")
        assert allocation.new_state.cumulative_distributed == Money("1500000")

    def test_ranges_are_cumulative_across_events(
        self, calculator, funded_state, standard_terms, third_party_tiers
    ):
        first = calculator.allocate(
            Money("600000"), funded_state, standard_terms, third_party_tiers
        )
        second = calculator.allocate(
            Money("600000"), first.new_state, standard_terms, third_party_tiers
        )
        senior, remainder = second.tier_allocations
        assert senior.total_amount == Money("400000")
        assert remainder.total_amount == Money("200000")

    def test_ranges_must_start_at_zero(self, calculator, funded_state, standard_terms):
        tiers = [
            WaterfallTier(
                tier_index=1,
                name="A",
                lp_allocation_pct=Decimal("1"),
                gp_allocation_pct=Decimal("0"),
                range_start=Money("1000000"),
                range_end=Money("2000000"),
            ),
            WaterfallTier(
                tier_index=2,
                name="B",
                lp_allocation_pct=Decimal("0.8"),
                gp_allocation_pct=Decimal("0.2"),
                range_start=Money("2000000"),
            ),
        ]
        with pytest.raises(TierRangeOverlap):
            calculator.allocate(Money("1500000"), funded_state, standard_terms, tiers)

    @staticmethod
    def _capital_then_split(start):
        return [
            WaterfallTier(
                tier_index=1,
                name="Return of Capital",
                kind=TierKindEnum.RETURN_OF_CAPITAL,
                lp_allocation_pct=Decimal("1"),
                gp_allocation_pct=Decimal("0"),
            ),
            WaterfallTier(
                tier_index=2,
                name="Split",
                lp_allocation_pct=Decimal("0.8"),
                gp_allocation_pct=Decimal("0.2"),
                range_start=Money(start),
            ),
        ]

    def test_custom_tier_opens_at_its_range_start(
        self, calculator, funded_state, standard_terms
    ):
        allocation = calculator.allocate(
            Money("11000000"),
            funded_state,
            standard_terms,
            self._capital_then_split("10000000"),
        )
        capital, split = allocation.tier_allocations
        assert capital.total_amount == Money("10000000")
        assert split.total_amount == Money("1000000")
        assert split.gp_amount == Money("200000")

    def test_custom_tier_gets_nothing_below_its_range_start(
        self, calculator, funded_state, standard_terms
    ):
        # Return of capital stops at 10M, short of the split's 12M start
        with pytest.raises(ValidationError):
            calculator.allocate(
                Money("11000000"),
                funded_state,
                standard_terms,
                self._capital_then_split("12000000"),
            )


class TestCarryPayments:
    @pytest.fixture
    def profitable_state(self, calculator, funded_state, standard_terms):
        return calculator.allocate(
            Money("20000000"), funded_state, standard_terms, distribution_date=date(2022, 1, 1)
        ).new_state

    def test_record_moves_distributed_carry(
        self, calculator, profitable_state, standard_terms
    ):
        paid = profitable_state.vested_carry.div(2)
        state = calculator.record_carry_distribution(
            profitable_state, paid, date(2022, 2, 1), standard_terms
        )
        assert state.distributed_carry == paid
        assert state.remaining_carry == profitable_state.vested_carry - paid
        assert state.carry_payments == (CashFlow.of(date(2022, 2, 1), paid),)
        assert state.last_event_date == date(2022, 2, 1)

    def test_overdraw_rejected(self, calculator, profitable_state, standard_terms):
        with pytest.raises(CarryOverdraw):
            calculator.record_carry_distribution(
                profitable_state,
                profitable_state.vested_carry + Money("0.000001"),
                date(2022, 2, 1),
                standard_terms,
            )

    def test_non_positive_payment_rejected(
        self, calculator, profitable_state, standard_terms
    ):
        with pytest.raises(InvalidDistribution):
            calculator.record_carry_distribution(
                profitable_state, Money.zero(), date(2022, 2, 1), standard_terms
            )

    def test_graded_vesting_limits_payments(self, calculator, funded_state, graded_terms):
        state = calculator.allocate(
            Money("20000000"), funded_state, graded_terms, distribution_date=date(2022, 1, 1)
        ).new_state
        # 12 months after grant: still at the cliff
        assert state.vested_carry == Money.zero()
        with pytest.raises(CarryOverdraw):
            calculator.record_carry_distribution(
                state, Money("1"), date(2022, 1, 1), graded_terms
            )

        vested = WaterfallCalculator.vested_carry_at(state, graded_terms, date(2023, 1, 1))
        assert vested == state.accrued_carry.mul(Decimal(12) / Decimal(36))
        paid = calculator.record_carry_distribution(
            state, vested, date(2023, 1, 1), graded_terms
        )
        assert paid.vested_carry == vested
        assert paid.remaining_carry == Money.zero()

    def test_acceleration_vests_everything(self, calculator, funded_state):
        terms = create_carry_terms(
            vesting_schedule=GradedVesting(
                cliff_months=12,
                total_months=48,
                acceleration_triggers=frozenset({AccelerationTriggerEnum.EXIT}),
            )
        )
        state = calculator.allocate(
            Money("20000000"),
            funded_state.with_acceleration(AccelerationTriggerEnum.EXIT),
            terms,
            distribution_date=date(2021, 6, 1),
        ).new_state
        assert state.vested_carry == state.accrued_carry
        assert state.unvested_carry == Money.zero()

    def test_vested_carry_never_decreases(self, calculator, profitable_state, graded_terms):
        later = WaterfallCalculator.vested_carry_at(
            profitable_state, graded_terms, date(2021, 6, 1)
        )
        assert later == profitable_state.vested_carry


class TestReplay:
    def test_replay_matches_sequential_allocation(
        self, calculator, funded_state, standard_terms
    ):
        events = [
            (date(2023, 1, 1), Money("9000000")),
            (date(2022, 1, 1), Money("4000000")),
        ]
        allocations, final = replay(events, funded_state, standard_terms)

        first = calculator.allocate(
            Money("4000000"), funded_state, standard_terms, distribution_date=date(2022, 1, 1)
        )
        second = calculator.allocate(
            Money("9000000"), first.new_state, standard_terms, distribution_date=date(2023, 1, 1)
        )
        assert [a.distribution_date for a in allocations] == [date(2022, 1, 1), date(2023, 1, 1)]
        assert allocations[1] == second
        assert final == second.new_state
        assert final.cumulative_distributed == Money("13000000")

    def test_replay_with_explicit_tiers(self, funded_state, standard_terms):
        tiers = standard_tiers(standard_terms)
        _, with_tiers = replay([(date(2022, 1, 1), Money("1"))], funded_state, standard_terms, tiers)
        _, without = replay([(date(2022, 1, 1), Money("1"))], funded_state, standard_terms)
        assert with_tiers == without

class TestWaterfallModels:
    def _allocate(self, calculator, state, terms):
        return calculator.allocate(
            Money("3000000"), state, terms, distribution_date=date(2022, 1, 1)
        )

    def test_european_is_the_default(
        self, calculator, partially_returned_state, standard_terms
    ):
        allocation = self._allocate(calculator, partially_returned_state, standard_terms)
        assert allocation.waterfall_model is WaterfallModelEnum.EUROPEAN

    def test_american_skips_catchup(self, calculator, partially_returned_state):
        terms = create_carry_terms(waterfall_model=WaterfallModelEnum.AMERICAN)
        allocation = self._allocate(calculator, partially_returned_state, terms)

        roc = _tier(allocation, TierKindEnum.RETURN_OF_CAPITAL)
        pref = _tier(allocation, TierKindEnum.PREFERRED_RETURN)
        catchup = _tier(allocation, TierKindEnum.CATCH_UP)
        residual = _tier(allocation, TierKindEnum.RESIDUAL)

        assert allocation.waterfall_model is WaterfallModelEnum.AMERICAN
        assert roc.lp_amount == Money("2000000")
        assert abs(pref.lp_amount - Money("160000")) <= CENT
        assert catchup.total_amount == Money.zero()
        # 840,000 after ROC and pref, split 80/20 with no catch-up
        assert abs(residual.lp_amount - Money("672000")) <= CENT
        assert abs(residual.gp_amount - Money("168000")) <= CENT
        assert allocation.lp_amount + allocation.gp_amount == Money("3000000")
        assert allocation.new_state.catchup_paid == Money.zero()

    def test_blended_weights_both_models(self, calculator, partially_returned_state):
        terms = create_carry_terms(waterfall_model=WaterfallModelEnum.BLENDED)
        allocation = self._allocate(calculator, partially_returned_state, terms)

        catchup = _tier(allocation, TierKindEnum.CATCH_UP)
        residual = _tier(allocation, TierKindEnum.RESIDUAL)

        # Halfway between European (40k + 160k) and American (0 + 168k)
        assert abs(catchup.gp_amount - Money("20000")) <= CENT
        assert abs(residual.gp_amount - Money("164000")) <= CENT
        assert abs(allocation.gp_amount - Money("184000")) <= CENT
        assert allocation.lp_amount + allocation.gp_amount == Money("3000000")
        assert allocation.new_state.accrued_carry == allocation.gp_amount
        assert allocation.new_state.cumulative_distributed == Money("11000000")

    def test_blend_weight_of_one_matches_european(
        self, calculator, partially_returned_state, standard_terms
    ):
        terms = create_carry_terms(
            waterfall_model=WaterfallModelEnum.BLENDED, blend_european_weight="1"
        )
        blended = self._allocate(calculator, partially_returned_state, terms)
        european = self._allocate(calculator, partially_returned_state, standard_terms)
        assert blended.gp_amount == european.gp_amount
        assert [t.total_amount for t in blended.tier_allocations] == [
            t.total_amount for t in european.tier_allocations
        ]

    @pytest.mark.parametrize("amount", ["0.000001", "0.000003", "12345678.901234"])
    def test_blended_conserves_value(self, calculator, funded_state, amount):
        terms = create_carry_terms(
            waterfall_model=WaterfallModelEnum.BLENDED, blend_european_weight="0.3"
        )
        allocation = calculator.allocate(
            Money(amount), funded_state, terms, distribution_date=date(2023, 6, 30)
        )
        assert allocation.lp_amount + allocation.gp_amount == Money(amount)
        assert all(
            not t.lp_amount.is_negative() and not t.gp_amount.is_negative()
            for t in allocation.tier_allocations
        )


class TestInvestorClasses:
    @pytest.fixture
    def classes(self):
        return [
            InvestorClass(
                name="Main LP",
                ownership_pct=Decimal("0.6"),
                commitment=Money("6000000"),
                capital_called=Money("5000000"),
            ),
            InvestorClass(
                name="Parallel LP",
                ownership_pct=Decimal("0.4"),
                commitment=Money("4000000"),
                capital_called=Money("5000000"),
            ),
            InvestorClass(
                name="Sponsor",
                investor_type=InvestorTypeEnum.GP,
                ownership_pct=Decimal("1"),
            ),
        ]

    def test_sides_split_pro_rata(
        self, calculator, partially_returned_state, standard_terms, classes
    ):
        allocation = calculator.allocate(
            Money("3000000"),
            partially_returned_state,
            standard_terms,
            distribution_date=date(2022, 1, 1),
            investor_classes=classes,
        )
        main, parallel, sponsor = allocation.class_results

        assert main.tier_amounts[1] == Money("1200000")
        assert parallel.tier_amounts[1] == Money("800000")
        assert abs(main.distributed - Money("1680000")) <= CENT
        assert abs(parallel.distributed - Money("1120000")) <= CENT
        assert sponsor.carry == allocation.gp_amount
        assert main.carry == Money.zero()

        for tier in allocation.tier_allocations:
            index = tier.tier_index
            assert main.tier_amounts[index] + parallel.tier_amounts[index] == tier.lp_amount
            assert sponsor.tier_amounts[index] == tier.gp_amount

    def test_invested_basis_follows_model(
        self, calculator, partially_returned_state, standard_terms, classes
    ):
        european = calculator.allocate(
            Money("3000000"),
            partially_returned_state,
            standard_terms,
            distribution_date=date(2022, 1, 1),
            investor_classes=classes,
        )
        american = calculator.allocate(
            Money("3000000"),
            partially_returned_state,
            create_carry_terms(waterfall_model=WaterfallModelEnum.AMERICAN),
            distribution_date=date(2022, 1, 1),
            investor_classes=classes,
        )
        assert european.class_results[0].invested == Money("6000000")
        assert american.class_results[0].invested == Money("5000000")
        assert european.class_results[0].multiple == (
            european.class_results[0].distributed.ratio(Money("6000000"))
        )
        # No capital behind the sponsor class
        assert european.class_results[2].multiple is None

    def test_weights_are_normalized_and_conserve(self, calculator, funded_state, standard_terms):
        classes = [
            InvestorClass(name=name, ownership_pct=Decimal("0.1"))
            for name in ("A", "B", "C")
        ]
        classes.append(
            InvestorClass(
                name="GP", investor_type=InvestorTypeEnum.GP, ownership_pct=Decimal("1")
            )
        )
        allocation = calculator.allocate(
            Money("10000000.000001"),
            funded_state,
            standard_terms,
            distribution_date=date(2022, 1, 1),
            investor_classes=classes,
        )
        parts = [r.distributed for r in allocation.class_results]
        assert Money.total(parts) == Money("10000000.000001")
        assert abs(parts[0] - Money("3333333.333333")) <= Money("0.000001")

    def test_zero_share_class_receives_nothing(self, calculator, funded_state, standard_terms):
        classes = [
            InvestorClass(name="Active", ownership_pct=Decimal("1")),
            InvestorClass(name="Dormant", ownership_pct=Decimal("0")),
        ]
        allocation = calculator.allocate(
            Money("5000000"), funded_state, standard_terms, investor_classes=classes
        )
        active, dormant = allocation.class_results
        assert active.distributed == Money("5000000")
        assert dormant.distributed == Money.zero()

    def test_side_without_class_rejected(self, calculator, funded_state, standard_terms):
        lp_only = [InvestorClass(name="LP", ownership_pct=Decimal("1"))]
        # 20M reaches the profit tiers, so the GP side is paid
        with pytest.raises(ValidationError):
            calculator.allocate(
                Money("20000000"),
                funded_state,
                standard_terms,
                distribution_date=date(2022, 1, 1),
                investor_classes=lp_only,
            )

    def test_duplicate_class_names_rejected(self, calculator, funded_state, standard_terms):
        classes = [
            InvestorClass(name="LP", ownership_pct=Decimal("0.5")),
            InvestorClass(name="LP", ownership_pct=Decimal("0.5")),
        ]
        with pytest.raises(ValidationError):
            calculator.allocate(
                Money("1000"), funded_state, standard_terms, investor_classes=classes
            )

    def test_no_classes_no_results(self, calculator, funded_state, standard_terms):
        allocation = calculator.allocate(Money("1000"), funded_state, standard_terms)
        assert allocation.class_results == ()

    def test_replay_passes_classes(self, funded_state, standard_terms, classes):
        allocations, _ = replay(
            [(date(2022, 1, 1), Money("4000000"))],
            funded_state,
            standard_terms,
            investor_classes=classes,
        )
        assert [r.class_name for r in allocations[0].class_results] == [
            "Main LP",
            "Parallel LP",
            "Sponsor",
        ]



def test_state_totals():
    state = CarryAccrualState.start(
        date(2021, 1, 1),
        [CashFlow.of(date(2021, 1, 1), "100"), CashFlow.of(date(2021, 6, 1), "50")],
    )
    assert state.total_contributions == Money("150")
    assert state.unreturned_capital == Money("150")
    assert state.with_contribution(date(2021, 7, 1), Money.zero()) is state
