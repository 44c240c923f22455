"""
Unit tests for rental duration planning
"""
import pytest

from catalog_engine.core.errors import InvalidInputError
from catalog_engine.domain.models.selection import Discount
from catalog_engine.domain.services.rental_plan_svc import (
    combine_rental_options,
    optimal_rental_duration,
    rental_options,
)

WEEKLY_TIER = [Discount(min_days=3, percent=10)]


class TestRentalOptions:

    @pytest.mark.unit
    def test_only_affordable_lengths(self):
        options = rental_options(100, 350, WEEKLY_TIER)
        assert [o.duration for o in options] == [1, 2, 3]
        assert options[2].price == pytest.approx(270)
        assert options[2].discount == 10

    @pytest.mark.unit
    def test_highest_reached_tier_applies(self):
        tiers = [Discount(min_days=2, percent=5), Discount(min_days=4, percent=20)]
        options = rental_options(10, 100, tiers)
        assert options[0].discount == 0
        assert options[1].discount == 5
        assert options[3].discount == 20

    @pytest.mark.unit
    @pytest.mark.parametrize("price", [0, -5])
    def test_non_positive_price_rejected(self, price):
        with pytest.raises(InvalidInputError):
            rental_options(price, 100)

    @pytest.mark.unit
    def test_negative_budget_rejected(self):
        with pytest.raises(InvalidInputError):
            rental_options(10, -1)


class TestOptimalDuration:

    @pytest.mark.unit
    def test_discount_makes_longer_rental_better(self):
        best = optimal_rental_duration(100, 350, WEEKLY_TIER)
        assert best.duration == 3

    @pytest.mark.unit
    def test_shortest_wins_without_discounts(self):
        assert optimal_rental_duration(100, 500).duration == 1

    @pytest.mark.unit
    def test_nothing_affordable(self):
        assert optimal_rental_duration(100, 50) is None


class TestCombineOptions:

    @pytest.mark.unit
    def test_best_combination_within_days(self):
        options = rental_options(100, 350, WEEKLY_TIER)
        plan = combine_rental_options(options, 5)
        assert [o.duration for o in plan.options] == [2, 3]
        assert plan.total_days == 5
        assert plan.total_value == pytest.approx(5.3)
        assert plan.total_price == pytest.approx(470)

    @pytest.mark.unit
    def test_zero_days(self):
        plan = combine_rental_options(rental_options(100, 350), 0)
        assert plan.options == []
        assert plan.total_price == 0

    @pytest.mark.unit
    def test_negative_days_rejected(self):
        with pytest.raises(InvalidInputError):
            combine_rental_options([], -1)
