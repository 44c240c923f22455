"""
Unit tests for comparators and the two sorting algorithms
"""
import math
import random

import pytest

from catalog_engine.core.errors import InvalidInputError
from catalog_engine.domain.services.comparators import (
    by_field,
    by_key,
    by_popularity,
    chain,
    descending,
    ensure_comparator,
    ordered,
    popularity_score,
)
from catalog_engine.domain.services.sorting import (
    chunked_merge_sort,
    partition_sort,
    partition_sort_in_place,
    price_range,
    stable_sort,
)


@pytest.fixture
def priced_rows():
    rng = random.Random(42)
    # few distinct prices so ties are common
    return [{"price": rng.randint(0, 9), "pos": i} for i in range(200)]


def _ids(items):
    return [it.item_id for it in items]


class TestComparators:

    @pytest.mark.unit
    def test_missing_fields_compare_as_zero(self):
        cmp = by_field("rating")
        assert cmp({"rating": None}, {"rating": 0}) == 0
        assert cmp({}, {"rating": 2}) < 0

    @pytest.mark.unit
    def test_descending_flips_sign(self):
        cmp = descending(by_field("price"))
        assert cmp({"price": 1}, {"price": 2}) > 0

    @pytest.mark.unit
    def test_chain_falls_through_ties(self):
        cmp = chain(descending(by_field("rating")), by_field("price"))
        a = {"rating": 4, "price": 80}
        b = {"rating": 4, "price": 50}
        assert cmp(a, b) > 0

    @pytest.mark.unit
    def test_unknown_order_rejected(self):
        with pytest.raises(InvalidInputError):
            ordered(by_field("price"), "sideways")

    @pytest.mark.unit
    def test_non_callable_rejected(self):
        with pytest.raises(InvalidInputError):
            ensure_comparator("price")
        with pytest.raises(InvalidInputError):
            stable_sort([1, 2], None)

    @pytest.mark.unit
    def test_popularity_defaults(self):
        assert popularity_score({"rating": 4, "rental_count": 10}) == 40.0
        assert popularity_score({}) == 3.0
        assert popularity_score({"rating": 0, "rental_count": 0}) == 3.0
        assert popularity_score({}, default_rating=2, default_rental_count=5) == 10.0

    @pytest.mark.unit
    def test_popularity_defaults_from_settings(self, monkeypatch):
        from catalog_engine.core.config import get_settings

        monkeypatch.setenv("popular_default_rating", "1.5")
        get_settings.cache_clear()
        assert popularity_score({"rental_count": 2}) == 3.0

    @pytest.mark.unit
    def test_by_popularity_ranks_higher_score_first(self):
        cmp = by_popularity()
        assert cmp({"rating": 5, "rental_count": 2}, {"rating": 4, "rental_count": 2}) > 0


class TestStableSort:

    @pytest.mark.unit
    def test_scenario_by_price(self, catalog_items):
        assert _ids(stable_sort(catalog_items, by_field("price"))) == ["2", "3", "1"]

    @pytest.mark.unit
    def test_matches_builtin_stable_sort(self, priced_rows):
        result = stable_sort(priced_rows, by_field("price"))
        assert result == sorted(priced_rows, key=lambda r: r["price"])

    @pytest.mark.unit
    def test_equal_items_keep_input_order(self, priced_rows):
        result = stable_sort(priced_rows, descending(by_field("price")))
        for a, b in zip(result, result[1:]):
            assert a["price"] >= b["price"]
            if a["price"] == b["price"]:
                assert a["pos"] < b["pos"]

    @pytest.mark.unit
    def test_input_not_mutated(self, priced_rows):
        before = list(priced_rows)
        stable_sort(priced_rows, by_field("price"))
        assert priced_rows == before

    @pytest.mark.unit
    def test_empty_and_single(self):
        assert stable_sort([], by_field("price")) == []
        assert stable_sort([{"price": 1}], by_field("price")) == [{"price": 1}]

    @pytest.mark.unit
    def test_nan_comparator_result_rejected(self):
        with pytest.raises(InvalidInputError):
            stable_sort([1, 2, 3], lambda a, b: math.nan)

    @pytest.mark.unit
    def test_non_numeric_comparator_result_rejected(self):
        with pytest.raises(InvalidInputError):
            stable_sort([1, 2, 3], lambda a, b: "less")

    @pytest.mark.unit
    def test_chunked_matches_stable(self, priced_rows):
        cmp = by_field("price")
        assert chunked_merge_sort(priced_rows, cmp, chunk_size=7) == stable_sort(priced_rows, cmp)

    @pytest.mark.unit
    def test_chunk_size_must_be_positive(self):
        with pytest.raises(InvalidInputError):
            chunked_merge_sort([1], by_key(lambda x: x), chunk_size=0)


class TestPartitionSort:

    @pytest.mark.unit
    def test_is_ordered_permutation(self, priced_rows):
        result = partition_sort(priced_rows, by_field("price"))
        assert sorted(result, key=lambda r: r["pos"]) == priced_rows
        assert all(a["price"] <= b["price"] for a, b in zip(result, result[1:]))

    @pytest.mark.unit
    def test_input_not_mutated(self, priced_rows):
        before = list(priced_rows)
        partition_sort(priced_rows, by_field("price"))
        assert priced_rows == before

    @pytest.mark.unit
    def test_in_place(self):
        rng = random.Random(7)
        values = [rng.random() for _ in range(500)]
        expected = sorted(values, reverse=True)
        partition_sort_in_place(values, descending(by_key(lambda x: x)))
        assert values == expected

    @pytest.mark.unit
    def test_already_sorted_large_input(self):
        # median-of-three keeps this away from the quadratic case
        values = list(range(5000))
        assert partition_sort(values, by_key(lambda x: x)) == values


class TestPriceRange:

    @pytest.mark.unit
    def test_inclusive_bounds(self, catalog_items):
        by_price = stable_sort(catalog_items, by_field("price"))
        assert _ids(price_range(by_price, 50, 80)) == ["2", "3"]

    @pytest.mark.unit
    def test_empty_when_inverted(self, catalog_items):
        by_price = stable_sort(catalog_items, by_field("price"))
        assert price_range(by_price, 90, 60) == []

    @pytest.mark.unit
    def test_negative_bound_rejected(self, catalog_items):
        with pytest.raises(InvalidInputError):
            price_range(catalog_items, -1, 10)
