"""
Unit tests for the prefix index (trie)
"""
import pytest

from catalog_engine.core.errors import InvalidInputError
from catalog_engine.domain.services.prefix_index import PrefixIndex, keywords


def _ids(items):
    return {it.item_id for it in items}


class TestKeywords:

    @pytest.mark.unit
    def test_short_words_and_punctuation_dropped(self):
        assert keywords("Heavy-duty, farm tractor (red)", 4) == ["heavy-duty", "farm", "tractor"]

    @pytest.mark.unit
    def test_empty_text(self):
        assert keywords(None, 4) == []
        assert keywords("", 4) == []


class TestPrefixIndexBuild:

    @pytest.mark.unit
    def test_prefix_matches_both_combines(self, catalog_items):
        index = PrefixIndex.build(catalog_items)
        assert _ids(index.query_prefix("comb", 10)) == {"1", "2"}

    @pytest.mark.unit
    def test_query_is_case_insensitive(self, catalog_items):
        index = PrefixIndex.build(catalog_items)
        assert _ids(index.query_prefix("COMB", 10)) == {"1", "2"}

    @pytest.mark.unit
    def test_results_are_deduplicated(self, catalog_items):
        # "combine" is both a name token and a full-name prefix for items 1 and 2
        index = PrefixIndex.build(catalog_items)
        found = index.query_prefix("c", 10)
        assert len(found) == len(_ids(found))

    @pytest.mark.unit
    def test_description_keywords_are_indexed(self, catalog_items):
        index = PrefixIndex.build(catalog_items)
        assert _ids(index.query_prefix("load", 10)) == {"3"}

    @pytest.mark.unit
    def test_short_tokens_only_reachable_via_full_name(self, catalog_items):
        index = PrefixIndex.build(catalog_items)
        assert index.query_prefix("x", 10) == []
        assert _ids(index.query_prefix("combine x", 10)) == {"1"}

    @pytest.mark.unit
    def test_unknown_prefix_is_empty(self, catalog_items):
        index = PrefixIndex.build(catalog_items)
        assert index.query_prefix("zzz", 10) == []

    @pytest.mark.unit
    def test_empty_prefix_returns_everything(self, catalog_items):
        index = PrefixIndex.build(catalog_items)
        assert _ids(index.query_prefix("", 10)) == {"1", "2", "3"}

    @pytest.mark.unit
    def test_limit(self, catalog_items):
        index = PrefixIndex.build(catalog_items)
        assert len(index.query_prefix("", 2)) == 2
        assert index.query_prefix("comb", 0) == []

    @pytest.mark.unit
    def test_negative_limit_rejected(self, catalog_items):
        index = PrefixIndex.build(catalog_items)
        with pytest.raises(InvalidInputError):
            index.query_prefix("comb", -1)

    @pytest.mark.unit
    def test_empty_index(self):
        assert PrefixIndex.build([]).query_prefix("comb", 10) == []


class TestPrefixIndexKeys:

    @pytest.mark.unit
    def test_contains_and_starts_with(self):
        index = PrefixIndex()
        index.insert("Combine", "a")
        assert index.contains("combine")
        assert not index.contains("comb")
        assert index.starts_with("comb")
        assert not index.starts_with("tract")

    @pytest.mark.unit
    def test_count_with_prefix_counts_keys(self, catalog_items):
        index = PrefixIndex.build(catalog_items)
        # "combine x", "combine y" and the shared token "combine"
        assert index.count_with_prefix("comb") == 3
        assert index.count_with_prefix("nothing") == 0

    @pytest.mark.unit
    def test_duplicate_insert_keeps_one_copy(self):
        index = PrefixIndex()
        item = object()
        index.insert("plough", item)
        index.insert("plough", item)
        assert len(index) == 1
        assert index.query_prefix("plo", 10) == [item]

    @pytest.mark.unit
    def test_insertion_order_preserved(self):
        index = PrefixIndex()
        index.insert("harrow", "first")
        index.insert("harvester", "second")
        index.insert("hay rake", "third")
        assert index.query_prefix("ha", 10) == ["first", "second", "third"]

    @pytest.mark.unit
    def test_delete_prunes_branch(self):
        index = PrefixIndex()
        index.insert("baler", "a")
        index.insert("bale spear", "b")
        assert index.delete("baler") is True
        assert not index.contains("baler")
        assert index.query_prefix("bale", 10) == ["b"]
        assert not index.starts_with("baler")
        assert len(index) == 1

    @pytest.mark.unit
    def test_delete_missing_key(self):
        index = PrefixIndex()
        index.insert("baler", "a")
        assert index.delete("bale") is False
        assert index.delete("mower") is False
        assert len(index) == 1
