import math
from numbers import Real
from typing import Callable, List, Sequence

from catalog_engine.core.errors import InvalidInputError
from catalog_engine.domain.models.item import Item, RankedItem
from catalog_engine.domain.models.query import Criteria, SortField, SortOrder
from catalog_engine.domain.services.comparators import (
    by_field,
    by_key,
    by_popularity,
    chain,
    descending,
    ordered,
    popularity_score,
)
from catalog_engine.domain.services.sorting import partition_sort, stable_sort
from catalog_engine.domain.services.top_k import top_k


def _field_score(item: Item, field: SortField):
    if field is SortField.NAME:
        return None
    return float(getattr(item, field.value) or 0)


def sort_items(
    items: Sequence[Item],
    field: SortField,
    order: SortOrder = SortOrder.ASC,
    *,
    stable: bool = True,
) -> List[RankedItem]:
    """Whole-catalog ordering on one field; missing numbers count as 0."""
    default = "" if field is SortField.NAME else 0
    comparator = ordered(by_field(field.value, default=default), order.value)
    algorithm = stable_sort if stable else partition_sort
    return [RankedItem(item=it, score=_field_score(it, field)) for it in algorithm(items, comparator)]


def recommend(items: Sequence[Item], criteria: Criteria, limit: int) -> List[RankedItem]:
    """
    Shortlist for a chat criteria:
      price      -> quick sort, cheapest first
      rating     -> stable merge sort, best rated first, catalog order on ties
      popular    -> heap top-k on rating x rental count
      best_value -> stable sort on (rating desc, price asc)
    """
    if limit < 0:
        raise InvalidInputError(f"limit must be >= 0, got {limit}")

    if criteria is Criteria.PRICE:
        ranked = partition_sort(items, by_field("price"))
        return [RankedItem(item=it, score=it.price) for it in ranked[:limit]]

    if criteria is Criteria.RATING:
        ranked = stable_sort(items, descending(by_field("rating")))
        return [RankedItem(item=it, score=it.rating or 0.0) for it in ranked[:limit]]

    if criteria is Criteria.POPULAR:
        best = top_k(items, by_popularity(), limit)
        return [RankedItem(item=it, score=popularity_score(it)) for it in best]

    if criteria is Criteria.BEST_VALUE:
        ranked = stable_sort(items, chain(descending(by_field("rating")), by_field("price")))
        return [RankedItem(item=it, score=it.rating or 0.0) for it in ranked[:limit]]

    raise InvalidInputError(f"unsupported criteria: {criteria!r}")


def top_scored(items: Sequence[Item], score_fn: Callable[[Item], float], k: int) -> List[RankedItem]:
    """Best k items by an arbitrary score, highest first; ties in no guaranteed order."""
    if not callable(score_fn):
        raise InvalidInputError("score_fn must be callable")
    scored = []
    for it in items:
        score = score_fn(it)
        if not isinstance(score, Real) or math.isnan(score):
            raise InvalidInputError(f"score for item {it.item_id} must be a number, got {score!r}")
        scored.append(RankedItem(item=it, score=float(score)))
    return top_k(scored, by_key(lambda r: r.score), k)
