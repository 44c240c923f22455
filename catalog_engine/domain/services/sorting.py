"""
Comparator-driven sorting.

- stable_sort: merge sort, O(n log n) always, keeps catalog order among ties.
- partition_sort: quick sort with median-of-three pivot, in place on a copy,
  average O(n log n), worst O(n^2), no stability guarantee.

Both take a three-way comparator (see comparators.py); descending order is
a comparator wrapper, not a separate algorithm.
"""
from bisect import bisect_left, bisect_right
from typing import Any, List, Sequence, TypeVar

from catalog_engine.core.errors import InvalidInputError
from catalog_engine.domain.services.comparators import Comparator, checked

T = TypeVar("T")


def stable_sort(items: Sequence[T], comparator: Comparator) -> List[T]:
    """Return a new list ordered by `comparator`; equal items keep their input order."""
    compare = checked(comparator)
    if not items:
        return []
    return _merge_sort(list(items), compare)


def _merge_sort(items: List[T], compare: Comparator) -> List[T]:
    if len(items) <= 1:
        return items
    mid = len(items) // 2
    return _merge(_merge_sort(items[:mid], compare), _merge_sort(items[mid:], compare), compare)


def _merge(left: List[T], right: List[T], compare: Comparator) -> List[T]:
    result: List[T] = []
    i = j = 0
    while i < len(left) and j < len(right):
        # <= keeps the left element first on ties (stability)
        if compare(left[i], right[j]) <= 0:
            result.append(left[i])
            i += 1
        else:
            result.append(right[j])
            j += 1
    result.extend(left[i:])
    result.extend(right[j:])
    return result


def chunked_merge_sort(items: Sequence[T], comparator: Comparator, chunk_size: int = 1000) -> List[T]:
    """
    Sort fixed-size chunks independently, then merge them pairwise.
    Same result as stable_sort; useful when chunks arrive from separate loads.
    """
    if chunk_size < 1:
        raise InvalidInputError(f"chunk_size must be >= 1, got {chunk_size}")
    compare = checked(comparator)
    chunks = [_merge_sort(list(items[i:i + chunk_size]), compare) for i in range(0, len(items), chunk_size)]
    if not chunks:
        return []
    while len(chunks) > 1:
        merged = []
        for i in range(0, len(chunks), 2):
            if i + 1 < len(chunks):
                merged.append(_merge(chunks[i], chunks[i + 1], compare))
            else:
                merged.append(chunks[i])
        chunks = merged
    return chunks[0]


def partition_sort(items: Sequence[T], comparator: Comparator) -> List[T]:
    """Quick sort a copy of `items`; the input sequence is left untouched."""
    array = list(items)
    partition_sort_in_place(array, comparator)
    return array


def partition_sort_in_place(array: List[T], comparator: Comparator) -> None:
    _quick_sort(array, 0, len(array) - 1, checked(comparator))


def _quick_sort(array: List[T], low: int, high: int, compare: Comparator) -> None:
    # Recurse into the smaller side, loop on the larger: stack depth stays O(log n)
    while low < high:
        p = _partition(array, low, high, compare)
        if p - low < high - p:
            _quick_sort(array, low, p - 1, compare)
            low = p + 1
        else:
            _quick_sort(array, p + 1, high, compare)
            high = p - 1


def _partition(array: List[T], low: int, high: int, compare: Comparator) -> int:
    # median-of-three, median ends up at `high` and serves as the Lomuto pivot
    mid = (low + high) // 2
    if compare(array[mid], array[low]) < 0:
        array[mid], array[low] = array[low], array[mid]
    if compare(array[high], array[low]) < 0:
        array[high], array[low] = array[low], array[high]
    if compare(array[high], array[mid]) < 0:
        array[high], array[mid] = array[mid], array[high]
    array[mid], array[high] = array[high], array[mid]

    pivot = array[high]
    i = low - 1
    for j in range(low, high):
        if compare(array[j], pivot) <= 0:
            i += 1
            array[i], array[j] = array[j], array[i]
    array[i + 1], array[high] = array[high], array[i + 1]
    return i + 1


def _price(item: Any) -> float:
    return getattr(item, "price", None) or 0


def price_range(sorted_by_price: Sequence[T], min_price: float, max_price: float) -> List[T]:
    """
    Items with min_price <= price <= max_price from a list already sorted by
    price ascending. Two binary searches, O(log n) plus the slice.
    """
    if min_price < 0 or max_price < 0:
        raise InvalidInputError("price bounds must be non-negative")
    if min_price > max_price:
        return []
    start = bisect_left(sorted_by_price, min_price, key=_price)
    end = bisect_right(sorted_by_price, max_price, key=_price)
    return list(sorted_by_price[start:end])
