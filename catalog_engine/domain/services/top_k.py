import logging
from typing import Generic, Iterable, List, Optional, TypeVar

from catalog_engine.core.errors import InvalidInputError
from catalog_engine.domain.services.comparators import Comparator, checked, descending

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BinaryHeap(Generic[T]):
    """
    Array-backed heap ordered by an injected three-way comparator.
    The root is the item the comparator ranks highest (compare(a, b) > 0
    means a outranks b). Ties come out in no particular order.

    Shared by recommendation ranking, top-k queries and Dijkstra.
    """

    def __init__(self, comparator: Comparator, items: Optional[Iterable[T]] = None):
        self._compare = checked(comparator)
        self._heap: List[T] = []
        if items is not None:
            self.extend(items)

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def insert(self, item: T) -> None:
        """O(log n)."""
        self._heap.append(item)
        self._sift_up(len(self._heap) - 1)

    def extend(self, items: Iterable[T]) -> None:
        for item in items:
            self.insert(item)

    def peek(self) -> Optional[T]:
        return self._heap[0] if self._heap else None

    def pop(self) -> Optional[T]:
        """Remove and return the highest-priority item, None when empty. O(log n)."""
        if not self._heap:
            return None
        top = self._heap[0]
        last = self._heap.pop()
        if self._heap:
            self._heap[0] = last
            self._sift_down(0)
        return top

    def extract_top(self, k: int) -> List[T]:
        """
        The k highest-priority items, best first. Works on a disposable copy,
        so the heap itself is unchanged afterwards. O(n + k log n).
        """
        if k < 0:
            raise InvalidInputError(f"k must be >= 0, got {k}")
        scratch: BinaryHeap[T] = BinaryHeap(self._compare)
        scratch._heap = list(self._heap)  # already a valid heap
        return [scratch.pop() for _ in range(min(k, len(scratch)))]

    # --- internals -----------------------------------------------------------

    def _outranks(self, i: int, j: int) -> bool:
        return self._compare(self._heap[i], self._heap[j]) > 0

    def _sift_up(self, index: int) -> None:
        heap = self._heap
        while index > 0:
            parent = (index - 1) // 2
            if not self._outranks(index, parent):
                break
            heap[index], heap[parent] = heap[parent], heap[index]
            index = parent

    def _sift_down(self, index: int) -> None:
        heap = self._heap
        size = len(heap)
        while True:
            best = index
            left = 2 * index + 1
            right = left + 1
            if left < size and self._outranks(left, best):
                best = left
            if right < size and self._outranks(right, best):
                best = right
            if best == index:
                return
            heap[index], heap[best] = heap[best], heap[index]
            index = best


def top_k(items: Iterable[T], comparator: Comparator, k: int) -> List[T]:
    """Best k of `items` under `comparator` (highest first) without sorting them all."""
    if k < 0:
        raise InvalidInputError(f"k must be >= 0, got {k}")
    heap: BinaryHeap[T] = BinaryHeap(comparator, items)
    logger.debug("top_k heap_size=%s k=%s", len(heap), k)
    return [heap.pop() for _ in range(min(k, len(heap)))]


def heap_sort(items: Iterable[T], comparator: Comparator) -> List[T]:
    """
    Ascending order under `comparator` by draining a heap, O(n log n) in
    every case. Not stable; use stable_sort when tie order matters.
    """
    heap: BinaryHeap[T] = BinaryHeap(descending(comparator), items)
    return [heap.pop() for _ in range(len(heap))]
