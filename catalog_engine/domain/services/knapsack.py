"""
Budget optimizer: pick the subset of items with the highest total value whose
total cost stays within a budget (0/1 knapsack, items are indivisible).

table[i][c] = best value using the first i entries with budget c
            = max(table[i-1][c], table[i-1][c - cost_i] + value_i)   if cost_i <= c

Time O(n x budget). Two storage strategies:
  - full table: (n+1) x (budget+1) floats, reconstruction by comparing rows;
  - single row: one float row plus a per-entry `taken` bitmap (bytearray),
    reconstruction by walking the bitmaps backwards.
The single-row strategy is used automatically above
`knapsack_full_table_max_budget`.

Callers keep runtime bounded by choosing the cost resolution (whole currency
units by default), there is no internal timeout.
"""
import logging
import math
import time
from dataclasses import dataclass
from numbers import Real
from typing import Any, Callable, Generic, List, Literal, Optional, Sequence, TypeVar

from catalog_engine.core.config import get_settings
from catalog_engine.core.errors import InvalidInputError
from catalog_engine.domain.models.item import Item
from catalog_engine.domain.models.selection import BudgetSelection, FractionalPick, FractionalSelection

logger = logging.getLogger(__name__)

T = TypeVar("T")

Strategy = Literal["auto", "table", "single_row"]


@dataclass(frozen=True)
class KnapsackEntry(Generic[T]):
    payload: T
    cost: int
    value: float


@dataclass(frozen=True)
class KnapsackSolution(Generic[T]):
    selected: List[KnapsackEntry[T]]
    total_value: float
    total_cost: int


def _check_budget(budget: float) -> int:
    if budget is None or not math.isfinite(budget) or budget < 0:
        raise InvalidInputError(f"budget must be a finite non-negative number, got {budget}")
    return int(math.floor(budget))


def _check_entries(entries: Sequence[KnapsackEntry], integral: bool = True) -> None:
    for e in entries:
        if integral and not isinstance(e.cost, int):
            raise InvalidInputError(f"0/1 knapsack costs must be integers, got {e.cost!r}")
        if e.cost < 0:
            raise InvalidInputError(f"cost must be non-negative, got {e.cost}")
        if not math.isfinite(e.value):
            raise InvalidInputError(f"value must be finite, got {e.value}")


def solve_knapsack(
    entries: Sequence[KnapsackEntry[T]],
    capacity: int,
    strategy: Strategy = "auto",
) -> KnapsackSolution[T]:
    """Exact 0/1 knapsack over integral costs. Selected entries come back in input order."""
    capacity = _check_budget(capacity)
    _check_entries(entries)
    if strategy == "auto":
        strategy = "table" if capacity <= get_settings().knapsack_full_table_max_budget else "single_row"

    # entries that can never fit are skipped up front
    candidates = [e for e in entries if e.cost <= capacity]
    if capacity == 0 or not candidates:
        return KnapsackSolution(selected=[], total_value=0.0, total_cost=0)

    t0 = time.perf_counter()
    if strategy == "table":
        selected = _solve_table(candidates, capacity)
    elif strategy == "single_row":
        selected = _solve_single_row(candidates, capacity)
    else:
        raise InvalidInputError(f"unknown knapsack strategy: {strategy!r}")

    solution = KnapsackSolution(
        selected=selected,
        total_value=sum(e.value for e in selected),
        total_cost=sum(e.cost for e in selected),
    )
    logger.debug(
        "knapsack strategy=%s n=%s capacity=%s picked=%s value=%.3f time=%.4fs",
        strategy, len(candidates), capacity, len(selected), solution.total_value, time.perf_counter() - t0,
    )
    return solution


def _solve_table(entries: Sequence[KnapsackEntry[T]], capacity: int) -> List[KnapsackEntry[T]]:
    n = len(entries)
    table = [[0.0] * (capacity + 1) for _ in range(n + 1)]
    for i in range(1, n + 1):
        cost, value = entries[i - 1].cost, entries[i - 1].value
        prev, row = table[i - 1], table[i]
        for c in range(capacity + 1):
            best = prev[c]
            if cost <= c and prev[c - cost] + value > best:
                best = prev[c - cost] + value
            row[c] = best

    selected = []
    c = capacity
    for i in range(n, 0, -1):
        if table[i][c] != table[i - 1][c]:
            selected.append(entries[i - 1])
            c -= entries[i - 1].cost
    selected.reverse()
    return selected


def _solve_single_row(entries: Sequence[KnapsackEntry[T]], capacity: int) -> List[KnapsackEntry[T]]:
    row = [0.0] * (capacity + 1)
    taken = [bytearray(capacity + 1) for _ in entries]
    for i, entry in enumerate(entries):
        cost, value = entry.cost, entry.value
        flags = taken[i]
        # walk budgets downwards so each entry is used at most once
        for c in range(capacity, cost - 1, -1):
            candidate = row[c - cost] + value
            if candidate > row[c]:
                row[c] = candidate
                flags[c] = 1

    selected = []
    c = capacity
    for i in range(len(entries) - 1, -1, -1):
        if taken[i][c]:
            selected.append(entries[i])
            c -= entries[i].cost
    selected.reverse()
    return selected


def solve_unbounded_knapsack(entries: Sequence[KnapsackEntry[T]], capacity: int) -> KnapsackSolution[T]:
    """
    Knapsack where every entry may be taken any number of times (e.g. rental
    days of the same item). `selected` lists an entry once per copy taken.
    Costs must be at least 1, a free entry would have no upper bound.
    """
    capacity = _check_budget(capacity)
    _check_entries(entries)
    if any(e.cost == 0 for e in entries):
        raise InvalidInputError("unbounded knapsack entries need a cost of at least 1")

    best = [0.0] * (capacity + 1)
    # choice[c] = entry taken last to reach best[c], -1 when nothing is taken
    choice = [-1] * (capacity + 1)
    for c in range(1, capacity + 1):
        for i, entry in enumerate(entries):
            if entry.cost <= c and best[c - entry.cost] + entry.value > best[c]:
                best[c] = best[c - entry.cost] + entry.value
                choice[c] = i

    selected: List[KnapsackEntry[T]] = []
    c = capacity
    while c > 0 and choice[c] >= 0:
        entry = entries[choice[c]]
        selected.append(entry)
        c -= entry.cost
    return KnapsackSolution(
        selected=selected,
        total_value=sum(e.value for e in selected),
        total_cost=sum(e.cost for e in selected),
    )


# --- item-level API ------------------------------------------------------------

def default_value(item: Item) -> float:
    """rating (3 when missing) x availability bonus (1, or 0.5 when unavailable) x scale."""
    settings = get_settings()
    rating = item.rating or settings.popular_default_rating
    bonus = 1.0 if item.available else settings.knapsack_unavailable_bonus
    return rating * bonus * settings.knapsack_value_scale


def default_cost(item: Item) -> float:
    return math.ceil(item.price or 0)


def optimize_budget(
    items: Sequence[Item],
    budget: float,
    value_fn: Optional[Callable[[Item], float]] = None,
    cost_fn: Optional[Callable[[Item], float]] = None,
    *,
    strategy: Strategy = "auto",
) -> BudgetSelection:
    """
    Highest-value subset of `items` whose summed cost fits `budget`.

    Costs are rounded up to whole units, the budget down. A budget of 0 or a
    catalog where nothing fits is a valid, empty, zero-value result.
    """
    capacity = _check_budget(budget)
    value_fn = value_fn or default_value
    cost_fn = cost_fn or default_cost
    if not callable(value_fn) or not callable(cost_fn):
        raise InvalidInputError("value_fn and cost_fn must be callable")

    entries: List[KnapsackEntry[Item]] = []
    for item in items:
        raw_cost = cost_fn(item)
        if not isinstance(raw_cost, Real) or not math.isfinite(raw_cost) or raw_cost < 0:
            raise InvalidInputError(f"cost for item {item.item_id} must be non-negative, got {raw_cost}")
        raw_value = value_fn(item)
        if not isinstance(raw_value, Real) or not math.isfinite(raw_value):
            raise InvalidInputError(f"value for item {item.item_id} must be a number, got {raw_value!r}")
        entries.append(KnapsackEntry(payload=item, cost=int(math.ceil(raw_cost)), value=float(raw_value)))

    solution = solve_knapsack(entries, capacity, strategy)
    logger.info(
        "budget_optimizer items=%s budget=%s picked=%s value=%.2f cost=%s",
        len(entries), capacity, len(solution.selected), solution.total_value, solution.total_cost,
    )
    return BudgetSelection(
        items=[e.payload for e in solution.selected],
        total_value=solution.total_value,
        total_cost=solution.total_cost,
    )


def fractional_knapsack(entries: Sequence[KnapsackEntry[Any]], capacity: float) -> FractionalSelection:
    """
    Greedy by value/cost ratio, splitting the last entry to fill the budget.
    Only meaningful for divisible quantities (rental days, hours), never for
    choosing whole items.
    """
    if capacity is None or not math.isfinite(capacity) or capacity < 0:
        raise InvalidInputError(f"capacity must be a finite non-negative number, got {capacity}")
    _check_entries(entries, integral=False)

    def ratio(e: KnapsackEntry) -> float:
        return math.inf if e.cost == 0 else e.value / e.cost

    remaining = float(capacity)
    picks: List[FractionalPick] = []
    for e in sorted(entries, key=ratio, reverse=True):
        if e.value <= 0:
            break
        if e.cost <= remaining:
            picks.append(FractionalPick(payload=e.payload, fraction=1.0, cost=e.cost, value=e.value))
            remaining -= e.cost
        elif remaining > 0:
            fraction = remaining / e.cost
            picks.append(FractionalPick(payload=e.payload, fraction=fraction, cost=remaining, value=e.value * fraction))
            remaining = 0.0
            break
        else:
            break

    return FractionalSelection(
        picks=picks,
        total_value=sum(p.value for p in picks),
        total_cost=sum(p.cost for p in picks),
    )
