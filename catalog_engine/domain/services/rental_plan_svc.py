import logging
import math
from typing import List, Optional, Sequence

from catalog_engine.core.errors import InvalidInputError
from catalog_engine.domain.models.selection import Discount, RentalOption, RentalPlan
from catalog_engine.domain.services.knapsack import KnapsackEntry, solve_knapsack

logger = logging.getLogger(__name__)


def _discount_for(days: int, discounts: Sequence[Discount]) -> float:
    # the tier with the highest threshold that the rental reaches wins
    for tier in sorted(discounts, key=lambda d: d.min_days, reverse=True):
        if days >= tier.min_days:
            return tier.percent
    return 0.0


def rental_options(price_per_day: float, budget: float, discounts: Sequence[Discount] = ()) -> List[RentalOption]:
    """Every affordable rental length, each valued at days x (1 + discount%)."""
    if price_per_day is None or not math.isfinite(price_per_day) or price_per_day <= 0:
        raise InvalidInputError(f"price_per_day must be positive, got {price_per_day}")
    if budget is None or not math.isfinite(budget) or budget < 0:
        raise InvalidInputError(f"budget must be a finite non-negative number, got {budget}")

    options = []
    for days in range(1, int(budget // price_per_day) + 1):
        discount = _discount_for(days, discounts)
        price = price_per_day * days * (1 - discount / 100)
        if price <= budget:
            options.append(
                RentalOption(duration=days, price=price, value=days * (1 + discount / 100), discount=discount)
            )
    return options


def optimal_rental_duration(
    price_per_day: float,
    budget: float,
    discounts: Sequence[Discount] = (),
) -> Optional[RentalOption]:
    """
    Rental length with the best value-per-price ratio inside the budget.
    None when not even one day is affordable; the shortest length wins ties.
    """
    best: Optional[RentalOption] = None
    for option in rental_options(price_per_day, budget, discounts):
        if option.price == 0:
            return option
        if best is None or option.value / option.price > best.value / best.price:
            best = option
    logger.debug("rental_duration price_per_day=%s budget=%s best=%s", price_per_day, budget, best)
    return best


def combine_rental_options(options: Sequence[RentalOption], max_days: int) -> RentalPlan:
    """Most valuable set of distinct rental options whose durations add up to at most `max_days`."""
    if max_days < 0:
        raise InvalidInputError(f"max_days must be >= 0, got {max_days}")
    entries = [KnapsackEntry(payload=o, cost=o.duration, value=o.value) for o in options]
    solution = solve_knapsack(entries, max_days)
    picked = [e.payload for e in solution.selected]
    return RentalPlan(
        options=picked,
        total_value=solution.total_value,
        total_days=solution.total_cost,
        total_price=sum(o.price for o in picked),
    )
