import math
from numbers import Real
from typing import Any, Callable, Mapping, Optional

from catalog_engine.core.config import get_settings
from catalog_engine.core.errors import InvalidInputError
from catalog_engine.domain.services.constants import ORDER_ASC, ORDER_DESC

# Three-way comparison: negative if a sorts before b, zero if tied, positive otherwise.
Comparator = Callable[[Any, Any], Real]


def _field_value(obj: Any, name: str, default: Any) -> Any:
    if isinstance(obj, Mapping):
        value = obj.get(name)
    else:
        value = getattr(obj, name, None)
    return default if value is None else value


def _three_way(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def by_field(name: str, default: Any = 0) -> Comparator:
    """
    Ascending comparator on one attribute (or mapping key).
    Missing values compare as `default`, 0 unless told otherwise.
    """
    def compare(a: Any, b: Any) -> int:
        return _three_way(_field_value(a, name, default), _field_value(b, name, default))
    return compare


def by_key(key: Callable[[Any], Any]) -> Comparator:
    def compare(a: Any, b: Any) -> int:
        return _three_way(key(a), key(b))
    return compare


def descending(comparator: Comparator) -> Comparator:
    comparator = ensure_comparator(comparator)

    def compare(a: Any, b: Any):
        return -comparator(a, b)
    return compare


def ordered(comparator: Comparator, order: str = ORDER_ASC) -> Comparator:
    if order == ORDER_ASC:
        return ensure_comparator(comparator)
    if order == ORDER_DESC:
        return descending(comparator)
    raise InvalidInputError(f"unknown sort order: {order!r}")


def chain(*comparators: Comparator) -> Comparator:
    """Multi-criteria comparator: the first non-zero result wins."""
    if not comparators:
        raise InvalidInputError("chain() needs at least one comparator")
    checked = [ensure_comparator(c) for c in comparators]

    def compare(a: Any, b: Any):
        for c in checked:
            result = c(a, b)
            if result:
                return result
        return 0
    return compare


def ensure_comparator(comparator: Any) -> Comparator:
    if not callable(comparator):
        raise InvalidInputError(f"comparator must be callable, got {type(comparator).__name__}")
    return comparator


def checked(comparator: Comparator) -> Comparator:
    """
    Wrap a comparator so a malformed result (not a real number, or NaN)
    surfaces as InvalidInputError instead of a silently wrong order.
    """
    comparator = ensure_comparator(comparator)

    def compare(a: Any, b: Any):
        result = comparator(a, b)
        if not isinstance(result, Real) or (isinstance(result, float) and math.isnan(result)):
            raise InvalidInputError(f"comparator returned {result!r}; expected a number")
        return result
    return compare


def popularity_score(
    item: Any,
    *,
    default_rating: Optional[float] = None,
    default_rental_count: Optional[int] = None,
) -> float:
    """
    rating x rental_count, with missing values replaced by configured defaults
    (rating 3, rental count 1 unless overridden).
    """
    settings = get_settings()
    if default_rating is None:
        default_rating = settings.popular_default_rating
    if default_rental_count is None:
        default_rental_count = settings.popular_default_rental_count
    # falsy values (0 rating, 0 rentals) take the default too
    rating = _field_value(item, "rating", None) or default_rating
    rentals = _field_value(item, "rental_count", None) or default_rental_count
    return float(rating) * float(rentals)


def by_popularity(**defaults) -> Comparator:
    return by_key(lambda item: popularity_score(item, **defaults))
