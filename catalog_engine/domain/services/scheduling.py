"""
Booking schedule optimisation for a single item.

- select_max_bookings: greedy activity selection, maximises the number of
  non-overlapping bookings (ignores value).
- select_max_value_bookings: weighted interval DP, maximises total value.
- detect_conflicts: advisory overlap report; it does not prevent
  double-booking, the booking store owns that.
"""
import logging
from bisect import bisect_right
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from catalog_engine.core.config import get_settings
from catalog_engine.core.errors import InvalidInputError
from catalog_engine.domain.models.booking import (
    BookingInterval,
    ConflictResolution,
    ScheduleResult,
    TimeSlot,
    as_utc,
)
from catalog_engine.domain.services.comparators import by_field, chain
from catalog_engine.domain.services.sorting import stable_sort

logger = logging.getLogger(__name__)

BookingLike = Union[BookingInterval, Mapping[str, Any]]

_BY_END = chain(by_field("end"), by_field("start"))
_BY_START = chain(by_field("start"), by_field("end"))


def to_interval(raw: BookingLike) -> BookingInterval:
    """
    Accept a BookingInterval or a rental request mapping as stored by the
    booking layer ({id, equipment_id, start_date, end_date, total_price}).
    """
    if isinstance(raw, BookingInterval):
        return raw
    try:
        if "start_date" in raw:
            return BookingInterval(
                request_id=str(raw.get("id", raw.get("request_id", ""))),
                item_id=None if raw.get("equipment_id") is None else str(raw["equipment_id"]),
                start=raw["start_date"],
                end=raw["end_date"],
                value=raw.get("total_price") or 0.0,
            )
        return BookingInterval.model_validate(raw)
    except (ValidationError, KeyError) as e:
        raise InvalidInputError(f"invalid booking interval: {e}") from e


def _intervals(raw: Iterable[BookingLike]) -> List[BookingInterval]:
    return [to_interval(r) for r in raw]


def select_max_bookings(intervals: Iterable[BookingLike]) -> List[BookingInterval]:
    """
    Earliest-finish-first greedy: sort by end (then start) and keep every
    interval starting at or after the last kept end. O(n log n).
    """
    ordered = stable_sort(_intervals(intervals), _BY_END)
    selected: List[BookingInterval] = []
    last_end: Optional[datetime] = None
    for booking in ordered:
        if last_end is None or booking.start >= last_end:
            selected.append(booking)
            last_end = booking.end
    return selected


def select_max_value_bookings(intervals: Iterable[BookingLike]) -> List[BookingInterval]:
    """
    Weighted interval scheduling.

    best[i] = max(best[i-1], value_i + best[p(i)]) over intervals sorted by
    end, where p(i) is the latest interval ending at or before interval i
    starts (binary search). O(n log n). Result is in end-time order.
    """
    ordered = stable_sort(_intervals(intervals), _BY_END)
    n = len(ordered)
    if n == 0:
        return []

    ends = [b.end for b in ordered]
    # best[i + 1] holds the optimum over ordered[0..i]; best[0] is the empty schedule
    best = [0.0] * (n + 1)
    compatible = [0] * n
    take = [False] * n
    for i, booking in enumerate(ordered):
        p = bisect_right(ends, booking.start, 0, i)  # count of earlier intervals ending <= start
        compatible[i] = p
        with_current = booking.value + best[p]
        if with_current > best[i]:
            best[i + 1] = with_current
            take[i] = True
        else:
            best[i + 1] = best[i]

    selected: List[BookingInterval] = []
    i = n - 1
    while i >= 0:
        if take[i]:
            selected.append(ordered[i])
            i = compatible[i] - 1
        else:
            i -= 1
    selected.reverse()
    return selected


def detect_conflicts(intervals: Iterable[BookingLike]) -> List[List[BookingInterval]]:
    """
    Groups of mutually chained overlapping bookings, each sorted by start.
    A booking joins the open group when it starts before the group's latest
    end. Only groups of two or more are reported.
    """
    ordered = stable_sort(_intervals(intervals), _BY_START)
    groups: List[List[BookingInterval]] = []
    current: List[BookingInterval] = []
    group_end: Optional[datetime] = None
    for booking in ordered:
        if current and booking.start < group_end:
            current.append(booking)
            group_end = max(group_end, booking.end)
        else:
            if len(current) > 1:
                groups.append(current)
            current = [booking]
            group_end = booking.end
    if len(current) > 1:
        groups.append(current)
    return groups


def resolve_conflict(group: Sequence[BookingInterval]) -> ConflictResolution:
    """Keep the most valuable booking of a conflict group (first one on ties)."""
    if not group:
        raise InvalidInputError("cannot resolve an empty conflict group")
    kept = max(group, key=lambda b: b.value)
    return ConflictResolution(kept=kept, removed=[b for b in group if b is not kept])


def optimize_rental_schedule(
    requests: Iterable[BookingLike],
    item_id: str,
    *,
    weighted: bool = False,
) -> ScheduleResult:
    """
    Pick a non-overlapping schedule among the requests for `item_id` and
    report the overlaps found among all of them. Requests that name no item
    are taken to be for `item_id`.
    """
    if not item_id:
        raise InvalidInputError("item_id is required")
    item_id = str(item_id)
    mine = [b for b in _intervals(requests) if b.item_id in (None, item_id)]
    schedule = select_max_value_bookings(mine) if weighted else select_max_bookings(mine)
    conflicts = detect_conflicts(mine)
    result = ScheduleResult(
        item_id=item_id,
        schedule=schedule,
        conflicts=conflicts,
        utilization=sum((b.duration for b in schedule), timedelta()),
        total_revenue=sum(b.value for b in schedule),
    )
    logger.info(
        "schedule item_id=%s requests=%s kept=%s conflicts=%s weighted=%s",
        item_id, len(mine), len(schedule), len(conflicts), weighted,
    )
    return result


def find_best_time_slot(
    existing: Iterable[BookingLike],
    duration: timedelta,
    now: Optional[datetime] = None,
) -> TimeSlot:
    """
    Earliest-best free slot of `duration` from `now` on.

    Bounded gaps score gap / duration x 100 (roomier gaps first); the open
    slot after the last booking scores `trailing_slot_score`. With no
    bookings at all the slot starts now with score 100.
    """
    if duration <= timedelta(0):
        raise InvalidInputError(f"duration must be positive, got {duration}")
    bookings = stable_sort(_intervals(existing), _BY_START)
    now = datetime.now(timezone.utc) if now is None else as_utc(now)
    if not bookings:
        return TimeSlot(start=now, end=now + duration, score=100.0)

    candidates: List[TimeSlot] = []
    cursor = now
    for booking in bookings:
        gap = booking.start - cursor
        if gap >= duration:
            candidates.append(TimeSlot(start=cursor, end=cursor + duration, score=gap / duration * 100))
        cursor = max(cursor, booking.end)
    candidates.append(TimeSlot(start=cursor, end=cursor + duration, score=get_settings().trailing_slot_score))
    return max(candidates, key=lambda slot: slot.score)
