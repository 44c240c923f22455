from datetime import datetime, timedelta, timezone
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional

def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC so every booking compares with every other."""
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value

class BookingInterval(BaseModel):
    """
    A rental request for one item over [start, end).
    Query-scoped: intervals never live in the catalog.
    """
    request_id: str
    start: datetime
    end: datetime
    value: float = Field(default=0.0, ge=0)
    item_id: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator("start", "end")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        return as_utc(v)

    @model_validator(mode="after")
    def _end_after_start(self):
        if self.end < self.start:
            raise ValueError(f"booking {self.request_id} ends before it starts")
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "BookingInterval") -> bool:
        return self.start < other.end and other.start < self.end

class ConflictResolution(BaseModel):
    kept: BookingInterval
    removed: List[BookingInterval]
    model_config = {"frozen": True}

class ScheduleResult(BaseModel):
    item_id: str
    schedule: List[BookingInterval]
    conflicts: List[List[BookingInterval]]
    utilization: timedelta
    total_revenue: float
    model_config = {"frozen": True}

class TimeSlot(BaseModel):
    start: datetime
    end: datetime
    score: float
    model_config = {"frozen": True}
