"""
Shared pytest fixtures for all tests
"""
import pytest
from datetime import datetime, timedelta, timezone

from catalog_engine.core.config import get_settings
from catalog_engine.domain.models.booking import BookingInterval
from catalog_engine.domain.models.item import Item
from catalog_engine.domain.repositories.snapshot_repo import SnapshotHandle


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Settings are cached process-wide; start every test from the defaults"""
    monkeypatch.delenv("APP_ENV", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def catalog_records():
    """Raw loader output, the way the bot hands it over"""
    return [
        {"id": 1, "name": "Combine X", "price_per_day": 100, "rating": 4},
        {"id": 2, "name": "Combine Y", "price_per_day": 50, "rating": 5},
        {
            "id": 3,
            "name": "Tractor Z",
            "price_per_day": 80,
            "rating": 3,
            "description": "Heavy duty farm tractor with front loader",
        },
    ]


@pytest.fixture
def catalog_items(catalog_records):
    return [Item.model_validate(r) for r in catalog_records]


@pytest.fixture
def located_items():
    return [
        Item(item_id="origin", name="Seeder Origin", price=10, latitude=0.0, longitude=0.0),
        Item(item_id="east", name="Seeder East", price=10, latitude=0.0, longitude=1.0),
        Item(item_id="nowhere", name="Seeder Nowhere", price=10),
    ]


@pytest.fixture
def handle(catalog_records):
    h = SnapshotHandle()
    h.refresh(catalog_records)
    return h


@pytest.fixture
def t0():
    return datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_booking(t0):
    """Booking factory with hour offsets from t0"""
    def _make(request_id, start_h, end_h, value=0.0, item_id="1"):
        return BookingInterval(
            request_id=request_id,
            start=t0 + timedelta(hours=start_h),
            end=t0 + timedelta(hours=end_h),
            value=value,
            item_id=item_id,
        )
    return _make
