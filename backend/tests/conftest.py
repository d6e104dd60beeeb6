from datetime import datetime, timedelta, timezone

import pytest

from fittrack.schemas.activity import ActivityCreate, GeoPoint
from fittrack.storage.activity_store import ActivityStore

MEMORY_DB = "sqlite+pysqlite:///:memory:"
BASE_TIME = datetime(2025, 1, 1, 7, 0, 0, tzinfo=timezone.utc)


class FakePositionSource:
    """PositionSource whose fixes and failures are pushed by the test."""

    def __init__(self, granted=True, fail_subscribe=None):
        self.granted = granted
        self.fail_subscribe = fail_subscribe
        self.on_update = None
        self.on_error = None
        self.options = None
        self.unsubscribed = []

    def request_permission(self):
        return self.granted

    def subscribe(self, on_update, on_error, options):
        if self.fail_subscribe is not None:
            raise self.fail_subscribe
        self.on_update = on_update
        self.on_error = on_error
        self.options = options
        return "watch-1"

    def unsubscribe(self, handle):
        self.unsubscribed.append(handle)

    def emit(self, point):
        self.on_update(point)


class FakeTicker:
    def __init__(self, fail_start=None):
        self.fail_start = fail_start
        self.on_tick = None
        self.period_ms = None
        self.stopped = []

    def start(self, on_tick, period_ms):
        if self.fail_start is not None:
            raise self.fail_start
        self.on_tick = on_tick
        self.period_ms = period_ms
        return "tick-1"

    def stop(self, handle):
        self.stopped.append(handle)

    def tick(self):
        self.on_tick()


class FakeClock:
    def __init__(self, start=BASE_TIME):
        self.start = start
        self.seconds = 0.0

    def advance(self, seconds):
        self.seconds += seconds

    def now(self):
        return self.start + timedelta(seconds=self.seconds)

    def monotonic(self):
        return 1000.0 + self.seconds


def make_activity(name="Morning run", date=BASE_TIME, duration=1800, distance=5.0, route=None, photo_reference=None):
    if route is None:
        route = (
            GeoPoint(latitude=52.3676, longitude=4.9041),
            GeoPoint(latitude=52.3680, longitude=4.9050),
            GeoPoint(latitude=52.3690, longitude=4.9062),
        )
    return ActivityCreate(
        name=name,
        date=date,
        duration=duration,
        distance=distance,
        route=route,
        photo_reference=photo_reference,
    )


@pytest.fixture
def store():
    with ActivityStore(MEMORY_DB) as s:
        yield s
