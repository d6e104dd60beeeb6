"""Seed the activity store with demo activities.

Each activity is recorded through a real TrackingSession fed by a replayed
track, so stored distances and routes are consistent with what a device
would produce. Time is simulated: every fix advances the clock by
`--fix-interval` seconds.

Usage:
    python scripts/seed_demo_activities.py --count 10
    python scripts/seed_demo_activities.py --database-url sqlite+pysqlite:///demo.db --gpx morning.gpx
"""

from __future__ import annotations

import argparse
import math
import random
from datetime import datetime, timedelta, timezone

from loguru import logger

from fittrack.core.config import settings
from fittrack.core.gpx import read_gpx_points
from fittrack.core.logger import setup_logger
from fittrack.schemas.activity import GeoPoint
from fittrack.storage.activity_store import ActivityStore
from fittrack.tracking.gpx_source import GpxPositionSource
from fittrack.tracking.session import TrackingSession
from fittrack.tracking.sources import PositionOptions
from fittrack.tracking.ticker import IntervalTicker


class SimulatedClock:
    """Wall and monotonic clock advanced by hand."""

    def __init__(self, start: datetime):
        self.start = start
        self.seconds = 0.0

    def advance(self, seconds: float) -> None:
        self.seconds += seconds

    def now(self) -> datetime:
        return self.start + timedelta(seconds=self.seconds)

    def monotonic(self) -> float:
        return self.seconds


def loop_route(center: GeoPoint, radius_km: float, points: int) -> list[GeoPoint]:
    """A closed loop around `center`, roughly `2 * pi * radius_km` long."""
    deg_lat = radius_km / 111.19
    deg_lon = deg_lat / max(math.cos(math.radians(center.latitude)), 1e-6)
    route = []
    for i in range(points + 1):
        angle = 2 * math.pi * i / points
        route.append(
            GeoPoint(
                latitude=round(center.latitude + deg_lat * math.sin(angle), 6),
                longitude=round(center.longitude + deg_lon * math.cos(angle), 6),
            )
        )
    return route


def record_activity(store: ActivityStore, route: list[GeoPoint], start: datetime, fix_interval: float, name: str) -> int:
    clock = SimulatedClock(start)
    source = GpxPositionSource(route)
    session = TrackingSession(
        source,
        IntervalTicker(),
        options=PositionOptions.from_settings(settings),
        tick_period_ms=settings.tick_period_ms,
        wall_clock=clock.now,
        monotonic=clock.monotonic,
    )
    with session:
        session.start()
        while source.replay(limit=1):
            clock.advance(fix_interval)
    activity = session.finalize(name=name)
    return store.save(activity)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Seed demo activities")
    parser.add_argument("--database-url", default=settings.database_url)
    parser.add_argument("--count", type=int, default=8, help="number of activities to create")
    parser.add_argument("--gpx", default=None, help="replay this GPX track instead of generated loops")
    parser.add_argument("--fix-interval", type=float, default=5.0, help="seconds between fixes")
    args = parser.parse_args(argv)

    setup_logger(settings.log_level)
    center = GeoPoint(latitude=52.3676, longitude=4.9041)
    today = datetime.now(timezone.utc).replace(hour=7, minute=0, second=0, microsecond=0)
    gpx_route = read_gpx_points(args.gpx) if args.gpx else None

    with ActivityStore(args.database_url) as store:
        for i in range(args.count):
            if gpx_route:
                route = gpx_route
            else:
                route = loop_route(center, radius_km=random.uniform(0.5, 2.0), points=random.randint(40, 120))
            start = today - timedelta(days=2 * i)
            activity_id = record_activity(
                store,
                route,
                start,
                args.fix_interval,
                name=f"Demo activity {i + 1}",
            )
            logger.info(f"Seeded activity {activity_id}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
