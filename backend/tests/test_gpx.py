import io

import pytest

from conftest import FakeClock, FakeTicker, make_activity
from fittrack.core.errors import PermissionDenied
from fittrack.core.geo import route_distance_km
from fittrack.core.gpx import read_gpx_points, route_to_gpx
from fittrack.schemas.activity import GeoPoint
from fittrack.tracking.gpx_source import GpxPositionSource
from fittrack.tracking.session import SessionState, TrackingSession

GPX_DOC = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <trk>
    <name>Canal loop</name>
    <trkseg>
      <trkpt lat="52.3676" lon="4.9041"></trkpt>
      <trkpt lat="52.3680" lon="4.9050"></trkpt>
    </trkseg>
    <trkseg>
      <trkpt lat="52.3690" lon="4.9062"></trkpt>
    </trkseg>
  </trk>
</gpx>
"""

EXPECTED = [
    GeoPoint(latitude=52.3676, longitude=4.9041),
    GeoPoint(latitude=52.3680, longitude=4.9050),
    GeoPoint(latitude=52.3690, longitude=4.9062),
]


def test_read_gpx_points_flattens_segments_in_order():
    assert read_gpx_points(io.StringIO(GPX_DOC)) == EXPECTED


def test_read_gpx_points_from_path(tmp_path):
    path = tmp_path / "loop.gpx"
    path.write_text(GPX_DOC, encoding="utf-8")
    assert read_gpx_points(path) == EXPECTED
    assert GpxPositionSource.from_file(path).remaining == 3


def test_route_to_gpx_exports_every_point():
    activity = make_activity(name="Canal loop", route=tuple(EXPECTED))
    xml = route_to_gpx(activity)
    assert "Canal loop" in xml
    assert read_gpx_points(io.StringIO(xml)) == EXPECTED


def test_replayed_track_drives_a_session():
    clock = FakeClock()
    source = GpxPositionSource(EXPECTED)
    session = TrackingSession(source, FakeTicker(), wall_clock=clock.now, monotonic=clock.monotonic)

    session.start()
    assert source.subscribed
    while source.replay(limit=1):
        clock.advance(5)
    session.stop()

    assert not source.subscribed
    activity = session.finalize(name="Replay")
    assert activity.route == tuple(EXPECTED)
    assert activity.distance == pytest.approx(route_distance_km(EXPECTED))
    assert activity.duration == 15


def test_replay_stops_when_unsubscribed():
    source = GpxPositionSource(EXPECTED)
    session = TrackingSession(source, FakeTicker())
    session.start()

    assert source.replay(limit=1) == 1
    session.stop()
    assert source.replay() == 0
    assert source.remaining == 2
    assert session.route == (EXPECTED[0],)


def test_source_failure_stops_session():
    source = GpxPositionSource(EXPECTED)
    session = TrackingSession(source, FakeTicker())
    session.start()
    source.replay(limit=2)

    source.fail(RuntimeError("device disconnected"))

    assert session.state is SessionState.STOPPED
    assert not source.subscribed
    assert len(session.finalize().route) == 2


def test_permission_refused():
    session = TrackingSession(GpxPositionSource(EXPECTED, granted=False), FakeTicker())
    with pytest.raises(PermissionDenied):
        session.start()
