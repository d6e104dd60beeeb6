"""GPX interchange for activity routes."""

from pathlib import Path
from typing import IO, Union

import gpxpy
import gpxpy.gpx

from fittrack.schemas.activity import ActivityBase, GeoPoint


def read_gpx_points(source: Union[str, Path, IO[str]]) -> list[GeoPoint]:
    """Parse a GPX document and return its track points in file order.

    `source` is a path or an open text stream. Every track and segment is
    flattened into one sequence.
    """
    if isinstance(source, (str, Path)):
        with open(source, "r", encoding="utf-8") as f:
            gpx = gpxpy.parse(f)
    else:
        gpx = gpxpy.parse(source)

    points = []
    for track in gpx.tracks:
        for segment in track.segments:
            for p in segment.points:
                points.append(GeoPoint(latitude=p.latitude, longitude=p.longitude))
    return points


def route_to_gpx(activity: ActivityBase) -> str:
    """Export an activity route as a single-track GPX document."""
    gpx = gpxpy.gpx.GPX()
    gpx.creator = "fittrack"
    gpx.time = activity.date

    track = gpxpy.gpx.GPXTrack(name=activity.name)
    segment = gpxpy.gpx.GPXTrackSegment()
    for point in activity.route:
        segment.points.append(gpxpy.gpx.GPXTrackPoint(point.latitude, point.longitude))
    track.segments.append(segment)
    gpx.tracks.append(track)

    return gpx.to_xml()
