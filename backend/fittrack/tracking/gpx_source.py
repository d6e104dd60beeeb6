import itertools
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from loguru import logger

from fittrack.core.gpx import read_gpx_points
from fittrack.schemas.activity import GeoPoint
from fittrack.tracking.sources import PositionOptions


class GpxPositionSource:
    """PositionSource replaying a recorded track.

    Nothing is delivered on its own: replay() pushes the next points to the
    current subscriber, in recording order, until the track is exhausted or
    the subscriber unsubscribes.
    """

    def __init__(self, points: Sequence[GeoPoint], granted: bool = True):
        self._points = list(points)
        self._cursor = 0
        self._granted = granted
        self._handles = itertools.count(1)
        self._handle: Optional[int] = None
        self._on_update: Optional[Callable[[GeoPoint], None]] = None
        self._on_error: Optional[Callable[[Exception], None]] = None
        self.options: Optional[PositionOptions] = None

    @classmethod
    def from_file(cls, path: Union[str, Path], granted: bool = True) -> "GpxPositionSource":
        points = read_gpx_points(path)
        logger.info(f"Loaded {len(points)} track points from {path}")
        return cls(points, granted=granted)

    @property
    def remaining(self) -> int:
        return len(self._points) - self._cursor

    @property
    def subscribed(self) -> bool:
        return self._handle is not None

    def request_permission(self) -> bool:
        return self._granted

    def subscribe(self, on_update, on_error, options: PositionOptions) -> int:
        if self._handle is not None:
            raise RuntimeError("GpxPositionSource supports a single subscriber")
        self._handle = next(self._handles)
        self._on_update = on_update
        self._on_error = on_error
        self.options = options
        return self._handle

    def unsubscribe(self, handle: int) -> None:
        if handle != self._handle:
            return
        self._handle = None
        self._on_update = None
        self._on_error = None

    def replay(self, limit: Optional[int] = None) -> int:
        """Push up to `limit` points (all remaining by default); return how many were delivered."""
        delivered = 0
        while self._on_update is not None and self._cursor < len(self._points):
            if limit is not None and delivered >= limit:
                break
            point = self._points[self._cursor]
            self._cursor += 1
            self._on_update(point)
            delivered += 1
        return delivered

    def fail(self, error: Exception) -> None:
        """Report a source failure to the subscriber (signal lost, device off...)."""
        if self._on_error is not None:
            self._on_error(error)
