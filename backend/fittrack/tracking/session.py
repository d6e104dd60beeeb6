"""
Tracking session state machine.

A TrackingSession records one activity: it subscribes to a position source
and a duration ticker on start(), grows its route and distance from each
position fix, and on finalize() turns the recorded data into an
ActivityCreate ready for ActivityStore.save().

States move Idle -> Tracking -> Stopped, once. A stopped session cannot be
restarted; create a new one for the next activity.

Example:
    >>> session = TrackingSession(gps, ticker)
    >>> session.start()
    >>> ...  # position fixes and ticks arrive
    >>> session.stop()
    >>> activity = session.finalize(name="Evening run")
"""

import threading
import time
from contextlib import ExitStack
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from fittrack.core.constants import DEFAULT_TICK_PERIOD_MS
from fittrack.core.errors import AlreadyTracking, InvalidSessionState, NoRouteData, PermissionDenied
from fittrack.core.geo import haversine_km
from fittrack.core.time_utils import default_activity_name, to_utc_second
from fittrack.schemas.activity import ActivityCreate, GeoPoint
from fittrack.tracking.sources import PositionOptions, PositionSource, PositionStream, Ticker, TickStream


class SessionState(str, Enum):
    IDLE = "idle"
    TRACKING = "tracking"
    STOPPED = "stopped"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TrackingSession:
    """
    Engine turning position fixes and ticks into one activity.

    The session must be driven by one stream of events at a time; event
    handlers take an internal lock so a ticker thread and a position
    callback cannot interleave a half-applied update.

    Args:
        position_source: Location service delivering GeoPoint fixes
        ticker: Periodic timer refreshing the elapsed duration
        options: Subscription options passed to the position source
        tick_period_ms: Ticker period
        on_change: Optional callback invoked after every applied fix or tick
        wall_clock: Returns the current aware datetime (activity date)
        monotonic: Returns monotonic seconds (activity duration)
    """

    def __init__(
        self,
        position_source: PositionSource,
        ticker: Ticker,
        options: Optional[PositionOptions] = None,
        tick_period_ms: int = DEFAULT_TICK_PERIOD_MS,
        on_change: Optional[Callable[["TrackingSession"], None]] = None,
        wall_clock: Callable[[], datetime] = _utcnow,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self._source = position_source
        self._ticker = ticker
        self._options = options or PositionOptions()
        self._tick_period_ms = tick_period_ms
        self._on_change = on_change
        self._wall_clock = wall_clock
        self._monotonic = monotonic

        self._lock = threading.RLock()
        self._state = SessionState.IDLE
        self._route: list[GeoPoint] = []
        self._distance_km = 0.0
        self._last_point: Optional[GeoPoint] = None
        self._start_time: Optional[datetime] = None
        self._start_mono: Optional[float] = None
        self._stop_mono: Optional[float] = None
        self._elapsed = 0
        self._error: Optional[Exception] = None
        self._resources: Optional[ExitStack] = None

    # --------- Read-only views --------- #

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def route(self) -> tuple[GeoPoint, ...]:
        return tuple(self._route)

    @property
    def distance_km(self) -> float:
        return self._distance_km

    @property
    def last_point(self) -> Optional[GeoPoint]:
        return self._last_point

    @property
    def start_time(self) -> Optional[datetime]:
        return self._start_time

    @property
    def elapsed_seconds(self) -> int:
        """Elapsed time as of the last tick (or the final duration once stopped)."""
        return self._elapsed

    @property
    def error(self) -> Optional[Exception]:
        """Failure reported by the position source, if it ended the session."""
        return self._error

    @property
    def duration_seconds(self) -> int:
        if self._start_mono is None:
            return 0
        end = self._stop_mono if self._stop_mono is not None else self._monotonic()
        return max(0, int(end - self._start_mono))

    # --------- Transitions --------- #

    def start(self) -> None:
        """
        Begin tracking.

        Requests location permission, then subscribes to the position source
        and the ticker. If either subscription fails, whatever was acquired
        is released and the session stays Idle.

        Raises:
            AlreadyTracking: If the session is already tracking
            InvalidSessionState: If the session has already been stopped
            PermissionDenied: If the position source refuses access
        """
        with self._lock:
            if self._state is SessionState.TRACKING:
                raise AlreadyTracking(self._state)
            if self._state is SessionState.STOPPED:
                raise InvalidSessionState("start", self._state)

            if not self._source.request_permission():
                logger.warning("Location permission denied, cannot start tracking")
                raise PermissionDenied("Location permission denied. Cannot start tracking.")

            self._route = []
            self._distance_km = 0.0
            self._last_point = None
            self._error = None
            self._elapsed = 0
            self._start_time = to_utc_second(self._wall_clock())
            self._start_mono = self._monotonic()
            self._state = SessionState.TRACKING

            stack = ExitStack()
            try:
                stack.enter_context(
                    PositionStream(self._source, self.on_position_update, self.on_position_error, self._options)
                )
                stack.enter_context(TickStream(self._ticker, self.on_tick, self._tick_period_ms))
            except Exception:
                stack.close()
                self._state = SessionState.IDLE
                self._route = []
                self._distance_km = 0.0
                self._last_point = None
                self._start_time = None
                self._start_mono = None
                logger.exception("Could not subscribe to position updates and ticks")
                raise
            started = self._state is SessionState.TRACKING
            if started:
                self._resources = stack

        if not started:
            # the source failed while subscribing and already stopped us;
            # released outside the lock like in stop()
            stack.close()
            return
        logger.info(f"Tracking started at {self._start_time.isoformat()}")

    def stop(self) -> None:
        """
        Stop tracking and release the position and ticker subscriptions.

        Idempotent once stopped.

        Raises:
            InvalidSessionState: If the session was never started
        """
        with self._lock:
            if self._state is SessionState.STOPPED:
                return
            if self._state is SessionState.IDLE:
                raise InvalidSessionState("stop", self._state)

            self._stop_mono = self._monotonic()
            self._state = SessionState.STOPPED
            self._elapsed = self.duration_seconds
            resources, self._resources = self._resources, None

        # Released outside the lock: a ticker worker may be waiting on it
        if resources is not None:
            resources.close()
        logger.info(
            f"Tracking stopped after {self._elapsed}s, "
            f"{len(self._route)} points, {self._distance_km:.2f} km"
        )

    def finalize(self, name: Optional[str] = None, photo_reference: Optional[str] = None) -> ActivityCreate:
        """
        Build the activity recorded by this session.

        Does not persist anything; pass the result to ActivityStore.save().

        Args:
            name: Activity name, defaults to "Activity on <date> at <time>"
            photo_reference: Opaque reference to a photo, stored as-is

        Returns:
            Activity without id

        Raises:
            InvalidSessionState: If the session is not stopped
            NoRouteData: If no position fix was recorded
        """
        with self._lock:
            if self._state is not SessionState.STOPPED:
                raise InvalidSessionState("finalize", self._state)
            if not self._route:
                raise NoRouteData(
                    "No location data recorded for this activity. "
                    "Please ensure location services are enabled."
                )

            activity = ActivityCreate(
                name=name or default_activity_name(self._start_time),
                date=self._start_time,
                duration=self.duration_seconds,
                distance=self._distance_km,
                route=tuple(self._route),
                photo_reference=photo_reference,
            )

        logger.info(f"Activity {activity.name!r} finalized")
        return activity

    # --------- Events --------- #

    def on_position_update(self, point: GeoPoint) -> None:
        """Apply one position fix. Ignored unless tracking."""
        with self._lock:
            if self._state is not SessionState.TRACKING:
                logger.debug(f"Ignoring position update while {self._state.value}")
                return

            if self._last_point is not None:
                self._distance_km += haversine_km(self._last_point, point)
            self._route.append(point)
            self._last_point = point
        self._notify()

    def on_tick(self) -> None:
        with self._lock:
            if self._state is not SessionState.TRACKING:
                return
            # recomputed from the clock rather than counted, so ticks never drift
            self._elapsed = self.duration_seconds
        self._notify()

    def on_position_error(self, error: Exception) -> None:
        """Position source failure: stop tracking, keep what was recorded."""
        logger.error(f"Position source error: {error}")
        with self._lock:
            if self._state is not SessionState.TRACKING:
                return
            self._error = error
        self.stop()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    # --------- Scoped use --------- #

    def __enter__(self) -> "TrackingSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._state is SessionState.TRACKING:
            self.stop()
