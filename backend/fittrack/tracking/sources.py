"""
Collaborators feeding a TrackingSession.

PositionSource and Ticker are the contracts of the external location service
and periodic timer. PositionStream and TickStream wrap one subscription each
as a cancellable push stream: opening subscribes, closing unsubscribes, and
events pushed after close() are dropped.
"""

from typing import Any, Callable, Optional, Protocol

from loguru import logger
from pydantic import BaseModel, ConfigDict

from fittrack.core.config import Settings
from fittrack.core.constants import DEFAULT_MIN_DISTANCE_M, DEFAULT_MIN_INTERVAL_MS
from fittrack.schemas.activity import GeoPoint


class PositionOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    high_accuracy: bool = True
    min_interval_ms: int = DEFAULT_MIN_INTERVAL_MS
    min_distance_meters: float = DEFAULT_MIN_DISTANCE_M

    @classmethod
    def from_settings(cls, settings: Settings) -> "PositionOptions":
        return cls(
            high_accuracy=settings.position_high_accuracy,
            min_interval_ms=settings.position_min_interval_ms,
            min_distance_meters=settings.position_min_distance_meters,
        )


class PositionSource(Protocol):
    def request_permission(self) -> bool: ...

    def subscribe(
        self,
        on_update: Callable[[GeoPoint], None],
        on_error: Callable[[Exception], None],
        options: PositionOptions,
    ) -> Any: ...

    def unsubscribe(self, handle: Any) -> None: ...


class Ticker(Protocol):
    def start(self, on_tick: Callable[[], None], period_ms: int) -> Any: ...

    def stop(self, handle: Any) -> None: ...


class PositionStream:
    """One live subscription to a PositionSource."""

    def __init__(
        self,
        source: PositionSource,
        on_point: Callable[[GeoPoint], None],
        on_error: Callable[[Exception], None],
        options: PositionOptions,
    ):
        self._source = source
        self._on_point = on_point
        self._on_error = on_error
        self._options = options
        self._handle: Optional[Any] = None
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> "PositionStream":
        # open before subscribing: a source may deliver during subscribe()
        self._open = True
        try:
            self._handle = self._source.subscribe(self._push, self._fail, self._options)
        except Exception:
            self._open = False
            raise
        return self

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        handle, self._handle = self._handle, None
        self._source.unsubscribe(handle)
        logger.debug("Position stream closed")

    def _push(self, point: GeoPoint) -> None:
        if self._open:
            self._on_point(point)

    def _fail(self, error: Exception) -> None:
        if self._open:
            self._on_error(error)

    def __enter__(self) -> "PositionStream":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class TickStream:
    """One running Ticker."""

    def __init__(self, ticker: Ticker, on_tick: Callable[[], None], period_ms: int):
        self._ticker = ticker
        self._on_tick = on_tick
        self._period_ms = period_ms
        self._handle: Optional[Any] = None
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> "TickStream":
        self._open = True
        try:
            self._handle = self._ticker.start(self._push, self._period_ms)
        except Exception:
            self._open = False
            raise
        return self

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        handle, self._handle = self._handle, None
        self._ticker.stop(handle)
        logger.debug("Tick stream closed")

    def _push(self) -> None:
        if self._open:
            self._on_tick()

    def __enter__(self) -> "TickStream":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
