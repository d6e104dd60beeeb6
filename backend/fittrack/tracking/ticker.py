import threading
from dataclasses import dataclass
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

_TICK_JOB_ID = "fittrack_tick"

# set while a tick callback runs on a scheduler worker thread
_in_tick = threading.local()


@dataclass
class _TickerHandle:
    scheduler: BackgroundScheduler
    job_id: str = _TICK_JOB_ID


class IntervalTicker:
    """Ticker calling `on_tick` every `period_ms` from an APScheduler job.

    Each start() gets its own BackgroundScheduler with one interval job.
    Overlapping ticks are coalesced into one. stop() removes the job and
    shuts the scheduler down waiting for a running tick: once it returns no
    further tick fires.
    """

    def start(self, on_tick: Callable[[], None], period_ms: int) -> _TickerHandle:
        if period_ms <= 0:
            raise ValueError("period_ms must be > 0")

        scheduler = BackgroundScheduler()
        handle = _TickerHandle(scheduler=scheduler)

        def tick():
            _in_tick.handle = handle
            try:
                on_tick()
            except Exception:
                logger.exception("Tick callback failed")
            finally:
                _in_tick.handle = None

        scheduler.add_job(
            tick,
            trigger=IntervalTrigger(seconds=period_ms / 1000.0),
            id=handle.job_id,
            name="Tracking session ticker",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        scheduler.start()
        logger.debug(f"Ticker started ({period_ms} ms)")
        return handle

    def stop(self, handle: _TickerHandle) -> None:
        scheduler = handle.scheduler
        if not scheduler.running:
            return
        if scheduler.get_job(handle.job_id) is not None:
            scheduler.remove_job(handle.job_id)
        # a tick stopping its own ticker cannot wait for itself
        own_worker = getattr(_in_tick, "handle", None) is handle
        scheduler.shutdown(wait=not own_worker)
        logger.debug("Ticker stopped")
