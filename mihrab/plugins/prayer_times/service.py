"""
Service layer: today's times, the next prayer, and a once-per-second countdown.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from mihrab.core.prayers import DEFAULT_COORDINATES, Coordinates, PrayerName
from .methods import CalculationMethod
from .prayer_base import DayTimes, PrayerBackend

logger = logging.getLogger(__name__)

TICKER_TASK = "next_prayer_countdown"


@dataclass(frozen=True)
class NextPrayer:
    prayer: PrayerName
    time: datetime
    remaining: timedelta

    def describe(self) -> str:
        total = max(0, int(self.remaining.total_seconds()))
        hours, rest = divmod(total, 3600)
        minutes, seconds = divmod(rest, 60)
        if hours:
            return f"{self.prayer.value} in {hours}h {minutes:02d}m"
        if minutes:
            return f"{self.prayer.value} in {minutes}m {seconds:02d}s"
        return f"{self.prayer.value} in {seconds}s"


def times_for_day(
    backend: PrayerBackend,
    coordinates: Optional[Coordinates],
    day,
    method: CalculationMethod,
) -> DayTimes:
    """Prayer times for a day. No location yet means the default coordinate, never an error."""
    return backend.compute_times(coordinates or DEFAULT_COORDINATES, day, method)


def next_prayer(
    backend: PrayerBackend,
    coordinates: Optional[Coordinates],
    method: CalculationMethod,
    now: datetime,
) -> NextPrayer:
    """First prayer strictly after now; after Isha this is tomorrow's Fajr."""
    today_times = times_for_day(backend, coordinates, now.date(), method)
    for prayer in PrayerName:
        when = today_times[prayer]
        if when > now:
            return NextPrayer(prayer, when, when - now)
    tomorrow = times_for_day(backend, coordinates, now.date() + timedelta(days=1), method)
    when = tomorrow[PrayerName.FAJR]
    return NextPrayer(PrayerName.FAJR, when, when - now)


class NextPrayerTicker:
    """Recomputes the next prayer every `interval` seconds until stopped."""

    def __init__(
        self,
        task_manager,
        compute: Callable[[], NextPrayer],
        on_tick: Callable[[NextPrayer], None],
        interval: float = 1.0,
    ):
        self.task_manager = task_manager
        self.compute = compute
        self.on_tick = on_tick
        self.interval = interval
        self.latest: Optional[NextPrayer] = None
        self.logger = logging.getLogger(self.__class__.__name__)

    def _tick(self) -> None:
        try:
            self.latest = self.compute()
        except Exception as e:
            self.logger.error(f"Error computing next prayer: {e}")
            return
        self.on_tick(self.latest)

    def start(self) -> None:
        self._tick()
        self.task_manager.schedule_task(TICKER_TASK, self._tick, self.interval, one_time=False)

    def stop(self) -> None:
        self.task_manager.cancel_task(TICKER_TASK)

    @property
    def running(self) -> bool:
        return self.task_manager.is_scheduled(TICKER_TASK)
