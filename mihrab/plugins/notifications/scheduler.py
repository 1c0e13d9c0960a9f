"""
Keeps the dispatcher's pending set equal to the prayer instants of the next
seven days that are still in the future.
"""
import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from mihrab.core.clock import resolve_zone
from mihrab.core.prayers import Coordinates, PrayerName
from mihrab.plugins.prayer_times.methods import CalculationMethod
from mihrab.plugins.prayer_times.prayer_base import PrayerBackend
from .dispatcher import NotificationDispatcher, PendingNotification

TEST_NOTIFICATION_ID = 9999
TEST_NOTIFICATION_DELAY = timedelta(seconds=3)


class NotificationScheduler:
    def __init__(self, backend: PrayerBackend, dispatcher: NotificationDispatcher, config: Dict[str, Any]):
        self.backend = backend
        self.dispatcher = dispatcher
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self._lock = threading.Lock()

    @property
    def horizon_days(self) -> int:
        return int(self.config.get("horizon_days", 7))

    def _now(self, now: Optional[datetime]) -> datetime:
        zone = resolve_zone(self.config.get("timezone"))
        if now is None:
            return datetime.now(zone)
        if now.tzinfo is None:
            return now.replace(tzinfo=zone)
        return now

    def _entry(self, notification_id: int, prayer: PrayerName, when: datetime) -> PendingNotification:
        return PendingNotification(
            id=notification_id,
            fire_at=when,
            title=self.config.get("title_template", "It is time for {prayer}").format(prayer=prayer.value),
            body=self.config.get("body_template", "{prayer} has begun.").format(prayer=prayer.value),
            sound=self.config.get("sound"),
            channel=self.config.get("channel"),
        )

    def build_candidates(self, coordinates: Coordinates, method: CalculationMethod, now: datetime) -> List[PendingNotification]:
        """Future prayer instants for today + 0..horizon-1, numbered from 1 in time order."""
        pairs = []
        for offset in range(self.horizon_days):
            day = now.date() + timedelta(days=offset)
            times = self.backend.compute_times(coordinates, day, method)
            for prayer in PrayerName:
                pairs.append((prayer, times[prayer]))

        future = [(prayer, when) for prayer, when in pairs if when > now]
        return [self._entry(index, prayer, when) for index, (prayer, when) in enumerate(future, start=1)]

    def sync(
        self,
        coordinates: Optional[Coordinates],
        method: CalculationMethod,
        enabled: bool,
        now: Optional[datetime] = None,
    ) -> Optional[int]:
        """Bring the pending set in line with the inputs.

        Returns the number of scheduled entries, 0 after a disable, or None when
        nothing was changed (no location, no permission, or an error).
        """
        with self._lock:
            try:
                if not enabled:
                    self.cancel_all()
                    self.logger.info("Notifications disabled, pending set cleared")
                    return 0

                if coordinates is None:
                    self.logger.debug("No coordinates yet, not scheduling notifications")
                    return None

                if not self.dispatcher.request_permission():
                    self.logger.warning("Notification permission denied, skipping schedule")
                    return None

                current = self._now(now)
                # Computed before anything is cancelled so a calculator failure leaves the prior set
                candidates = self.build_candidates(coordinates, method, current)

                self.cancel_all()
                self.dispatcher.schedule(candidates)
                self.logger.info(
                    f"Scheduled {len(candidates)} prayer notifications over {self.horizon_days} days "
                    f"({method.value} at {coordinates.lat:.4f},{coordinates.lng:.4f})"
                )
                return len(candidates)
            except Exception as e:
                self.logger.error(f"Error syncing notifications: {e}", exc_info=True)
                return None

    def cancel_all(self) -> None:
        pending = self.dispatcher.list_pending()
        if pending:
            self.dispatcher.cancel(pending)

    def send_test_notification(self, now: Optional[datetime] = None) -> bool:
        """One-off notification 3 seconds ahead to check the dispatcher wiring."""
        try:
            if not self.dispatcher.request_permission():
                self.logger.warning("Notification permission denied, test notification skipped")
                return False
            entry = PendingNotification(
                id=TEST_NOTIFICATION_ID,
                fire_at=self._now(now) + TEST_NOTIFICATION_DELAY,
                title="Mihrab test notification",
                body="This is how upcoming prayer notifications will look and sound.",
                sound=self.config.get("sound"),
                channel=self.config.get("channel"),
            )
            self.dispatcher.schedule([entry])
            self.logger.info(f"Test notification scheduled for {entry.fire_at}")
            return True
        except Exception as e:
            self.logger.error(f"Failed to schedule test notification: {e}")
            return False
