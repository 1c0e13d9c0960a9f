"""
Service layer: the ritual-repetition counter.

Two tallies are kept: a per-day count and a separately persisted running total.
Both move together inside one transaction.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from sqlalchemy import select

from mihrab.core.clock import date_key
from mihrab.core.db import session_scope
from mihrab.core.models import Setting, _utc_now
from mihrab.core.settings import NAMESPACE
from mihrab.plugins.tasbih.models import TasbihCount

logger = logging.getLogger(__name__)

TOTAL_KEY = "tasbih_total"


@dataclass(frozen=True)
class Dhikr:
    id: int
    text: str
    target: int


DHIKR_LIST = (
    Dhikr(1, "سبحان الله", 33),
    Dhikr(2, "الحمد لله", 33),
    Dhikr(3, "الله أكبر", 33),
    Dhikr(4, "لا إله إلا الله", 100),
    Dhikr(5, "أستغفر الله", 100),
    Dhikr(6, "اللهم صل وسلم على نبينا محمد", 10),
)


class TasbihCounter:
    def __init__(self, namespace: str = NAMESPACE):
        self.namespace = namespace

    def record(self, day: Union[date, str], count: int = 1) -> int:
        """Add `count` recitations to the day and to the running total. Returns the new day count."""
        if count < 1:
            raise ValueError(f"count must be positive, got {count}")
        key = date_key(day)
        with session_scope() as session:
            row = session.get(TasbihCount, key)
            if row is None:
                row = TasbihCount(count_date=key, count=0)
                session.add(row)
            row.count += count

            total = session.execute(
                select(Setting).where(Setting.namespace == self.namespace, Setting.key == TOTAL_KEY)
            ).scalars().first()
            if total is None:
                session.add(Setting(namespace=self.namespace, key=TOTAL_KEY, value=count))
            else:
                total.value = int(total.value or 0) + count
                total.updated_at = _utc_now()
            day_count = row.count
        logger.debug(f"Recorded {count} recitation(s) on {key}; day count {day_count}")
        return day_count

    def count_for(self, day: Union[date, str]) -> int:
        with session_scope() as session:
            row = session.get(TasbihCount, date_key(day))
            return row.count if row else 0

    def total(self) -> int:
        with session_scope() as session:
            row = session.execute(
                select(Setting).where(Setting.namespace == self.namespace, Setting.key == TOTAL_KEY)
            ).scalars().first()
            return int(row.value) if row and row.value else 0


class DhikrSession:
    """One sitting with the counter: taps stop at the selected phrase's target."""

    def __init__(self, counter: TasbihCounter, today_provider, index: int = 0):
        self.counter = counter
        self.today_provider = today_provider
        self.index = index % len(DHIKR_LIST)
        self.count = 0

    @property
    def dhikr(self) -> Dhikr:
        return DHIKR_LIST[self.index]

    @property
    def completed(self) -> bool:
        return self.count >= self.dhikr.target

    def tap(self) -> bool:
        """Count one recitation. Returns False (and records nothing) once the target is reached."""
        if self.completed:
            return False
        self.count += 1
        self.counter.record(self.today_provider(), 1)
        return True

    def reset(self) -> None:
        self.count = 0

    def select(self, index: int) -> Dhikr:
        self.index = index % len(DHIKR_LIST)
        self.count = 0
        return self.dhikr

    def next(self) -> Dhikr:
        return self.select(self.index + 1)

    def previous(self) -> Dhikr:
        return self.select(self.index - 1)

    def progress(self) -> float:
        """Percent of the target reached, capped at 100."""
        return min(self.count / self.dhikr.target * 100, 100.0)


def find_dhikr(dhikr_id: int) -> Optional[int]:
    """Index of the phrase with this id in DHIKR_LIST."""
    for index, dhikr in enumerate(DHIKR_LIST):
        if dhikr.id == dhikr_id:
            return index
    return None
