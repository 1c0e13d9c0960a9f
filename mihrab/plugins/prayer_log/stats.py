"""
Adherence statistics over a snapshot of the daily log.

compute_stats() is pure: the result depends only on (logs, today).
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Mapping, Optional

from mihrab.core.clock import days_between, previous_days, to_date
from mihrab.core.prayers import PRAYERS_PER_DAY, PrayerName, completed_count, materialize

WEEK_DAYS = 7
WEEK_CAPACITY = WEEK_DAYS * PRAYERS_PER_DAY


@dataclass(frozen=True)
class DayTotal:
    label: str
    day: date
    completed: int
    total: int = PRAYERS_PER_DAY


@dataclass
class Stats:
    weekly: List[DayTotal]
    weekly_total: int
    weekly_percentage: int
    current_streak: int
    best_streak: int
    missed_counts: Dict[PrayerName, int]
    most_missed: Optional[PrayerName]
    max_missed_count: int
    total_prayers_ever: int = 0
    total_days_logged: int = 0


def _count(logs: Mapping[str, Mapping], day: date) -> int:
    return completed_count(logs.get(day.isoformat()))


def weekly_series(logs: Mapping[str, Mapping], today: date) -> List[DayTotal]:
    """The 7 days ending today, oldest first."""
    return [
        DayTotal(label=day.strftime("%A"), day=day, completed=_count(logs, day))
        for day in previous_days(today, WEEK_DAYS)
    ]


def weekly_percentage(total: int) -> int:
    if total <= 0:
        return 0
    return round(total / WEEK_CAPACITY * 100)


def current_streak(logs: Mapping[str, Mapping], today: date) -> int:
    """Complete days walking back from yesterday, plus one if today is already complete.

    An unfinished today does not break a streak that holds through yesterday; two
    incomplete days in a row (yesterday and today) do.
    """
    streak = 1 if _count(logs, today) == PRAYERS_PER_DAY else 0
    day = today - timedelta(days=1)
    while _count(logs, day) == PRAYERS_PER_DAY:
        streak += 1
        day -= timedelta(days=1)
    return streak


def most_missed(missed_counts: Mapping[PrayerName, int]) -> Optional[PrayerName]:
    """First strict maximum in Fajr..Isha order; None when nothing was missed."""
    best, best_count = None, 0
    for prayer in PrayerName:
        count = missed_counts.get(prayer, 0)
        if count > best_count:
            best, best_count = prayer, count
    return best


def compute_stats(logs: Mapping[str, Mapping], today) -> Stats:
    today = to_date(today)
    weekly = weekly_series(logs, today)
    total = sum(d.completed for d in weekly)

    missed_counts = {prayer: 0 for prayer in PrayerName}
    best = run = 0
    total_prayers_ever = total_days_logged = 0

    if logs:
        oldest = to_date(min(logs.keys()))
        for i in range(days_between(today, oldest) + 1):
            day = today - timedelta(days=i)
            raw = logs.get(day.isoformat())
            if raw is None:
                for prayer in PrayerName:
                    missed_counts[prayer] += 1
                run = 0
                continue

            record = materialize(raw)
            done = sum(1 for v in record.values() if v)
            total_days_logged += 1
            total_prayers_ever += done
            for prayer, completed in record.items():
                if not completed:
                    missed_counts[prayer] += 1

            run = run + 1 if done == PRAYERS_PER_DAY else 0
            best = max(best, run)

    current = current_streak(logs, today)
    worst = most_missed(missed_counts)
    return Stats(
        weekly=weekly,
        weekly_total=total,
        weekly_percentage=weekly_percentage(total),
        current_streak=current,
        best_streak=max(best, current),
        missed_counts=missed_counts,
        most_missed=worst,
        max_missed_count=missed_counts[worst] if worst else 0,
        total_prayers_ever=total_prayers_ever,
        total_days_logged=total_days_logged,
    )
