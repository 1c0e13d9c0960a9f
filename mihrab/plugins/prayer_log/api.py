"""
Per-plugin API for the prayer log. Mounted at /api/components/prayer_log/.
"""
from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from mihrab.core.prayers import PrayerName, completed_count


class DailyRecordResponse(BaseModel):
    date: str
    prayers: Dict[str, bool]
    completed: int


class DayTotalResponse(BaseModel):
    label: str
    day: date
    completed: int
    total: int


class StatsResponse(BaseModel):
    weekly: List[DayTotalResponse]
    weekly_total: int
    weekly_percentage: int
    current_streak: int
    best_streak: int
    missed_counts: Dict[str, int]
    most_missed: Optional[str] = None
    max_missed_count: int
    total_prayers_ever: int
    total_days_logged: int


def _record_response(day: str, record) -> DailyRecordResponse:
    return DailyRecordResponse(
        date=day,
        prayers={prayer.value: done for prayer, done in record.items()},
        completed=completed_count(record),
    )


def _parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date {value!r}, expected YYYY-MM-DD")


def get_router(mihrab_app) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/components/prayer_log."""
    router = APIRouter(tags=["Prayer Log"])

    @router.get("/records/{day}", response_model=DailyRecordResponse)
    def get_record(day: str) -> DailyRecordResponse:
        parsed = _parse_day(day)
        return _record_response(parsed.isoformat(), mihrab_app.log_store.get_record(parsed))

    @router.post("/records/{day}/{prayer}/toggle", response_model=DailyRecordResponse)
    def toggle(day: str, prayer: str) -> DailyRecordResponse:
        parsed = _parse_day(day)
        try:
            name = PrayerName.parse(prayer)
        except ValueError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return _record_response(parsed.isoformat(), mihrab_app.log_store.toggle(parsed, name))

    @router.get("/stats", response_model=StatsResponse)
    def get_stats(today: Optional[str] = None) -> StatsResponse:
        stats = mihrab_app.compute_stats(_parse_day(today) if today else None)
        return StatsResponse(
            weekly=[DayTotalResponse(label=d.label, day=d.day, completed=d.completed, total=d.total) for d in stats.weekly],
            weekly_total=stats.weekly_total,
            weekly_percentage=stats.weekly_percentage,
            current_streak=stats.current_streak,
            best_streak=stats.best_streak,
            missed_counts={prayer.value: count for prayer, count in stats.missed_counts.items()},
            most_missed=stats.most_missed.value if stats.most_missed else None,
            max_missed_count=stats.max_missed_count,
            total_prayers_ever=stats.total_prayers_ever,
            total_days_logged=stats.total_days_logged,
        )

    return router
