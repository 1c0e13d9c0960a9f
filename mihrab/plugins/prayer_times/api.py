"""
Per-plugin API for Prayer Times. Mounted at /api/components/prayer_times/.
"""
from datetime import date, datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from .methods import CalculationMethod


class DayTimesResponse(BaseModel):
    date: date
    method: str
    latitude: float
    longitude: float
    times: Dict[str, datetime]


class NextPrayerResponse(BaseModel):
    prayer: str
    time: datetime
    remaining_seconds: int
    text: str


class MethodResponse(BaseModel):
    name: str
    label: str


def get_router(mihrab_app) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/components/prayer_times."""
    router = APIRouter(tags=["Prayer Times"])

    @router.get("/day", response_model=DayTimesResponse)
    def get_day(day: Optional[str] = None) -> DayTimesResponse:
        try:
            target = date.fromisoformat(day) if day else mihrab_app.today()
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid date {day!r}, expected YYYY-MM-DD")
        coords = mihrab_app.effective_coordinates()
        method = mihrab_app.calculation_method()
        try:
            times = mihrab_app.times_for_day(target)
        except Exception as e:
            raise HTTPException(status_code=503, detail=f"Prayer times unavailable: {e}")
        return DayTimesResponse(
            date=target,
            method=method.value,
            latitude=coords.lat,
            longitude=coords.lng,
            times={prayer.value: when for prayer, when in times.items()},
        )

    @router.get("/next", response_model=NextPrayerResponse)
    def get_next() -> NextPrayerResponse:
        try:
            upcoming = mihrab_app.next_prayer()
        except Exception as e:
            raise HTTPException(status_code=503, detail=f"Prayer times unavailable: {e}")
        return NextPrayerResponse(
            prayer=upcoming.prayer.value,
            time=upcoming.time,
            remaining_seconds=max(0, int(upcoming.remaining.total_seconds())),
            text=upcoming.describe(),
        )

    @router.get("/methods", response_model=List[MethodResponse])
    def list_methods() -> List[MethodResponse]:
        return [MethodResponse(name=m.value, label=m.params.label) for m in CalculationMethod]

    return router
