"""
The five daily prayers and the per-day completion record shared by every plugin.
"""
from enum import Enum
from typing import Dict, Mapping, NamedTuple, Optional

PRAYERS_PER_DAY = 5


class PrayerName(str, Enum):
    """Declaration order is the canonical order (Fajr first)."""
    FAJR = "Fajr"
    DHUHR = "Dhuhr"
    ASR = "Asr"
    MAGHRIB = "Maghrib"
    ISHA = "Isha"

    @classmethod
    def parse(cls, value: str) -> "PrayerName":
        """Case-insensitive lookup by display name ("fajr", "Fajr", "FAJR")."""
        for prayer in cls:
            if prayer.value.lower() == str(value).strip().lower():
                return prayer
        raise ValueError(f"Unknown prayer: {value!r}")


# One day's completion state: always all five prayers, absent means False
DailyRecord = Dict[PrayerName, bool]


def empty_record() -> DailyRecord:
    return {prayer: False for prayer in PrayerName}


def materialize(record: Optional[Mapping]) -> DailyRecord:
    """Fill in missing prayers as False. Keys may be PrayerName or display strings."""
    result = empty_record()
    if not record:
        return result
    for key, done in record.items():
        prayer = key if isinstance(key, PrayerName) else PrayerName.parse(key)
        result[prayer] = bool(done)
    return result


def completed_count(record: Optional[Mapping]) -> int:
    if not record:
        return 0
    return sum(1 for done in materialize(record).values() if done)


def is_complete(record: Optional[Mapping]) -> bool:
    return completed_count(record) == PRAYERS_PER_DAY


class Coordinates(NamedTuple):
    lat: float
    lng: float


# Used whenever no location fix is available yet
DEFAULT_COORDINATES = Coordinates(21.4225, 39.8262)
DEFAULT_LOCATION_LABEL = "Mecca (default)"
