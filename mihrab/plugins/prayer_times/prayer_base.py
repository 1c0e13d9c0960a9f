import requests
from datetime import date, datetime
from typing import Dict, Any
import logging
from abc import ABC, abstractmethod
from zoneinfo import ZoneInfo

from adhanpy.PrayerTimes import PrayerTimes
from adhanpy.calculation import CalculationMethod as AdhanCalculationMethod

from mihrab.core.cache_helper import CacheHelper
from mihrab.core.clock import resolve_zone
from mihrab.core.prayers import Coordinates, PrayerName
from .methods import CalculationMethod

DayTimes = Dict[PrayerName, datetime]


class PrayerBackend(ABC):
    """Base class for prayer time calculation backends"""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def compute_times(self, coordinates: Coordinates, day: date, method: CalculationMethod) -> DayTimes:
        """Five timezone-aware prayer instants for one calendar day.
        Raises on failure; callers decide how to degrade.
        """
        pass


class AdhanpyBackend(PrayerBackend):
    """Offline astronomical calculation with adhanpy"""

    def compute_times(self, coordinates: Coordinates, day: date, method: CalculationMethod) -> DayTimes:
        zone = resolve_zone(self.config.get("timezone"))
        params = method.params
        when = datetime(day.year, day.month, day.day)
        if params.adhanpy_preset:
            pt = PrayerTimes(
                (coordinates.lat, coordinates.lng),
                when,
                getattr(AdhanCalculationMethod, params.adhanpy_preset),
                time_zone=zone,
            )
        else:
            from adhanpy.calculation.CalculationParameters import CalculationParameters

            pt = PrayerTimes(
                (coordinates.lat, coordinates.lng),
                when,
                calculation_parameters=CalculationParameters(
                    fajr_angle=params.fajr_angle, isha_angle=params.isha_angle
                ),
                time_zone=zone,
            )
        return {
            PrayerName.FAJR: pt.fajr,
            PrayerName.DHUHR: pt.dhuhr,
            PrayerName.ASR: pt.asr,
            PrayerName.MAGHRIB: pt.maghrib,
            PrayerName.ISHA: pt.isha,
        }


class AladhanBackend(PrayerBackend):
    """Prayer times backend using api.aladhan.com"""

    API_URL = "http://api.aladhan.com/v1/timings"
    SCHOOLS = {"Shafi": 0, "Hanafi": 1}

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        # Times for a fixed (date, place, method) never change, so entries never expire
        self.cache_helper = CacheHelper(config.get("cache_dir"), "prayer_times")

    def compute_times(self, coordinates: Coordinates, day: date, method: CalculationMethod) -> DayTimes:
        cache_key = (
            f"prayer_times_{day.isoformat()}_{coordinates.lat:.4f}_{coordinates.lng:.4f}"
            f"_{method.value}_{self.config.get('madhab', 'Shafi')}"
        )
        cached = self.cache_helper.get_cached_content(cache_key)
        if cached:
            self.logger.debug(f"Got from cache: {cache_key}")
            return self._parse_timings(day, cached)

        payload = self._fetch_timings(coordinates, day, method)
        self.cache_helper.save_to_cache(cache_key, payload)
        return self._parse_timings(day, payload)

    def _fetch_timings(self, coordinates: Coordinates, day: date, method: CalculationMethod) -> Dict[str, Any]:
        url = f"{self.API_URL}/{day.strftime('%d-%m-%Y')}"
        params = {
            "latitude": coordinates.lat,
            "longitude": coordinates.lng,
            "method": method.params.aladhan_id,
            "school": self.SCHOOLS.get(self.config.get("madhab", "Shafi"), 0),
        }
        self.logger.info(f"Making API request to {url} with params {params}")
        response = requests.get(url, params=params, timeout=self.config.get("timeout", 10))
        response.raise_for_status()
        data = response.json()["data"]
        return {
            "timezone": data["meta"]["timezone"],
            "timings": {prayer.value: data["timings"][prayer.value] for prayer in PrayerName},
        }

    def _parse_timings(self, day: date, payload: Dict[str, Any]) -> DayTimes:
        zone = ZoneInfo(payload["timezone"])
        result = {}
        for prayer in PrayerName:
            # Values look like "05:12" or "05:12 (+03)"
            hhmm = payload["timings"][prayer.value].strip()[:5]
            naive = datetime.strptime(f"{day.isoformat()} {hhmm}", "%Y-%m-%d %H:%M")
            result[prayer] = naive.replace(tzinfo=zone)
        return result


def create_backend(config: Dict[str, Any]) -> PrayerBackend:
    """Create prayer times backend based on configuration"""
    backend_type = config.get("backend", "adhanpy")
    if backend_type == "adhanpy":
        return AdhanpyBackend(config)
    if backend_type == "aladhan":
        return AladhanBackend(config)
    raise ValueError(f"Unknown prayer times backend: {backend_type}")
