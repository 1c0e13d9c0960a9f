"""
Persisted user preferences under a stable namespace.

Every setter commits before returning, so a restart reads back exactly what was
written. Values are stored as JSON in the ``settings`` table.
"""
import logging
from typing import Any, Optional, Tuple

from sqlalchemy import select

from mihrab.core.db import session_scope
from mihrab.core.models import Setting, _utc_now
from mihrab.core.prayers import Coordinates
from mihrab.plugins.prayer_times.methods import CalculationMethod

logger = logging.getLogger(__name__)

NAMESPACE = "mihrab"

METHOD_SOURCE_DEFAULT = "default"
METHOD_SOURCE_AUTO = "auto"
METHOD_SOURCE_USER = "user"


class Settings:
    """Typed accessors over the key-value settings table."""

    DEFAULT_METHOD = CalculationMethod.MUSLIM_WORLD_LEAGUE.value

    def __init__(self, namespace: str = NAMESPACE):
        self.namespace = namespace

    def get(self, key: str, default: Any = None) -> Any:
        with session_scope() as session:
            row = session.execute(
                select(Setting).where(Setting.namespace == self.namespace, Setting.key == key)
            ).scalars().first()
            if row is None or row.value is None:
                return default
            return row.value

    def set(self, key: str, value: Any) -> None:
        with session_scope() as session:
            row = session.execute(
                select(Setting).where(Setting.namespace == self.namespace, Setting.key == key)
            ).scalars().first()
            if row:
                row.value = value
                row.updated_at = _utc_now()
            else:
                session.add(Setting(namespace=self.namespace, key=key, value=value))
        logger.debug(f"Setting {self.namespace}.{key} = {value!r}")

    @property
    def coordinates(self) -> Optional[Coordinates]:
        value = self.get("coordinates")
        if not value:
            return None
        return Coordinates(float(value["lat"]), float(value["lng"]))

    @coordinates.setter
    def coordinates(self, value: Tuple[float, float]) -> None:
        lat, lng = value
        self.set("coordinates", {"lat": float(lat), "lng": float(lng)})

    @property
    def calculation_method(self) -> str:
        return self.get("calculation_method", self.DEFAULT_METHOD)

    @property
    def method_source(self) -> str:
        return self.get("method_source", METHOD_SOURCE_DEFAULT)

    def set_calculation_method(self, method: str, source: str = METHOD_SOURCE_USER) -> None:
        self.set("calculation_method", method)
        self.set("method_source", source)

    @property
    def madhab(self) -> str:
        return self.get("madhab", "Shafi")

    @madhab.setter
    def madhab(self, value: str) -> None:
        self.set("madhab", value)

    @property
    def notifications_enabled(self) -> bool:
        return bool(self.get("notifications_enabled", True))

    @notifications_enabled.setter
    def notifications_enabled(self, value: bool) -> None:
        self.set("notifications_enabled", bool(value))

    @property
    def location_label(self) -> Optional[str]:
        return self.get("location_label")

    @location_label.setter
    def location_label(self, value: Optional[str]) -> None:
        self.set("location_label", value)

    def as_dict(self) -> dict:
        coords = self.coordinates
        return {
            "coordinates": {"lat": coords[0], "lng": coords[1]} if coords else None,
            "calculation_method": self.calculation_method,
            "method_source": self.method_source,
            "madhab": self.madhab,
            "notifications_enabled": self.notifications_enabled,
            "location_label": self.location_label,
        }
