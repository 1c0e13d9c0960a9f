from dataclasses import dataclass
from typing import Dict, Any, Optional
import logging
import requests

from mihrab.core.prayers import DEFAULT_COORDINATES, DEFAULT_LOCATION_LABEL, Coordinates

CURRENT_LOCATION_LABEL = "Current location"

SOURCE_CONFIG = "config"
SOURCE_IP = "ip"
SOURCE_DEFAULT = "default"


@dataclass(frozen=True)
class LocationFix:
    coordinates: Coordinates
    label: str
    country_code: Optional[str] = None
    source: str = SOURCE_CONFIG

    @property
    def is_default(self) -> bool:
        return self.source == SOURCE_DEFAULT


def format_label(data: Dict[str, Any]) -> Optional[str]:
    """"City, Country" from a reverse-geocode payload, or None when both are missing."""
    city = (data.get("city") or data.get("locality") or "").strip()
    country = (data.get("countryName") or "").strip()
    parts = [part for part in (city, country) if part]
    return ", ".join(parts) if parts else None


class LocationService:
    """Finds the device position: configured fix, then IP lookup, then Mecca."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)

    def _lookup(self, lat: Optional[float] = None, lng: Optional[float] = None) -> Dict[str, Any]:
        url = self.config.get("lookup_url", "https://api.bigdatacloud.net/data/reverse-geocode-client")
        params = {"localityLanguage": self.config.get("language", "en")}
        if lat is not None and lng is not None:
            params["latitude"] = lat
            params["longitude"] = lng

        self.logger.debug(f"Making API request to {url} with params {params}")
        response = requests.get(url, params=params, timeout=self.config.get("timeout", 10))
        response.raise_for_status()
        return response.json()

    def configured_fix(self) -> Optional[LocationFix]:
        lat = self.config.get("latitude")
        lng = self.config.get("longitude")
        if lat is None or lng is None:
            return None
        try:
            coords = Coordinates(float(lat), float(lng))
        except (TypeError, ValueError):
            self.logger.error(f"Invalid configured location: {lat}, {lng}")
            return None
        label, country = self.reverse_geocode_details(coords.lat, coords.lng)
        return LocationFix(coords, label, country, SOURCE_CONFIG)

    def ip_fix(self) -> Optional[LocationFix]:
        try:
            data = self._lookup()
        except Exception as e:
            self.logger.error(f"IP location lookup failed: {e}")
            return None
        if data.get("latitude") is None or data.get("longitude") is None:
            self.logger.warning("IP location lookup returned no coordinates")
            return None
        coords = Coordinates(float(data["latitude"]), float(data["longitude"]))
        label = format_label(data) or CURRENT_LOCATION_LABEL
        self.logger.info(f"Location from IP lookup: {label} ({coords.lat:.4f}, {coords.lng:.4f})")
        return LocationFix(coords, label, data.get("countryCode") or None, SOURCE_IP)

    def resolve(self) -> LocationFix:
        """Never fails: the last step of the cascade is the fixed default."""
        fix = self.configured_fix() or self.ip_fix()
        if fix is not None:
            return fix
        self.logger.info("Falling back to default location")
        return LocationFix(DEFAULT_COORDINATES, DEFAULT_LOCATION_LABEL, None, SOURCE_DEFAULT)

    def reverse_geocode_details(self, lat: float, lng: float) -> tuple:
        """(label, country code) for a coordinate; the placeholder label on any failure."""
        try:
            data = self._lookup(lat, lng)
        except Exception as e:
            self.logger.error(f"Reverse geocoding failed: {e}")
            return CURRENT_LOCATION_LABEL, None
        return format_label(data) or CURRENT_LOCATION_LABEL, data.get("countryCode") or None

    def reverse_geocode(self, lat: float, lng: float) -> str:
        return self.reverse_geocode_details(lat, lng)[0]
