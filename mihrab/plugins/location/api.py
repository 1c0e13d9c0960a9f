"""
Per-plugin API for the device location. Mounted at /api/components/location/.
"""
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from mihrab.core.prayers import Coordinates
from .service import SOURCE_CONFIG, LocationFix


class LocationResponse(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    label: Optional[str] = None
    calculation_method: str
    method_source: str


class CoordinatesRequest(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    label: Optional[str] = None


def get_router(mihrab_app) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/components/location."""
    router = APIRouter(tags=["Location"])

    def _current() -> LocationResponse:
        settings = mihrab_app.settings
        coords = settings.coordinates
        return LocationResponse(
            latitude=coords.lat if coords else None,
            longitude=coords.lng if coords else None,
            label=settings.location_label,
            calculation_method=settings.calculation_method,
            method_source=settings.method_source,
        )

    @router.get("", response_model=LocationResponse)
    def get_location() -> LocationResponse:
        return _current()

    @router.post("", response_model=LocationResponse)
    def set_location(body: CoordinatesRequest) -> LocationResponse:
        """Store a device fix; the label is reverse-geocoded when not given."""
        coords = Coordinates(body.latitude, body.longitude)
        country = None
        label = body.label
        if label is None:
            label, country = mihrab_app.location_service.reverse_geocode_details(coords.lat, coords.lng)
        mihrab_app.apply_location_fix(LocationFix(coords, label, country, SOURCE_CONFIG))
        return _current()

    @router.post("/refresh", response_model=LocationResponse)
    def refresh_location() -> LocationResponse:
        mihrab_app.refresh_location()
        return _current()

    return router
