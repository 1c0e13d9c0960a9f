from unittest.mock import MagicMock, patch

import requests

from mihrab.core.prayers import DEFAULT_COORDINATES, DEFAULT_LOCATION_LABEL, Coordinates
from mihrab.plugins.location.service import (
    CURRENT_LOCATION_LABEL,
    SOURCE_CONFIG,
    SOURCE_DEFAULT,
    SOURCE_IP,
    LocationService,
    format_label,
)

GET = "mihrab.plugins.location.service.requests.get"


def _response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


def test_format_label():
    assert format_label({"city": "Cairo", "countryName": "Egypt"}) == "Cairo, Egypt"
    assert format_label({"city": "", "countryName": "Egypt"}) == "Egypt"
    assert format_label({"locality": "Giza"}) == "Giza"
    assert format_label({}) is None


def test_configured_fix_wins():
    service = LocationService({"latitude": 30.0444, "longitude": 31.2357})
    payload = {"city": "Cairo", "countryName": "Egypt", "countryCode": "EG"}
    with patch(GET, return_value=_response(payload)) as get:
        fix = service.resolve()

    assert fix.source == SOURCE_CONFIG
    assert fix.coordinates == Coordinates(30.0444, 31.2357)
    assert fix.label == "Cairo, Egypt"
    assert fix.country_code == "EG"
    assert get.call_args.kwargs["params"]["latitude"] == 30.0444


def test_ip_lookup_when_nothing_configured():
    service = LocationService({"language": "ar"})
    payload = {"latitude": 24.7136, "longitude": 46.6753, "city": "Riyadh", "countryName": "Saudi Arabia", "countryCode": "SA"}
    with patch(GET, return_value=_response(payload)) as get:
        fix = service.resolve()

    assert fix.source == SOURCE_IP
    assert fix.coordinates == Coordinates(24.7136, 46.6753)
    assert fix.label == "Riyadh, Saudi Arabia"
    assert fix.country_code == "SA"
    params = get.call_args.kwargs["params"]
    assert "latitude" not in params
    assert params["localityLanguage"] == "ar"


def test_default_when_lookup_fails():
    service = LocationService({})
    with patch(GET, side_effect=requests.ConnectionError("offline")):
        fix = service.resolve()

    assert fix.is_default
    assert fix.source == SOURCE_DEFAULT
    assert fix.coordinates == DEFAULT_COORDINATES
    assert fix.label == DEFAULT_LOCATION_LABEL


def test_ip_lookup_on_the_equator():
    payload = {"latitude": 0.0, "longitude": 32.58, "city": "Entebbe", "countryName": "Uganda", "countryCode": "UG"}
    with patch(GET, return_value=_response(payload)):
        fix = LocationService({}).resolve()

    assert fix.source == SOURCE_IP
    assert fix.coordinates == Coordinates(0.0, 32.58)
    assert fix.country_code == "UG"


def test_default_when_lookup_has_no_coordinates():
    with patch(GET, return_value=_response({"city": "Somewhere"})):
        assert LocationService({}).resolve().is_default


def test_reverse_geocode_placeholder():
    service = LocationService({})
    with patch(GET, return_value=_response({"countryCode": "FR"})):
        assert service.reverse_geocode(48.85, 2.35) == CURRENT_LOCATION_LABEL
    with patch(GET, side_effect=requests.Timeout("slow")):
        assert service.reverse_geocode_details(48.85, 2.35) == (CURRENT_LOCATION_LABEL, None)
