"""
Calculation method presets and the country-code auto-detection table.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class MethodParams:
    aladhan_id: int  # api.aladhan.com "method" parameter
    adhanpy_preset: Optional[str]  # adhanpy CalculationMethod member, None = use the angles below
    fajr_angle: float
    isha_angle: float
    label: str


class CalculationMethod(str, Enum):
    MUSLIM_WORLD_LEAGUE = "MuslimWorldLeague"
    EGYPTIAN = "Egyptian"
    KARACHI = "Karachi"
    UMM_AL_QURA = "UmmAlQura"
    DUBAI = "Dubai"
    MOONSIGHTING_COMMITTEE = "MoonsightingCommittee"
    NORTH_AMERICA = "NorthAmerica"
    KUWAIT = "Kuwait"
    QATAR = "Qatar"
    SINGAPORE = "Singapore"
    TEHRAN = "Tehran"
    TURKEY = "Turkey"

    @property
    def params(self) -> MethodParams:
        return METHOD_PARAMS[self]

    @classmethod
    def parse(cls, value: str) -> "CalculationMethod":
        for method in cls:
            if value in (method.value, method.name):
                return method
        raise ValueError(f"Unknown calculation method: {value!r}")


METHOD_PARAMS = {
    CalculationMethod.MUSLIM_WORLD_LEAGUE: MethodParams(3, "MUSLIM_WORLD_LEAGUE", 18.0, 17.0, "Muslim World League"),
    CalculationMethod.EGYPTIAN: MethodParams(5, "EGYPTIAN", 19.5, 17.5, "Egyptian General Authority of Survey"),
    CalculationMethod.KARACHI: MethodParams(1, "KARACHI", 18.0, 18.0, "University of Islamic Sciences, Karachi"),
    CalculationMethod.UMM_AL_QURA: MethodParams(4, "UMM_AL_QURA", 18.5, 0.0, "Umm al-Qura University, Makkah"),
    CalculationMethod.DUBAI: MethodParams(16, "DUBAI", 18.2, 18.2, "Dubai"),
    CalculationMethod.MOONSIGHTING_COMMITTEE: MethodParams(15, "MOON_SIGHTING_COMMITTEE", 18.0, 18.0, "Moonsighting Committee"),
    CalculationMethod.NORTH_AMERICA: MethodParams(2, "NORTH_AMERICA", 15.0, 15.0, "Islamic Society of North America (ISNA)"),
    CalculationMethod.KUWAIT: MethodParams(9, "KUWAIT", 18.0, 17.5, "Kuwait"),
    CalculationMethod.QATAR: MethodParams(10, "QATAR", 18.0, 0.0, "Qatar"),
    CalculationMethod.SINGAPORE: MethodParams(11, "SINGAPORE", 20.0, 18.0, "Singapore"),
    CalculationMethod.TEHRAN: MethodParams(7, None, 17.7, 14.0, "Institute of Geophysics, University of Tehran"),
    CalculationMethod.TURKEY: MethodParams(13, None, 18.0, 17.0, "Diyanet İşleri Başkanlığı, Turkey"),
}

_COUNTRY_METHODS = {
    "SA": CalculationMethod.UMM_AL_QURA,
    "EG": CalculationMethod.EGYPTIAN,
    "SD": CalculationMethod.EGYPTIAN,
    "LY": CalculationMethod.EGYPTIAN,
    "PK": CalculationMethod.KARACHI,
    "IN": CalculationMethod.KARACHI,
    "BD": CalculationMethod.KARACHI,
    "AF": CalculationMethod.KARACHI,
    "LK": CalculationMethod.KARACHI,
    "US": CalculationMethod.NORTH_AMERICA,
    "CA": CalculationMethod.NORTH_AMERICA,
    "AE": CalculationMethod.DUBAI,
    "KW": CalculationMethod.KUWAIT,
    "QA": CalculationMethod.QATAR,
    "SG": CalculationMethod.SINGAPORE,
    "MY": CalculationMethod.SINGAPORE,
    "ID": CalculationMethod.SINGAPORE,
    "TR": CalculationMethod.TURKEY,
    "IR": CalculationMethod.TEHRAN,
}


def method_for_country(country_code: Optional[str]) -> CalculationMethod:
    """Preset conventionally used in the given ISO country; Muslim World League elsewhere."""
    if not country_code:
        return CalculationMethod.MUSLIM_WORLD_LEAGUE
    return _COUNTRY_METHODS.get(country_code.strip().upper(), CalculationMethod.MUSLIM_WORLD_LEAGUE)
