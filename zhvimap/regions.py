"""State registry and ZIP → state lookup.

Both tables are static reference data. Map centers are (lat, lon) and
zoom levels follow Leaflet's scale.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Region:
    """A selectable map region (one US state or DC)."""

    id: str
    name: str
    center: tuple[float, float]
    zoom: int

    @property
    def file(self) -> str:
        """Name of the region's ZIP boundary GeoJSON."""
        return f"{self.id.lower()}_zips.geojson"


def _region(abbr: str, name: str, lat: float, lon: float, zoom: int = 7) -> Region:
    return Region(id=abbr, name=name, center=(lat, lon), zoom=zoom)


STATES: dict[str, Region] = {r.id: r for r in (
    _region("AL", "Alabama", 32.8, -86.8),
    _region("AK", "Alaska", 63.6, -152.5, 4),
    _region("AZ", "Arizona", 34.2, -111.7, 6),
    _region("AR", "Arkansas", 34.9, -92.4),
    _region("CA", "California", 37.2, -119.5, 6),
    _region("CO", "Colorado", 39.0, -105.5),
    _region("CT", "Connecticut", 41.6, -72.7, 8),
    _region("DE", "Delaware", 39.0, -75.5, 8),
    _region("DC", "District of Columbia", 38.9, -77.03, 11),
    _region("FL", "Florida", 28.6, -82.4, 6),
    _region("GA", "Georgia", 32.7, -83.4),
    _region("HI", "Hawaii", 20.6, -157.5),
    _region("ID", "Idaho", 44.4, -114.6, 6),
    _region("IL", "Illinois", 40.0, -89.2, 6),
    _region("IN", "Indiana", 39.9, -86.3),
    _region("IA", "Iowa", 42.1, -93.5),
    _region("KS", "Kansas", 38.5, -98.4),
    _region("KY", "Kentucky", 37.5, -85.3),
    _region("LA", "Louisiana", 31.1, -92.0),
    _region("ME", "Maine", 45.4, -69.2),
    _region("MD", "Maryland", 39.0, -76.8, 8),
    _region("MA", "Massachusetts", 42.3, -71.8, 8),
    _region("MI", "Michigan", 44.3, -85.4, 6),
    _region("MN", "Minnesota", 46.3, -94.3, 6),
    _region("MS", "Mississippi", 32.7, -89.7),
    _region("MO", "Missouri", 38.4, -92.5),
    _region("MT", "Montana", 47.0, -109.6, 6),
    _region("NE", "Nebraska", 41.5, -99.8),
    _region("NV", "Nevada", 39.3, -116.6, 6),
    _region("NH", "New Hampshire", 43.7, -71.6, 8),
    _region("NJ", "New Jersey", 40.2, -74.7, 8),
    _region("NM", "New Mexico", 34.4, -106.1, 6),
    _region("NY", "New York", 42.9, -75.5),
    _region("NC", "North Carolina", 35.5, -79.4),
    _region("ND", "North Dakota", 47.5, -100.5),
    _region("OH", "Ohio", 40.3, -82.8),
    _region("OK", "Oklahoma", 35.6, -97.5),
    _region("OR", "Oregon", 43.9, -120.6, 6),
    _region("PA", "Pennsylvania", 40.9, -77.8),
    _region("RI", "Rhode Island", 41.7, -71.5, 9),
    _region("SC", "South Carolina", 33.9, -80.9),
    _region("SD", "South Dakota", 44.4, -100.2),
    _region("TN", "Tennessee", 35.9, -86.4),
    _region("TX", "Texas", 31.5, -99.3, 6),
    _region("UT", "Utah", 39.3, -111.7),
    _region("VT", "Vermont", 44.1, -72.7, 8),
    _region("VA", "Virginia", 37.5, -78.8),
    _region("WA", "Washington", 47.4, -120.5),
    _region("WV", "West Virginia", 38.6, -80.6),
    _region("WI", "Wisconsin", 44.6, -89.9),
    _region("WY", "Wyoming", 43.0, -107.6),
)}

# Inclusive five-digit ZIP ranges, built from USPS three-digit prefixes. Ranges
# for territories and military mail are left out so they resolve to nothing.
ZIP_RANGES: list[tuple[int, int, str]] = [
    (500, 599, "NY"),
    (1000, 2799, "MA"),
    (2800, 2999, "RI"),
    (3000, 3899, "NH"),
    (3900, 4999, "ME"),
    (5000, 5499, "VT"),
    (5500, 5599, "MA"),
    (5600, 5999, "VT"),
    (6000, 6999, "CT"),
    (7000, 8999, "NJ"),
    (10000, 14999, "NY"),
    (15000, 19699, "PA"),
    (19700, 19999, "DE"),
    (20000, 20099, "DC"),
    (20100, 20199, "VA"),
    (20200, 20599, "DC"),
    (20600, 21999, "MD"),
    (22000, 24699, "VA"),
    (24700, 26899, "WV"),
    (27000, 28999, "NC"),
    (29000, 29999, "SC"),
    (30000, 31999, "GA"),
    (32000, 33999, "FL"),
    (34100, 34999, "FL"),
    (35000, 36999, "AL"),
    (37000, 38599, "TN"),
    (38600, 39799, "MS"),
    (39800, 39999, "GA"),
    (40000, 42799, "KY"),
    (43000, 45999, "OH"),
    (46000, 47999, "IN"),
    (48000, 49999, "MI"),
    (50000, 52899, "IA"),
    (53000, 54999, "WI"),
    (55000, 56799, "MN"),
    (56900, 56999, "DC"),
    (57000, 57799, "SD"),
    (58000, 58899, "ND"),
    (59000, 59999, "MT"),
    (60000, 62999, "IL"),
    (63000, 65899, "MO"),
    (66000, 67999, "KS"),
    (68000, 69399, "NE"),
    (70000, 71499, "LA"),
    (71600, 72999, "AR"),
    (73000, 73299, "OK"),
    (73300, 73399, "TX"),
    (73400, 74999, "OK"),
    (75000, 79999, "TX"),
    (80000, 81699, "CO"),
    (82000, 83199, "WY"),
    (83200, 83899, "ID"),
    (84000, 84799, "UT"),
    (85000, 86599, "AZ"),
    (87000, 88499, "NM"),
    (88500, 88599, "TX"),
    (88900, 89899, "NV"),
    (90000, 96199, "CA"),
    (96700, 96899, "HI"),
    (97000, 97999, "OR"),
    (98000, 99499, "WA"),
    (99500, 99950, "AK"),
]


def normalize_zip(value) -> Optional[str]:
    """Return a 5-character zero-padded ZIP string, or None for blanks.

    Accepts ints, numeric strings and float-ish strings as produced by a
    CSV reader that guessed the column type ("501.0").
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == "nan":
        return None
    if text.endswith(".0"):
        text = text[:-2]
    return text.zfill(5)


def is_valid_zip(zip_code: str) -> bool:
    return isinstance(zip_code, str) and len(zip_code) == 5 and zip_code.isdigit()


def state_for_zip(zip_code: str) -> Optional[str]:
    """Resolve a ZIP to its state abbreviation, or None if unknown."""
    if not is_valid_zip(zip_code):
        return None
    number = int(zip_code)
    for low, high, state in ZIP_RANGES:
        if low <= number <= high:
            return state
    return None


def get_region(region_id: str) -> Optional[Region]:
    return STATES.get(region_id)


def sorted_regions() -> list[Region]:
    """Regions ordered by display name, as a state picker lists them."""
    return sorted(STATES.values(), key=lambda r: r.name)
