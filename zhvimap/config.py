"""ZHVI map configuration: paths, year window, palette, timings."""

from __future__ import annotations

import os
from pathlib import Path

# Set up paths relative to the project root
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = Path(os.environ.get("ZHVIMAP_DATA_DIR", PROJECT_ROOT / "data"))
RESOURCES_DIR = PROJECT_ROOT / "resources"
GEOJSON_DIR = Path(os.environ.get("ZHVIMAP_GEOJSON_DIR", PROJECT_ROOT / "geojsons"))
GEOJSON_URL = os.environ.get("ZHVIMAP_GEOJSON_URL", "")

ZHVI_FILE = DATA_DIR / "ZHVI_by_zip.csv"
ZCTA_SHAPEFILE = RESOURCES_DIR / "shapefiles" / "cb_2020_us_zcta520_500k.shp"

ZILLOW_URL = "https://files.zillowstatic.com/research/public_csvs/zhvi/Zip_zhvi_uc_sfrcondo_tier_0.33_0.67_sm_sa_month.csv"
REQUEST_TIMEOUT = 60

# ── Dataset ───────────────────────────────────────────────────────────────────
ZIP_COLUMN = "Zip_Code"
FIRST_YEAR = 2000
LAST_YEAR = 2025
YEARS = list(range(FIRST_YEAR, LAST_YEAR + 1))
BASE_YEAR = FIRST_YEAR  # hover panel reports change since this year

# ── Range trimming ────────────────────────────────────────────────────────────
LOWER_PERCENTILE = 0.05
MEDIAN_PERCENTILE = 0.5
UPPER_PERCENTILE = 0.95
EMPTY_RANGE_UPPER = 1_000_000

# ── Colors ────────────────────────────────────────────────────────────────────
# Ordered low → high
PALETTE = [
    "#DADFCE",
    "#C6DCCB",
    "#99CCFF",
    "#0BB4FF",
    "#67A275",
    "#FEC439",
    "#F4743B",
]
NO_DATA_COLOR = "#6b7280"

BASE_STYLE = {
    "weight": 1,
    "opacity": 0.6,
    "color": "#1a1a2e",
    "fillOpacity": 0.4,
}
HIGHLIGHT_STYLE = {
    "weight": 3,
    "color": "#fbbf24",
    "fillOpacity": 1,
}

# ── Geometry ──────────────────────────────────────────────────────────────────
# Feature property names that may carry the ZIP, in lookup order
ZIP_PROPERTY_KEYS = ("ZCTA5CE10", "ZCTA5CE20", "zip")

# ── Timings (seconds) ─────────────────────────────────────────────────────────
PLAY_INTERVAL = 0.8
HIGHLIGHT_SECONDS = 3.0
