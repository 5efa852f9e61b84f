"""ZIP-level home value choropleth core: dataset, ranges, colors, view state."""

from zhvimap.colors import ColorScale, format_currency
from zhvimap.controller import RenderUpdate, ScaleMode, ViewController, ViewStatus
from zhvimap.dataset import PriceDataset
from zhvimap.errors import (
    DataLoadError,
    GeometryLoadError,
    LookupMiss,
    Result,
    SearchResult,
    ValidationError,
    ZhviMapError,
)
from zhvimap.geometry import GeoJSONFileFetcher, GeoJSONHttpFetcher, GeometrySet, RegionCache, default_fetcher
from zhvimap.ranges import PriceRange, compute_range
from zhvimap.regions import STATES, Region, state_for_zip
