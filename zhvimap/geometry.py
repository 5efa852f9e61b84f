"""ZIP boundary geometries, fetchers and the per-region cache."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Optional

import geopandas as gpd
import requests
from shapely.geometry.base import BaseGeometry

from zhvimap.config import GEOJSON_DIR, GEOJSON_URL, REQUEST_TIMEOUT, ZIP_PROPERTY_KEYS
from zhvimap.errors import GeometryLoadError
from zhvimap.regions import Region, normalize_zip, state_for_zip

logger = logging.getLogger(__name__)

Bounds = tuple[float, float, float, float]  # minx, miny, maxx, maxy


@dataclass
class ZipFeature:
    zip_code: str
    geometry: BaseGeometry
    style: dict = field(default_factory=dict)

    @property
    def bounds(self) -> Bounds:
        return tuple(float(v) for v in self.geometry.bounds)


class GeometrySet:
    """Ordered polygon features for one region, each tagged with its ZIP.

    Only ``ZipFeature.style`` is ever changed after construction.
    """

    def __init__(self, region_id: str, features: Iterable[ZipFeature]):
        self.region_id = region_id
        self.features = list(features)
        self._by_zip = {f.zip_code: f for f in self.features}

    def __len__(self) -> int:
        return len(self.features)

    @property
    def zips(self) -> list[str]:
        return [f.zip_code for f in self.features]

    def find(self, zip_code: str) -> Optional[ZipFeature]:
        return self._by_zip.get(zip_code)

    @property
    def bounds(self) -> Optional[Bounds]:
        if not self.features:
            return None
        boxes = [f.bounds for f in self.features]
        return (
            min(b[0] for b in boxes),
            min(b[1] for b in boxes),
            max(b[2] for b in boxes),
            max(b[3] for b in boxes),
        )

    @classmethod
    def from_geodataframe(cls, region_id: str, gdf: gpd.GeoDataFrame) -> "GeometrySet":
        if gdf.empty:
            return cls(region_id, [])

        zip_key = next((k for k in ZIP_PROPERTY_KEYS if k in gdf.columns), None)
        if zip_key is None:
            raise GeometryLoadError(region_id, "features carry no ZIP property")

        features = []
        for zip_value, geom in zip(gdf[zip_key], gdf.geometry):
            zip_code = normalize_zip(zip_value)
            if zip_code is None or geom is None:
                continue
            features.append(ZipFeature(zip_code=zip_code, geometry=geom))
        return cls(region_id, features)

    @classmethod
    def from_geojson(cls, region_id: str, data: dict) -> "GeometrySet":
        """Build from a parsed GeoJSON FeatureCollection."""
        if not isinstance(data, dict) or "features" not in data:
            raise GeometryLoadError(region_id, "not a GeoJSON FeatureCollection")
        if not data["features"]:
            return cls(region_id, [])
        try:
            gdf = gpd.GeoDataFrame.from_features(data["features"])
        except Exception as err:
            raise GeometryLoadError(region_id, f"malformed features: {err}") from err
        return cls.from_geodataframe(region_id, gdf)


GeometryFetcher = Callable[[Region], Awaitable[GeometrySet]]


class GeoJSONFileFetcher:
    """Reads ``<directory>/<region.file>`` off the local disk."""

    def __init__(self, directory: Path | str = GEOJSON_DIR):
        self.directory = Path(directory)

    async def __call__(self, region: Region) -> GeometrySet:
        path = self.directory / region.file
        if not path.exists():
            raise GeometryLoadError(region.id, f"{path} not found")

        try:
            gdf = await asyncio.to_thread(gpd.read_file, path)
        except Exception as err:
            raise GeometryLoadError(region.id, str(err)) from err

        geometry = GeometrySet.from_geodataframe(region.id, gdf)
        logger.info(f"Loaded {len(geometry)} ZIP boundaries for {region.name}")
        return geometry


class GeoJSONHttpFetcher:
    """Downloads ``<base_url>/<region.file>``."""

    def __init__(self, base_url: str, timeout: float = REQUEST_TIMEOUT, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, url: str) -> dict:
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    async def __call__(self, region: Region) -> GeometrySet:
        url = f"{self.base_url}/{region.file}"
        try:
            data = await asyncio.to_thread(self._get, url)
        except (requests.RequestException, ValueError) as err:
            raise GeometryLoadError(region.id, str(err)) from err

        geometry = GeometrySet.from_geojson(region.id, data)
        logger.info(f"Loaded {len(geometry)} ZIP boundaries for {region.name}")
        return geometry


def default_fetcher(base_url: str = GEOJSON_URL, directory: Path | str = GEOJSON_DIR) -> GeometryFetcher:
    """HTTP fetcher when a base URL is configured, local files otherwise."""
    if base_url:
        return GeoJSONHttpFetcher(base_url)
    return GeoJSONFileFetcher(directory)


class RegionCache:
    """Holds the geometry of the one region currently on the map.

    Fetching and committing are separate steps so a caller can drop a
    response that arrives after a newer selection.
    """

    def __init__(self, fetcher: GeometryFetcher):
        self.fetcher = fetcher
        self.geometry: Optional[GeometrySet] = None
        self.fetch_count = 0

    @property
    def region_id(self) -> Optional[str]:
        return self.geometry.region_id if self.geometry is not None else None

    @property
    def is_loaded(self) -> bool:
        return self.geometry is not None

    async def fetch(self, region: Region) -> GeometrySet:
        self.fetch_count += 1
        return await self.fetcher(region)

    def commit(self, geometry: GeometrySet) -> None:
        """Replace the cached set wholesale."""
        self.geometry = geometry

    def clear(self) -> None:
        self.geometry = None


def split_zcta_by_state(
    gdf: gpd.GeoDataFrame,
    zip_column: str = "ZCTA5CE20",
    active_zips: Optional[set[str]] = None,
) -> dict[str, gpd.GeoDataFrame]:
    """Group national ZCTA boundaries into one frame per state.

    Output frames keep only a ``zip`` property and the geometry. ZCTAs whose
    prefix maps to no state are dropped, as are ZIPs outside ``active_zips``
    when it is given.
    """
    gdf = gdf.copy()
    gdf["zip"] = gdf[zip_column].map(normalize_zip)
    if active_zips is not None:
        gdf = gdf[gdf["zip"].isin(active_zips)].copy()
    gdf["state"] = gdf["zip"].map(state_for_zip)
    gdf = gdf.dropna(subset=["state"])

    return {
        state: group[["zip", "geometry"]].reset_index(drop=True)
        for state, group in gdf.groupby("state")
    }
