import asyncio

import pytest

from zhvimap.dataset import PriceDataset
from zhvimap.errors import GeometryLoadError
from zhvimap.geometry import GeometrySet

ROWS = [
    {"Zip_Code": "54301", "2000": 150000, "2020": 300000, "2025": 320000},
    {"Zip_Code": "54302", "2000": 100000, "2020": 200000, "2025": 210000},
    {"Zip_Code": "54303", "2000": 0, "2020": 250000, "2025": 260000},
    {"Zip_Code": "53703", "2000": 200000, "2020": 400000, "2025": 450000},
    {"Zip_Code": "90210", "2000": 1200000, "2020": 3000000, "2025": 3500000},
    {"Zip_Code": "94105", "2000": 500000, "2020": 1200000, "2025": 1300000},
    {"Zip_Code": "78701", "2000": 180000, "2020": 450000, "2025": 520000},
    {"Zip_Code": "75201", "2000": 160000, "2020": 380000, "2025": 400000},
]

REGION_ZIPS = {
    "WI": ["54301", "54302", "54303", "53703", "54999"],
    "CA": ["90210", "94105"],
    "TX": ["78701", "75201"],
}


def square(x, y, size=0.1):
    return {
        "type": "Polygon",
        "coordinates": [[
            [x, y], [x + size, y], [x + size, y + size], [x, y + size], [x, y],
        ]],
    }


def feature_collection(zips, key="ZCTA5CE10", origin=(-90.0, 44.0)):
    x, y = origin
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {key: zip_code},
                "geometry": square(x + i * 0.2, y),
            }
            for i, zip_code in enumerate(zips)
        ],
    }


class RecordingFetcher:
    """Serves in-memory collections, counting calls.

    Regions in ``held`` block until ``release(region_id)``; regions in
    ``failing`` raise GeometryLoadError.
    """

    def __init__(self, collections, held=(), failing=()):
        self.collections = collections
        self.held = set(held)
        self.failing = set(failing)
        self.calls = []
        self._gates = {}

    def _gate(self, region_id):
        if region_id not in self._gates:
            self._gates[region_id] = asyncio.Event()
        return self._gates[region_id]

    def release(self, region_id):
        self._gate(region_id).set()

    async def __call__(self, region):
        self.calls.append(region.id)
        if region.id in self.held:
            await self._gate(region.id).wait()
        if region.id in self.failing:
            raise GeometryLoadError(region.id, "HTTP 404")
        return GeometrySet.from_geojson(region.id, self.collections[region.id])


@pytest.fixture
def rows():
    return [dict(row) for row in ROWS]


@pytest.fixture
def dataset(rows):
    ds = PriceDataset()
    ds.load(rows)
    return ds


@pytest.fixture
def collections():
    return {region_id: feature_collection(zips) for region_id, zips in REGION_ZIPS.items()}


@pytest.fixture
def fetcher(collections):
    return RecordingFetcher(collections)
