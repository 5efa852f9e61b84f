#!/usr/bin/env python3
"""
Split the Census ZCTA boundary file into one GeoJSON per state for the map.
Geometries are written as-is; simplify them beforehand with an external tool.
"""
import argparse
import sys
from pathlib import Path

import geopandas as gpd

from zhvimap.config import GEOJSON_DIR, ZCTA_SHAPEFILE, ZHVI_FILE
from zhvimap.dataset import PriceDataset
from zhvimap.errors import DataLoadError
from zhvimap.geometry import split_zcta_by_state
from zhvimap.regions import STATES


def load_active_zips(csv_path):
    """ZIPs that carry at least one price, or None to keep every ZCTA"""
    try:
        dataset = PriceDataset.from_csv(csv_path)
    except DataLoadError as e:
        print(f"⚠️  {e}; keeping all ZCTAs")
        return None

    has_any = dataset.prices.gt(0).any(axis=1)
    active = set(dataset.prices.index[has_any])
    print(f"✓ Found {len(active):,} active ZIPs with price data")
    return active


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('--shapefile', default=str(ZCTA_SHAPEFILE))
    parser.add_argument('--prices', default=str(ZHVI_FILE))
    parser.add_argument('--output-dir', default=str(GEOJSON_DIR))
    parser.add_argument('--zip-column', default='ZCTA5CE20')
    args = parser.parse_args()

    print("🗺️  Preparing state ZIP boundaries...")

    shapefile = Path(args.shapefile)
    if not shapefile.exists():
        print(f"✗ Shapefile not found at {shapefile}")
        return 1

    gdf = gpd.read_file(shapefile)
    print(f"✓ Loaded {len(gdf):,} ZIP codes")

    # Web maps expect WGS84
    gdf = gdf.to_crs(epsg=4326)

    by_state = split_zcta_by_state(gdf, zip_column=args.zip_column,
                                   active_zips=load_active_zips(args.prices))

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("\n💾 Saving GeoJSON files...")
    for abbr, region in sorted(STATES.items()):
        frame = by_state.get(abbr)
        if frame is None or frame.empty:
            print(f"   ⚠️  {region.name}: no boundaries")
            continue
        path = output_dir / region.file
        frame.to_file(path, driver='GeoJSON')
        print(f"   ✓ {path.name}: {len(frame):,} ZIPs, {path.stat().st_size / 1024:.1f} KB")

    print("\n✅ State boundary preparation complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
