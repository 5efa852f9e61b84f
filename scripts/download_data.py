#!/usr/bin/env python3
"""
Download the latest Zillow ZIP code ZHVI and write the annual table the map loads
"""
import argparse
import io
from pathlib import Path

import pandas as pd
import requests

from zhvimap.config import DATA_DIR, REQUEST_TIMEOUT, ZHVI_FILE, ZILLOW_URL
from zhvimap.dataset import annualize_zhvi
from zhvimap.errors import DataLoadError


def download_zillow_data(url=ZILLOW_URL):
    """Fetch Zillow's monthly ZIP-level CSV into a DataFrame"""
    print("Downloading Zillow ZIP code data...")
    response = requests.get(url, timeout=REQUEST_TIMEOUT)
    response.raise_for_status()

    monthly = pd.read_csv(io.BytesIO(response.content), dtype={'RegionName': str})
    print(f"✓ Loaded {len(monthly):,} ZIP codes")

    date_columns = [col for col in monthly.columns if '-' in col]
    if date_columns:
        print(f"✓ Latest data: {date_columns[-1]}")
    return monthly


def write_annual_table(monthly, output_file=ZHVI_FILE):
    """Average each ZIP's months into years and save as Zip_Code,2000..2025"""
    annual = annualize_zhvi(monthly)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    annual.to_csv(output_file, index=False, float_format='%.0f')

    print(f"✓ Wrote {len(annual):,} ZIP codes to {output_file}")
    return annual


def main():
    """Main download function"""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('--url', default=ZILLOW_URL, help='Zillow ZIP ZHVI CSV')
    parser.add_argument('--output', default=str(ZHVI_FILE), help=f'Output CSV (default under {DATA_DIR})')
    args = parser.parse_args()

    try:
        monthly = download_zillow_data(args.url)
        write_annual_table(monthly, output_file=Path(args.output))
    except (requests.RequestException, DataLoadError) as e:
        print(f"✗ Error downloading data: {e}")
        return 1

    print("\n✓ Data download complete!")
    return 0


if __name__ == "__main__":
    exit(main())
