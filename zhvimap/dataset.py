"""Per-ZIP yearly home value table.

The table is built once at startup and is read-only afterwards. Building
it also computes the national price range for every year in the window.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional

import numpy as np
import pandas as pd

from zhvimap.config import YEARS, ZIP_COLUMN
from zhvimap.errors import DataLoadError
from zhvimap.ranges import EMPTY_RANGE, PriceRange, compute_range
from zhvimap.regions import normalize_zip

logger = logging.getLogger(__name__)


class PriceDataset:
    """ZIP → {year → price} lookup with aggregate helpers.

    Prices live in a DataFrame indexed by 5-digit ZIP with one integer
    column per year. Missing or unparseable cells are NaN.
    """

    def __init__(self, years: Iterable[int] = YEARS):
        self.years = list(years)
        self.prices = pd.DataFrame(columns=self.years, dtype=float)
        self.prices.index.name = ZIP_COLUMN
        self.national_ranges: dict[int, PriceRange] = {}

    def __len__(self) -> int:
        return len(self.prices)

    def __contains__(self, zip_code: str) -> bool:
        return zip_code in self.prices.index

    # ── Loading ───────────────────────────────────────────────────────────

    def load(self, rows: Iterable[Mapping]) -> None:
        """Replace the table with ``rows`` and recompute national ranges.

        Rows without a ZIP are skipped. Later rows win on duplicate ZIPs.
        """
        self.prices = self._frame_from_rows(rows)
        logger.info(f"Loaded {len(self.prices):,} ZIP codes with price data")

        self.national_ranges = {
            year: compute_range(self.all_prices_for_year(year)) for year in self.years
        }
        logger.info("National price ranges calculated")

    def _frame_from_rows(self, rows: Iterable[Mapping]) -> pd.DataFrame:
        df = pd.DataFrame(list(rows))
        if df.empty or ZIP_COLUMN not in df.columns:
            empty = pd.DataFrame(columns=self.years, dtype=float)
            empty.index.name = ZIP_COLUMN
            return empty

        df[ZIP_COLUMN] = df[ZIP_COLUMN].map(normalize_zip)
        df = df.dropna(subset=[ZIP_COLUMN])
        df = df.drop_duplicates(subset=[ZIP_COLUMN], keep="last")

        table = pd.DataFrame(index=pd.Index(df[ZIP_COLUMN], name=ZIP_COLUMN))
        for year in self.years:
            # Year columns come keyed as "2000" from CSV headers, 2000 from dicts
            column = next((c for c in (str(year), year) if c in df.columns), None)
            if column is None:
                table[year] = np.nan
            else:
                table[year] = pd.to_numeric(df[column], errors="coerce").to_numpy()
        return table

    @classmethod
    def from_csv(cls, path: Path | str, years: Iterable[int] = YEARS) -> "PriceDataset":
        """Read the annual ZHVI CSV. Any failure here is fatal to startup."""
        path = Path(path)
        if not path.exists():
            raise DataLoadError(f"{path} not found. Run download_data.py first.")

        try:
            df = pd.read_csv(path, dtype={ZIP_COLUMN: str})
        except (OSError, ValueError, pd.errors.ParserError) as err:
            raise DataLoadError(f"Could not parse {path}: {err}") from err

        if ZIP_COLUMN not in df.columns:
            raise DataLoadError(f"{path} has no {ZIP_COLUMN} column")

        dataset = cls(years)
        dataset.load(df.to_dict(orient="records"))
        return dataset

    # ── Lookup ────────────────────────────────────────────────────────────

    def price_of(self, zip_code: str, year: int) -> Optional[float]:
        """Price for one ZIP and year, or None when absent."""
        if year not in self.prices.columns or zip_code not in self.prices.index:
            return None
        value = self.prices.at[zip_code, year]
        if pd.isna(value):
            return None
        return float(value)

    def all_prices_for_year(self, year: int) -> np.ndarray:
        """Every positive price recorded for ``year``, nationwide."""
        if year not in self.prices.columns:
            return np.array([], dtype=float)
        column = self.prices[year]
        return column[column > 0].to_numpy(dtype=float)

    def prices_for_zips(self, zip_codes: Iterable[str], year: int) -> pd.Series:
        """Prices for the given ZIPs in ``year``; unknown ZIPs come back NaN."""
        zips = list(zip_codes)
        if year not in self.prices.columns:
            return pd.Series(np.nan, index=pd.Index(zips), dtype=float)
        return self.prices[year].reindex(zips)

    def national_range(self, year: int) -> PriceRange:
        """Precomputed national range; years outside the table get the empty default."""
        return self.national_ranges.get(year, EMPTY_RANGE)


def annualize_zhvi(monthly: pd.DataFrame, years: Iterable[int] = YEARS) -> pd.DataFrame:
    """Collapse Zillow's monthly ZIP ZHVI into one average per year.

    ``monthly`` is the raw Zillow download: a ``RegionName`` column with the
    ZIP and one ``YYYY-MM-DD`` column per month. Returns ``Zip_Code`` plus
    one column per year, as the app loads it.
    """
    years = list(years)
    date_columns = [col for col in monthly.columns if "-" in str(col)]
    if not date_columns:
        raise DataLoadError("No date columns found in Zillow data")

    values = monthly[date_columns].apply(pd.to_numeric, errors="coerce")
    values.columns = pd.to_datetime(values.columns).year
    annual = values.T.groupby(level=0).mean().T
    annual = annual.reindex(columns=years)
    annual.columns = [str(year) for year in years]

    annual.insert(0, ZIP_COLUMN, monthly["RegionName"].map(normalize_zip).to_numpy())
    annual = annual.dropna(subset=[ZIP_COLUMN])
    return annual.reset_index(drop=True)
