import numpy as np
import pandas as pd
import pytest

from zhvimap.dataset import PriceDataset, annualize_zhvi
from zhvimap.errors import DataLoadError
from zhvimap.ranges import EMPTY_RANGE


def test_load_skips_rows_without_zip():
    ds = PriceDataset()
    ds.load([
        {"Zip_Code": "54301", "2000": 150000},
        {"Zip_Code": "", "2000": 99},
        {"Zip_Code": None, "2000": 99},
        {"2000": 99},
    ])
    assert len(ds) == 1
    assert "54301" in ds


def test_zip_is_zero_padded():
    ds = PriceDataset()
    ds.load([{"Zip_Code": "501", "2000": 120000}, {"Zip_Code": 2134, "2000": 500000}])
    assert "00501" in ds
    assert "02134" in ds
    assert ds.price_of("00501", 2000) == 120000


def test_later_duplicate_wins():
    ds = PriceDataset()
    ds.load([{"Zip_Code": "54301", "2000": 1}, {"Zip_Code": "54301", "2000": 2}])
    assert len(ds) == 1
    assert ds.price_of("54301", 2000) == 2


def test_price_of_missing_values(dataset):
    assert dataset.price_of("54301", 2020) == 300000
    assert dataset.price_of("54301", 2010) is None  # column absent in rows
    assert dataset.price_of("99999", 2020) is None
    assert dataset.price_of("54301", 1999) is None


def test_unparseable_price_is_missing():
    ds = PriceDataset()
    ds.load([{"Zip_Code": "54301", "2000": "n/a", "2001": "175000"}])
    assert ds.price_of("54301", 2000) is None
    assert ds.price_of("54301", 2001) == 175000


def test_all_prices_for_year_excludes_non_positive(dataset):
    prices = dataset.all_prices_for_year(2000)
    assert 0 not in prices
    assert len(prices) == 7
    assert dataset.all_prices_for_year(1990).size == 0


def test_prices_for_zips_keeps_order_and_unknowns(dataset):
    series = dataset.prices_for_zips(["54302", "00000", "54301"], 2020)
    assert list(series.index) == ["54302", "00000", "54301"]
    assert series.iloc[0] == 200000
    assert np.isnan(series.iloc[1])


def test_national_ranges_computed_on_load(dataset):
    assert set(dataset.national_ranges) == set(range(2000, 2026))
    r2020 = dataset.national_range(2020)
    assert r2020.sample_count == 8
    assert r2020.absolute_min == 200000
    assert r2020.absolute_max == 3000000
    # No row carries 2010
    assert dataset.national_range(2010).is_empty


def test_national_range_outside_table_is_empty(dataset):
    assert dataset.national_range(1999) == EMPTY_RANGE
    assert dataset.national_range(2030) == EMPTY_RANGE


def test_from_csv(tmp_path):
    path = tmp_path / "zhvi.csv"
    path.write_text("Zip_Code,2000,2001\n00501,120000,125000\n54301,150000,\n")
    ds = PriceDataset.from_csv(path)
    assert len(ds) == 2
    assert ds.price_of("00501", 2001) == 125000
    assert ds.price_of("54301", 2001) is None


def test_from_csv_missing_file(tmp_path):
    with pytest.raises(DataLoadError):
        PriceDataset.from_csv(tmp_path / "nope.csv")


def test_from_csv_without_zip_column(tmp_path):
    path = tmp_path / "zhvi.csv"
    path.write_text("RegionName,2000\n54301,1\n")
    with pytest.raises(DataLoadError):
        PriceDataset.from_csv(path)


def test_annualize_zhvi_averages_months():
    monthly = pd.DataFrame({
        "RegionID": [1, 2],
        "RegionName": ["501", "54301"],
        "State": ["NY", "WI"],
        "1999-12-31": [90000, 90000],
        "2000-01-31": [100000, 200000],
        "2000-02-29": [110000, None],
        "2001-01-31": [130000, 210000],
    })
    annual = annualize_zhvi(monthly, years=[2000, 2001, 2002])
    assert list(annual.columns) == ["Zip_Code", "2000", "2001", "2002"]
    assert list(annual["Zip_Code"]) == ["00501", "54301"]
    assert annual.loc[0, "2000"] == 105000
    assert annual.loc[1, "2000"] == 200000
    assert np.isnan(annual.loc[0, "2002"])

    ds = PriceDataset(years=[2000, 2001, 2002])
    ds.load(annual.to_dict(orient="records"))
    assert ds.price_of("54301", 2001) == 210000


def test_annualize_requires_date_columns():
    with pytest.raises(DataLoadError):
        annualize_zhvi(pd.DataFrame({"RegionName": ["54301"], "State": ["WI"]}))
