import math

import pytest

from zhvimap.colors import ColorScale, format_currency, has_price
from zhvimap.config import NO_DATA_COLOR, PALETTE
from zhvimap.ranges import PriceRange, compute_range


@pytest.fixture
def scale():
    return ColorScale()


@pytest.fixture
def price_range():
    return compute_range([100000.0 * i for i in range(1, 21)])


@pytest.mark.parametrize("price", [None, 0, -5, float("nan"), "abc"])
def test_missing_prices_use_no_data_color(scale, price_range, price):
    assert scale.color_for(price, price_range) == NO_DATA_COLOR


def test_no_data_color_regardless_of_range(scale):
    degenerate = PriceRange(5, 5, 5, 5, 5, 1)
    assert scale.color_for(0, degenerate) == NO_DATA_COLOR


def test_clamps_to_palette_ends(scale, price_range):
    assert scale.color_for(1.0, price_range) == PALETTE[0]
    assert scale.color_for(price_range.lower_bound, price_range) == PALETTE[0]
    assert scale.color_for(price_range.upper_bound, price_range) == PALETTE[-1]
    assert scale.color_for(1e12, price_range) == PALETTE[-1]


def test_monotonic_in_price(scale, price_range):
    last = -1
    for price in range(1000, 3_000_000, 7919):
        bucket = scale.bucket_for(price, price_range)
        assert bucket >= last
        last = bucket


def test_degenerate_range_is_one_bucket(scale):
    flat = PriceRange(300000.0, 300000.0, 300000.0, 300000.0, 300000.0, 4)
    colors = {scale.color_for(p, flat) for p in (1.0, 300000.0, 9_000_000.0)}
    assert len(colors) == 1
    assert colors.pop() in PALETTE


def test_custom_palette():
    scale = ColorScale(["#000", "#fff"], no_data_color="#888")
    r = PriceRange(0, 100, 50, 0, 100, 3)
    assert scale.color_for(49, r) == "#000"
    assert scale.color_for(50, r) == "#fff"
    assert scale.color_for(None, r) == "#888"
    assert scale.legend() == ["#000", "#fff"]


def test_empty_palette_rejected():
    with pytest.raises(ValueError):
        ColorScale([])


@pytest.mark.parametrize("value, expected", [
    (1_250_000, "$1.25M"),
    (350_000, "$350K"),
    (999, "$999"),
    (0, "N/A"),
    (None, "N/A"),
])
def test_format_currency(value, expected):
    assert format_currency(value) == expected


def test_has_price():
    assert has_price(1)
    assert not has_price(math.nan)
    assert not has_price(0)


def test_infinite_price_is_no_data(scale, price_range):
    assert not has_price(float("inf"))
    assert scale.color_for(float("inf"), price_range) == NO_DATA_COLOR
    assert scale.color_for(float("-inf"), price_range) == NO_DATA_COLOR
