"""Bucketed color scale and display formatting."""

from __future__ import annotations

import math
from typing import Optional, Sequence

from zhvimap.config import NO_DATA_COLOR, PALETTE
from zhvimap.ranges import PriceRange


def has_price(price: Optional[float]) -> bool:
    """Missing, NaN, infinite and non-positive prices all count as "no data"."""
    if price is None:
        return False
    try:
        value = float(price)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value > 0


class ColorScale:
    """Maps a price into one of a fixed, ordered palette of buckets."""

    def __init__(self, palette: Sequence[str] = PALETTE, no_data_color: str = NO_DATA_COLOR):
        if not palette:
            raise ValueError("palette must contain at least one color")
        self.palette = list(palette)
        self.no_data_color = no_data_color

    def bucket_for(self, price: float, price_range: PriceRange) -> int:
        """Bucket index for a positive price, clamped to the palette."""
        span = price_range.upper_bound - price_range.lower_bound
        if span <= 0:
            # Degenerate range: every price shares the middle bucket
            return len(self.palette) // 2

        normalized = (price - price_range.lower_bound) / span
        index = math.floor(normalized * len(self.palette))
        return max(0, min(index, len(self.palette) - 1))

    def color_for(self, price: Optional[float], price_range: PriceRange) -> str:
        if not has_price(price):
            return self.no_data_color
        return self.palette[self.bucket_for(float(price), price_range)]

    def legend(self) -> list[str]:
        """Swatches from lowest to highest bucket."""
        return list(self.palette)


def format_currency(value: Optional[float]) -> str:
    """Compact dollar label: $1.25M, $350K, $950, or N/A."""
    if not has_price(value):
        return "N/A"
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    elif value >= 1000:
        return f"${value / 1000:.0f}K"
    return f"${value:,.0f}"
