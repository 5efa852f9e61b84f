"""Percentile-trimmed price ranges.

The 5th/95th percentile trim keeps a handful of outlier ZIPs from
collapsing the color scale's dynamic range.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from zhvimap.config import (
    EMPTY_RANGE_UPPER,
    LOWER_PERCENTILE,
    MEDIAN_PERCENTILE,
    UPPER_PERCENTILE,
)


@dataclass(frozen=True)
class PriceRange:
    lower_bound: float
    upper_bound: float
    median: float
    absolute_min: float
    absolute_max: float
    sample_count: int

    @property
    def is_empty(self) -> bool:
        """True when the slice had no usable prices."""
        return self.sample_count == 0

    def to_dict(self) -> dict:
        return {
            "lowerBound": self.lower_bound,
            "upperBound": self.upper_bound,
            "median": self.median,
            "absoluteMin": self.absolute_min,
            "absoluteMax": self.absolute_max,
            "sampleCount": self.sample_count,
        }


EMPTY_RANGE = PriceRange(
    lower_bound=0.0,
    upper_bound=float(EMPTY_RANGE_UPPER),
    median=0.0,
    absolute_min=0.0,
    absolute_max=0.0,
    sample_count=0,
)


def _at(sorted_prices: np.ndarray, fraction: float) -> float:
    return float(sorted_prices[int(len(sorted_prices) * fraction)])


def compute_range(prices: Iterable[float]) -> PriceRange:
    """Compute trimmed bounds, median and extremes over positive prices.

    Indices are ``floor(n * p)`` into the ascending sort, so the bounds are
    always observed prices. An empty input returns ``EMPTY_RANGE``.
    """
    values = np.sort(np.asarray(list(prices), dtype=float))
    if values.size == 0:
        return EMPTY_RANGE

    return PriceRange(
        lower_bound=_at(values, LOWER_PERCENTILE),
        upper_bound=_at(values, UPPER_PERCENTILE),
        median=_at(values, MEDIAN_PERCENTILE),
        absolute_min=float(values[0]),
        absolute_max=float(values[-1]),
        sample_count=int(values.size),
    )
