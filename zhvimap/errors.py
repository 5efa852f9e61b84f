"""Error taxonomy and the result objects recoverable errors travel in."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from zhvimap.controller import RenderUpdate


class ZhviMapError(Exception):
    """Base class for every error the map core reports."""


class DataLoadError(ZhviMapError):
    """The price dataset could not be fetched or parsed. Fatal to startup."""


class GeometryLoadError(ZhviMapError):
    """A region's boundary file could not be fetched or parsed."""

    def __init__(self, region_id: str, reason: str):
        super().__init__(f"Failed to load boundaries for {region_id}: {reason}")
        self.region_id = region_id
        self.reason = reason


class ValidationError(ZhviMapError):
    """Malformed user input, e.g. a ZIP that is not five digits."""


class LookupMiss(ZhviMapError):
    """A ZIP could not be resolved to a region or to a loaded boundary."""

    NOT_IN_DATABASE = "not_in_database"
    NOT_IN_BOUNDARIES = "not_in_boundaries"

    def __init__(self, zip_code: str, kind: str):
        if kind == self.NOT_IN_DATABASE:
            message = "ZIP code not found in our database"
        else:
            message = "ZIP code boundary not found in map data"
        super().__init__(message)
        self.zip_code = zip_code
        self.kind = kind


@dataclass
class Result:
    """Outcome of a controller operation.

    Recoverable failures land in ``error`` instead of being raised.
    ``superseded`` marks a region fetch whose response arrived after a
    newer selection and was discarded.
    """

    ok: bool
    update: Optional["RenderUpdate"] = None
    error: Optional[ZhviMapError] = None
    message: str = ""
    superseded: bool = False

    @classmethod
    def failure(cls, error: ZhviMapError, update=None) -> "Result":
        return cls(ok=False, update=update, error=error, message=str(error))


@dataclass
class SearchResult(Result):
    zip_code: str = ""
    region_id: Optional[str] = None
    bounds: Optional[tuple] = None
    price: Optional[float] = None
