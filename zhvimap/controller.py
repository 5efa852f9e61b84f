"""View state machine for the ZIP price map.

The controller owns the one ``AppState`` instance, reacts to user actions
(region picked, year scrubbed, scale toggled, play/pause, ZIP search) and
hands the presentation layer a ``RenderUpdate`` describing what to draw.
Geometry is fetched only when the region changes; year and scale changes
restyle the cached features.

Everything runs on one asyncio loop. Two rules keep it correct:

* a region fetch carries a request token, and its result is dropped if a
  newer selection was made while it was in flight;
* the animation task is cancelled by ``pause()`` and by every new region
  selection.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping, Optional

from zhvimap.colors import ColorScale, format_currency, has_price
from zhvimap.config import (
    BASE_STYLE,
    BASE_YEAR,
    FIRST_YEAR,
    HIGHLIGHT_SECONDS,
    HIGHLIGHT_STYLE,
    LAST_YEAR,
    PLAY_INTERVAL,
)
from zhvimap.dataset import PriceDataset
from zhvimap.errors import (
    GeometryLoadError,
    LookupMiss,
    Result,
    SearchResult,
    ValidationError,
)
from zhvimap.geometry import Bounds, GeometryFetcher, RegionCache, ZipFeature
from zhvimap.ranges import EMPTY_RANGE, PriceRange, compute_range
from zhvimap.regions import STATES, Region, is_valid_zip, state_for_zip

logger = logging.getLogger(__name__)


class ViewStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    RENDERED = "rendered"


class ScaleMode(str, Enum):
    REGION = "region"
    NATIONAL = "national"

    @classmethod
    def _missing_(cls, value):
        # The map UI labels the region scale "state"
        if value == "state":
            return cls.REGION
        return None


@dataclass
class AppState:
    year: int = FIRST_YEAR
    region_id: Optional[str] = None
    pending_region_id: Optional[str] = None
    scale_mode: ScaleMode = ScaleMode.REGION
    playing: bool = False
    status: ViewStatus = ViewStatus.IDLE


@dataclass(frozen=True)
class ViewState:
    """Read-only snapshot of ``AppState`` handed to the presentation layer."""

    status: ViewStatus
    region_id: Optional[str]
    pending_region_id: Optional[str]
    year: int
    scale_mode: ScaleMode
    playing: bool


@dataclass
class RenderUpdate:
    """Full restyle instruction set for one frame."""

    state: ViewState
    styles: dict[str, str] = field(default_factory=dict)
    active_range: PriceRange = EMPTY_RANGE
    stats: PriceRange = EMPTY_RANGE
    legend: list[str] = field(default_factory=list)
    legend_min: str = "N/A"
    legend_max: str = "N/A"
    center: Optional[tuple[float, float]] = None
    zoom: Optional[int] = None
    bounds: Optional[Bounds] = None
    highlight: Optional[str] = None


@dataclass(frozen=True)
class ZipInfo:
    """Hover panel contents for one ZIP."""

    zip_code: str
    year: int
    price: Optional[float]
    change_since_base: Optional[float]

    @property
    def formatted_price(self) -> str:
        return format_currency(self.price) if has_price(self.price) else "No data"


class ViewController:
    def __init__(
        self,
        dataset: PriceDataset,
        fetcher: GeometryFetcher,
        color_scale: Optional[ColorScale] = None,
        regions: Mapping[str, Region] = STATES,
        zip_lookup: Callable[[str], Optional[str]] = state_for_zip,
        play_interval: float = PLAY_INTERVAL,
        highlight_seconds: float = HIGHLIGHT_SECONDS,
        on_update: Optional[Callable[[RenderUpdate], None]] = None,
    ):
        self.dataset = dataset
        self.cache = RegionCache(fetcher)
        self.color_scale = color_scale or ColorScale()
        self.regions = regions
        self.zip_lookup = zip_lookup
        self.play_interval = play_interval
        self.highlight_seconds = highlight_seconds
        self.on_update = on_update

        self._state = AppState()
        self._request_token = 0
        self._play_task: Optional[asyncio.Task] = None
        self._highlight_handle: Optional[asyncio.TimerHandle] = None
        self._highlighted: Optional[str] = None
        self._colors: dict[str, str] = {}
        self.region_range = EMPTY_RANGE
        self.active_range = EMPTY_RANGE

    # ── State access ──────────────────────────────────────────────────────

    @property
    def state(self) -> ViewState:
        s = self._state
        return ViewState(
            status=s.status,
            region_id=s.region_id,
            pending_region_id=s.pending_region_id,
            year=s.year,
            scale_mode=s.scale_mode,
            playing=s.playing,
        )

    @property
    def playback(self) -> Optional[asyncio.Task]:
        """The running animation task, if any."""
        return self._play_task

    # ── Region selection ──────────────────────────────────────────────────

    async def select_region(self, region_id: str) -> Result:
        """Fetch and render ``region_id``.

        A failed fetch leaves whatever region was already rendered in place.
        A response that arrives after a newer selection is discarded and
        reported with ``superseded=True``.
        """
        region = self.regions.get(region_id)
        if region is None:
            return Result.failure(GeometryLoadError(str(region_id), "unknown region"))

        self.pause()
        self._cancel_highlight()

        self._request_token += 1
        token = self._request_token
        self._state.pending_region_id = region_id
        self._state.status = ViewStatus.LOADING

        try:
            geometry = await self.cache.fetch(region)
        except GeometryLoadError as err:
            return self._fetch_failed(token, err)
        except Exception as err:
            logger.exception(f"Unexpected error loading {region_id}")
            return self._fetch_failed(token, GeometryLoadError(region_id, str(err)))

        if token != self._request_token:
            logger.warning(f"Discarding stale boundaries for {region_id}")
            return Result(ok=False, message=f"Selection of {region_id} was superseded", superseded=True)

        self.cache.commit(geometry)
        self._state.region_id = region_id
        self._state.pending_region_id = None
        self._state.status = ViewStatus.RENDERED

        self._restyle()
        return Result(ok=True, update=self._render_update(fit=True))

    def _fetch_failed(self, token: int, err: GeometryLoadError) -> Result:
        """Settle a failed fetch, falling back to the region still cached.

        Year or scale changes made while the fetch was in flight are applied
        to that region before returning.
        """
        if token != self._request_token:
            return Result(ok=False, error=err, message=str(err), superseded=True)

        logger.warning(f"Failed to load GeoJSON: {err}")
        self._state.pending_region_id = None
        if not self.cache.is_loaded:
            self._state.status = ViewStatus.IDLE
            return Result.failure(err)

        self._state.status = ViewStatus.RENDERED
        self._restyle()
        return Result.failure(err, update=self._render_update())

    # ── Year / scale ──────────────────────────────────────────────────────

    def change_year(self, year: int) -> Optional[RenderUpdate]:
        """Move to ``year`` (clamped to the data window) using cached geometry.

        The year is recorded in any state; a restyle is produced only when a
        region is rendered.
        """
        self._state.year = max(FIRST_YEAR, min(LAST_YEAR, int(year)))
        if self._state.status is not ViewStatus.RENDERED:
            return None
        self._restyle()
        return self._render_update()

    def change_scale_mode(self, mode: ScaleMode | str) -> Optional[RenderUpdate]:
        self._state.scale_mode = ScaleMode(mode)
        if self._state.status is not ViewStatus.RENDERED:
            return None
        self._restyle()
        return self._render_update()

    # ── Animation ─────────────────────────────────────────────────────────

    def play(self) -> Optional[RenderUpdate]:
        """Start stepping one year per interval. Must run inside the event loop.

        Starting at the last year rewinds to the first; the returned update
        (if any) is that rewind frame.
        """
        if self._state.playing:
            return None
        loop = asyncio.get_running_loop()

        update = None
        if self._state.year >= LAST_YEAR:
            update = self.change_year(FIRST_YEAR)

        self._state.playing = True
        self._play_task = loop.create_task(self._animate())
        return update

    def pause(self) -> bool:
        """Stop the animation. Returns whether it was running."""
        was_playing = self._state.playing
        self._state.playing = False
        task, self._play_task = self._play_task, None
        if task is not None and not task.done():
            task.cancel()
        return was_playing

    def toggle_play(self) -> Optional[RenderUpdate]:
        if self._state.playing:
            self.pause()
            return None
        return self.play()

    async def _animate(self) -> None:
        try:
            while self._state.playing:
                await asyncio.sleep(self.play_interval)
                next_year = self._state.year + 1
                if next_year >= LAST_YEAR:
                    self._state.playing = False
                logger.debug(f"Animation tick: {next_year}")
                self._emit(self.change_year(next_year))
        finally:
            if self._play_task is asyncio.current_task():
                self._play_task = None

    # ── ZIP search ────────────────────────────────────────────────────────

    async def search_zip(self, zip_code: str) -> SearchResult:
        """Locate a ZIP, loading its state first if needed, and highlight it."""
        zip_code = zip_code.strip() if isinstance(zip_code, str) else ""
        if not is_valid_zip(zip_code):
            error = ValidationError("Please enter a valid 5-digit ZIP code")
            return SearchResult(ok=False, error=error, message=str(error), zip_code=zip_code)

        region_id = self.zip_lookup(zip_code)
        if region_id is None or region_id not in self.regions:
            error = LookupMiss(zip_code, LookupMiss.NOT_IN_DATABASE)
            logger.warning(f"ZIP {zip_code} has no region")
            return SearchResult(ok=False, error=error, message=str(error), zip_code=zip_code)

        if self.cache.region_id != region_id or self._state.status is not ViewStatus.RENDERED:
            loaded = await self.select_region(region_id)
            if not loaded.ok:
                return SearchResult(
                    ok=False,
                    error=loaded.error,
                    message=loaded.message,
                    superseded=loaded.superseded,
                    zip_code=zip_code,
                    region_id=region_id,
                )

        feature = self.cache.geometry.find(zip_code)
        if feature is None:
            error = LookupMiss(zip_code, LookupMiss.NOT_IN_BOUNDARIES)
            logger.warning(f"ZIP {zip_code} not among {region_id} boundaries")
            return SearchResult(
                ok=False, error=error, message=str(error), zip_code=zip_code, region_id=region_id
            )

        self._highlight(feature)

        year = self._state.year
        price = self.dataset.price_of(zip_code, year)
        if has_price(price):
            message = f"Found! {format_currency(price)} in {year}"
        else:
            message = "ZIP found but no price data available"

        update = self._render_update()
        update.bounds = feature.bounds
        return SearchResult(
            ok=True,
            update=update,
            message=message,
            zip_code=zip_code,
            region_id=region_id,
            bounds=feature.bounds,
            price=price,
        )

    def _highlight(self, feature: ZipFeature) -> None:
        self._cancel_highlight()
        self._highlighted = feature.zip_code
        feature.style = {**feature.style, **HIGHLIGHT_STYLE}
        geometry = self.cache.geometry
        self._highlight_handle = asyncio.get_running_loop().call_later(
            self.highlight_seconds, self._revert_highlight, geometry, feature
        )

    def _revert_highlight(self, geometry, feature: ZipFeature) -> None:
        self._highlight_handle = None
        self._highlighted = None
        if self.cache.geometry is not geometry:
            return
        feature.style = self._base_style(self._colors.get(feature.zip_code, self.color_scale.no_data_color))
        self._emit(self._render_update())

    def _cancel_highlight(self) -> None:
        if self._highlight_handle is not None:
            self._highlight_handle.cancel()
            self._highlight_handle = None
        self._highlighted = None

    # ── Hover info ────────────────────────────────────────────────────────

    def describe_zip(self, zip_code: str) -> ZipInfo:
        year = self._state.year
        price = self.dataset.price_of(zip_code, year)
        base = self.dataset.price_of(zip_code, BASE_YEAR)

        change = None
        if has_price(price) and has_price(base):
            change = round((price - base) / base * 100, 1)
        return ZipInfo(zip_code=zip_code, year=year, price=price, change_since_base=change)

    # ── Rendering ─────────────────────────────────────────────────────────

    def _base_style(self, color: str) -> dict:
        return {**BASE_STYLE, "fillColor": color}

    def _restyle(self) -> None:
        """Recompute ranges for the current year and recolor every feature."""
        geometry = self.cache.geometry
        year = self._state.year

        prices = self.dataset.prices_for_zips(geometry.zips, year)
        self.region_range = compute_range(prices[prices > 0].to_numpy())
        if self._state.scale_mode is ScaleMode.NATIONAL:
            self.active_range = self.dataset.national_range(year)
        else:
            self.active_range = self.region_range

        colors = {}
        for feature, price in zip(geometry.features, prices.to_numpy()):
            color = self.color_scale.color_for(price, self.active_range)
            colors[feature.zip_code] = color
            feature.style = self._base_style(color)
            if feature.zip_code == self._highlighted:
                feature.style.update(HIGHLIGHT_STYLE)
        self._colors = colors

    def _render_update(self, fit: bool = False) -> RenderUpdate:
        update = RenderUpdate(
            state=self.state,
            styles=dict(self._colors),
            active_range=self.active_range,
            stats=self.region_range,
            legend=self.color_scale.legend(),
            legend_min=format_currency(self.active_range.lower_bound),
            legend_max=format_currency(self.active_range.upper_bound),
            highlight=self._highlighted,
        )
        if fit:
            region = self.regions[self._state.region_id]
            update.center = region.center
            update.zoom = region.zoom
            update.bounds = self.cache.geometry.bounds
        return update

    def _emit(self, update: Optional[RenderUpdate]) -> None:
        if update is not None and self.on_update is not None:
            self.on_update(update)

    def close(self) -> None:
        """Cancel the animation and any pending highlight revert."""
        self.pause()
        self._cancel_highlight()
