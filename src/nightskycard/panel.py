"""Chart panel state machine: date selection, URL cache, and celebrity fallback.

A load runs at most two attempts: the primary attempt for the requested date
and, if that fails, one fallback attempt for a randomly picked celebrity date.
Each attempt checks the cache first (unless bypassed), then asks the proxy.

Keys already in flight are not requested again; a repeated load for such a key
joins the pending request instead. Every load takes a new generation number; a
response that arrives after a newer load has started is still written to the
cache but no longer changes what the panel shows.
"""

import asyncio
import logging
import random
from collections import deque
from collections.abc import Callable
from typing import Protocol

from nightskycard.cache import ChartCache
from nightskycard.client import ChartFetchError
from nightskycard.dates import add_days, clamp, days_between
from nightskycard.i18n import t
from nightskycard.models import (
    ChartRequest,
    ChartStyle,
    FallbackCandidate,
    PanelConfig,
    PanelState,
)

logger = logging.getLogger(__name__)

_HISTORY_SIZE = 100


class ImageUrlFetcher(Protocol):
    async def fetch_image_url(self, request: ChartRequest) -> str: ...


class ChartPanel:
    """Owns PanelState and drives it from user input and request outcomes."""

    def __init__(
        self,
        fetcher: ImageUrlFetcher,
        cache: ChartCache,
        config: PanelConfig | None = None,
        lang: str = "en",
        rng: random.Random | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.cache = cache
        self.config = config or PanelConfig()
        self.lang = lang
        self._rng = rng or random.Random()
        self._in_flight: dict[str, asyncio.Future[tuple[str | None, str]]] = {}
        self._generation = 0
        self._listeners: list[Callable[[PanelState], None]] = []

        self.total_days = days_between(self.config.range_start, self.config.range_end)
        self.state = PanelState(
            day_offset=clamp(
                days_between(self.config.range_start, self.config.initial_date),
                0,
                self.total_days,
            ),
            status=t("status_idle", lang),
            source=t("source_none", lang),
        )
        self.history: deque[PanelState] = deque([self.state], maxlen=_HISTORY_SIZE)

    # --- Derived values ---

    @property
    def date(self) -> str:
        return add_days(self.config.range_start, self.state.day_offset)

    @property
    def style(self) -> ChartStyle:
        return self.state.style

    @property
    def in_flight(self) -> frozenset[str]:
        return frozenset(self._in_flight)

    def request_for(self, date: str, style: ChartStyle | None = None) -> ChartRequest:
        return ChartRequest(
            location=self.config.location,
            date=date,
            view=self.config.view,
            style=style or self.style,
        )

    def subscribe(self, listener: Callable[[PanelState], None]) -> None:
        self._listeners.append(listener)

    def _update(self, **changes: object) -> None:
        self.state = self.state.evolve(**changes)
        self.history.append(self.state)
        for listener in self._listeners:
            listener(self.state)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    # --- User input ---

    async def mount(self) -> None:
        await self.load_chart(self.date)

    async def set_day_offset(self, day_offset: int) -> None:
        day_offset = clamp(day_offset, 0, self.total_days)
        if day_offset == self.state.day_offset:
            return
        self._update(day_offset=day_offset)
        await self.load_chart(self.date)

    async def set_labels(self, labels_on: bool) -> None:
        if labels_on == self.state.labels_on:
            return
        self._update(labels_on=labels_on)
        await self.load_chart(self.date)

    async def toggle_labels(self) -> None:
        await self.set_labels(not self.state.labels_on)

    async def refresh(self) -> None:
        await self.load_chart(self.date, allow_cache=False)

    def mark_image_loaded(self) -> None:
        self._update(image_loaded=True)

    # --- Request lifecycle ---

    async def load_chart(self, target_date: str, allow_cache: bool = True) -> None:
        """Show the chart for target_date, falling back to a celebrity sky on failure."""
        self._update(
            status=t("status_generating", self.lang), image_loaded=False, loading=True
        )
        self._generation += 1
        generation = self._generation

        style = self.style
        if await self._attempt(
            self.request_for(target_date, style), allow_cache, None, generation
        ):
            return
        if not self._is_current(generation):
            return

        pick = self._rng.choice(self.config.fallbacks)
        logger.info("Falling back to %s", pick.label)
        self._update(
            status=t("status_degraded", self.lang),
            source=t("source_fallback", self.lang).format(label=pick.label),
        )

        if await self._attempt(
            self.request_for(pick.date, style), True, pick, generation
        ):
            return
        if self._is_current(generation):
            self._update(
                status=t("status_failed", self.lang),
                source=t("source_none", self.lang),
                loading=False,
            )

    async def _attempt(
        self,
        request: ChartRequest,
        allow_cache: bool,
        fallback: FallbackCandidate | None,
        generation: int,
    ) -> bool:
        """One cache-then-network attempt. Returns True when an image URL was found.

        If the key is already being requested, waits for that request instead
        of issuing another one.
        """
        key = request.cache_key()
        pending = self._in_flight.get(key)
        if pending is not None:
            logger.debug("Joining pending request for %s", key)
            url, origin = await asyncio.shield(pending)
        else:
            future: asyncio.Future[tuple[str | None, str]] = (
                asyncio.get_running_loop().create_future()
            )
            self._in_flight[key] = future
            result: tuple[str | None, str] = (None, "live")
            try:
                result = await self._resolve(request, allow_cache)
            finally:
                del self._in_flight[key]
                future.set_result(result)
            url, origin = result

        if url is None:
            return False
        self._show(generation, url, self._source(origin, fallback))
        return True

    async def _resolve(
        self, request: ChartRequest, allow_cache: bool
    ) -> tuple[str | None, str]:
        key = request.cache_key()
        if allow_cache:
            cached = self.cache.get(key)
            if cached:
                return cached, "cache"

        try:
            url = await self.fetcher.fetch_image_url(request)
        except ChartFetchError as e:
            logger.warning("Star chart request failed for %s: %s", key, e)
            return None, "live"

        try:
            self.cache.set(key, url)
        except OSError:
            logger.exception("Could not write chart cache entry %s", key)
        return url, "live"

    def _source(self, origin: str, fallback: FallbackCandidate | None) -> str:
        if fallback is None:
            return t(f"source_{origin}", self.lang)
        return t(f"source_celebrity_{origin}", self.lang).format(label=fallback.label)

    def _show(self, generation: int, url: str, source: str) -> None:
        if not self._is_current(generation):
            logger.debug("Discarding superseded result %s", url)
            return
        self._update(
            image_url=url,
            status=t("status_loaded", self.lang),
            source=source,
            loading=False,
        )
