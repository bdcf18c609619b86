"""
Refresh loop: select a city, sample its webcam, paint, reschedule
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import NamedTuple, Optional

from sunsetgrad.cities import City, RegistryLoadError, load_cities
from sunsetgrad.config import DEFAULT_CITIES_SOURCE, LIVE_INTERVAL, WAITING_INTERVAL
from sunsetgrad.geoclock import compute_window
from sunsetgrad.gradient import gradient_css
from sunsetgrad.sampler import ColorPair
from sunsetgrad.selector import select_city
from sunsetgrad.webcam import FetchError

log = logging.getLogger('sunsetgrad.scheduler')

# UI states
LOADING = 'loading'
LIVE = 'live'
WAITING = 'waiting'
ERROR = 'error'
STATES = (LOADING, LIVE, WAITING, ERROR)


class TickResult(NamedTuple):
    outcome: str  # LIVE or WAITING
    city: Optional[City]
    colors: Optional[ColorPair]
    delay: float


def utc_now():
    return datetime.now(timezone.utc)


class GradientScheduler:
    """
    Drives one gradient output.

    Only one tick runs at a time. A tick ends either live (colors applied,
    next tick after live_interval) or waiting (no city, next tick after
    waiting_interval). Fetch failures never end a tick: the failing city is
    charged and selection starts over straight away.
    """

    def __init__(self, fetcher, output, registry=None, cities_source=DEFAULT_CITIES_SOURCE,
                 on_city_change=None, clock=utc_now, window_fn=compute_window,
                 live_interval=LIVE_INTERVAL, waiting_interval=WAITING_INTERVAL,
                 sleep=asyncio.sleep, session=None):
        if waiting_interval <= live_interval:
            raise ValueError(
                f"waiting_interval ({waiting_interval}s) must be longer than "
                f"live_interval ({live_interval}s)")

        self.fetcher = fetcher
        self.output = output
        self.registry = registry
        self.cities_source = cities_source
        self.on_city_change = on_city_change
        self.clock = clock
        self.window_fn = window_fn
        self.live_interval = live_interval
        self.waiting_interval = waiting_interval
        self.sleep = sleep
        self.session = session

        self.state = LOADING
        self.current_city = None
        self.ticks = 0

    def set_state(self, state):
        """Update UI state."""
        if self.state == state:
            return
        log.debug(f"Changing state to {state}")
        self.state = state

    async def load(self):
        """Load city definitions unless a registry was given. False on failure."""
        if self.registry is not None:
            return True
        try:
            self.registry = await asyncio.to_thread(load_cities, self.cities_source, self.session)
        except RegistryLoadError as e:
            log.error(f"{e}")
            self.set_state(ERROR)
            return False
        log.info(f"Loaded {len(self.registry)} cities from {self.cities_source}")
        return True

    def _notify(self, city):
        if self.on_city_change is None:
            return
        try:
            self.on_city_change(city)
        except Exception as e:
            log.warning(f"City change callback failed: {e}", exc_info=True)

    def update_city(self):
        """Re-run the selection, notifying on change. Returns the chosen city."""
        selection = select_city(self.registry, self.current_city, self.clock(), self.window_fn)
        self.current_city = selection.city
        if selection.changed:
            if selection.city is None:
                log.info('No sunset city available')
            else:
                log.info(f"Sunset city is now {selection.city.name}")
            self._notify(selection.city)
        return selection.city

    async def tick(self) -> TickResult:
        """Determine where it's sunset right now and update the gradient."""
        if self.registry is None:
            raise RuntimeError('City definitions are not loaded')

        log.debug('Refreshing the gradient')
        while True:
            city = self.update_city()
            if city is None:
                self.set_state(WAITING)
                return TickResult(WAITING, None, None, self.waiting_interval)

            try:
                colors = await self.fetcher.fetch_colors(city)
            except FetchError as e:
                log.warning(f"Unable to get sunset colors for {city.name}: {e}")
                self.registry.record_failure(city)
                continue

            self.registry.record_success(city)
            self.set_state(LIVE)
            self.output.apply(colors)
            return TickResult(LIVE, city, colors, self.live_interval)

    async def run(self, max_ticks=None):
        """Load the cities, then tick forever (or max_ticks times)."""
        if not await self.load():
            return

        while max_ticks is None or self.ticks < max_ticks:
            try:
                result = await self.tick()
                delay = result.delay
            except Exception as e:
                log.error(f"Unhandled error during refresh: {e}", exc_info=True)
                delay = self.waiting_interval

            self.ticks += 1
            if max_ticks is not None and self.ticks >= max_ticks:
                break
            await self.sleep(delay)

    def status(self):
        """Snapshot of what is being shown, for the web surface."""
        layer = self.output.current
        city = self.current_city
        return {
            'state': self.state,
            'city': city.name if city is not None and self.state == LIVE else None,
            'top': layer.colors.top.css() if layer else None,
            'bot': layer.colors.bot.css() if layer else None,
            'css': gradient_css(layer.colors) if layer else None,
            'updated': layer.updated.isoformat(timespec='seconds') if layer else None,
        }
