"""Shared helpers for the test scripts."""

import os
import sys
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sunsetgrad.cities import City, CityRegistry, Region
from sunsetgrad.geoclock import SunsetWindow
from sunsetgrad.sampler import ColorPair, RGBColor
from sunsetgrad.webcam import FetchError

NOW = datetime(2024, 3, 20, 18, 0, tzinfo=timezone.utc)
COLORS = ColorPair(RGBColor(250, 120, 60), RGBColor(40, 30, 90))


def make_region(**overrides):
    params = dict(x=0, y=0, w=10, h=10)
    params.update(overrides)
    return Region(**params)


def make_city(name, lat=0.0, lon=0.0, **overrides):
    params = dict(name=name, lat=lat, lon=lon, url=f'cams/{name.lower()}.jpg',
                  top=make_region(), bot=make_region(y=10))
    params.update(overrides)
    return City(**params)


def minutes(n):
    return timedelta(minutes=n)


def window(start_min, end_min, now=NOW):
    """Window relative to now, in minutes; None leaves an edge undefined."""
    start = now + minutes(start_min) if start_min is not None else None
    end = now + minutes(end_min) if end_min is not None else None
    return SunsetWindow(start, end)


def fixed_windows(by_lat):
    """window_fn that looks windows up by latitude (one latitude per test city)."""
    def window_fn(lat, lon, now, offset=(0, 0)):
        return by_lat.get(lat, SunsetWindow(None, None))
    return window_fn


class FakeFetcher:
    """Plays back a per-city script of results; unscripted fetches succeed."""

    def __init__(self, script=None):
        self.script = {name: list(plan) for name, plan in (script or {}).items()}
        self.calls = []

    async def fetch_colors(self, city):
        self.calls.append(city.name)
        plan = self.script.get(city.name)
        result = plan.pop(0) if plan else COLORS
        if isinstance(result, Exception):
            raise result
        return result


def failing(times):
    return [FetchError('Unable to load webcam image') for _ in range(times)]


def registry_of(*cities):
    return CityRegistry(cities)
