"""
Pick the city whose sky to show
"""
import logging
from typing import NamedTuple, Optional

from sunsetgrad.cities import City
from sunsetgrad.geoclock import compute_window

log = logging.getLogger('sunsetgrad.selector')


class Selection(NamedTuple):
    city: Optional[City]
    changed: bool


def city_window(city, now, window_fn=compute_window):
    return window_fn(city.lat, city.lon, now, city.offset)


def is_sunset_city(city, now, window_fn=compute_window):
    """Check whether it's sunset in city right now."""
    if city.is_blacklisted:
        return False
    return city_window(city, now, window_fn).contains(now)


def select_city(cities, current, now, window_fn=compute_window):
    """
    Figure out which city to show.

    Sticks to current while it is still having its sunset. Otherwise takes
    the first city in list order that is, and failing that the city whose
    sunset starts soonest. Cities with equal start times keep list order.

    Returns:
        Selection: chosen city (or None) and whether it differs from current
    """
    chosen = None

    if current is not None and is_sunset_city(current, now, window_fn):
        chosen = current
    else:
        upcoming = []
        for city in cities:
            if city.is_blacklisted:
                continue
            window = city_window(city, now, window_fn)
            if window.contains(now):
                chosen = city
                break
            if window.sunset_start is not None and window.sunset_start > now:
                upcoming.append((window.sunset_start, city))

        if chosen is None and upcoming:
            upcoming.sort(key=lambda pair: pair[0])
            chosen = upcoming[0][1]
            log.debug(f"No sunset right now, next one is {chosen.name} at {upcoming[0][0]:%H:%M} UTC")

    log.debug(f"The current sunset city is {chosen!r}")
    return Selection(chosen, chosen is not current)
