"""
City definitions and per-city failure bookkeeping
"""
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

import requests

from sunsetgrad.config import BLACKLIST_THRESHOLD, CITIES_TIMEOUT

log = logging.getLogger('sunsetgrad.cities')


class RegistryLoadError(Exception):
    """The city list could not be fetched or parsed."""


@dataclass(frozen=True)
class Region:
    """Crop rectangle in webcam pixels plus the filters applied before sampling."""
    x: int
    y: int
    w: int
    h: int
    sat: float = 100
    con: float = 1
    hue: float = 0
    br: float = 1

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise TypeError(f"region must be an object, got {type(data).__name__}")
        return cls(
            x=int(data['x']), y=int(data['y']),
            w=int(data['w']), h=int(data['h']),
            sat=float(data.get('sat', 100)),
            con=float(data.get('con', 1)),
            hue=float(data.get('hue', 0)),
            br=float(data.get('br', 1)),
        )


@dataclass(eq=False)
class City:
    """
    One webcam location.

    Compared by identity: the scheduler tracks "the current city" as a
    reference into the registry. failures and is_blacklisted are only changed
    through CityRegistry.
    """
    name: str
    lat: float
    lon: float
    url: str
    top: Region
    bot: Region
    offset: tuple = (0, 0)
    failures: int = field(default=0)
    is_blacklisted: bool = field(default=False)

    @classmethod
    def from_dict(cls, data):
        offset = data.get('offset') or (0, 0)
        if len(offset) != 2:
            raise ValueError(f"offset must have two values, got {offset!r}")
        return cls(
            name=str(data['name']),
            lat=float(data['lat']),
            lon=float(data['lon']),
            url=str(data['url']),
            top=Region.from_dict(data['top']),
            bot=Region.from_dict(data['bot']),
            offset=(float(offset[0]), float(offset[1])),
        )

    def __repr__(self):
        flag = ' blacklisted' if self.is_blacklisted else ''
        return f"<City {self.name} ({self.lat}, {self.lon}) failures={self.failures}{flag}>"


class CityRegistry:
    """Ordered list of cities, in the order the definitions listed them."""

    def __init__(self, cities=None, blacklist_threshold=BLACKLIST_THRESHOLD):
        self.cities = list(cities or [])
        self.blacklist_threshold = blacklist_threshold

    @classmethod
    def from_payload(cls, payload, **kwargs):
        """Build a registry from decoded JSON (a list of city objects)."""
        if not isinstance(payload, list):
            raise RegistryLoadError(
                f"Unable to parse city definitions: expected a list, got {type(payload).__name__}")
        cities = []
        for i, entry in enumerate(payload):
            if not isinstance(entry, dict):
                raise RegistryLoadError(
                    f"Unable to parse city definitions: entry {i} is not an object")
            try:
                cities.append(City.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                raise RegistryLoadError(
                    f"Unable to parse city definitions: entry {i}: {e!r}") from e
        return cls(cities, **kwargs)

    def __iter__(self):
        return iter(self.cities)

    def __len__(self):
        return len(self.cities)

    def __getitem__(self, index):
        return self.cities[index]

    def active(self):
        """Cities that can still be selected."""
        return [c for c in self.cities if not c.is_blacklisted]

    def record_success(self, city):
        city.failures = 0

    def record_failure(self, city):
        """
        Count a failed fetch for city.

        Returns True if this failure blacklisted it.
        """
        city.failures += 1
        if city.failures == self.blacklist_threshold and not city.is_blacklisted:
            city.is_blacklisted = True
            log.info(f"Blacklisting {city.name} after {city.failures} failures")
            return True
        return False


def load_cities(source, session=None, timeout=CITIES_TIMEOUT):
    """
    Load city definitions from a local JSON file or an http(s) URL.

    Raises:
        RegistryLoadError: on transport, HTTP status, JSON or schema errors
    """
    log.debug(f"Loading city definitions from {source}")

    if str(source).startswith(('http://', 'https://')):
        http = session or requests
        try:
            response = http.get(source, timeout=timeout)
        except requests.RequestException as e:
            raise RegistryLoadError(f"Unable to load cities: {e}") from e
        if not 200 <= response.status_code < 400:
            raise RegistryLoadError(
                f"Unable to load cities, HTTP status {response.status_code}")
        text = response.text
    else:
        try:
            text = Path(source).read_text(encoding='utf-8')
        except OSError as e:
            raise RegistryLoadError(f"Unable to load cities: {e}") from e

    try:
        payload = json.loads(text)
    except ValueError as e:
        raise RegistryLoadError(f"Unable to parse city definitions: {e}") from e

    registry = CityRegistry.from_payload(payload)
    log.debug(f"Loaded {len(registry)} city definitions")
    return registry
