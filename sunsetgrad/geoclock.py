"""
Sunset window computation for a location

The window opens when the setting sun's lower limb touches the horizon and
closes at the end of civil dusk. Times come from astral.
"""
from datetime import datetime, timedelta, timezone
from typing import NamedTuple, Optional

from astral import Observer
from astral.sun import SunDirection, dusk, time_at_elevation

from sunsetgrad.config import DUSK_DEPRESSION, SUNSET_START_ELEVATION


class SunsetWindow(NamedTuple):
    sunset_start: Optional[datetime]
    dusk_end: Optional[datetime]

    def is_defined(self) -> bool:
        return self.sunset_start is not None and self.dusk_end is not None

    def contains(self, moment: datetime) -> bool:
        """True if both edges exist and moment lies inside, edges included."""
        return self.is_defined() and self.sunset_start <= moment <= self.dusk_end


def _solar_timezone(lon: float) -> timezone:
    """Fixed-offset zone for the location's mean solar time."""
    return timezone(timedelta(minutes=round(lon * 4)))


def compute_window(lat, lon, now, offset=(0, 0)) -> SunsetWindow:
    """
    Return today's sunset window for (lat, lon), both edges in UTC.

    "Today" is the local solar day containing now. offset holds minutes added
    to the start and the end of the window. An edge the sun never reaches
    (polar day or night) comes back as None.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    solar_tz = _solar_timezone(lon)
    day = now.astimezone(solar_tz).date()
    observer = Observer(latitude=lat, longitude=lon)

    try:
        start = time_at_elevation(observer, SUNSET_START_ELEVATION, day,
                                  direction=SunDirection.SETTING, tzinfo=solar_tz,
                                  with_refraction=False)
    except ValueError:
        start = None

    try:
        end = dusk(observer, day, tzinfo=solar_tz, depression=DUSK_DEPRESSION)
    except ValueError:
        end = None

    start_offset, end_offset = offset or (0, 0)
    if start is not None:
        start = (start + timedelta(minutes=start_offset)).astimezone(timezone.utc)
    if end is not None:
        end = (end + timedelta(minutes=end_offset)).astimezone(timezone.utc)

    return SunsetWindow(start, end)
