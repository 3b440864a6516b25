"""
Sunrise/sunset lookup used for the Day/Night feature.

Sun events are computed with astral for the *local* solar date of the
event, in a fixed-offset zone derived from longitude (15 degrees per
hour). Using the UTC calendar date instead would give a sunset earlier
than the sunrise for places far from Greenwich.

Polar policy: when the sun neither rises nor sets on that date the
window is open-ended. The solar elevation at local noon decides which:
above the horizon means the sun never sets (polar day), otherwise it
never rises (polar night).
"""
import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Callable, Optional

from astral import Observer
from astral.sun import elevation, sunrise, sunset

from quakereport.errors import DerivationError

logger = logging.getLogger(__name__)

POLAR_DAY = "polar_day"
POLAR_NIGHT = "polar_night"


@dataclass(frozen=True)
class SunWindow:
    """Sunrise/sunset bracket for one location and local date."""
    sunrise: Optional[datetime]
    sunset: Optional[datetime]
    polar: Optional[str] = None

    def contains(self, instant: datetime) -> bool:
        """Closed-interval test: sunrise <= instant <= sunset."""
        if self.polar == POLAR_DAY:
            return True
        if self.polar == POLAR_NIGHT:
            return False
        return self.sunrise <= instant <= self.sunset


Ephemeris = Callable[[float, float, datetime], SunWindow]


def local_zone(longitude: float) -> timezone:
    """Fixed-offset zone approximating local solar time, rounded to the hour."""
    hours = max(-12, min(12, round(longitude / 15.0)))
    return timezone(timedelta(hours=hours))


def sun_window(latitude: float, longitude: float, instant: datetime) -> SunWindow:
    """
    Sunrise and sunset bracketing the local date of `instant`.

    Raises DerivationError for out-of-range coordinates or naive datetimes.
    """
    if instant.tzinfo is None:
        raise DerivationError("Timestamp must be timezone-aware")
    if not -90.0 <= latitude <= 90.0 or not -180.0 <= longitude <= 180.0:
        raise DerivationError(f"Coordinates out of range: ({latitude}, {longitude})")

    tz = local_zone(longitude)
    local_date = instant.astimezone(tz).date()
    observer = Observer(latitude=latitude, longitude=longitude)

    try:
        rise = sunrise(observer, date=local_date, tzinfo=tz)
        fall = sunset(observer, date=local_date, tzinfo=tz)
    except ValueError:
        noon = datetime.combine(local_date, time(12, 0), tzinfo=tz)
        polar = POLAR_DAY if elevation(observer, noon) > 0 else POLAR_NIGHT
        logger.debug("No sunrise/sunset at (%.2f, %.2f) on %s: %s",
                     latitude, longitude, local_date, polar)
        return SunWindow(sunrise=None, sunset=None, polar=polar)

    return SunWindow(sunrise=rise, sunset=fall)
