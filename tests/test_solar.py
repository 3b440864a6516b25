from datetime import datetime, timezone

import pytest

from quakereport.errors import DerivationError
from quakereport.pipeline.features import DAY, NIGHT, classify_time_of_day
from quakereport.pipeline.solar import POLAR_DAY, POLAR_NIGHT, local_zone, sun_window

TOKYO = (35.68, 139.69)
TROMSO = (69.65, 18.96)


def test_local_zone_follows_longitude():
    assert local_zone(139.69).utcoffset(None).total_seconds() == 9 * 3600
    assert local_zone(-72.9).utcoffset(None).total_seconds() == -5 * 3600
    assert local_zone(180.0).utcoffset(None).total_seconds() == 12 * 3600


def test_sunrise_precedes_sunset_far_from_greenwich():
    window = sun_window(*TOKYO, datetime(2021, 6, 21, 3, 0, tzinfo=timezone.utc))
    assert window.polar is None
    assert window.sunrise < window.sunset


def test_tokyo_noon_and_midnight():
    noon = datetime(2021, 6, 21, 3, 0, tzinfo=timezone.utc)      # 12:00 JST
    midnight = datetime(2021, 6, 21, 15, 0, tzinfo=timezone.utc)  # 00:00 JST
    assert classify_time_of_day(*TOKYO, noon) == DAY
    assert classify_time_of_day(*TOKYO, midnight) == NIGHT


def test_polar_day_and_night():
    summer = datetime(2021, 6, 21, 23, 0, tzinfo=timezone.utc)
    winter = datetime(2021, 12, 21, 11, 0, tzinfo=timezone.utc)

    assert sun_window(*TROMSO, summer).polar == POLAR_DAY
    assert sun_window(*TROMSO, winter).polar == POLAR_NIGHT
    assert classify_time_of_day(*TROMSO, summer) == DAY
    assert classify_time_of_day(*TROMSO, winter) == NIGHT


@pytest.mark.parametrize("latitude", [-89.5, -70.0, -45.0, 0.0, 45.0, 70.0, 89.5])
@pytest.mark.parametrize("month", [3, 6, 12])
def test_classification_is_total(latitude, month):
    instant = datetime(2022, month, 15, 9, 30, tzinfo=timezone.utc)
    assert classify_time_of_day(latitude, 100.0, instant) in (DAY, NIGHT)


def test_rejects_bad_inputs():
    with pytest.raises(DerivationError):
        sun_window(95.0, 0.0, datetime(2021, 1, 1, tzinfo=timezone.utc))
    with pytest.raises(DerivationError):
        sun_window(0.0, 0.0, datetime(2021, 1, 1))
