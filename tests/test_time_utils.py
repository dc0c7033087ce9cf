from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from hunter_system.time_utils import date_range, day_label, days_between, local_date_key, to_epoch_ms


def test_local_date_key_uses_local_calendar() -> None:
    dt = datetime(2024, 1, 1, 23, 30, tzinfo=ZoneInfo("America/New_York"))
    assert local_date_key(dt) == "2024-01-01"
    assert local_date_key(dt.astimezone(ZoneInfo("Europe/Oslo"))) == "2024-01-02"


def test_days_between() -> None:
    assert days_between("2024-02-28", "2024-03-01") == 2
    assert days_between("", "2024-03-01") is None


def test_epoch_ms_treats_naive_as_utc() -> None:
    assert to_epoch_ms(datetime(1970, 1, 1, 0, 0, 1)) == 1000


def test_day_labels_start_monday() -> None:
    days = date_range(date(2024, 1, 1), 7)
    assert [day_label(d) for d in days] == ["MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN"]
