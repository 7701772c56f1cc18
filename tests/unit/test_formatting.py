from datetime import datetime

import pytest

from jiralog import formatting as fmt


@pytest.mark.parametrize("seconds, expected", [
    (0, ""),
    (None, ""),
    (1800, "30m"),
    (3600, "1h"),
    (5400, "1h 30m"),
    (6300, "1h 45m"),
    (3659, "1h"),      # leftover seconds are dropped, never rounded up
    (7199, "1h 59m"),
    (36000, "10h"),
])
def test_format_time(seconds, expected):
    assert fmt.format_time(seconds) == expected


def test_seconds_to_hours_four_places_half_up():
    assert fmt.seconds_to_hours(1800) == "0.5000"
    assert fmt.seconds_to_hours(3600) == "1.0000"
    assert fmt.seconds_to_hours(1000) == "0.2778"
    assert fmt.seconds_to_hours(None) == "0.0000"


def test_seconds_to_hours_integer_places():
    assert fmt.seconds_to_hours(5400, places=0) == "2"   # 1.5 rounds half-up
    assert fmt.seconds_to_hours(9000, places=0) == "3"   # 2.5 rounds half-up too
    assert fmt.seconds_to_hours(3000, places=0) == "1"
    assert fmt.seconds_to_hours(None, places=0) == "0"


def test_format_work_date():
    assert fmt.format_work_date("2024-03-05") == "05/03/2024"
    assert fmt.format_work_date("") == ""
    assert fmt.format_work_date(None) == ""


def test_to_local_converts_to_rome_across_dst():
    # CET (+01:00) in March before the switch, CEST (+02:00) in July
    assert fmt.to_local("2024-03-05T10:00:00.000+0000", fmt.STARTED_FMT) == "05/03/2024 11:00"
    assert fmt.to_local("2024-07-01T10:00:00Z", fmt.RECORDED_FMT) == "2024-07-01 12:00"
    assert fmt.to_local("", fmt.RECORDED_FMT) == ""


def test_to_local_treats_naive_timestamps_as_utc():
    assert fmt.to_local("2024-01-10T23:30:00", fmt.RECORDED_FMT) == "2024-01-11 00:30"


def test_jira_started_uses_millis_and_numeric_offset():
    winter = datetime(2024, 3, 5, 9, 0, tzinfo=fmt.DEFAULT_TZ)
    summer = datetime(2024, 7, 1, 14, 15, tzinfo=fmt.DEFAULT_TZ)
    assert fmt.jira_started(winter) == "2024-03-05T09:00:00.000+0100"
    assert fmt.jira_started(summer) == "2024-07-01T14:15:00.000+0200"


def test_today_is_iso_date():
    value = fmt.today()
    assert datetime.strptime(value, "%Y-%m-%d")
