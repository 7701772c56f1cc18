"""Value formatting shared by the row mappers."""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

from dateutil import parser as dtparser
from dateutil import tz

DEFAULT_TZ = tz.gettz("Europe/Rome")

WORK_DATE_FMT = "%d/%m/%Y"
STARTED_FMT = "%d/%m/%Y %H:%M"
RECORDED_FMT = "%Y-%m-%d %H:%M"


def format_time(seconds: Any) -> str:
    """Format a duration as '<H>h <M>m', omitting zero units.

    Hours and minutes are floor-divided; leftover seconds are dropped.
    0 -> '', 1800 -> '30m', 3600 -> '1h', 5400 -> '1h 30m'.
    """
    hours, rest = divmod(int(seconds or 0), 3600)
    minutes = rest // 60
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    return " ".join(parts)


def seconds_to_hours(seconds: Any, places: int = 4) -> str:
    """Convert seconds to decimal hours, rounded half-up to `places` decimals."""
    hours = Decimal(int(seconds or 0)) / Decimal(3600)
    quantum = Decimal(1).scaleb(-places)
    return str(hours.quantize(quantum, rounding=ROUND_HALF_UP))


def parse_timestamp(value: str) -> datetime:
    """Parse an upstream ISO-8601 timestamp ('2024-03-05T10:00:00.000+0000', '...Z')."""
    return dtparser.isoparse(value)


def to_local(value: str, fmt: str) -> str:
    """Render an ISO-8601 timestamp in DEFAULT_TZ using fmt."""
    if not value:
        return ""
    dt = parse_timestamp(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz.UTC)
    return dt.astimezone(DEFAULT_TZ).strftime(fmt)


def format_work_date(value: Optional[str]) -> str:
    """'2024-03-05' -> '05/03/2024'."""
    if not value:
        return ""
    return datetime.strptime(value, "%Y-%m-%d").strftime(WORK_DATE_FMT)


def jira_started(dt: datetime) -> str:
    """Render a tz-aware datetime the way Jira expects worklog 'started' values."""
    return f"{dt.strftime('%Y-%m-%dT%H:%M:%S')}.{dt.microsecond // 1000:03d}{dt.strftime('%z')}"


def today() -> str:
    """Today's date (YYYY-MM-DD) in DEFAULT_TZ."""
    return datetime.now(tz=DEFAULT_TZ).date().isoformat()
