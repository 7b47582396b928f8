"""Timezone helpers for date-only project fields.

Project dates carry no time of day. "Start of day" and "end of day" are the
instants at which that calendar day begins and ends in the project's zone,
never in the host zone. All returned datetimes are timezone-aware UTC.
"""

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class UnknownTimezoneError(ValueError):
    """Raised for identifiers that zoneinfo cannot resolve."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown timezone '{name}'")


def resolve_zone(name: str | None, default: str = "UTC") -> ZoneInfo:
    """Resolve an IANA zone id; None or blank falls back to ``default``.

    Raises:
        UnknownTimezoneError: if the identifier is not a recognised zone
    """
    key = (name or "").strip() or default
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise UnknownTimezoneError(key) from exc


def is_valid_timezone(name: str) -> bool:
    try:
        resolve_zone(name)
    except UnknownTimezoneError:
        return False
    return bool(name and name.strip())


def start_of_local_day(day: date, zone: ZoneInfo) -> datetime:
    """UTC instant at which ``day`` begins in ``zone``."""
    return datetime.combine(day, time.min, tzinfo=zone).astimezone(UTC)


def end_of_local_day(day: date, zone: ZoneInfo) -> datetime:
    """UTC instant at which ``day`` ends in ``zone`` (start of the next local day)."""
    return start_of_local_day(day + timedelta(days=1), zone)


def ensure_utc(moment: datetime) -> datetime:
    """Normalise to aware UTC; naive values are taken to already be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def format_local(moment: datetime, zone: ZoneInfo) -> str:
    """Render an instant in the project zone, e.g. ``2025-06-01 00:00 PDT``."""
    return ensure_utc(moment).astimezone(zone).strftime("%Y-%m-%d %H:%M %Z")
