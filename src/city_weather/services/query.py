"""Validation of raw weather query parameters."""

import re
from dataclasses import dataclass
from datetime import date as date_type

DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
TIME_PART_PATTERN = re.compile(r"[0-9]{1,2}")


class InvalidQueryError(ValueError):
    """Raised when a weather query fails validation."""


@dataclass(frozen=True)
class WeatherQuery:
    """Validated weather lookup request.

    ``requested_city`` is the city string exactly as the client sent it,
    ``city`` is the trimmed form used for geocoding.
    """

    city: str
    requested_city: str
    date: str | None = None
    time: str | None = None

    @property
    def hour(self) -> int | None:
        """Hour component of ``time``, if a time was given."""
        if self.time is None:
            return None
        return int(self.time.split(":")[0])

    @property
    def is_historical(self) -> bool:
        return self.date is not None


def validate_date(value: str) -> str:
    """Check a ``YYYY-MM-DD`` date string and return it unchanged."""
    if not DATE_PATTERN.fullmatch(value):
        raise InvalidQueryError("Invalid date format. Use YYYY-MM-DD.")
    try:
        date_type.fromisoformat(value)
    except ValueError as e:
        raise InvalidQueryError(f"Invalid date: {value}") from e
    return value


def validate_time(value: str) -> str:
    """Check an ``HH`` or ``HH:MM`` 24-hour time string and return it unchanged."""
    parts = value.split(":")
    if len(parts) > 2 or not all(TIME_PART_PATTERN.fullmatch(part) for part in parts):
        raise InvalidQueryError("Invalid time format. Use HH or HH:MM (24-hour format).")

    hour = int(parts[0])
    if not 0 <= hour <= 23:
        raise InvalidQueryError(f"Invalid hour {hour}. Hour must be between 0 and 23.")

    if len(parts) == 2:
        minute = int(parts[1])
        if not 0 <= minute <= 59:
            raise InvalidQueryError(
                f"Invalid minute {minute}. Minute must be between 0 and 59."
            )

    return value


def parse_query(
    city: str | None,
    date: str | None = None,
    time: str | None = None,
) -> WeatherQuery:
    """Build a validated query from raw request parameters.

    Empty strings for ``date`` and ``time`` count as not provided.

    Raises:
        InvalidQueryError: If the city is missing or date/time are malformed
    """
    if city is None or not city.strip():
        raise InvalidQueryError("City parameter is required")

    return WeatherQuery(
        city=city.strip(),
        requested_city=city,
        date=validate_date(date) if date else None,
        time=validate_time(time) if time else None,
    )
