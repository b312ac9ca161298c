"""Compose upstream weather documents with lookup metadata."""

from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import BaseModel, Field

from city_weather.services.geocoding import Coordinates
from city_weather.services.query import WeatherQuery

logger = structlog.get_logger()


class CityInfo(BaseModel):
    """How the requested city was resolved."""

    requested_city: str
    found_city: str
    country: str | None = None


class Augmentation(BaseModel):
    """Keys added on top of the upstream document."""

    city_info: CityInfo
    specific_time_data: dict[str, Any] | None = Field(default=None)
    requested_time_data_for: str | None = Field(default=None)
    warning: str | None = Field(default=None)


@dataclass
class WeatherEnvelope:
    """Upstream payload plus augmentation, kept apart until serialization."""

    upstream: dict[str, Any]
    augmentation: Augmentation

    def to_dict(self) -> dict[str, Any]:
        """Flatten augmentation keys into a copy of the upstream document.

        Keys already present upstream are left untouched.
        """
        result = dict(self.upstream)
        added = {
            key: value
            for key, value in self.augmentation.model_dump().items()
            if value is not None
        }
        for key, value in added.items():
            if key in result:
                logger.warning("Augmentation key already present upstream", key=key)
                continue
            result[key] = value
        return result


def target_instant(date: str, hour: int) -> str:
    """Timestamp prefix identifying one hour of a day, e.g. ``2024-01-01T07:00``."""
    return f"{date}T{hour:02d}:00"


def find_hour_index(times: list[Any], target: str) -> int | None:
    """Index of the first timestamp starting with ``target``, or None."""
    for index, timestamp in enumerate(times):
        if isinstance(timestamp, str) and timestamp.startswith(target):
            return index
    return None


def extract_hour(hourly: dict[str, Any], index: int) -> dict[str, Any]:
    """Flatten parallel hourly arrays to the values at one index."""
    return {
        key: values[index]
        for key, values in hourly.items()
        if isinstance(values, list) and len(values) > index
    }


def compose(
    payload: dict[str, Any],
    query: WeatherQuery,
    coords: Coordinates,
) -> WeatherEnvelope:
    """Attach resolution metadata and, for historical lookups, one hour's data.

    Args:
        payload: Raw upstream document, never modified
        query: Validated query
        coords: Resolved location

    Returns:
        Envelope ready to be flattened into the response body
    """
    augmentation = Augmentation(
        city_info=CityInfo(
            requested_city=query.requested_city,
            found_city=coords.resolved_name,
            country=coords.country,
        )
    )

    hourly = payload.get("hourly")
    hour = query.hour
    if (
        query.date is not None
        and hour is not None
        and isinstance(hourly, dict)
        and isinstance(hourly.get("time"), list)
    ):
        target = target_instant(query.date, hour)
        augmentation.requested_time_data_for = target
        index = find_hour_index(hourly["time"], target)
        if index is not None:
            augmentation.specific_time_data = extract_hour(hourly, index)
        else:
            logger.info("Requested hour not in hourly series", target=target)
            augmentation.warning = (
                f"No data for specified hour {query.time} on {query.date}. "
                "Returning daily historical data."
            )

    return WeatherEnvelope(upstream=payload, augmentation=augmentation)
