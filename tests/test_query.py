"""Tests for weather query validation."""

import pytest

from city_weather.services.query import InvalidQueryError, parse_query


class TestParseQuery:
    """Tests for parse_query."""

    def test_city_only(self) -> None:
        """Test a plain current-weather query."""
        query = parse_query("Berlin")
        assert query.city == "Berlin"
        assert query.requested_city == "Berlin"
        assert query.date is None
        assert query.time is None
        assert query.is_historical is False

    def test_city_is_trimmed_but_original_kept(self) -> None:
        """Test surrounding whitespace is removed for lookup only."""
        query = parse_query("  Paris ")
        assert query.city == "Paris"
        assert query.requested_city == "  Paris "

    @pytest.mark.parametrize("city", [None, "", "   ", "\t\n"])
    def test_missing_city_rejected(self, city: str | None) -> None:
        """Test empty or whitespace-only city is rejected."""
        with pytest.raises(InvalidQueryError, match="City parameter is required"):
            parse_query(city)

    def test_empty_date_and_time_are_absent(self) -> None:
        """Test empty strings count as not provided."""
        query = parse_query("Berlin", "", "")
        assert query.date is None
        assert query.time is None

    def test_historical_with_time(self) -> None:
        """Test a full historical query."""
        query = parse_query("Paris", "2024-01-01", "14:30")
        assert query.date == "2024-01-01"
        assert query.time == "14:30"
        assert query.hour == 14
        assert query.is_historical is True

    @pytest.mark.parametrize(
        "date",
        ["2024-1-01", "01-01-2024", "2024/01/01", "yesterday", "2024-01-01\n", "٢٠٢٤-٠١-٠١"],
    )
    def test_malformed_date_rejected(self, date: str) -> None:
        """Test dates not in YYYY-MM-DD form are rejected."""
        with pytest.raises(InvalidQueryError, match="Invalid date format"):
            parse_query("Paris", date)

    def test_impossible_calendar_date_rejected(self) -> None:
        """Test a well-formed but non-existent date is rejected."""
        with pytest.raises(InvalidQueryError, match="Invalid date"):
            parse_query("Paris", "2024-02-30")

    @pytest.mark.parametrize("time", ["0", "7", "07", "23", "00:00", "23:59", "7:5"])
    def test_valid_times(self, time: str) -> None:
        """Test accepted HH and HH:MM forms."""
        assert parse_query("Paris", "2024-01-01", time).time == time

    @pytest.mark.parametrize("time", ["24", "30:00", "99"])
    def test_hour_out_of_range(self, time: str) -> None:
        """Test hours outside 0-23 are rejected."""
        with pytest.raises(InvalidQueryError, match="Invalid hour"):
            parse_query("Paris", "2024-01-01", time)

    @pytest.mark.parametrize("time", ["12:60", "00:99"])
    def test_minute_out_of_range(self, time: str) -> None:
        """Test minutes outside 0-59 are rejected."""
        with pytest.raises(InvalidQueryError, match="Invalid minute"):
            parse_query("Paris", "2024-01-01", time)

    @pytest.mark.parametrize(
        "time", ["ab", "12:", ":30", "12:30:00", "-1", "7am", "123", "12\n", "١٢", "12:3\n"]
    )
    def test_malformed_time(self, time: str) -> None:
        """Test non-numeric or badly shaped times are rejected."""
        with pytest.raises(InvalidQueryError, match="Invalid time format"):
            parse_query("Paris", "2024-01-01", time)

    def test_time_validated_without_date(self) -> None:
        """Test time is checked even when no date was given."""
        with pytest.raises(InvalidQueryError):
            parse_query("Paris", None, "25:00")
