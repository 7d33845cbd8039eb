from datetime import date

import pytest
from pydantic import ValidationError

from src.models.weather import DailyForecast, ForecastSample, GeoPoint, NormalizedWeather
from src.services.weather_service import (
    collapse_daily_forecast,
    format_local_time,
    normalize_location,
    round_half_up,
    to_celsius,
    to_kmh,
)

# 2023-10-01 00:00:00 UTC
BASE_TIMESTAMP = 1696118400


def _sample(dt, temp=12.0, description="few clouds", icon="02d"):
    return ForecastSample(
        dt=dt,
        main={"temp": temp, "feels_like": temp, "humidity": 50},
        weather=[{"id": 801, "main": "Clouds", "description": description, "icon": icon}],
    )


class TestUnitConversion:
    """Test cases for temperature and wind conversions."""

    def test_round_half_up(self):
        assert round_half_up(18.5) == 19
        assert round_half_up(18.49) == 18
        assert round_half_up(-0.5) == 0
        assert round_half_up(-1.6) == -2

    def test_to_celsius_from_each_unit_system(self):
        assert to_celsius(291.15, "standard") == 18
        assert to_celsius(64.4, "imperial") == 18
        assert to_celsius(18.5, "metric") == 19

    def test_to_kmh(self):
        assert to_kmh(3.5, "metric") == 13
        assert to_kmh(10.0, "imperial") == 16
        assert to_kmh(0.0, "standard") == 0

    def test_format_local_time_uses_offset(self):
        # 05:40 UTC
        timestamp = BASE_TIMESTAMP + 5 * 3600 + 40 * 60
        assert format_local_time(timestamp, 0) == "05:40 AM"
        assert format_local_time(timestamp, 7200) == "07:40 AM"
        assert format_local_time(timestamp, 14 * 3600) == "07:40 PM"


class TestNormalizeLocation:
    """Test cases for location query clean-up."""

    def test_expands_saint_and_uppercases_state(self):
        assert normalize_location("  st. louis,  mo ") == "Saint louis, MO"

    def test_strips_united_states_suffix(self):
        assert normalize_location("Saint Louis, Missouri, USA") == "Saint Louis, Missouri"
        assert normalize_location("Denver, Colorado, United States") == "Denver, Colorado"

    def test_keeps_words_ending_in_us(self):
        assert normalize_location("Columbus") == "Columbus"

    def test_splits_run_together_words(self):
        assert normalize_location("NewYork") == "New York"

    def test_blank_query(self):
        assert normalize_location("   ") == ""


class TestCollapseDailyForecast:
    """Test cases for collapsing the 3-hourly feed into daily entries."""

    def test_groups_by_local_date(self):
        samples = [
            _sample(BASE_TIMESTAMP + 21 * 3600, description="clear sky"),   # Oct 1 23:00 local
            _sample(BASE_TIMESTAMP + 23 * 3600, description="light rain"),  # Oct 2 01:00 local
            _sample(BASE_TIMESTAMP + 27 * 3600, description="overcast clouds"),
        ]

        forecast = collapse_daily_forecast(samples, utc_offset=7200, units="metric")

        assert [day.date for day in forecast] == [date(2023, 10, 1), date(2023, 10, 2)]
        assert [day.description for day in forecast] == ["clear sky", "light rain"]

    def test_first_sample_wins_regardless_of_input_order(self):
        samples = [
            _sample(BASE_TIMESTAMP + 6 * 3600, temp=15.0),
            _sample(BASE_TIMESTAMP, temp=9.6),
        ]

        forecast = collapse_daily_forecast(samples, utc_offset=0, units="metric")

        assert len(forecast) == 1
        assert forecast[0].temperature == 10

    def test_caps_at_requested_days(self):
        samples = [_sample(BASE_TIMESTAMP + day * 86400) for day in range(10)]

        assert len(collapse_daily_forecast(samples, 0, "metric")) == 7
        assert len(collapse_daily_forecast(samples, 0, "metric", days=3)) == 3
        assert len(collapse_daily_forecast(samples, 0, "metric", days=12)) == 7

    def test_empty_feed(self):
        assert collapse_daily_forecast([], 0, "metric") == []

    def test_sample_without_condition(self):
        sample = ForecastSample(
            dt=BASE_TIMESTAMP, main={"temp": 4.0, "feels_like": 1.0, "humidity": 80}, weather=[]
        )

        forecast = collapse_daily_forecast([sample], 0, "metric")

        assert forecast[0].description == "No description"
        assert forecast[0].icon == ""


class TestNormalizedWeatherModel:
    """Test cases for NormalizedWeather validation."""

    def test_valid_record(self, sample_weather):
        assert sample_weather.city == "Paris"
        assert len(sample_weather.forecast) == 3

    def test_rejects_empty_city(self, sample_current_weather):
        data = sample_current_weather.model_dump()
        data["city"] = ""

        with pytest.raises(ValidationError):
            NormalizedWeather(**data)

    def test_rejects_humidity_out_of_range(self, sample_current_weather):
        data = sample_current_weather.model_dump()
        data["humidity"] = 101

        with pytest.raises(ValidationError):
            NormalizedWeather(**data)

    def test_rejects_negative_wind(self, sample_current_weather):
        data = sample_current_weather.model_dump()
        data["wind_speed"] = -1

        with pytest.raises(ValidationError):
            NormalizedWeather(**data)

    def test_rejects_unordered_forecast(self, sample_weather):
        data = sample_weather.model_dump()
        data["forecast"] = list(reversed(data["forecast"]))

        with pytest.raises(ValidationError):
            NormalizedWeather(**data)

    def test_rejects_duplicate_forecast_dates(self, sample_weather):
        data = sample_weather.model_dump()
        data["forecast"] = [data["forecast"][0], data["forecast"][0]]

        with pytest.raises(ValidationError):
            NormalizedWeather(**data)

    def test_rejects_more_than_seven_days(self, sample_current_weather):
        data = sample_current_weather.model_dump()
        data["forecast"] = [
            DailyForecast(date=date(2023, 10, day), temperature=10, description="clear sky", icon="01d")
            for day in range(1, 9)
        ]

        with pytest.raises(ValidationError):
            NormalizedWeather(**data)

    def test_coordinates(self):
        point = GeoPoint(lat=48.8589, lon=2.32)
        assert point.lat == pytest.approx(48.8589)
