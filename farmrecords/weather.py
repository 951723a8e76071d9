"""
Mock weather for the farm dashboard.

There is no real provider behind this: every call sleeps for a short while to
behave like a network request and returns the same snapshot, with only the
timestamp and forecast dates following the clock. Swap `WeatherService` for a
real implementation with the same two methods when one exists.
"""
import logging
import time
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from . import settings
from .mappers import as_utc, iso_timestamp

logger = logging.getLogger(__name__)

CURRENT_CONDITIONS = {
    "id": 1,
    "location": "Farm Location",
    "temperature": 22,
    "condition": "Partly Cloudy",
    "humidity": 65,
    "windSpeed": 12,
    "windDirection": "SW",
    "precipitation": 0,
    "uvIndex": 6,
    "visibility": 10,
    "pressure": 1013,
    "feelsLike": 24,
}

# one entry per day starting today
FORECAST_DAYS = (
    {"high": 25, "low": 18, "condition": "Partly Cloudy", "precipitationChance": 20, "humidity": 65, "windSpeed": 12},
    {"high": 28, "low": 20, "condition": "Sunny", "precipitationChance": 5, "humidity": 55, "windSpeed": 8},
    {"high": 26, "low": 19, "condition": "Light Rain", "precipitationChance": 80, "humidity": 75, "windSpeed": 15},
    {"high": 23, "low": 16, "condition": "Cloudy", "precipitationChance": 40, "humidity": 70, "windSpeed": 10},
    {"high": 27, "low": 21, "condition": "Sunny", "precipitationChance": 10, "humidity": 60, "windSpeed": 7},
)

FARMING_RECOMMENDATIONS = (
    "Good conditions for outdoor farming activities",
    "Soil moisture levels are adequate for planting",
    "Light winds favorable for pesticide application",
    "UV levels moderate - ensure worker protection",
)


def build_snapshot(now: Optional[datetime] = None) -> Dict[str, Any]:
    now = as_utc(now)
    forecast = []
    for offset, day in enumerate(FORECAST_DAYS):
        forecast.append({"date": (now + timedelta(days=offset)).date().isoformat(), **day})
    return {
        "current": {**CURRENT_CONDITIONS, "timestamp": iso_timestamp(now)},
        "forecast": forecast,
        "farmingRecommendations": list(FARMING_RECOMMENDATIONS),
    }


class WeatherService:
    def __init__(self, delay: Optional[float] = None, sleep: Callable[[float], None] = time.sleep):
        self.delay = settings.WEATHER_DELAY_SECONDS if delay is None else delay
        self._sleep = sleep

    def _respond(self) -> Dict[str, Any]:
        if self.delay > 0:
            self._sleep(self.delay)
        logger.debug("Serving mock weather snapshot (delay=%.2fs)", self.delay)
        return build_snapshot()

    def get_forecast(self) -> Dict[str, Any]:
        return self._respond()

    def get_current_weather(self) -> Dict[str, Any]:
        return self._respond()


weather_service = WeatherService()
