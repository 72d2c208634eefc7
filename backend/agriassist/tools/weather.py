import math
from datetime import datetime, timezone

import httpx
from loguru import logger

from agriassist.config import settings
from agriassist.models.schemas import (
    CurrentWeather,
    DataStatus,
    ForecastDay,
    QuickLocation,
    WeatherIcon,
    WeatherReport,
)

DEFAULT_LATITUDE = settings.default_latitude
DEFAULT_LONGITUDE = settings.default_longitude

FORECAST_DAYS = 5
# Hourly sample taken as representative of a forecast day (midday)
MIDDAY_INDEX = 12

DEFAULT_TEMPERATURE = 20
DEFAULT_HUMIDITY = 65
DEFAULT_WIND_SPEED = 10
DEFAULT_RAIN = 0
DEFAULT_CONDITION = "Partly Cloudy"

OFFLINE_NOTICE = "Unable to fetch weather data. Using default values."

QUICK_LOCATIONS = [
    QuickLocation(name="Pretoria", lat=-25.8167, lng=28.2411),
    QuickLocation(name="Johannesburg", lat=-26.2041, lng=28.0473),
    QuickLocation(name="Cape Town", lat=-33.9249, lng=18.4241),
    QuickLocation(name="Durban", lat=-29.8587, lng=31.0218),
]

FALLBACK_CURRENT = CurrentWeather(
    temperature=24,
    condition="Partly Cloudy",
    humidity=65,
    wind_speed=12,
    icon=WeatherIcon.CLOUD,
    description="Partly Cloudy",
)

FALLBACK_FORECAST = [
    ForecastDay(day="Today", temp=24, condition="Partly Cloudy", icon=WeatherIcon.CLOUD, rain=20, description="Partly Cloudy"),
    ForecastDay(day="Tomorrow", temp=22, condition="Rainy", icon=WeatherIcon.RAIN, rain=80, description="Light Rain"),
    ForecastDay(day="Wednesday", temp=26, condition="Sunny", icon=WeatherIcon.SUN, rain=5, description="Clear Skies"),
    ForecastDay(day="Thursday", temp=23, condition="Cloudy", icon=WeatherIcon.CLOUD, rain=40, description="Overcast"),
    ForecastDay(day="Friday", temp=25, condition="Sunny", icon=WeatherIcon.SUN, rain=10, description="Mostly Sunny"),
]


class NoWeatherData(ValueError):
    pass


def weather_icon(condition: str) -> WeatherIcon:
    """Pick a display icon from a free-text condition. Unknown text gets the cloud."""
    lowered = condition.lower()
    if "rain" in lowered or "shower" in lowered:
        return WeatherIcon.RAIN
    if "cloud" in lowered:
        return WeatherIcon.CLOUD
    if "sun" in lowered or "clear" in lowered:
        return WeatherIcon.SUN
    return WeatherIcon.CLOUD


def _round(value, default: int) -> int:
    """Half-up rounding of a possibly-missing reading."""
    if value is None:
        value = default
    return int(math.floor(float(value) + 0.5))


def _day_label(index: int, date_value: str | None) -> str:
    if index == 0:
        return "Today"
    if index == 1:
        return "Tomorrow"
    if not date_value:
        raise NoWeatherData(f"forecast entry {index} has no date")
    return datetime.fromisoformat(str(date_value).replace("Z", "+00:00")).strftime("%a")


def _current_from(location: dict) -> CurrentWeather | None:
    hourly = location.get("hourly_data") or []
    if not hourly:
        return None
    hour = hourly[0]
    description = hour.get("weather_description") or DEFAULT_CONDITION
    return CurrentWeather(
        temperature=_round(hour.get("temperature"), DEFAULT_TEMPERATURE),
        condition=description,
        humidity=_round(hour.get("humidity"), DEFAULT_HUMIDITY),
        wind_speed=_round(hour.get("wind_speed"), DEFAULT_WIND_SPEED),
        icon=weather_icon(hour.get("weather_description") or "cloudy"),
        description=description,
    )


def _forecast_day(index: int, location: dict) -> ForecastDay:
    hourly = location.get("hourly_data") or []
    if len(hourly) > MIDDAY_INDEX:
        sample = hourly[MIDDAY_INDEX]
    elif hourly:
        sample = hourly[0]
    else:
        sample = {}
    description = sample.get("weather_description") or DEFAULT_CONDITION
    return ForecastDay(
        day=_day_label(index, location.get("date")),
        temp=_round(sample.get("temperature"), DEFAULT_TEMPERATURE),
        condition=description,
        icon=weather_icon(sample.get("weather_description") or "cloudy"),
        rain=_round(sample.get("precipitation_probability"), DEFAULT_RAIN),
        description=description,
    )


def parse_forecast_payload(payload) -> tuple[CurrentWeather | None, list[ForecastDay]]:
    """Map the AfriGIS hourly response (a list of location entries) to current + 5 days."""
    if not isinstance(payload, list) or not payload:
        raise NoWeatherData("No weather data available")
    current = _current_from(payload[0])
    forecast = [
        _forecast_day(index, location)
        for index, location in enumerate(payload[:FORECAST_DAYS])
    ]
    return current, forecast


def fallback_report(latitude: float, longitude: float, error: str) -> WeatherReport:
    return WeatherReport(
        current=FALLBACK_CURRENT.model_copy(),
        forecast=[day.model_copy() for day in FALLBACK_FORECAST],
        status=DataStatus.OFFLINE,
        error=error,
        notice=OFFLINE_NOTICE,
        latitude=latitude,
        longitude=longitude,
    )


async def fetch_weather_data(
    client: httpx.AsyncClient,
    latitude: float = DEFAULT_LATITUDE,
    longitude: float = DEFAULT_LONGITUDE,
    url: str | None = None,
) -> WeatherReport:
    """Fetch current conditions and a 5-day forecast for a coordinate pair.

    Never raises: on any failure the fixed fallback forecast is returned with
    ``status=OFFLINE`` and a short error code.
    """
    logger.debug("[tool:weather] lat={} lng={}", latitude, longitude)
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "station_count": 1,
        "location_buffer": 1,
        "day_count": 10,
    }
    error = None
    try:
        resp = await client.get(
            url or settings.weather_api_url,
            params=params,
            headers={"accept": "application/json"},
        )
        resp.raise_for_status()
        current, forecast = parse_forecast_payload(resp.json())
    except httpx.TimeoutException:
        error = "timeout"
    except httpx.HTTPStatusError as e:
        error = f"http_{e.response.status_code}"
    except NoWeatherData:
        error = "no_data"
    except Exception as e:
        error = str(e) or type(e).__name__

    if error:
        logger.error("[tool:weather] Weather API error: {} - using default values", error)
        return fallback_report(latitude, longitude, error)

    logger.info("[tool:weather] LIVE - {} forecast days for ({}, {})", len(forecast), latitude, longitude)
    return WeatherReport(
        current=current,
        forecast=forecast,
        status=DataStatus.LIVE,
        latitude=latitude,
        longitude=longitude,
        fetched_at=datetime.now(timezone.utc).isoformat(),
    )
