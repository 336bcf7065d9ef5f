"""Weather and time tools."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field

from agent_friend.tools.registry import tool

# Simulated lookup latency for the mock weather service.
WEATHER_LOOKUP_DELAY = 0.5

_MOCK_WEATHER = {
    "cairo": "30°C, sunny",
    "london": "15°C, cloudy with occasional rain",
    "new york": "22°C, partly cloudy",
    "tokyo": "25°C, clear skies",
}

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class WeatherArgs(BaseModel):
    city: str = Field("unknown", description="City name, e.g. 'London'")


class TimeArgs(BaseModel):
    timezone: Optional[str] = Field(
        None, description="IANA timezone such as 'Europe/London'. Omit for local time."
    )


@tool("get_weather", "Get the current weather for a given city", WeatherArgs)
async def get_weather(args: WeatherArgs) -> str:
    await asyncio.sleep(WEATHER_LOOKUP_DELAY)
    report = _MOCK_WEATHER.get(args.city.strip().lower())
    if report is None:
        return f"Weather data for {args.city} is not available. This is a mock implementation."
    return f"Weather in {args.city}: {report}"


@tool("get_time", "Get the current time in a specific timezone or local time", TimeArgs)
def get_time(args: TimeArgs) -> str:
    if not args.timezone:
        return f"Current local time: {datetime.now().strftime(_TIME_FORMAT)}"

    try:
        zone = ZoneInfo(args.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return (
            f"Current time (local, unknown timezone '{args.timezone}'): "
            f"{datetime.now().strftime(_TIME_FORMAT)}"
        )
    now = datetime.now(zone)
    return f"Current time in {args.timezone}: {now.strftime(_TIME_FORMAT)} ({now.tzname()})"
