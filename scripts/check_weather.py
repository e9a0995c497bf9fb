#!/usr/bin/env python3
"""
Live check of the Weatherstack lookup used when a property is created.

Reads WEATHERSTACK_API_KEY (and the other settings) from .env, looks up one
address and prints the snapshot and coordinates that would be stored.

Usage:
    python scripts/check_weather.py
    python scripts/check_weather.py "1 Main St, Mesa, AZ 85201"
"""

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from app.config import get_settings
from app.exceptions import WeatherRejectedError, WeatherUnavailableError
from lib.weather_client import WeatherClient

DEFAULT_ADDRESS = "15528 E Golden Eagle Blvd, Fountain Hills, AZ 85268"


def main() -> int:
    address = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_ADDRESS
    settings = get_settings()

    print(f"\n{'='*60}")
    print(f"ADDRESS: \"{address}\"")
    print(f"{'='*60}")
    print(
        f"Timeout {settings.weather_timeout_seconds}s, "
        f"{settings.WEATHER_MAX_ATTEMPTS} attempts, "
        f"backoff {settings.weather_backoff_seconds}s"
    )

    with WeatherClient.from_settings(settings) as client:
        try:
            lookup = client.fetch(address)
        except WeatherRejectedError as e:
            print(f"\nREJECTED: {e.reason}")
            return 1
        except WeatherUnavailableError as e:
            print(f"\nUNAVAILABLE after {e.attempts} attempts: {e.last_error}")
            return 1

    print("\n--- SNAPSHOT ---")
    for key, value in lookup.snapshot.model_dump(by_alias=True).items():
        print(f"  {key}: {value}")
    print(f"\nCoordinates: {lookup.latitude}, {lookup.longitude}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
