# =============================================================================
# lib/weather_client.py - Weatherstack Client With Retries
# =============================================================================
# Wraps the single Weatherstack "current conditions" lookup used when a
# property is created. The lookup also geocodes the address, so one call
# yields both the weather snapshot and the coordinates.
#
# Failure triage:
# - client-class (HTTP 4xx, undecodable, oversized (>10 MB), unparseable
#   or incomplete payload)
#     -> WeatherRejectedError immediately, no retry
# - transient (timeouts, network errors, HTTP 5xx)
#     -> retried, waiting backoff * attempt_number between attempts
#        (1s, 2s with the defaults; linear, not exponential)
# - attempts exhausted
#     -> WeatherUnavailableError(attempts, last_error)
#
# Usage:
#   with WeatherClient.from_settings(settings) as client:
#       lookup = client.fetch("15528 E Golden Eagle Blvd, Fountain Hills, AZ 85268")
#       lookup.snapshot.temperature, lookup.latitude, lookup.longitude
# =============================================================================

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from enum import Enum
from types import TracebackType
from typing import Any, Callable

import httpx
from pydantic import ValidationError

from app.exceptions import WeatherRejectedError, WeatherUnavailableError
from core.models.weather import WeatherSnapshot

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://api.weatherstack.com/current"
DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 1.0
DEFAULT_MAX_RESPONSE_BYTES = 10 * 1024 * 1024

USER_AGENT = "PropertyWeatherAPI/1.0"


class AttemptState(str, Enum):
    """
    States of one fetch() call.

        ATTEMPTING --ok--------------------------> SUCCEEDED
        ATTEMPTING --transient, attempts left----> WAITING --> ATTEMPTING
        ATTEMPTING --transient, none left--------> FAILED_TERMINAL
        ATTEMPTING --client-class----------------> (raises WeatherRejectedError)
    """
    ATTEMPTING = "attempting"
    WAITING = "waiting"
    SUCCEEDED = "succeeded"
    FAILED_TERMINAL = "failed_terminal"


@dataclass(frozen=True)
class WeatherLookup:
    """Result of a successful lookup."""
    snapshot: WeatherSnapshot
    latitude: float
    longitude: float


class TransientWeatherError(Exception):
    """An attempt failed in a way that another attempt may fix."""


class WeatherClient:
    """
    Weatherstack lookup with bounded, linearly backed-off retries.

    Constructed once and passed into PropertyService; holds an httpx.Client
    connection pool until close() is called.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff: float = DEFAULT_BACKOFF_SECONDS,
        max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.max_response_bytes = max_response_bytes
        self.http = http_client or httpx.Client(follow_redirects=False)
        self._sleep = sleep

        if not self.api_key:
            logger.warning("WEATHERSTACK_API_KEY is not set; lookups will be rejected")

    @classmethod
    def from_settings(cls, settings: Any, **kwargs: Any) -> WeatherClient:
        """Build a client from app.config.Settings."""
        return cls(
            settings.WEATHERSTACK_API_KEY,
            base_url=settings.WEATHERSTACK_BASE_URL,
            timeout=settings.weather_timeout_seconds,
            max_attempts=settings.WEATHER_MAX_ATTEMPTS,
            backoff=settings.weather_backoff_seconds,
            **kwargs,
        )

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> WeatherClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def fetch(self, address: str) -> WeatherLookup:
        """
        Look up current weather and coordinates for an address.

        Attempts run sequentially; the caller blocks through the backoff
        waits. There is no overall deadline beyond max_attempts * timeout
        plus the waits.

        Args:
            address: Single-line address, e.g. "1 Main St, Mesa, AZ 85201"

        Returns:
            WeatherLookup with snapshot, latitude and longitude

        Raises:
            WeatherRejectedError: Provider refused the lookup or sent an unusable payload
            WeatherUnavailableError: Every attempt failed transiently
        """
        logger.info(f"Fetching weather data for address: {address}")

        state = AttemptState.ATTEMPTING
        attempt = 0
        last_error = ""
        lookup: WeatherLookup | None = None

        while True:
            if state is AttemptState.ATTEMPTING:
                attempt += 1
                try:
                    lookup = self._attempt(address)
                    state = AttemptState.SUCCEEDED
                except TransientWeatherError as e:
                    last_error = str(e)
                    logger.warning(
                        f"Weatherstack attempt {attempt}/{self.max_attempts} failed: {last_error}"
                    )
                    if attempt < self.max_attempts:
                        state = AttemptState.WAITING
                    else:
                        state = AttemptState.FAILED_TERMINAL

            elif state is AttemptState.WAITING:
                delay = self.backoff * attempt
                logger.debug(f"Waiting {delay:.1f}s before attempt {attempt + 1}")
                self._sleep(delay)
                state = AttemptState.ATTEMPTING

            elif state is AttemptState.SUCCEEDED:
                logger.info(
                    f"Weather data fetched on attempt {attempt} "
                    f"(lat={lookup.latitude}, long={lookup.longitude})"
                )
                return lookup

            else:
                logger.error(
                    f"Weatherstack unavailable after {attempt} attempts: {last_error}"
                )
                raise WeatherUnavailableError(attempts=attempt, last_error=last_error)

    # -------------------------------------------------------------------------
    # One attempt
    # -------------------------------------------------------------------------

    def _attempt(self, address: str) -> WeatherLookup:
        """Issue one request and classify the outcome."""
        try:
            with self.http.stream(
                "GET",
                self.base_url,
                params={"access_key": self.api_key, "query": address},
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                timeout=self.timeout,
            ) as response:
                status = response.status_code
                if 400 <= status < 500:
                    raise WeatherRejectedError(f"HTTP {status}", status_code=status)
                if status != 200:
                    raise TransientWeatherError(f"HTTP {status}")
                body = self._read_body(response)
        except httpx.TimeoutException as e:
            raise TransientWeatherError(f"Request timed out after {self.timeout}s") from e
        except httpx.DecodingError as e:
            raise WeatherRejectedError("Response body could not be decoded") from e
        except httpx.TransportError as e:
            raise TransientWeatherError(f"Network error: {e}") from e

        try:
            payload = json.loads(body)
        except ValueError:
            raise WeatherRejectedError("Response body is not valid JSON")

        return self._parse(payload)

    def _read_body(self, response: httpx.Response) -> bytes:
        """Read the decoded body, refusing anything over max_response_bytes."""
        chunks = []
        size = 0
        for chunk in response.iter_bytes():
            size += len(chunk)
            if size > self.max_response_bytes:
                raise WeatherRejectedError(
                    f"Response body exceeds {self.max_response_bytes} bytes"
                )
            chunks.append(chunk)
        return b"".join(chunks)

    def _parse(self, payload: Any) -> WeatherLookup:
        """
        Extract the snapshot and coordinates from a Weatherstack body.

        Weatherstack reports bad keys and unknown addresses with HTTP 200
        and an "error" object instead of location/current blocks.
        """
        if not isinstance(payload, dict):
            raise WeatherRejectedError("Invalid response from Weatherstack API")

        location = payload.get("location")
        current = payload.get("current")
        if not location or not current:
            error = payload.get("error") or {}
            info = error.get("info") if isinstance(error, dict) else None
            reason = "Invalid response from Weatherstack API"
            if info:
                reason = f"{reason}: {info}"
            raise WeatherRejectedError(reason)
        if not isinstance(location, dict) or not isinstance(current, dict):
            raise WeatherRejectedError("Invalid response from Weatherstack API")

        try:
            snapshot = WeatherSnapshot(
                temperature=current.get("temperature"),
                conditions=current.get("weather_descriptions") or [],
                humidity=current.get("humidity"),
                wind_speed=current.get("wind_speed"),
                observed_at=current.get("observation_time"),
                feels_like=current.get("feelslike"),
            )
        except ValidationError as e:
            raise WeatherRejectedError(
                f"Incomplete current conditions: {e.error_count()} invalid field(s)"
            )

        try:
            latitude = float(location["lat"])
            longitude = float(location["lon"])
        except (KeyError, TypeError, ValueError):
            raise WeatherRejectedError("Location block has no usable coordinates")

        return WeatherLookup(snapshot=snapshot, latitude=latitude, longitude=longitude)
