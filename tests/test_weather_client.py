# =============================================================================
# tests/test_weather_client.py - Weather Client Tests
# =============================================================================
# This module contains tests for:
# - Parsing a Weatherstack response into a snapshot and coordinates
# - The linear retry schedule for transient failures
# - Immediate rejection of client-class failures
#
# HTTP is served by httpx.MockTransport; backoff sleeps are recorded, not slept.
# =============================================================================

from __future__ import annotations

import httpx
import pytest

from app.config import get_settings
from app.exceptions import WeatherRejectedError, WeatherUnavailableError
from lib.weather_client import WeatherClient

ADDRESS = "15528 E Golden Eagle Blvd, Fountain Hills, AZ 85268"


class ScriptedTransport:
    """Replays one scripted outcome per request."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_client(transport: ScriptedTransport, sleeps: list, **kwargs) -> WeatherClient:
    return WeatherClient(
        "test-key",
        base_url="http://weather.test/current",
        http_client=httpx.Client(transport=httpx.MockTransport(transport)),
        sleep=sleeps.append,
        **kwargs,
    )


def ok(payload) -> httpx.Response:
    return httpx.Response(200, json=payload)


def timeout() -> httpx.TimeoutException:
    return httpx.ReadTimeout("timed out")


@pytest.fixture
def sleeps():
    return []


# =============================================================================
# Successful Lookups
# =============================================================================

class TestSuccessfulLookup:
    """Lookups that succeed on the first attempt."""

    def test_parses_snapshot_and_coordinates(self, weatherstack_payload, sleeps):
        transport = ScriptedTransport(ok(weatherstack_payload))
        client = make_client(transport, sleeps)

        lookup = client.fetch(ADDRESS)

        assert lookup.snapshot.temperature == 75
        assert lookup.snapshot.conditions == ["Sunny"]
        assert lookup.snapshot.humidity == 35
        assert lookup.snapshot.wind_speed == 5
        assert lookup.snapshot.observed_at == "05:30 PM"
        assert lookup.snapshot.feels_like == 73
        assert lookup.latitude == 33.609
        assert lookup.longitude == -111.729
        assert sleeps == []

    def test_request_carries_key_query_and_timeout(self, weatherstack_payload, sleeps):
        transport = ScriptedTransport(ok(weatherstack_payload))
        client = make_client(transport, sleeps)

        client.fetch(ADDRESS)

        request = transport.requests[0]
        assert request.method == "GET"
        assert request.url.params["access_key"] == "test-key"
        assert request.url.params["query"] == ADDRESS
        assert request.headers["accept"] == "application/json"
        assert request.extensions["timeout"]["read"] == 15.0

    def test_missing_descriptions_become_empty_list(self, weatherstack_payload, sleeps):
        del weatherstack_payload["current"]["weather_descriptions"]
        client = make_client(ScriptedTransport(ok(weatherstack_payload)), sleeps)

        assert client.fetch(ADDRESS).snapshot.conditions == []


# =============================================================================
# Retry Schedule
# =============================================================================

class TestRetrySchedule:
    """Transient failures are retried with waits of unit * attempt number."""

    def test_two_transient_failures_then_success(self, weatherstack_payload, sleeps):
        transport = ScriptedTransport(
            httpx.Response(503),
            timeout(),
            ok(weatherstack_payload),
        )
        client = make_client(transport, sleeps)

        lookup = client.fetch(ADDRESS)

        assert len(transport.requests) == 3
        assert sleeps == [1.0, 2.0]
        assert lookup.latitude == 33.609

    def test_exhausted_attempts_raise_unavailable(self, sleeps):
        transport = ScriptedTransport(
            httpx.Response(500),
            httpx.Response(502),
            httpx.Response(503),
        )
        client = make_client(transport, sleeps)

        with pytest.raises(WeatherUnavailableError) as exc_info:
            client.fetch(ADDRESS)

        assert exc_info.value.attempts == 3
        assert exc_info.value.last_error == "HTTP 503"
        assert len(transport.requests) == 3
        # No wait after the final attempt
        assert sleeps == [1.0, 2.0]

    def test_network_errors_are_transient(self, sleeps):
        transport = ScriptedTransport(
            httpx.ConnectError("connection refused"),
            httpx.ConnectError("connection refused"),
            timeout(),
        )
        client = make_client(transport, sleeps)

        with pytest.raises(WeatherUnavailableError) as exc_info:
            client.fetch(ADDRESS)

        assert "timed out" in exc_info.value.last_error
        assert len(transport.requests) == 3

    def test_custom_attempts_and_backoff_unit(self, weatherstack_payload, sleeps):
        transport = ScriptedTransport(
            httpx.Response(503),
            httpx.Response(503),
            httpx.Response(503),
            ok(weatherstack_payload),
        )
        client = make_client(transport, sleeps, max_attempts=4, backoff=0.5)

        client.fetch(ADDRESS)

        assert sleeps == [0.5, 1.0, 1.5]

    def test_single_attempt_never_waits(self, sleeps):
        client = make_client(ScriptedTransport(httpx.Response(503)), sleeps, max_attempts=1)

        with pytest.raises(WeatherUnavailableError) as exc_info:
            client.fetch(ADDRESS)

        assert exc_info.value.attempts == 1
        assert sleeps == []

    def test_zero_attempts_is_a_configuration_error(self):
        with pytest.raises(ValueError):
            WeatherClient("test-key", max_attempts=0)


# =============================================================================
# Client-Class Failures
# =============================================================================

class TestClientClassFailures:
    """Failures retrying cannot fix stop after the attempt that saw them."""

    @pytest.mark.parametrize("status", [400, 401, 404, 429])
    def test_4xx_is_rejected_without_retry(self, status, sleeps):
        transport = ScriptedTransport(httpx.Response(status))
        client = make_client(transport, sleeps)

        with pytest.raises(WeatherRejectedError) as exc_info:
            client.fetch(ADDRESS)

        assert exc_info.value.provider_status == status
        assert len(transport.requests) == 1
        assert sleeps == []

    def test_rejection_after_transient_failure_stops_immediately(self, sleeps):
        transport = ScriptedTransport(httpx.Response(503), httpx.Response(401))
        client = make_client(transport, sleeps)

        with pytest.raises(WeatherRejectedError):
            client.fetch(ADDRESS)

        assert len(transport.requests) == 2
        assert sleeps == [1.0]

    @pytest.mark.parametrize("missing", ["location", "current"])
    def test_missing_block_is_rejected(self, weatherstack_payload, missing, sleeps):
        del weatherstack_payload[missing]
        transport = ScriptedTransport(ok(weatherstack_payload))
        client = make_client(transport, sleeps)

        with pytest.raises(WeatherRejectedError):
            client.fetch(ADDRESS)

        assert len(transport.requests) == 1

    def test_provider_error_body_is_rejected_with_info(self, sleeps):
        body = {
            "success": False,
            "error": {
                "code": 101,
                "type": "invalid_access_key",
                "info": "You have not supplied a valid API Access Key.",
            },
        }
        client = make_client(ScriptedTransport(ok(body)), sleeps)

        with pytest.raises(WeatherRejectedError) as exc_info:
            client.fetch(ADDRESS)

        assert "valid API Access Key" in exc_info.value.reason

    def test_non_json_body_is_rejected(self, sleeps):
        transport = ScriptedTransport(httpx.Response(200, text="<html>oops</html>"))
        client = make_client(transport, sleeps)

        with pytest.raises(WeatherRejectedError):
            client.fetch(ADDRESS)

        assert len(transport.requests) == 1

    def test_corrupt_gzip_body_is_rejected(self, sleeps):
        transport = ScriptedTransport(httpx.Response(
            200,
            headers={"Content-Encoding": "gzip"},
            stream=httpx.ByteStream(b"not-gzip"),
        ))
        client = make_client(transport, sleeps)

        with pytest.raises(WeatherRejectedError) as exc_info:
            client.fetch(ADDRESS)

        assert "could not be decoded" in exc_info.value.reason
        assert len(transport.requests) == 1
        assert sleeps == []

    def test_oversized_body_is_rejected(self, weatherstack_payload, sleeps):
        transport = ScriptedTransport(ok(weatherstack_payload))
        client = make_client(transport, sleeps, max_response_bytes=64)

        with pytest.raises(WeatherRejectedError) as exc_info:
            client.fetch(ADDRESS)

        assert "exceeds 64 bytes" in exc_info.value.reason
        assert len(transport.requests) == 1

    def test_default_response_limit_is_ten_megabytes(self):
        with WeatherClient("test-key") as client:
            assert client.max_response_bytes == 10 * 1024 * 1024

    def test_unparseable_coordinates_are_rejected(self, weatherstack_payload, sleeps):
        weatherstack_payload["location"]["lat"] = "north-ish"
        client = make_client(ScriptedTransport(ok(weatherstack_payload)), sleeps)

        with pytest.raises(WeatherRejectedError):
            client.fetch(ADDRESS)

    def test_incomplete_current_block_is_rejected(self, weatherstack_payload, sleeps):
        del weatherstack_payload["current"]["temperature"]
        client = make_client(ScriptedTransport(ok(weatherstack_payload)), sleeps)

        with pytest.raises(WeatherRejectedError):
            client.fetch(ADDRESS)


# =============================================================================
# Construction
# =============================================================================

class TestFromSettings:
    """Tests for WeatherClient.from_settings."""

    def test_defaults_from_settings(self):
        client = WeatherClient.from_settings(get_settings())

        assert client.api_key == "test-weatherstack-key"
        assert client.base_url == "http://api.weatherstack.com/current"
        assert client.timeout == 15.0
        assert client.max_attempts == 3
        assert client.backoff == 1.0
        client.close()

    def test_context_manager_closes_http_client(self):
        with WeatherClient("test-key") as client:
            pass

        assert client.http.is_closed
