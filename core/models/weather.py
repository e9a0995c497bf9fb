# =============================================================================
# core/models/weather.py - Weather Snapshot Schema
# =============================================================================
# The weather payload captured once, when a property is created, and never
# re-fetched afterwards. Field values are copied verbatim from the provider's
# current-conditions block.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base model for API payloads.

    Python code uses snake_case attributes; the wire format uses camelCase
    (zipCode, windSpeed, createdAt). Either form is accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class WeatherSnapshot(CamelModel):
    """
    Point-in-time weather at a property's address.

    Example:
        {
            "temperature": 75,
            "conditions": ["Sunny"],
            "humidity": 35,
            "windSpeed": 5,
            "observedAt": "05:30 PM",
            "feelsLike": 73
        }
    """

    temperature: float = Field(..., description="Current temperature")

    # Weatherstack returns one or more human-readable descriptions
    conditions: list[str] = Field(
        default_factory=list,
        description="Condition descriptions (e.g., 'Sunny', 'Light Rain')"
    )

    humidity: float = Field(..., description="Relative humidity in percent")

    wind_speed: float = Field(..., description="Wind speed")

    observed_at: str = Field(..., description="Provider observation time (e.g., '05:30 PM')")

    feels_like: float = Field(..., description="Apparent temperature")
