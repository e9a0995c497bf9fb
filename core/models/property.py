# =============================================================================
# core/models/property.py - Property Schemas
# =============================================================================
# These models define the API contract for property operations:
# - PropertyCreate: Input for creating a property (address only)
# - PropertyRecord: A stored property with its weather snapshot
# - PropertyFilter / PropertySort: Options for listing properties
#
# A PropertyRecord always carries weather AND coordinates. Both come from
# the same provider lookup, so a record is never built with one and not
# the other.
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import Field

from .weather import CamelModel, WeatherSnapshot


class SortOrder(str, Enum):
    """Direction for ordering by creation time."""
    ASC = "ASC"
    DESC = "DESC"


class PropertyCreate(CamelModel):
    """
    Schema for creating a new property.

    Fields are deliberately loose here: format rules are checked by
    core.validation.validate_property_input so every violation can be
    reported together.

    Example:
        {
            "street": "15528 E Golden Eagle Blvd",
            "city": "Fountain Hills",
            "state": "AZ",
            "zipCode": "85268"
        }
    """

    street: str | None = Field(default=None, description="Street address")
    city: str | None = Field(default=None, description="City name")
    state: str | None = Field(default=None, description="2-letter state code (e.g., AZ)")
    zip_code: str | None = Field(default=None, description="5-digit ZIP code")

    model_config = {
        "json_schema_extra": {
            "example": {
                "street": "15528 E Golden Eagle Blvd",
                "city": "Fountain Hills",
                "state": "AZ",
                "zipCode": "85268",
            }
        }
    }


class PropertyFilter(CamelModel):
    """
    Optional equality filters, combined with AND.

    Fields left as None or blank are not constrained. Matching is exact and
    case-sensitive.
    """

    city: str | None = None
    state: str | None = None
    zip_code: str | None = None

    def active(self) -> dict[str, str]:
        """Return the constrained fields keyed by store column name."""
        columns = {"city": self.city, "state": self.state, "zip_code": self.zip_code}
        return {
            column: value
            for column, value in columns.items()
            if value is not None and value.strip()
        }


class PropertySort(CamelModel):
    """Sort by creation time; newest first unless told otherwise."""

    created_at: SortOrder = SortOrder.DESC


class PropertyRecord(CamelModel):
    """
    A stored property.

    Returned by:
    - POST /properties (the newly created record)
    - GET /properties/{id}
    - GET /properties (list)
    """

    id: UUID = Field(..., description="Unique property identifier")

    street: str
    city: str
    state: str
    zip_code: str

    # Snapshot taken at creation, never refreshed
    weather: WeatherSnapshot = Field(
        ...,
        alias="weatherSnapshot",
        description="Weather captured when the property was created"
    )

    latitude: float = Field(..., description="Latitude from the provider's geocoding")
    longitude: float = Field(..., description="Longitude from the provider's geocoding")

    created_at: datetime = Field(..., description="When the property was created")

    # -------------------------------------------------------------------------
    # Store mapping
    # -------------------------------------------------------------------------

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "PropertyRecord":
        """Build a record from a `properties` table row."""
        return cls(
            id=row["id"],
            street=row["street"],
            city=row["city"],
            state=row["state"],
            zip_code=row["zip_code"],
            weather=WeatherSnapshot.model_validate(row["weather_data"]),
            latitude=row["lat"],
            longitude=row["long"],
            created_at=row["created_at"],
        )

    def to_row(self) -> dict[str, Any]:
        """Serialize into a `properties` table row."""
        return {
            "id": str(self.id),
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "weather_data": self.weather.model_dump(mode="json"),
            "lat": self.latitude,
            "long": self.longitude,
            "created_at": self.created_at.isoformat(),
        }
