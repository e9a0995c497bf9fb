# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - weather.py: WeatherSnapshot captured at property creation
# - property.py: Property create/record schemas, list filter and sort
#
# These models define the "contract" between API and clients.
# =============================================================================

from .weather import (
    CamelModel,
    WeatherSnapshot,
)

from .property import (
    PropertyCreate,
    PropertyFilter,
    PropertyRecord,
    PropertySort,
    SortOrder,
)

__all__ = [
    "CamelModel",
    "WeatherSnapshot",
    "PropertyCreate",
    "PropertyFilter",
    "PropertyRecord",
    "PropertySort",
    "SortOrder",
]
