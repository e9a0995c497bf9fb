# =============================================================================
# app/routers/properties.py - Property Endpoints
# =============================================================================
# Create, list, fetch and delete property records.
#
# Handlers are plain `def` so FastAPI runs them in its thread pool: creation
# blocks on the weather lookup (including retry backoff) and must not stall
# the event loop.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Path, Query
from pydantic import BaseModel, Field

from app.dependencies import PropertyServiceDep
from core.models.property import (
    PropertyCreate,
    PropertyFilter,
    PropertyRecord,
    PropertySort,
    SortOrder,
)

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class PropertyDeleteResponse(BaseModel):
    """Response when deleting a property."""
    id: str = Field(..., examples=["550e8400-e29b-41d4-a716-446655440000"])
    deleted: bool = Field(default=True)


# =============================================================================
# Endpoints
# =============================================================================

@router.post("", response_model=PropertyRecord, status_code=201)
def create_property(payload: PropertyCreate, service: PropertyServiceDep):
    """
    Create a property.

    Fetches current weather and coordinates for the address and stores them
    with the property. If the weather lookup fails, no property is created
    and the request can be resubmitted as-is.
    """
    return service.create_property(payload)


@router.get("", response_model=list[PropertyRecord])
def list_properties(
    service: PropertyServiceDep,
    city: Annotated[str | None, Query(description="Exact city match")] = None,
    state: Annotated[str | None, Query(description="Exact state match (e.g., AZ)")] = None,
    zip_code: Annotated[str | None, Query(alias="zipCode", description="Exact ZIP code match")] = None,
    sort: Annotated[SortOrder, Query(description="Order by createdAt")] = SortOrder.DESC,
):
    """
    List properties.

    All given filters must match. Results are ordered by creation time,
    newest first by default. No pagination: every match is returned.
    """
    return service.list_properties(
        PropertyFilter(city=city, state=state, zip_code=zip_code),
        PropertySort(created_at=sort),
    )


@router.get("/{property_id}", response_model=PropertyRecord)
def get_property(
    property_id: Annotated[str, Path(description="Property UUID")],
    service: PropertyServiceDep,
):
    """Get a single property by id."""
    return service.get_property(property_id)


@router.delete("/{property_id}", response_model=PropertyDeleteResponse)
def delete_property(
    property_id: Annotated[str, Path(description="Property UUID")],
    service: PropertyServiceDep,
):
    """
    Delete a property.

    Deletion is permanent. Returns 404 if the property does not exist.
    """
    deleted = service.delete_property(property_id)
    return PropertyDeleteResponse(id=property_id.strip(), deleted=deleted)
