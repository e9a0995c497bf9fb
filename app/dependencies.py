# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# The service and repository are built once (see app.main.create_app) and
# kept on app.state; these functions hand them to route handlers.
# =============================================================================

from typing import Annotated

from fastapi import Depends, Request

from core.services.property_service import PropertyService
from lib.supabase_client import PropertyRepository


def get_property_service(request: Request) -> PropertyService:
    """Get the application's PropertyService."""
    return request.app.state.property_service


def get_property_repository(request: Request) -> PropertyRepository:
    """Get the application's PropertyRepository (used by health checks)."""
    return request.app.state.property_repository


# Type aliases for dependency injection
PropertyServiceDep = Annotated[PropertyService, Depends(get_property_service)]
PropertyRepositoryDep = Annotated[PropertyRepository, Depends(get_property_repository)]
