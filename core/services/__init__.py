# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .property_service import PropertyService

__all__ = [
    "PropertyService",
]
