# =============================================================================
# core/services/property_service.py - Property Business Logic
# =============================================================================
# Creation pipeline and query/delete path for property records.
# Separates HTTP concerns from database/business logic.
#
# Creation is validate -> compose address -> fetch weather -> persist. Each
# step is a hard gate: if weather cannot be fetched, nothing is written.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Callable
from uuid import UUID, uuid4

from app.exceptions import PropertyNotFoundError, ValidationFailedError
from core.models.property import (
    PropertyCreate,
    PropertyFilter,
    PropertyRecord,
    PropertySort,
)
from core.validation import compose_address, validate_property_id, validate_property_input
from lib.supabase_client import PropertyRepository
from lib.weather_client import WeatherClient

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PropertyService:
    """
    Service for property operations.

    The repository and weather client are passed in rather than looked up,
    so tests can supply fakes and nothing here holds global state.
    """

    def __init__(
        self,
        repository: PropertyRepository,
        weather_client: WeatherClient,
        id_factory: Callable[[], UUID] = uuid4,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.repository = repository
        self.weather_client = weather_client
        self._new_id = id_factory
        self._now = clock

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_property(self, payload: PropertyCreate) -> PropertyRecord:
        """
        Create a property enriched with weather and coordinates.

        Args:
            payload: Street, city, state and ZIP code

        Returns:
            The stored PropertyRecord

        Raises:
            ValidationFailedError: One or more fields are invalid (nothing else runs)
            WeatherRejectedError: Provider refused the lookup (nothing is stored)
            WeatherUnavailableError: Provider kept failing (nothing is stored)
            PersistenceFaultError: The insert failed
        """
        violations = validate_property_input(payload)
        if violations:
            raise ValidationFailedError(violations)

        address = compose_address(payload)
        lookup = self.weather_client.fetch(address)

        record = PropertyRecord(
            id=self._new_id(),
            street=payload.street,
            city=payload.city,
            state=payload.state,
            zip_code=payload.zip_code,
            weather=lookup.snapshot,
            latitude=lookup.latitude,
            longitude=lookup.longitude,
            created_at=self._now(),
        )
        return self.repository.insert(record)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_properties(
        self,
        filter: PropertyFilter | None = None,
        sort: PropertySort | None = None,
    ) -> list[PropertyRecord]:
        """List properties, newest first unless sort says otherwise."""
        return self.repository.list(filter, sort)

    def get_property(self, property_id: str) -> PropertyRecord:
        """
        Get a property by id.

        Raises:
            ValidationFailedError: If the id is blank
            PropertyNotFoundError: If no property has this id
        """
        property_id = self._checked_id(property_id)
        return self._ensure_exists(property_id)

    # -------------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------------

    def delete_property(self, property_id: str) -> bool:
        """
        Delete a property by id.

        Existence is checked first so a missing id is reported as not found
        rather than silently ignored. If a concurrent delete removes the row
        between the check and the delete, this call also reports not found.

        Raises:
            ValidationFailedError: If the id is blank
            PropertyNotFoundError: If no property has this id
        """
        property_id = self._checked_id(property_id)
        record = self._ensure_exists(property_id)

        if not self.repository.delete(str(record.id)):
            raise PropertyNotFoundError(property_id)
        return True

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _checked_id(self, property_id: str) -> str:
        violations = validate_property_id(property_id)
        if violations:
            raise ValidationFailedError(violations)
        return property_id.strip()

    def _ensure_exists(self, property_id: str) -> PropertyRecord:
        # Ids are UUIDs; anything else cannot match a row. The store only
        # accepts the canonical hyphenated form, not urn:uuid: or braces.
        try:
            canonical = str(UUID(property_id))
        except ValueError:
            raise PropertyNotFoundError(property_id)

        record = self.repository.fetch_by_id(canonical)
        if record is None:
            raise PropertyNotFoundError(property_id)
        return record
