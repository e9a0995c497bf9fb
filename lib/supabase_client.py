# =============================================================================
# lib/supabase_client.py - Supabase Property Store
# =============================================================================
# This module provides a typed wrapper around the Supabase `properties` table.
# It is the only code that talks to the database:
# - create_supabase_client(): build the client from settings
# - PropertyRepository: insert / fetch / list / delete / ping
#
# Every Supabase failure is re-raised as PersistenceFaultError tagged with the
# operation that failed, so callers never see raw PostgREST errors.
#
# Usage:
#   repository = PropertyRepository(create_supabase_client(settings))
#   record = repository.fetch_by_id("550e8400-...")
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from supabase import Client, create_client

from app.exceptions import PersistenceFaultError
from core.models.property import PropertyFilter, PropertyRecord, PropertySort, SortOrder

# Set up logging for this module
logger = logging.getLogger(__name__)

DEFAULT_TABLE = "properties"


def create_supabase_client(settings: Any) -> Client:
    """
    Create a Supabase client.

    Uses the service_role key which bypasses Row Level Security (RLS).
    This is appropriate for server-side operations.

    Raises:
        PersistenceFaultError: If client creation fails
    """
    try:
        client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)
    except Exception as e:
        raise PersistenceFaultError("connect", str(e)) from e

    logger.info("Supabase client initialized successfully")
    return client


class PropertyRepository:
    """
    Data access for property records.

    Each method is a single store operation (one insert, one select, one
    delete), so each is atomic on its own. Nothing here retries.

    Example:
        repository = PropertyRepository(client)
        records = repository.list(PropertyFilter(state="AZ"), PropertySort())
    """

    def __init__(self, client: Client, table: str = DEFAULT_TABLE):
        self.client = client
        self.table = table

    def _query(self):
        return self.client.table(self.table)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def insert(self, record: PropertyRecord) -> PropertyRecord:
        """
        Insert a new property row.

        Returns:
            The record as stored

        Raises:
            PersistenceFaultError: If the insert fails or returns nothing
        """
        try:
            response = self._query().insert(record.to_row()).execute()
        except Exception as e:
            raise PersistenceFaultError("insert", str(e)) from e

        if not response.data:
            raise PersistenceFaultError("insert", "Insert returned no data")

        stored = PropertyRecord.from_row(response.data[0])
        logger.info(f"Property created: {stored.id}")
        return stored

    def delete(self, property_id: str) -> bool:
        """
        Delete a property row by id.

        Returns:
            True if a row was deleted, False if no row had that id
        """
        try:
            response = self._query().delete().eq("id", property_id).execute()
        except Exception as e:
            raise PersistenceFaultError("delete", str(e)) from e

        deleted = bool(response.data)
        if deleted:
            logger.info(f"Property deleted: {property_id}")
        return deleted

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def fetch_by_id(self, property_id: str) -> PropertyRecord | None:
        """
        Fetch a property by id.

        Returns:
            The record, or None if not found
        """
        try:
            response = (
                self._query()
                .select("*")
                .eq("id", property_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise PersistenceFaultError("fetch", str(e)) from e

        rows = response.data or []
        return PropertyRecord.from_row(rows[0]) if rows else None

    def list(
        self,
        filter: PropertyFilter | None = None,
        sort: PropertySort | None = None,
    ) -> list[PropertyRecord]:
        """
        List properties matching every given filter field.

        Ordered by created_at (DESC by default); rows created at the same
        instant are ordered by id in the same direction.
        """
        filter = filter or PropertyFilter()
        sort = sort or PropertySort()
        desc = sort.created_at == SortOrder.DESC

        query = self._query().select("*")
        for column, value in filter.active().items():
            query = query.eq(column, value)
        query = query.order("created_at", desc=desc).order("id", desc=desc)

        try:
            response = query.execute()
        except Exception as e:
            raise PersistenceFaultError("list", str(e)) from e

        records = [PropertyRecord.from_row(row) for row in response.data or []]
        logger.debug(f"Listed {len(records)} properties with filter {filter.active()}")
        return records

    def ping(self) -> None:
        """
        Run the cheapest possible query to prove the store is reachable.

        Raises:
            PersistenceFaultError: If the store cannot be queried
        """
        try:
            self._query().select("id").limit(1).execute()
        except Exception as e:
            raise PersistenceFaultError("ping", str(e)) from e
