# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides the handful of table primitives the services build on:
# - single-row lookups (PostgREST "no rows" becomes None)
# - full-table reads paged past the 1000-row API limit
# - insert / update / upsert returning the written rows
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   customer = SupabaseClient.fetch_one("customers", "client_email", email)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from supabase import create_client, Client

from app.config import settings

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST caps a single response at 1000 rows by default
PAGE_SIZE = 1000

# PostgREST error code returned by .single() when no row matches
NO_ROWS_CODE = "PGRST116"


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Carries a code, a suggestion on how to fix it, and debugging details.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        customers = SupabaseClient.fetch_all("customers")
        row = SupabaseClient.fetch_one("customers", "id", 42)
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        This is appropriate for server-side operations.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def set_client(cls, client: Client | None) -> None:
        """Replace the shared client (used by workers and tests)."""
        cls._instance = client

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_one(
        cls,
        table: str,
        column: str,
        value: Any,
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """
        Fetch a single row where `column` equals `value`.

        Returns:
            Row dict, or None if no row matches

        Raises:
            SupabaseClientError: If the query fails
        """
        client = cls.get_client()

        try:
            response = (
                client.table(table)
                .select(columns)
                .eq(column, value)
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if NO_ROWS_CODE in str(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch from {table}: {e}",
                code="FETCH_ONE_FAILED",
                details={"table": table, column: value},
            )

    @classmethod
    def fetch_first(
        cls,
        table: str,
        column: str,
        value: Any,
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """
        Fetch the first row where `column` equals `value`.

        Unlike fetch_one this tolerates duplicates, which legacy customer
        rows sometimes have on client_email.
        """
        client = cls.get_client()

        try:
            response = (
                client.table(table)
                .select(columns)
                .eq(column, value)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch from {table}: {e}",
                code="FETCH_FIRST_FAILED",
                details={"table": table, column: value},
            )

        rows = response.data or []
        return rows[0] if rows else None

    @classmethod
    def fetch_many(
        cls,
        table: str,
        column: str,
        value: Any,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """Fetch every row where `column` equals `value`."""
        client = cls.get_client()

        try:
            response = (
                client.table(table)
                .select(columns)
                .eq(column, value)
                .execute()
            )
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch from {table}: {e}",
                code="FETCH_MANY_FAILED",
                details={"table": table, column: value},
            )

    @classmethod
    def fetch_all(
        cls,
        table: str,
        columns: str = "*",
        order_by: str | None = "id",
    ) -> list[dict[str, Any]]:
        """
        Fetch every row of a table.

        Pages through the table PAGE_SIZE rows at a time until a short page
        comes back, so callers always see the whole table.

        Raises:
            SupabaseClientError: If any page fails
        """
        client = cls.get_client()
        rows: list[dict[str, Any]] = []
        offset = 0

        try:
            while True:
                query = client.table(table).select(columns)
                if order_by:
                    query = query.order(order_by)
                response = query.range(offset, offset + PAGE_SIZE - 1).execute()

                page = response.data or []
                rows.extend(page)

                if len(page) < PAGE_SIZE:
                    break
                offset += PAGE_SIZE

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch {table}: {e}",
                code="FETCH_ALL_FAILED",
                suggestion=f"Check that the {table} table exists and is readable with the service key",
                details={"table": table, "rows_fetched": len(rows)},
            )

        logger.debug(f"Fetched {len(rows)} rows from {table}")
        return rows

    @classmethod
    def fetch_recent(
        cls,
        table: str,
        order_by: str = "created_at",
        limit: int = 20,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """Fetch the newest `limit` rows of a table."""
        client = cls.get_client()

        try:
            response = (
                client.table(table)
                .select(columns)
                .order(order_by, desc=True)
                .limit(limit)
                .execute()
            )
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch recent rows from {table}: {e}",
                code="FETCH_RECENT_FAILED",
                details={"table": table, "limit": limit},
            )

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @classmethod
    def insert_row(cls, table: str, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert one row and return it with generated columns filled in.

        Raises:
            SupabaseClientError: If insert fails or returns nothing
        """
        client = cls.get_client()

        try:
            response = client.table(table).insert(data).execute()

            if response.data:
                return response.data[0]
            raise SupabaseClientError(
                message=f"Insert into {table} returned no data",
                code="INSERT_NO_DATA",
            )

        except SupabaseClientError:
            raise
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert into {table}: {e}",
                code="INSERT_FAILED",
                details={"table": table},
            )

    @classmethod
    def update_row(
        cls,
        table: str,
        column: str,
        value: Any,
        data: dict[str, Any],
    ) -> dict[str, Any] | None:
        """
        Update rows where `column` equals `value`.

        Returns:
            The first updated row, or None if nothing matched
        """
        client = cls.get_client()

        try:
            response = (
                client.table(table)
                .update(data)
                .eq(column, value)
                .execute()
            )
            rows = response.data or []
            return rows[0] if rows else None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update {table}: {e}",
                code="UPDATE_FAILED",
                details={"table": table, column: value},
            )

    @classmethod
    def upsert_row(
        cls,
        table: str,
        data: dict[str, Any],
        on_conflict: str,
    ) -> dict[str, Any]:
        """
        Insert or update one row keyed on `on_conflict`.

        Raises:
            SupabaseClientError: If the upsert fails
        """
        client = cls.get_client()

        try:
            response = (
                client.table(table)
                .upsert(data, on_conflict=on_conflict)
                .execute()
            )
            rows = response.data or []
            return rows[0] if rows else data

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to upsert into {table}: {e}",
                code="UPSERT_FAILED",
                details={"table": table, "on_conflict": on_conflict},
            )
