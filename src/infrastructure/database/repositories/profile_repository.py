from __future__ import annotations

import asyncio
import os

from supabase import Client

from src.domain.entities.profile import ProfileAttributes
from src.domain.errors import RemoteFetchError
from src.infrastructure.database.postgres_client import PostgresClient, get_postgres_client

_PROFILE_COLUMNS = "role, related_patient_id, related_pharmacy_id, account_type"


class ProfileRepository:
    """Point lookup of ``profile_users`` rows keyed by the auth user id.

    Reads go to local PostgreSQL when USE_LOCAL_DB=1, to an in-memory table
    when Supabase is disabled or unconfigured, and to Supabase otherwise.
    The Supabase and psycopg2 clients are blocking, so lookups run in a
    worker thread.
    """

    def __init__(self, client: Client | None, pg_client: PostgresClient | None = None) -> None:
        self.client = client
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.use_local_db = os.getenv("USE_LOCAL_DB", "0") == "1"
        self.pg_client = pg_client or (get_postgres_client() if self.use_local_db else None)
        self._mem: dict[str, ProfileAttributes] = {}

    def seed(self, identity_id: str, profile: ProfileAttributes) -> None:
        """Store a profile for the in-memory mode."""
        self._mem[identity_id] = profile

    async def lookup_profile(self, identity_id: str) -> ProfileAttributes | None:
        return await asyncio.to_thread(self._lookup, identity_id)

    def _lookup(self, identity_id: str) -> ProfileAttributes | None:
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            query = f"SELECT {_PROFILE_COLUMNS} FROM profile_users WHERE auth_user_id = %s"
            try:
                row = self.pg_client.execute_one(query, (identity_id,))
            except Exception as exc:
                raise RemoteFetchError(f"PostgreSQL profile lookup failed: {exc}") from exc
            return ProfileAttributes.from_row(row) if row else None

        # In-memory mode
        if self.disabled or self.client is None:
            return self._mem.get(identity_id)

        # Supabase mode
        try:
            res = (
                self.client.table("profile_users")
                .select(_PROFILE_COLUMNS)
                .eq("auth_user_id", identity_id)
                .maybe_single()
                .execute()
            )
        except Exception as exc:
            raise RemoteFetchError(f"DB profile lookup failed: {exc}") from exc
        row = res.data if res is not None else None
        return ProfileAttributes.from_row(row) if row else None
