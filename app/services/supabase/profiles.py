from typing import Any

import httpx

from app.core.errors import PersistenceError
from app.models.profile import GeneratedProfile
from app.services.supabase.client import SupabaseClient


class SupabaseProfileStore:
    """
    Generated profiles stored in a PostgREST table.

    Activation goes through the `activate_ai_profile` database function
    (see supabase/migrations) which flips every flag for the user in a single
    UPDATE, so concurrent activations cannot leave zero or two active rows.
    """

    def __init__(self, client: SupabaseClient, table: str = "ai_profiles"):
        self.client = client
        self.table = table

    @property
    def _table_url(self) -> str:
        return f"/rest/v1/{self.table}"

    async def insert_profile(self, row: dict[str, Any]) -> GeneratedProfile:
        try:
            data = await self.client.post(self._table_url, json=row, headers={"Prefer": "return=representation"})
        except httpx.HTTPError as e:
            raise PersistenceError(f"Failed to save profile: {e}") from e
        return GeneratedProfile.model_validate(_single(data))

    async def get_active_profile(self, user_id: str) -> GeneratedProfile | None:
        params = {
            "select": "*",
            "user_id": f"eq.{user_id}",
            "is_active": "eq.true",
            "order": "created_at.desc",
            "limit": "1",
        }
        rows = await self._select(params, "Failed to get active profile")
        return GeneratedProfile.model_validate(rows[0]) if rows else None

    async def list_profiles(self, user_id: str) -> list[GeneratedProfile]:
        params = {"select": "*", "user_id": f"eq.{user_id}", "order": "created_at.desc"}
        rows = await self._select(params, "Failed to get profiles")
        return [GeneratedProfile.model_validate(row) for row in rows]

    async def activate_profile(self, user_id: str, profile_id: str) -> GeneratedProfile | None:
        try:
            data = await self.client.post(
                "/rest/v1/rpc/activate_ai_profile",
                json={"p_user_id": user_id, "p_profile_id": profile_id},
            )
        except httpx.HTTPError as e:
            raise PersistenceError(f"Failed to activate profile: {e}") from e
        row = _single(data) if data else None
        return GeneratedProfile.model_validate(row) if row else None

    async def _select(self, params: dict[str, str], failure: str) -> list[dict[str, Any]]:
        try:
            rows = await self.client.get(self._table_url, params=params)
        except httpx.HTTPError as e:
            raise PersistenceError(f"{failure}: {e}") from e
        return rows or []


def _single(data: Any) -> dict[str, Any] | None:
    """PostgREST returns a list even for one row."""
    if isinstance(data, list):
        return data[0] if data else None
    return data
