"""
Storage seams consumed by the profile generator.

The Supabase-backed implementations live in `app.services.supabase`.
Tests provide in-memory versions.
"""

from typing import Any, Protocol

from app.models.profile import GeneratedProfile


class ProfileStore(Protocol):
    async def insert_profile(self, row: dict[str, Any]) -> GeneratedProfile: ...

    async def get_active_profile(self, user_id: str) -> GeneratedProfile | None: ...

    async def list_profiles(self, user_id: str) -> list[GeneratedProfile]: ...

    async def activate_profile(self, user_id: str, profile_id: str) -> GeneratedProfile | None:
        """
        Make `profile_id` the user's only active profile in one atomic update.

        Returns None, and changes nothing, when the profile does not belong
        to the user.
        """
        ...


class PhotoStorage(Protocol):
    async def upload(self, key: str, data: bytes, content_type: str = "image/jpeg") -> str: ...

    async def download(self, url_or_key: str) -> bytes: ...
