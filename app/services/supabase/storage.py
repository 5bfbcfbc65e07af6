import re

import httpx

from app.core.errors import PersistenceError
from app.services.supabase.client import SupabaseClient


class SupabasePhotoStorage:
    """Profile photos in a public Supabase Storage bucket."""

    def __init__(self, client: SupabaseClient, bucket: str = "profiles"):
        self.client = client
        self.bucket = bucket

    def public_url(self, key: str) -> str:
        return f"{self.client.base_url}/storage/v1/object/public/{self.bucket}/{key}"

    def key_from_url(self, url_or_key: str) -> str:
        """Everything after `/<bucket>/`; a bare key is returned unchanged."""
        return re.sub(rf"^.*/{re.escape(self.bucket)}/", "", url_or_key)

    async def upload(self, key: str, data: bytes, content_type: str = "image/jpeg") -> str:
        try:
            await self.client.upload_object(f"{self.bucket}/{key}", data, content_type)
        except httpx.HTTPError as e:
            raise PersistenceError(f"Upload failed: {e}") from e
        return self.public_url(key)

    async def download(self, url_or_key: str) -> bytes:
        key = self.key_from_url(url_or_key)
        try:
            return await self.client.download_object(f"{self.bucket}/{key}")
        except httpx.HTTPError as e:
            raise PersistenceError(f"Failed to download photo: {e}") from e
