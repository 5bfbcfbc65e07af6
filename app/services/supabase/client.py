from loguru import logger

from app.core.base_client import BaseClient
from app.core.version import __version__


class SupabaseClient(BaseClient):
    """
    Client for the Supabase REST (PostgREST) and Storage APIs.
    """

    def __init__(self, url: str, service_key: str | None, timeout: float = 10.0, max_retries: int = 3):
        headers = {
            "User-Agent": f"Double/{__version__}",
            "Accept": "application/json",
        }
        if service_key:
            headers["apikey"] = service_key
            headers["Authorization"] = f"Bearer {service_key}"
        else:
            logger.warning("SUPABASE_SERVICE_ROLE_KEY is not set. Supabase requests will be unauthenticated.")
        super().__init__(base_url=url, timeout=timeout, max_retries=max_retries, headers=headers)

    async def upload_object(self, path: str, data: bytes, content_type: str, upsert: bool = False) -> None:
        """Store raw bytes at a Storage object path (`<bucket>/<key>`)."""
        await self._request(
            "POST",
            f"/storage/v1/object/{path}",
            content=data,
            headers={"Content-Type": content_type, "x-upsert": "true" if upsert else "false"},
        )

    async def download_object(self, path: str) -> bytes:
        response = await self._request("GET", f"/storage/v1/object/{path}")
        return response.content
