import asyncio
from typing import Any

import httpx
from loguru import logger

# Methods that are safe to send again after a failure
IDEMPOTENT_METHODS = frozenset({"GET", "HEAD"})


class BaseClient:
    """
    Base asynchronous HTTP client with logging and retries for idempotent requests.

    Writes (POST/PATCH/DELETE) are sent exactly once so a retry can never
    create a duplicate row or object.
    """

    RETRY_BACKOFF_SECONDS = 0.5

    def __init__(
        self, base_url: str = "", timeout: float = 10.0, max_retries: int = 3, headers: dict[str, str] | None = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.headers = headers or {}
        self._client: httpx.AsyncClient | None = None

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx.AsyncClient instance."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, headers=self.headers, follow_redirects=True
            )
        return self._client

    async def close(self):
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send a request, retrying with exponential backoff only when the method is idempotent."""
        client = await self.get_client()
        method = method.upper()
        tries = self.max_retries if method in IDEMPOTENT_METHODS else 1
        last_exception: Exception | None = None

        for attempt in range(1, tries + 1):
            try:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response
            except (httpx.HTTPStatusError, httpx.RequestError) as e:
                last_exception = e
                if attempt < tries:
                    wait_time = self.RETRY_BACKOFF_SECONDS * (2 ** (attempt - 1))
                    logger.warning(
                        f"Request failed ({method} {url}): {_describe(e)}. "
                        f"Retrying in {wait_time}s... (Attempt {attempt}/{tries})"
                    )
                    await asyncio.sleep(wait_time)
                else:
                    logger.error(f"Request failed ({method} {url}) after {tries} attempt(s): {_describe(e)}")

        if last_exception:
            raise last_exception
        raise httpx.RequestError("Request failed for unknown reasons")

    async def get(self, url: str, params: dict[str, Any] | None = None, **kwargs) -> Any:
        """Perform a GET request and return the JSON response."""
        response = await self._request("GET", url, params=params, **kwargs)
        return response.json()

    async def post(self, url: str, json: Any = None, **kwargs) -> Any:
        """Perform a POST request and return the JSON response."""
        response = await self._request("POST", url, json=json, **kwargs)
        return response.json()


def _describe(error: Exception) -> str:
    """Include the response body for HTTP errors; Supabase puts the useful message there."""
    if isinstance(error, httpx.HTTPStatusError):
        body = error.response.text.strip()
        return f"{error.response.status_code} {body}" if body else str(error)
    return str(error) or error.__class__.__name__
