import asyncio
from typing import Any

from google import genai
from google.genai import types

from app.services.ai.base import AIProvider
from app.services.ai.prompts import JSON_ONLY_INSTRUCTION, PHOTO_ANALYSIS_PROMPT


class GeminiProvider(AIProvider):
    """
    Photo analysis and profile writing through Google's Gen AI SDK.

    Gemini tends to wrap JSON in Markdown fences, so prompts ask for bare JSON
    and replies are unwrapped before parsing anyway.
    """

    name = "gemini"
    display_name = "Gemini"
    api_key_env = "GEMINI_API_KEY"
    strip_code_fences = True

    def __init__(self, api_key: str | None, model: str = "gemini-2.5-flash", max_tokens: int = 1024):
        super().__init__(api_key, model, max_tokens)
        self.client = genai.Client(api_key=api_key)

    async def _analyze(self, image_bytes: bytes, mime_type: str) -> str:
        image_part = types.Part.from_bytes(data=image_bytes, mime_type=mime_type)
        prompt = f"{PHOTO_ANALYSIS_PROMPT}\n\n{JSON_ONLY_INSTRUCTION}"
        return await self.generate_content_async([prompt, image_part])

    async def _generate(self, prompt: str) -> str:
        return await self.generate_content_async(f"{prompt}\n\n{JSON_ONLY_INSTRUCTION}")

    def generate_content(self, contents: Any) -> str:
        response = self.client.models.generate_content(
            model=self.model,
            contents=contents,
        )
        return (response.text or "").strip()

    async def generate_content_async(self, contents: Any) -> str:
        """Async wrapper to avoid blocking the event loop during network calls."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: self.generate_content(contents))
