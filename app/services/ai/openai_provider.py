import base64
from typing import Any

import openai

from app.services.ai.base import AIProvider
from app.services.ai.prompts import PHOTO_ANALYSIS_PROMPT


class OpenAIProvider(AIProvider):
    """Photo analysis and profile writing through OpenAI chat completions in JSON mode."""

    name = "openai"
    display_name = "OpenAI"
    api_key_env = "OPENAI_API_KEY"
    strip_code_fences = True

    def __init__(self, api_key: str | None, model: str = "gpt-4o", max_tokens: int = 1024):
        super().__init__(api_key, model, max_tokens)
        self._client = openai.AsyncOpenAI(api_key=api_key)

    async def _analyze(self, image_bytes: bytes, mime_type: str) -> str:
        data_url = f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode('utf-8')}"
        content = [
            {"type": "image_url", "image_url": {"url": data_url}},
            {"type": "text", "text": PHOTO_ANALYSIS_PROMPT},
        ]
        return await self._complete([{"role": "user", "content": content}])

    async def _generate(self, prompt: str) -> str:
        return await self._complete([{"role": "user", "content": prompt}])

    async def _complete(self, messages: list[dict[str, Any]]) -> str:
        response = await self._client.chat.completions.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=messages,
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content or ""
