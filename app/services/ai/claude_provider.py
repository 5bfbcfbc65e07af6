import base64
from typing import Any

import anthropic

from app.services.ai.base import AIProvider
from app.services.ai.prompts import PHOTO_ANALYSIS_PROMPT


class ClaudeProvider(AIProvider):
    """Photo analysis and profile writing through Anthropic's Messages API."""

    name = "claude"
    display_name = "Claude"
    api_key_env = "ANTHROPIC_API_KEY"

    def __init__(self, api_key: str | None, model: str = "claude-sonnet-4-5-20250929", max_tokens: int = 1024):
        super().__init__(api_key, model, max_tokens)
        self._client = anthropic.AsyncAnthropic(api_key=api_key)

    async def _analyze(self, image_bytes: bytes, mime_type: str) -> str:
        content = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": mime_type,
                    "data": base64.b64encode(image_bytes).decode("utf-8"),
                },
            },
            {"type": "text", "text": PHOTO_ANALYSIS_PROMPT},
        ]
        return await self._create([{"role": "user", "content": content}])

    async def _generate(self, prompt: str) -> str:
        return await self._create([{"role": "user", "content": prompt}])

    async def _create(self, messages: list[dict[str, Any]]) -> str:
        response = await self._client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=messages,
        )
        # Extract text from response content blocks
        return "".join(block.text for block in response.content if block.type == "text")
