import json
import re
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import TypeVar

import pydantic
from loguru import logger

from app.core.errors import ProviderError
from app.models.profile import PhotoAnalysis, ProfileContent, UserContext
from app.services.ai.prompts import build_profile_prompt

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)

_OPENING_FENCE = re.compile(r"^```(?:json)?\s*")
_CLOSING_FENCE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    """
    Remove a ```json (or bare ```) wrapper around a model reply.

    The closing fence is optional.
    """
    text = text.strip()
    if not text.startswith("```"):
        return text
    text = _OPENING_FENCE.sub("", text, count=1)
    return _CLOSING_FENCE.sub("", text, count=1)


class AIProvider(ABC):
    """
    Uniform contract over one vendor's vision/text API.

    Subclasses only implement the two raw calls (`_analyze`, `_generate`)
    returning reply text. Error wrapping, JSON parsing and schema
    validation happen here so every provider fails the same way.
    """

    name: str = ""
    display_name: str = ""
    api_key_env: str = ""
    # Some models wrap JSON replies in Markdown fences even when asked not to
    strip_code_fences: bool = False

    def __init__(self, api_key: str | None, model: str, max_tokens: int = 1024):
        if not api_key:
            raise ValueError(f"{self.api_key_env} is required for {self.display_name} provider")
        self.model = model
        self.max_tokens = max_tokens

    def get_name(self) -> str:
        return self.name

    @abstractmethod
    async def _analyze(self, image_bytes: bytes, mime_type: str) -> str:
        """Send the photo analysis request and return the raw reply text."""

    @abstractmethod
    async def _generate(self, prompt: str) -> str:
        """Send a text-only request and return the raw reply text."""

    async def analyze_photo(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> PhotoAnalysis:
        text = await self._call("analysis", self._analyze(image_bytes, mime_type))
        return self._parse(text, PhotoAnalysis, "analysis")

    async def generate_profile(self, photo_analysis: PhotoAnalysis, user_context: UserContext) -> ProfileContent:
        prompt = build_profile_prompt(photo_analysis, user_context)
        text = await self._call("generation", self._generate(prompt))
        return self._parse(text, ProfileContent, "generation")

    async def _call(self, stage: str, request: Awaitable[str]) -> str:
        try:
            return await request
        except ProviderError:
            raise
        except Exception as e:
            logger.error(f"{self.display_name} {stage} error: {e}")
            raise ProviderError(f"{self.display_name} {stage} failed: {e}") from e

    def _parse(self, text: str | None, model: type[ModelT], stage: str) -> ModelT:
        if not text or not text.strip():
            raise ProviderError(f"{self.display_name} {stage} failed: empty response")
        if self.strip_code_fences:
            text = strip_code_fences(text)

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"{self.display_name} returned non-JSON {stage} reply: {text[:200]}")
            raise ProviderError(f"{self.display_name} {stage} failed: response was not valid JSON ({e})") from e

        try:
            return model.model_validate(data)
        except pydantic.ValidationError as e:
            fields = ", ".join(".".join(str(part) for part in err["loc"]) or "<root>" for err in e.errors())
            raise ProviderError(
                f"{self.display_name} {stage} failed: unexpected response shape (invalid fields: {fields})"
            ) from e
