from collections.abc import Callable, Iterable
from enum import Enum

from loguru import logger

from app.core.config import Settings
from app.core.errors import ProviderUnavailableError
from app.core.security import redact
from app.services.ai.base import AIProvider
from app.services.ai.claude_provider import ClaudeProvider
from app.services.ai.gemini_provider import GeminiProvider
from app.services.ai.openai_provider import OpenAIProvider


class AIProviderName(str, Enum):
    CLAUDE = "claude"
    OPENAI = "openai"
    GEMINI = "gemini"


def _provider_builders(settings: Settings) -> dict[AIProviderName, tuple[str | None, Callable[[str], AIProvider]]]:
    """Map each provider to its configured key and a constructor using that key."""
    return {
        AIProviderName.CLAUDE: (
            settings.ANTHROPIC_API_KEY,
            lambda key: ClaudeProvider(key, model=settings.CLAUDE_MODEL, max_tokens=settings.AI_MAX_TOKENS),
        ),
        AIProviderName.OPENAI: (
            settings.OPENAI_API_KEY,
            lambda key: OpenAIProvider(key, model=settings.OPENAI_MODEL, max_tokens=settings.AI_MAX_TOKENS),
        ),
        AIProviderName.GEMINI: (
            settings.GEMINI_API_KEY,
            lambda key: GeminiProvider(key, model=settings.GEMINI_MODEL, max_tokens=settings.AI_MAX_TOKENS),
        ),
    }


class ProviderFactory:
    """
    Registry of the AI providers this process can use.

    Built once at startup from whichever API keys are configured and handed
    to the routes and the profile generator. The default provider name is
    kept even when that provider is not registered; asking for it then fails
    like any other unknown name.
    """

    def __init__(self, providers: Iterable[AIProvider] = (), default_provider: str = AIProviderName.CLAUDE.value):
        self._providers: dict[str, AIProvider] = {}
        self._default_provider = default_provider
        for provider in providers:
            self.register(provider)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderFactory":
        factory = cls(default_provider=settings.AI_DEFAULT_PROVIDER)

        for name, (api_key, build) in _provider_builders(settings).items():
            if not api_key:
                continue
            try:
                factory.register(build(api_key))
                logger.info(f"{name.value} AI provider initialized (key {redact(api_key)})")
            except Exception as e:
                logger.warning(f"{name.value} AI provider failed to initialize: {e}")

        if not factory.get_available_providers():
            logger.warning(
                "No AI providers initialized. Set ANTHROPIC_API_KEY, OPENAI_API_KEY or GEMINI_API_KEY in .env"
            )
        return factory

    def register(self, provider: AIProvider) -> None:
        self._providers[provider.get_name()] = provider

    def get_provider(self, provider_name: str | None = None) -> AIProvider:
        name = provider_name or self._default_provider
        provider = self._providers.get(name)
        if provider is None:
            available = ", ".join(self._providers) or "none"
            raise ProviderUnavailableError(f"AI provider '{name}' not available. Available providers: {available}")
        return provider

    def get_available_providers(self) -> list[str]:
        return list(self._providers)

    def is_provider_available(self, provider_name: str) -> bool:
        return provider_name in self._providers

    def get_default_provider(self) -> str:
        return self._default_provider

    def set_default_provider(self, provider_name: str) -> None:
        if not self.is_provider_available(provider_name):
            raise ProviderUnavailableError(f"Provider '{provider_name}' is not available")
        self._default_provider = provider_name
        logger.info(f"Default AI provider set to: {provider_name}")
