"""
AI Provider Registry.

Manages AI provider selection and fallback logic.
"""

from civicsense.services.ai_plugin.base import AIProvider, AIResponse
from civicsense.services.ai_plugin.gemini_provider import GeminiAIProvider
from civicsense.services.ai_plugin.mock_provider import MockAIProvider
from civicsense.core.settings import settings
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

FEATURES = ["image-analysis", "description-generation", "audio-transcription"]


class AIProviderRegistry:
    """
    Registry for AI providers with fallback logic.

    Selects the best available provider based on configuration.
    Falls back gracefully if the primary provider fails.
    """

    def __init__(self):
        self.providers: list[AIProvider] = []
        self.fallback = MockAIProvider()
        self._initialize_providers()

    def _initialize_providers(self):
        """Initialize available AI providers in priority order."""
        if not settings.AI_ENABLED:
            logger.info("⚠️ AI is disabled globally (AI_ENABLED=false), using mock provider only")
            self.providers.append(self.fallback)
            return

        # Priority 1: Gemini (if an API key is available)
        gemini_provider = GeminiAIProvider()
        if gemini_provider.is_enabled():
            self.providers.append(gemini_provider)
            logger.info("✅ Gemini AI Provider registered")

        # Priority 2: Mock (always available as fallback)
        self.providers.append(self.fallback)
        logger.info("✅ Mock AI Provider registered (fallback)")

    def get_provider(self) -> AIProvider:
        for provider in self.providers:
            if provider.is_enabled():
                return provider
        return self.fallback

    def display_name_for(self, provider_name: str) -> str:
        for provider in self.providers:
            if provider.name == provider_name:
                return provider.display_name
        return self.fallback.display_name

    @property
    def real_provider_configured(self) -> bool:
        return any(p.name != MockAIProvider.name for p in self.providers)

    def _run_with_fallback(self, operation: str, *args) -> AIResponse:
        """
        Run an operation on providers in priority order until one succeeds.

        Always returns a valid AIResponse.
        """
        for provider in self.providers:
            try:
                response = getattr(provider, operation)(*args)
                if response.error:
                    logger.warning(f"Provider {provider.name} returned error: {response.error}")
                    continue
                return response
            except Exception as e:
                logger.warning(f"Provider {provider.name} failed on {operation}: {e}")
                continue

        logger.error(f"⚠️ All AI providers failed on {operation}, using mock results")
        return getattr(self.fallback, operation)(*args)

    def analyze_image(self, media_url: str) -> AIResponse:
        return self._run_with_fallback("analyze_image", media_url)

    def generate_description(self, media_url: str, short_text: Optional[str] = None) -> AIResponse:
        return self._run_with_fallback("generate_description", media_url, short_text)

    def transcribe_audio(self, audio_url: str) -> AIResponse:
        return self._run_with_fallback("transcribe_audio", audio_url)

    def generate_text(self, prompt: str) -> AIResponse:
        return self._run_with_fallback("generate_text", prompt)

    def status(self) -> Dict:
        return {
            "configured": self.real_provider_configured,
            "enabled": settings.AI_ENABLED,
            "provider": self.get_provider().display_name,
            "providers": [p.name for p in self.providers],
            "features": FEATURES,
        }


# Global registry instance (singleton)
_registry: Optional[AIProviderRegistry] = None


def get_ai_registry() -> AIProviderRegistry:
    """Get or create the global AI registry."""
    global _registry
    if _registry is None:
        _registry = AIProviderRegistry()
    return _registry


def reset_ai_registry():
    """Drop the cached registry so settings changes are picked up."""
    global _registry
    _registry = None
