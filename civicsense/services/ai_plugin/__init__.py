"""
AI Plug-in Architecture.

Optional AI analysis of report media. Fails gracefully and never blocks
report ingestion.
"""

from civicsense.services.ai_plugin.base import AIProvider, AIResponse
from civicsense.services.ai_plugin.gemini_provider import GeminiAIProvider
from civicsense.services.ai_plugin.mock_provider import MockAIProvider
from civicsense.services.ai_plugin.registry import get_ai_registry, reset_ai_registry

__all__ = [
    "AIProvider",
    "AIResponse",
    "GeminiAIProvider",
    "MockAIProvider",
    "get_ai_registry",
    "reset_ai_registry",
]
