"""
Mock AI Provider - Fallback provider when no AI service is configured.

Picks canned results deterministically from a hash of the input URL, so the
same media always yields the same analysis. Always available and never fails.
"""

from civicsense.services.ai_plugin.base import AIProvider, AIResponse
from typing import Optional
import logging

logger = logging.getLogger(__name__)


MOCK_IMAGE_ANALYSES = [
    {
        "issue_type": "infrastructure",
        "severity": "medium",
        "confidence": 85,
        "suggested_title": "Pothole on Main Street",
        "short_desc": "Large pothole causing traffic disruption and potential vehicle damage on busy street intersection.",
    },
    {
        "issue_type": "safety",
        "severity": "high",
        "confidence": 92,
        "suggested_title": "Broken Streetlight",
        "short_desc": "Non-functioning streetlight creating safety hazard for pedestrians during evening hours.",
    },
    {
        "issue_type": "environment",
        "severity": "low",
        "confidence": 78,
        "suggested_title": "Litter in Park Area",
        "short_desc": "Accumulated trash and debris affecting park cleanliness and visitor experience.",
    },
    {
        "issue_type": "public-services",
        "severity": "urgent",
        "confidence": 95,
        "suggested_title": "Water Main Break",
        "short_desc": "Active water leak causing flooding and service disruption to nearby residents.",
    },
]

MOCK_DESCRIPTIONS = [
    {
        "short_description": (
            "Road infrastructure issue requiring immediate attention. Pothole approximately "
            "2 feet in diameter affecting vehicle traffic flow."
        ),
        "long_description": (
            "This infrastructure issue involves a significant pothole located on a high-traffic street. "
            "The damage appears to be caused by recent weather conditions and heavy vehicle usage. "
            "The pothole measures approximately 2 feet in diameter and 6 inches deep, creating a hazard "
            "for vehicles. Repair is recommended to prevent further deterioration."
        ),
    },
    {
        "short_description": (
            "Public safety concern involving non-functional street lighting equipment requiring "
            "electrical maintenance and bulb replacement."
        ),
        "long_description": (
            "This safety issue involves a malfunctioning streetlight reported as non-operational for "
            "several days. The affected area has reduced visibility at night, creating risks for "
            "pedestrians and drivers. Municipal electrical services should restore illumination."
        ),
    },
]

MOCK_TRANSCRIPTIONS = [
    {
        "text": (
            "There is a large pothole on Main Street near the intersection with Oak Avenue. "
            "It has been causing problems for drivers and needs to be fixed soon."
        ),
        "language": "en",
        "translated_text": None,
    },
    {
        "text": (
            "The streetlight at the corner of First and Maple has been out for three days. "
            "It is very dark at night and unsafe for pedestrians."
        ),
        "language": "en",
        "translated_text": None,
    },
    {
        "text": (
            "Hay un problema con la tubería de agua en mi calle. "
            "Está saliendo mucha agua y necesita reparación urgente."
        ),
        "language": "es",
        "translated_text": (
            "There is a problem with the water pipe on my street. "
            "A lot of water is coming out and it needs urgent repair."
        ),
    },
]

MOCK_SUMMARY_TEXT = (
    "Weekly Civic Issues Summary\n\n"
    "This week we processed reports across various categories. Key highlights include "
    "improved response times and continued community engagement in civic improvement initiatives.\n\n"
    "Recommendations: Continue monitoring trends and maintain efficient resolution processes."
)


def simple_hash(value: str) -> int:
    """
    Stable 32-bit string hash (h = h * 31 + c, wrapped to a signed int).
    """
    h = 0
    for ch in value:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 0x100000000
    return abs(h)


class MockAIProvider(AIProvider):
    """
    Mock AI provider returning canned, deterministic results.

    This is the fallback provider when:
    - No Gemini API key is configured
    - The real AI provider fails
    """

    name = "mock"
    display_name = "Mock Service"
    MODEL_NAME = "mock-civic-v1"

    def is_enabled(self) -> bool:
        """Mock provider is always enabled (fallback)."""
        return True

    def analyze_image(self, media_url: str) -> AIResponse:
        selected = MOCK_IMAGE_ANALYSES[simple_hash(media_url or "") % len(MOCK_IMAGE_ANALYSES)]
        logger.info(f"[AI Service] Returning mock image analysis for: {media_url}")
        return self._response(selected)

    def generate_description(self, media_url: str, short_text: Optional[str] = None) -> AIResponse:
        key = (media_url or "") + (short_text or "")
        selected = MOCK_DESCRIPTIONS[simple_hash(key) % len(MOCK_DESCRIPTIONS)]
        logger.info("[AI Service] Returning mock description generation")
        return self._response(selected)

    def transcribe_audio(self, audio_url: str) -> AIResponse:
        selected = MOCK_TRANSCRIPTIONS[simple_hash(audio_url or "") % len(MOCK_TRANSCRIPTIONS)]
        logger.info("[AI Service] Returning mock transcription")
        return self._response(selected)

    def generate_text(self, prompt: str) -> AIResponse:
        return self._response({"text": MOCK_SUMMARY_TEXT})

    def _response(self, data) -> AIResponse:
        return AIResponse(data=dict(data), provider=self.name, model_name=self.MODEL_NAME)
