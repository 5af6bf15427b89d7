"""
AI Provider Base Interface.

Defines the contract for AI providers.
All AI providers must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class AIResponse:
    """
    Standardized AI response structure.

    All AI providers return this structure; `data` holds the operation result.
    """

    def __init__(
        self,
        data: Dict,
        provider: str,
        model_name: str,
        inference_timestamp: Optional[datetime] = None,
        error: Optional[str] = None
    ):
        self.data = data
        self.provider = provider
        self.model_name = model_name
        self.inference_timestamp = inference_timestamp or datetime.now(timezone.utc)
        self.error = error  # If AI failed, error message stored here

    def to_dict(self) -> Dict:
        result = dict(self.data)
        result["provider"] = self.provider
        result["model_name"] = self.model_name
        result["processed_at"] = self.inference_timestamp.isoformat()
        if self.error:
            result["error"] = self.error
        return result


class AIProvider(ABC):
    """
    Abstract base class for AI providers.

    Provider methods MUST return an AIResponse even on failure (with `error`
    set) so the registry can fall back to the next provider.
    """

    name: str = "base"
    display_name: str = "Base"

    @abstractmethod
    def is_enabled(self) -> bool:
        pass

    @abstractmethod
    def analyze_image(self, media_url: str) -> AIResponse:
        """
        Classify the civic issue visible in an image.

        Result keys: issue_type, severity, confidence (0-100),
        suggested_title, short_desc
        """
        pass

    @abstractmethod
    def generate_description(self, media_url: str, short_text: Optional[str] = None) -> AIResponse:
        """Result keys: short_description, long_description"""
        pass

    @abstractmethod
    def transcribe_audio(self, audio_url: str) -> AIResponse:
        """Result keys: text, language, translated_text"""
        pass

    @abstractmethod
    def generate_text(self, prompt: str) -> AIResponse:
        """Result keys: text"""
        pass
