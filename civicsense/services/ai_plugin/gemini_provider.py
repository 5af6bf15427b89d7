"""
Gemini AI Provider - Real LLM integration.

Calls the Google Gemini REST API (generateContent) over requests.
Fails gracefully: every error is returned on the AIResponse so the registry
can fall back to the mock provider.
"""

from civicsense.services.ai_plugin.base import AIProvider, AIResponse
from civicsense.core.settings import settings
from typing import Dict, Optional
from pathlib import Path
import base64
import json
import logging
import mimetypes

import requests

logger = logging.getLogger(__name__)


ISSUE_TYPES = "infrastructure, safety, environment, public-services, other"
SEVERITIES = "low, medium, high, urgent"


class GeminiAIProvider(AIProvider):
    """
    Google Gemini API provider.

    Requires GEMINI_API_KEY in environment variables.
    """

    name = "gemini"
    display_name = "Google Gemini"
    API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(self):
        self.api_key = settings.GEMINI_API_KEY
        self.model_name = settings.GEMINI_MODEL
        self.timeout = settings.AI_TIMEOUT_SECONDS
        self.enabled = bool(self.api_key and self.api_key.strip())

        if self.enabled:
            logger.info(f"✅ Gemini AI Provider initialized: {self.model_name}")
        else:
            logger.info("⚠️ Gemini AI Provider disabled: No API key configured")

    def is_enabled(self) -> bool:
        return self.enabled

    def analyze_image(self, media_url: str) -> AIResponse:
        prompt = f"""You are helping a city triage citizen reports about civic issues.
Look at the attached photo and respond ONLY with JSON:

{{
  "issue_type": "<one of: {ISSUE_TYPES}>",
  "severity": "<one of: {SEVERITIES}>",
  "confidence": <integer 0-100>,
  "suggested_title": "<short title, max 60 characters>",
  "short_desc": "<one neutral sentence describing the issue>"
}}"""
        return self._run(prompt, media_url, self._parse_image_analysis)

    def generate_description(self, media_url: str, short_text: Optional[str] = None) -> AIResponse:
        context = f"\nThe citizen wrote: {short_text}" if short_text else ""
        prompt = f"""Describe the civic issue in the attached photo for a municipal work order.{context}
Respond ONLY with JSON:

{{
  "short_description": "<1-2 sentences>",
  "long_description": "<one paragraph, factual and neutral>"
}}"""
        return self._run(prompt, media_url, self._parse_description)

    def transcribe_audio(self, audio_url: str) -> AIResponse:
        prompt = """Transcribe the attached voice note from a citizen reporting a civic issue.
Respond ONLY with JSON:

{
  "text": "<verbatim transcription>",
  "language": "<ISO 639-1 code>",
  "translated_text": "<English translation, or null if already English>"
}"""
        return self._run(prompt, audio_url, self._parse_transcription)

    def generate_text(self, prompt: str) -> AIResponse:
        return self._run(prompt, None, lambda text: {"text": text.strip()})

    def _run(self, prompt: str, media_url: Optional[str], parser) -> AIResponse:
        if not self.enabled:
            return AIResponse(
                data={},
                provider=self.name,
                model_name=self.model_name,
                error="Gemini API key not configured",
            )

        try:
            text = self._call_gemini_api(prompt, media_url)
            return AIResponse(data=parser(text), provider=self.name, model_name=self.model_name)
        except Exception as e:
            logger.warning(f"⚠️ Gemini API call failed: {str(e)}")
            return AIResponse(
                data={},
                provider=self.name,
                model_name=self.model_name,
                error=f"Gemini API error: {str(e)}",
            )

    def _build_parts(self, prompt: str, media_url: Optional[str]) -> list:
        parts = [{"text": prompt}]
        if not media_url:
            return parts

        # Local uploads are sent inline; remote URLs are referenced in the prompt
        local_path = self._resolve_local_upload(media_url)
        if local_path is not None:
            mime_type = mimetypes.guess_type(local_path.name)[0] or "application/octet-stream"
            parts.append({
                "inline_data": {
                    "mime_type": mime_type,
                    "data": base64.b64encode(local_path.read_bytes()).decode("ascii"),
                }
            })
        else:
            parts[0]["text"] = f"{prompt}\n\nMedia URL: {media_url}"
        return parts

    @staticmethod
    def _resolve_local_upload(media_url: str) -> Optional[Path]:
        if not media_url.startswith("/uploads/"):
            return None
        upload_root = Path(settings.UPLOAD_DIR).resolve()
        candidate = (upload_root / media_url[len("/uploads/"):]).resolve()
        if upload_root not in candidate.parents or not candidate.is_file():
            return None
        return candidate

    def _call_gemini_api(self, prompt: str, media_url: Optional[str]) -> str:
        """
        Call generateContent and return the first candidate's text.

        Raises:
            requests.RequestException: On network or HTTP errors
            ValueError: If the response has no text candidate
        """
        url = f"{self.API_BASE_URL}/{self.model_name}:generateContent"
        response = requests.post(
            url,
            params={"key": self.api_key},
            json={"contents": [{"parts": self._build_parts(prompt, media_url)}]},
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()

        try:
            return payload["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise ValueError("Gemini response contained no text candidate")

    @staticmethod
    def _extract_json(text: str) -> Dict:
        """Parse a JSON object from model output, tolerating ``` fences."""
        cleaned = text.strip()
        if cleaned.startswith("```"):
            cleaned = cleaned.strip("`")
            if cleaned.lower().startswith("json"):
                cleaned = cleaned[4:]
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end == -1:
            raise ValueError("No JSON object in Gemini response")
        return json.loads(cleaned[start:end + 1])

    def _parse_image_analysis(self, text: str) -> Dict:
        parsed = self._extract_json(text)
        issue_type = parsed.get("issue_type", "other")
        if issue_type not in ISSUE_TYPES.split(", "):
            issue_type = "other"
        severity = parsed.get("severity", "medium")
        if severity not in SEVERITIES.split(", "):
            severity = "medium"
        confidence = int(max(0, min(100, float(parsed.get("confidence", 50)))))
        return {
            "issue_type": issue_type,
            "severity": severity,
            "confidence": confidence,
            "suggested_title": str(parsed.get("suggested_title", ""))[:60],
            "short_desc": str(parsed.get("short_desc", "")),
        }

    def _parse_description(self, text: str) -> Dict:
        parsed = self._extract_json(text)
        return {
            "short_description": str(parsed.get("short_description", "")),
            "long_description": str(parsed.get("long_description", "")),
        }

    def _parse_transcription(self, text: str) -> Dict:
        parsed = self._extract_json(text)
        return {
            "text": str(parsed.get("text", "")),
            "language": parsed.get("language") or "en",
            "translated_text": parsed.get("translated_text"),
        }
