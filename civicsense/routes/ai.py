"""
AI endpoints - media analysis for the report form.

Results come from Gemini when GEMINI_API_KEY is configured, otherwise (or on
any Gemini failure) from the deterministic mock provider.
"""

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, HTTPException, status

from civicsense.models.ai import AnalyzeImageRequest, GenerateDescriptionRequest, TranscribeRequest
from civicsense.services.ai_plugin import AIResponse, get_ai_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["AI"])


def _envelope(response: AIResponse) -> dict:
    return {
        "success": True,
        "data": response.data,
        "meta": {
            "provider": get_ai_registry().display_name_for(response.provider),
            "model_name": response.model_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }


@router.post("/analyze-image")
def analyze_image(request: AnalyzeImageRequest):
    """
    Classify the civic issue in an image.

    Returns issue_type, severity, confidence (0-100), suggested_title and short_desc.
    """
    if not request.media_url:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Media URL is required")
    try:
        logger.info(f"[AI API] Analyzing image: {request.media_url}")
        return _envelope(get_ai_registry().analyze_image(request.media_url))
    except Exception as e:
        logger.error(f"[AI API] Image analysis error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to analyze image",
        )


@router.post("/generate-description")
def generate_description(request: GenerateDescriptionRequest):
    if not request.media_url:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Media URL is required")
    try:
        logger.info(f"[AI API] Generating description for: {request.media_url}")
        return _envelope(get_ai_registry().generate_description(request.media_url, request.short_text))
    except Exception as e:
        logger.error(f"[AI API] Description generation error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate description",
        )


@router.post("/transcribe")
def transcribe(request: TranscribeRequest):
    if not request.audio_url:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Audio URL is required")
    try:
        logger.info(f"[AI API] Transcribing audio: {request.audio_url}")
        return _envelope(get_ai_registry().transcribe_audio(request.audio_url))
    except Exception as e:
        logger.error(f"[AI API] Audio transcription error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to transcribe audio",
        )


@router.get("/status")
async def ai_status():
    return {
        "success": True,
        "data": get_ai_registry().status(),
        "meta": {"timestamp": datetime.now(timezone.utc).isoformat()},
    }
