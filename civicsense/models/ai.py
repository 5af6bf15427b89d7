"""
Request models for the AI analysis endpoints.
URLs are optional in the schema so a missing URL yields a 400 with a clear message.
"""

from pydantic import BaseModel, Field
from typing import Optional


class AnalyzeImageRequest(BaseModel):
    media_url: Optional[str] = Field(None, description="URL of the uploaded image")


class GenerateDescriptionRequest(BaseModel):
    media_url: Optional[str] = Field(None, description="URL of the uploaded image")
    short_text: Optional[str] = Field(None, max_length=500, description="Citizen's own short description")


class TranscribeRequest(BaseModel):
    audio_url: Optional[str] = Field(None, description="URL of the recorded voice note")
