"""
Core settings and environment variables for CivicSense.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "CivicSense API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Frontend URLs allowed to access this API (comma separated)
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON

    # In-memory store for local development without Firebase credentials.
    # Firestore initialization failures also fall back to it.
    USE_MOCK_DB: bool = False
    SEED_ON_STARTUP: bool = True
    SEED_PATH: str = "./db_seed.json"

    # Admin authentication
    JWT_SECRET: str = "civicsense-admin-secret-key"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_HOURS: int = 24
    GUEST_PASSWORD: str = "guest123"
    GUEST_TOKEN_HOURS: int = 24
    ADMIN_PASSWORD: str = "admin123"
    MODERATOR_PASSWORD: str = "mod123"
    BCRYPT_ROUNDS: int = 10
    LOGIN_MAX_ATTEMPTS: int = 5
    LOGIN_LOCK_MINUTES: int = 30

    # Media uploads
    UPLOAD_DIR: str = "./uploads"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # AI Configuration
    AI_ENABLED: bool = True  # If False, reports are never auto-analyzed
    GEMINI_API_KEY: Optional[str] = None  # Without a key the mock provider answers
    GEMINI_MODEL: str = "gemini-1.5-flash"
    AI_TIMEOUT_SECONDS: float = 10.0

    # WhatsApp webhook verification
    WHATSAPP_VERIFY_TOKEN: Optional[str] = None

    # Report lifecycle: when True, statuses can only move forward
    STRICT_STATUS_WORKFLOW: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
