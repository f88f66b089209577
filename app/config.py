"""Configuration settings for Session Scribe."""

import os
import secrets
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./session_scribe.db")

    # JWT
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", secrets.token_urlsafe(32))
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_MINUTES: int = int(os.getenv("JWT_EXPIRE_MINUTES", "480"))

    # Transcription
    TRANSCRIPTION_BACKEND: str = os.getenv("TRANSCRIPTION_BACKEND", "local")  # local, openai
    WHISPER_MODEL_SIZE: str = os.getenv("WHISPER_MODEL_SIZE", "base")
    TRANSCRIPTION_LANGUAGE: str = os.getenv("TRANSCRIPTION_LANGUAGE", "en")
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
    OPENAI_TRANSCRIPTION_MODEL: str = os.getenv("OPENAI_TRANSCRIPTION_MODEL", "whisper-1")
    HALLUCINATION_PHRASES_FILE: str | None = os.getenv("HALLUCINATION_PHRASES_FILE")

    # Text generation
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-4")
    LLM_TIMEOUT_SECONDS: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))

    # Blob storage
    BLOB_BACKEND: str = os.getenv("BLOB_BACKEND", "local")  # local, s3
    BLOB_DIR: str = os.getenv("BLOB_DIR", "blobs")
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")
    S3_BUCKET_NAME: str = os.getenv("S3_BUCKET_NAME", "audio-recordings")
    AWS_REGION: str = os.getenv("AWS_REGION", "us-east-1")
    AWS_ACCESS_KEY_ID: str | None = os.getenv("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY: str | None = os.getenv("AWS_SECRET_ACCESS_KEY")
    AWS_ENDPOINT: str | None = os.getenv("AWS_ENDPOINT")

    # Chunks and stitching
    MAX_CHUNK_SIZE_MB: int = int(os.getenv("MAX_CHUNK_SIZE_MB", "10"))
    CHUNK_DURATION_SECONDS: int = int(os.getenv("CHUNK_DURATION_SECONDS", "3"))
    STITCH_LARGE_SESSION_THRESHOLD: int = int(os.getenv("STITCH_LARGE_SESSION_THRESHOLD", "600"))
    STITCH_BATCH_SIZE: int = int(os.getenv("STITCH_BATCH_SIZE", "200"))
    STITCH_TIMEOUT_SECONDS: float = float(os.getenv("STITCH_TIMEOUT_SECONDS", "300"))
    SIGNED_URL_TTL_SECONDS: int = int(os.getenv("SIGNED_URL_TTL_SECONDS", "7200"))

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        errors = []
        if not os.getenv("JWT_SECRET_KEY"):
            errors.append("JWT_SECRET_KEY is not set - using auto-generated key (not persistent across restarts)")
        if self.TRANSCRIPTION_BACKEND == "openai" and not self.OPENAI_API_KEY:
            errors.append("TRANSCRIPTION_BACKEND is 'openai' but OPENAI_API_KEY is not set")
        if not self.OPENAI_API_KEY:
            errors.append("OPENAI_API_KEY is not set - summaries and suggestions are unavailable")
        if self.STITCH_BATCH_SIZE < 1:
            errors.append("STITCH_BATCH_SIZE must be at least 1")
        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
