"""
Application Configuration

Centralized settings management using Pydantic Settings.
Supports environment variables and .env files.
"""

from pydantic_settings import BaseSettings
from typing import Optional, Tuple


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # ==========================================================================
    # App Settings
    # ==========================================================================
    APP_NAME: str = "Virtual Try-On API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development, production
    DEBUG: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    # Base URL the inference provider uses to reach this process.
    # Only relevant for the local storage fallback.
    PUBLIC_BASE_URL: Optional[str] = None

    # ==========================================================================
    # Upload Settings
    # ==========================================================================
    UPLOAD_PATH: str = "uploads"
    MAX_FILE_SIZE_BYTES: int = 10485760  # 10MB
    ALLOWED_MIME_TYPES: str = "image/jpeg,image/jpg,image/png,image/webp"

    # ==========================================================================
    # Firebase / Google Cloud Storage (remote backend)
    # ==========================================================================
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_PRIVATE_KEY_ID: Optional[str] = None
    FIREBASE_PRIVATE_KEY: Optional[str] = None
    FIREBASE_CLIENT_EMAIL: Optional[str] = None
    FIREBASE_CLIENT_ID: Optional[str] = None
    FIREBASE_STORAGE_BUCKET: Optional[str] = None
    FIREBASE_AUTH_URI: str = "https://accounts.google.com/o/oauth2/auth"
    FIREBASE_TOKEN_URI: str = "https://oauth2.googleapis.com/token"
    FIREBASE_AUTH_PROVIDER_X509_CERT_URL: str = "https://www.googleapis.com/oauth2/v1/certs"
    FIREBASE_CLIENT_X509_CERT_URL: Optional[str] = None

    # ==========================================================================
    # Replicate (IDM-VTON)
    # ==========================================================================
    REPLICATE_API_TOKEN: Optional[str] = None
    REPLICATE_MODEL: str = (
        "cuuupid/idm-vton:"
        "0513734a452173b8173e907e3a59d19a36266e55b48528559432bd21c7d7e985"
    )

    # ==========================================================================
    # Logging Settings
    # ==========================================================================
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT_JSON: bool = True  # JSON for production, console for development

    # ==========================================================================
    # CORS Settings
    # ==========================================================================
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://localhost:5000"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def allowed_mime_types(self) -> Tuple[str, ...]:
        return tuple(m.strip() for m in self.ALLOWED_MIME_TYPES.split(",") if m.strip())

    @property
    def firebase_credentials(self) -> Tuple[Optional[str], ...]:
        """The four values the remote backend cannot run without."""
        return (
            self.FIREBASE_PROJECT_ID,
            self.FIREBASE_PRIVATE_KEY,
            self.FIREBASE_CLIENT_EMAIL,
            self.FIREBASE_STORAGE_BUCKET,
        )

    @property
    def local_uploads_url(self) -> str:
        base = self.PUBLIC_BASE_URL or f"http://localhost:{self.PORT}"
        return f"{base.rstrip('/')}/uploads"


# Global settings instance
settings = Settings()
