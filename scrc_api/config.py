"""
Configuration management for the FastAPI application.
Uses Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "SCRC Community API"
    API_VERSION: str = "0.1.0"
    API_DESCRIPTION: str = "Backend API for members, news, gallery, notices and memories"
    PORT: int = 8080

    # Frontends are served from several hosts, so allow all origins by default
    CORS_ORIGINS: List[str] = ["*"]

    # Database Configuration
    # postgresql+asyncpg://... in production, SQLite for local development
    DATABASE_URL: str = "sqlite+aiosqlite:///./scrc.db"
    DATABASE_ECHO: bool = False

    # Blob storage: "local", "cloudinary" or "memory"
    STORAGE_BACKEND: str = "local"
    UPLOAD_DIR: str = "uploads"
    PUBLIC_BASE_URL: str = "http://localhost:8080"

    # Cloudinary Configuration (STORAGE_BACKEND=cloudinary)
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    # Upload handling
    CONVERT_UPLOADS_TO_WEBP: bool = True
    MAX_ALBUM_UPLOAD_FILES: int = 50

    # Admin credentials
    # ADMIN_TOKEN is the shared secret expected in the x-admin-token header
    ADMIN_TOKEN: str = "changeme"
    ADMIN_USER: str = "admin"
    ADMIN_PASS: str = ""
    # Optional bcrypt hash; takes precedence over ADMIN_PASS when set
    ADMIN_PASSWORD_HASH: str = ""
    RATE_LIMIT_ENABLED: bool = True

    # Email (contact and membership forms)
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_FROM: str = ""
    CONTACT_RECIPIENT: str = ""

    # Push notifications: "expo" or "memory"
    PUSH_BACKEND: str = "memory"
    EXPO_PUSH_URL: str = "https://exp.host/--/api/v2/push/send"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings


# Global settings instance
settings = Settings()
