"""Configuration management.

This module defines a ``Settings`` class that reads configuration values
from environment variables and provides sensible defaults.  ``.env``
support is implemented by loading files from the repository root and from
whatever python-dotenv discovers from the current working directory.
Files are loaded in order without overriding already-set variables.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from focal.models.enums import ProviderType

# -----------------------------------------------------------------------------
# .env loading

_THIS_FILE = Path(__file__).resolve()
_REPO_ROOT = _THIS_FILE.parents[2]
_ROOT_ENV = _REPO_ROOT / ".env"

_candidate_envs: list[str] = []
if _ROOT_ENV.exists():
    _candidate_envs.append(str(_ROOT_ENV))

_FOUND_ENV = find_dotenv(usecwd=True)
if _FOUND_ENV and _FOUND_ENV not in _candidate_envs:
    _candidate_envs.append(_FOUND_ENV)

for _env_path in _candidate_envs:
    load_dotenv(dotenv_path=_env_path, override=False)


class Settings(BaseSettings):
    """Application settings.

    Any attribute defined here can be overridden by setting the
    corresponding environment variable.
    """

    model_config = SettingsConfigDict(
        env_file=tuple(_candidate_envs) if _candidate_envs else (".env",),
        case_sensitive=True,
        extra="ignore",
    )

    # API Settings
    PROJECT_NAME: str = "Focal Receipts API"
    ENVIRONMENT: str = Field(default="development")

    # Database
    DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./focal.db")

    # Redis (only used by the redis quota backend)
    REDIS_URL: str = Field(default="redis://localhost:6379/0")

    # Quota
    QUOTA_BACKEND: str = Field(default="sql")
    AI_QUOTA_LIMIT: int = Field(default=10)
    AI_QUOTA_WINDOW_SECONDS: int = Field(default=24 * 60 * 60)

    # Uploads
    MAX_IMAGE_DIMENSION: int = Field(default=2000)
    MAX_AUDIO_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Extraction providers
    AI_PROVIDER: str = Field(default=ProviderType.GEMINI.value)
    AI_MODEL: Optional[str] = Field(default=None)
    PROVIDER_TIMEOUT_SECONDS: float = Field(default=30.0)

    GEMINI_API_KEY: Optional[str] = Field(default=None)
    GEMINI_API_KEY_2: Optional[str] = Field(default=None)
    GITHUB_TOKEN: Optional[str] = Field(default=None)
    GITHUB_TOKEN_2: Optional[str] = Field(default=None)
    NVIDIA_API_KEY: Optional[str] = Field(default=None)
    NVIDIA_API_KEY_2: Optional[str] = Field(default=None)
    GROQ_API_KEY: Optional[str] = Field(default=None)
    GROQ_API_KEY_2: Optional[str] = Field(default=None)

    # Azure Computer Vision (OCR stage of the groq provider)
    AZURE_VISION_ENDPOINT: Optional[str] = Field(default=None)
    AZURE_VISION_KEY: Optional[str] = Field(default=None)

    # User defaults
    DEFAULT_CURRENCY: str = Field(default="EGP")
    DEFAULT_ALERT_THRESHOLD: int = Field(default=80)

    # Auth
    # Disabled by default.  Only honoured when ENVIRONMENT=development.
    JWT_SECRET: str = Field(default="changeme")
    DEV_AUTH_BYPASS: bool = Field(default=False)

    # CORS
    BACKEND_CORS_ORIGINS: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
    )

    # Sentry
    SENTRY_DSN: Optional[str] = Field(default=None)
    SENTRY_TRACES_SAMPLE_RATE: float = Field(default=0.0)
    SENTRY_RELEASE: Optional[str] = Field(default=None)


# Instantiate global settings
settings = Settings()


_CREDENTIAL_FIELDS: dict[ProviderType, tuple[str, str]] = {
    ProviderType.GEMINI: ("GEMINI_API_KEY", "GEMINI_API_KEY_2"),
    ProviderType.OPENAI: ("GITHUB_TOKEN", "GITHUB_TOKEN_2"),
    ProviderType.NVIDIA: ("NVIDIA_API_KEY", "NVIDIA_API_KEY_2"),
    ProviderType.GROQ: ("GROQ_API_KEY", "GROQ_API_KEY_2"),
}


def get_provider_credentials(provider: ProviderType) -> list[str]:
    """Return the ordered credential list for a provider.

    Precedence:
    1. The primary key (e.g. ``GEMINI_API_KEY``)
    2. The backup key (e.g. ``GEMINI_API_KEY_2``)

    Unset or blank values are skipped and duplicates removed.
    """
    credentials: list[str] = []
    for field_name in _CREDENTIAL_FIELDS[provider]:
        value = (getattr(settings, field_name, None) or "").strip()
        if value and value not in credentials:
            credentials.append(value)
    return credentials
