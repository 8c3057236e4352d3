"""
Centralized runtime settings using Pydantic.

Every environment variable is read once, validated, and frozen. Components
receive the section they need through their constructor instead of reading
module-level state.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from tmgpt.core.exceptions import ConfigurationError

_SETTINGS_CONFIG = SettingsConfigDict(
    case_sensitive=True,
    env_file=".env",
    extra="ignore",
    frozen=True,
)


class VisionSettings(BaseSettings):
    """Computer vision "read" service and OCR polling configuration."""

    COMPUTER_VISION_API_ENDPOINT: str
    COMPUTER_VISION_API_KEY: SecretStr
    COMPUTER_VISION_API_VERSION: str = "v3.2"

    OCR_POLL_INTERVAL_SECONDS: float = Field(default=2.0, ge=0.0)
    # None keeps polling until the job is terminal
    OCR_MAX_POLLS: Optional[int] = Field(default=None, ge=1)
    # 0 disables the overall deadline
    OCR_TIMEOUT_SECONDS: float = Field(default=300.0, ge=0.0)
    OCR_CLIENT_TIMEOUT_SECONDS: float = Field(default=60.0, gt=0.0)

    model_config = _SETTINGS_CONFIG


class CompletionSettings(BaseSettings):
    """Language-model completion service configuration."""

    OPENAI_API_ENDPOINT: str
    OPENAI_API_KEY: SecretStr
    OPENAI_DEPLOYMENT: str = "text-davinci-003"
    OPENAI_API_VERSION: str = "2022-12-01"
    LLM_REQUEST_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0.0)

    model_config = _SETTINGS_CONFIG


class RepositorySettings(BaseSettings):
    """Source repository holding the security baseline documents."""

    GITHUB_USERNAME: Optional[str] = None
    GITHUB_TOKEN: Optional[SecretStr] = None
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_WEB_URL: str = "https://github.com"

    BASELINE_REPO_OWNER: str = "MicrosoftDocs"
    BASELINE_REPO_NAME: str = "SecurityBenchmarks"
    BASELINE_REPO_PATH: str = "Azure Offer Security Baselines/3.0"
    BASELINE_REPO_REF: str = "master"
    BASELINE_RESULT_MODE: Literal["link", "content"] = "link"
    BASELINE_EXTRA_LOOKUPS: list[str] = Field(
        default_factory=lambda: [
            "Microsoft Cloud Security Benchmark",
            "Azure Security Benchmark",
        ]
    )
    BASELINE_FUZZY_THRESHOLD: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    REPO_REQUEST_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0.0)

    model_config = _SETTINGS_CONFIG


class AppSettings(BaseSettings):
    """General program settings."""

    IMAGE_FILEPATH: Path
    RECOMMEND_FROM: Literal["services", "text"] = "services"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = _SETTINGS_CONFIG


class Settings(BaseModel):
    """Immutable bundle of every settings section."""

    model_config = ConfigDict(frozen=True)

    app: AppSettings
    vision: VisionSettings
    completion: CompletionSettings
    repository: RepositorySettings


def _missing_fields(exc: ValidationError) -> list[str]:
    return [".".join(str(p) for p in err["loc"]) for err in exc.errors()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from the environment and ``.env``; cached for the process."""
    try:
        return Settings(
            app=AppSettings(),  # type: ignore[call-arg]
            vision=VisionSettings(),  # type: ignore[call-arg]
            completion=CompletionSettings(),  # type: ignore[call-arg]
            repository=RepositorySettings(),
        )
    except ValidationError as exc:
        fields = _missing_fields(exc)
        raise ConfigurationError(
            f"Invalid or missing settings: {', '.join(fields)}",
            details={"fields": fields},
        ) from exc
