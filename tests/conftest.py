from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures import OPENAI_ENDPOINT, VISION_ENDPOINT
from tmgpt.core.config import (
    AppSettings,
    CompletionSettings,
    RepositorySettings,
    Settings,
    VisionSettings,
)


@pytest.fixture
def vision_settings() -> VisionSettings:
    return VisionSettings(
        COMPUTER_VISION_API_ENDPOINT=VISION_ENDPOINT,
        COMPUTER_VISION_API_KEY="vision-key",
        OCR_POLL_INTERVAL_SECONDS=0.0,
    )


@pytest.fixture
def completion_settings() -> CompletionSettings:
    return CompletionSettings(
        OPENAI_API_ENDPOINT=OPENAI_ENDPOINT,
        OPENAI_API_KEY="openai-key",
        OPENAI_DEPLOYMENT="test-deploy",
    )


@pytest.fixture
def repository_settings() -> RepositorySettings:
    return RepositorySettings(
        GITHUB_USERNAME="octocat",
        GITHUB_TOKEN="gh-token",
        BASELINE_REPO_OWNER="MicrosoftDocs",
        BASELINE_REPO_NAME="SecurityBenchmarks",
        BASELINE_REPO_PATH="baselines",
        BASELINE_REPO_REF="master",
        BASELINE_EXTRA_LOOKUPS=[],
    )


@pytest.fixture
def image_file(tmp_path: Path) -> Path:
    path = tmp_path / "diagram.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\nfake")
    return path


@pytest.fixture
def settings(
    image_file: Path,
    vision_settings: VisionSettings,
    completion_settings: CompletionSettings,
    repository_settings: RepositorySettings,
) -> Settings:
    return Settings(
        app=AppSettings(IMAGE_FILEPATH=image_file),
        vision=vision_settings,
        completion=completion_settings,
        repository=repository_settings,
    )
