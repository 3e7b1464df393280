"""Application configuration builder."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .orchestration.job_runner import POLL_INTERVAL_SECONDS
from .orchestration.retrying_fetcher import RETRY_DELAY_SECONDS
from .providers.providers_gemini import DEFAULT_API_URL_BASE


@dataclass(slots=True)
class GeminiModels:
    edit: str
    image: str
    video: str


@dataclass(slots=True)
class AppConfig:
    api_key: str
    api_url_base: str
    models: GeminiModels
    http_timeout_seconds: float
    retry_delay_seconds: float
    retry_max_attempts: int | None
    poll_interval_seconds: float


def _optional_int(name: str) -> int | None:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    value = int(raw)
    if value < 1:
        raise ValueError(f"{name} must be a positive integer")
    return value


def load_config() -> AppConfig:
    """Load configuration from environment.

    The API key is read once and not validated here; a missing key surfaces
    later as an authentication error from the remote service.
    """
    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY", "")
    models = GeminiModels(
        edit=os.getenv("GEMINI_EDIT_MODEL", "gemini-2.5-flash-image"),
        image=os.getenv("GEMINI_IMAGE_MODEL", "imagen-4.0-generate-001"),
        video=os.getenv("GEMINI_VIDEO_MODEL", "veo-2.0-generate-001"),
    )
    return AppConfig(
        api_key=api_key,
        api_url_base=os.getenv("GEMINI_API_BASE_URL", DEFAULT_API_URL_BASE).rstrip("/"),
        models=models,
        http_timeout_seconds=float(os.getenv("GEMINI_HTTP_TIMEOUT_SECONDS", 60)),
        retry_delay_seconds=float(os.getenv("EDIT_RETRY_DELAY_SECONDS", RETRY_DELAY_SECONDS)),
        retry_max_attempts=_optional_int("EDIT_MAX_ATTEMPTS"),
        poll_interval_seconds=float(
            os.getenv("VIDEO_POLL_INTERVAL_SECONDS", POLL_INTERVAL_SECONDS)
        ),
    )
