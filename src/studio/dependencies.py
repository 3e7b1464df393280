"""Dependency wiring helpers."""

from fastapi import FastAPI

from .config import AppConfig
from .media.media_api import build_media_router
from .media.media_store import MediaStore, ResultStore
from .operations.action_slots import ActionSlots
from .operations.operations_api import router as operations_router
from .operations.operations_service import MediaStudioService
from .operations.video_tasks import VideoTaskRegistry
from .orchestration.job_runner import PollingJobRunner
from .orchestration.retrying_fetcher import RetryingFetcher
from .providers.providers_gemini import GeminiClient


def build_service(config: AppConfig, media_store: MediaStore) -> MediaStudioService:
    """Assemble the Gemini client and both orchestrators into the service."""
    client = GeminiClient(
        api_key=config.api_key,
        api_url_base=config.api_url_base,
        edit_model=config.models.edit,
        image_model=config.models.image,
        video_model=config.models.video,
        timeout_seconds=config.http_timeout_seconds,
    )
    fetcher = RetryingFetcher(
        retry_delay_seconds=config.retry_delay_seconds,
        max_attempts=config.retry_max_attempts,
    )
    job_runner = PollingJobRunner(
        backend=client,
        media_store=media_store,
        poll_interval_seconds=config.poll_interval_seconds,
    )
    return MediaStudioService(backend=client, fetcher=fetcher, job_runner=job_runner)


def include_routers(
    app: FastAPI, config: AppConfig, *, service: MediaStudioService | None = None
) -> None:
    """Mount module routers and attach services."""
    if service is None:
        service = build_service(config, MediaStore())
    # Video handles must resolve against the store the job runner writes to.
    media_store = service.job_runner.media_store
    result_store = ResultStore()

    app.state.config = config
    app.state.media_store = media_store
    app.state.result_store = result_store
    app.state.studio_service = service
    app.state.action_slots = ActionSlots()
    app.state.video_tasks = VideoTaskRegistry(service=service, result_store=result_store)

    app.include_router(operations_router)
    app.include_router(build_media_router(media_store))
