"""Abstract remote media backend definition."""

from abc import ABC, abstractmethod

from ..media.media_models import (
    ContentResponse,
    EditRequest,
    GenerationRequest,
    JobHandle,
    MediaBlob,
    VideoJobRequest,
)


class MediaBackend(ABC):
    """Remote generative-media capability consumed by the orchestrators."""

    @abstractmethod
    async def edit_content(self, request: EditRequest) -> ContentResponse:
        """Run one image edit attempt; the answer may contain only text."""

    @abstractmethod
    async def generate_images(self, request: GenerationRequest) -> list[MediaBlob]:
        """Generate images for a prompt in a single call."""

    @abstractmethod
    async def submit_video(self, request: VideoJobRequest) -> JobHandle:
        """Start a video job and return its handle."""

    @abstractmethod
    async def get_video_operation(self, handle: JobHandle) -> JobHandle:
        """Query job status; the returned handle replaces ``handle``."""

    @abstractmethod
    async def download(self, locator: str) -> MediaBlob:
        """Retrieve a finished artifact by its result locator."""
