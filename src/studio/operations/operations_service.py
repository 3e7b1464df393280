"""Operation adapters: edit, outpaint, upscale, image and video generation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..exceptions import (
    InvalidRequestError,
    NoImagesReturnedError,
    Operation,
    OperationFailedError,
)
from ..media.media_models import (
    EditRequest,
    GenerationRequest,
    MediaBlob,
    VideoArtifact,
    VideoJobRequest,
)
from ..orchestration.job_runner import PollingJobRunner, ProgressSink
from ..orchestration.retrying_fetcher import RetryingFetcher
from ..providers.providers_base import MediaBackend

logger = logging.getLogger(__name__)

DEFAULT_OUTPAINT_PROMPT = (
    "Extend the canvas of this image, filling the new areas with content that "
    "continues the original scene in a logical and seamless way. Keep the "
    "style and quality of the original image."
)
UPSCALE_PROMPT = (
    "Upscale this image to a higher resolution and quality. Sharpen details, "
    "reduce compression artifacts and noise, and improve overall clarity while "
    "staying faithful to the original. Make it look crisper and more refined."
)


@dataclass(slots=True)
class MediaStudioService:
    """Validate inputs, shape requests and delegate to the orchestrators."""

    backend: MediaBackend
    fetcher: RetryingFetcher
    job_runner: PollingJobRunner
    log: logging.Logger = field(default_factory=lambda: logger)

    async def edit(self, image: bytes | None, mime_type: str | None, prompt: str) -> MediaBlob:
        _require_image(image, mime_type, "Please upload and select an image first.")
        if not (prompt or "").strip():
            raise InvalidRequestError("Please enter an edit prompt.")
        return await self._edit(image, mime_type, prompt)

    async def outpaint(
        self, image: bytes | None, mime_type: str | None, prompt: str | None = None
    ) -> MediaBlob:
        _require_image(image, mime_type, "Please upload and select an image first.")
        final_prompt = prompt if prompt and prompt.strip() else DEFAULT_OUTPAINT_PROMPT
        return await self._edit(image, mime_type, final_prompt)

    async def upscale(self, image: bytes | None, mime_type: str | None) -> MediaBlob:
        _require_image(image, mime_type, "Please upload an image first.")
        return await self._edit(image, mime_type, UPSCALE_PROMPT)

    async def generate_image(self, prompt: str) -> MediaBlob:
        if not (prompt or "").strip():
            raise InvalidRequestError("Please enter a generation prompt.")
        request = GenerationRequest(prompt=prompt)
        try:
            images = await self.backend.generate_images(request)
            if not images:
                raise NoImagesReturnedError("the service returned no images")
        except Exception as exc:
            self.log.error(
                "generate_image.failed",
                extra={"operation": Operation.GENERATE_IMAGE.value, "error": str(exc)},
            )
            raise OperationFailedError.wrap(Operation.GENERATE_IMAGE, exc) from exc
        return images[0]

    async def generate_video(
        self,
        prompt: str,
        image: bytes | None = None,
        mime_type: str | None = None,
        on_progress: ProgressSink | None = None,
    ) -> VideoArtifact:
        request = self.build_video_request(prompt, image, mime_type)
        return await self.run_video(request, on_progress)

    def build_video_request(
        self, prompt: str, image: bytes | None = None, mime_type: str | None = None
    ) -> VideoJobRequest:
        """Validate video inputs; the seed image needs both bytes and MIME type."""
        if not (prompt or "").strip():
            raise InvalidRequestError("Please enter a generation prompt.")
        seed = MediaBlob(data=image, mime_type=mime_type) if image and mime_type else None
        return VideoJobRequest(prompt=prompt, seed_image=seed)

    async def run_video(
        self, request: VideoJobRequest, on_progress: ProgressSink | None = None
    ) -> VideoArtifact:
        return await self.job_runner.run(request, on_progress)

    async def _edit(self, image: bytes, mime_type: str, prompt: str) -> MediaBlob:
        request = EditRequest(image=MediaBlob(data=image, mime_type=mime_type), prompt=prompt)
        return await self.fetcher.fetch(
            lambda: self.backend.edit_content(request), operation=Operation.EDIT
        )


def _require_image(image: bytes | None, mime_type: str | None, message: str) -> None:
    if not image or not mime_type:
        raise InvalidRequestError(message)
