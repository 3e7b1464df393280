"""Submit/poll/fetch driver for long-running video jobs."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from ..exceptions import (
    JobFailedError,
    MissingResultLocatorError,
    Operation,
    OperationFailedError,
)
from ..media.media_models import JobHandle, VideoArtifact, VideoJobRequest
from ..media.media_store import MediaStore
from ..providers.providers_base import MediaBackend

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 10.0

INITIALIZING_MESSAGE = "Initializing video generation..."
FETCHING_MESSAGE = "Fetching video..."
PROGRESS_MESSAGES: tuple[str, ...] = (
    "Setting up the scene...",
    "The AI is getting creative...",
    "Rendering every frame...",
    "Almost there, adding the finishing touches...",
    "Infusing your video with some magic...",
)

ProgressSink = Callable[[str], None]


def _ignore_progress(message: str) -> None:
    return None


@dataclass(slots=True)
class PollingJobRunner:
    """Drive a video job from submission to a playable artifact.

    Progress narration cycles through ``progress_messages`` in order, one
    message before each wait. Faults during submission, polling or the final
    download are not retried; they end the run with one
    :class:`OperationFailedError`.
    """

    backend: MediaBackend
    media_store: MediaStore
    poll_interval_seconds: float = POLL_INTERVAL_SECONDS
    progress_messages: Sequence[str] = PROGRESS_MESSAGES
    log: logging.Logger = field(default_factory=lambda: logger)

    async def run(
        self, request: VideoJobRequest, on_progress: ProgressSink | None = None
    ) -> VideoArtifact:
        notify = on_progress or _ignore_progress
        try:
            return await self._run(request, notify)
        except Exception as exc:
            self.log.error(
                "video.failed",
                extra={"operation": Operation.GENERATE_VIDEO.value, "error": str(exc)},
            )
            raise OperationFailedError.wrap(Operation.GENERATE_VIDEO, exc) from exc

    async def _run(self, request: VideoJobRequest, notify: ProgressSink) -> VideoArtifact:
        notify(INITIALIZING_MESSAGE)
        handle = await self.backend.submit_video(request)
        self.log.info("video.submitted", extra={"operation_name": handle.name})

        handle = await self._poll_until_done(handle, notify)

        status = handle.status
        if status.failure_reason:
            raise JobFailedError(status.failure_reason)
        if not status.result_locator:
            raise MissingResultLocatorError("job finished without a result locator")

        notify(FETCHING_MESSAGE)
        blob = await self.backend.download(status.result_locator)
        media_handle = self.media_store.register(blob)
        self.log.info(
            "video.ready",
            extra={"operation_name": handle.name, "handle": media_handle},
        )
        return VideoArtifact(handle=media_handle, blob=blob)

    async def _poll_until_done(self, handle: JobHandle, notify: ProgressSink) -> JobHandle:
        message_index = 0
        while not handle.done:
            notify(self.progress_messages[message_index % len(self.progress_messages)])
            message_index += 1
            await asyncio.sleep(self.poll_interval_seconds)
            handle = await self.backend.get_video_operation(handle)
            self.log.info(
                "video.poll",
                extra={"operation_name": handle.name, "poll": message_index, "done": handle.done},
            )
        return handle
