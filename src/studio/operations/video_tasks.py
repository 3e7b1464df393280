"""Background video generation tasks with observable progress."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum

from ..exceptions import NotFoundError, SlotBusyError, StudioError
from ..media.media_models import VideoJobRequest
from ..media.media_store import ResultStore
from .action_slots import ActionSlot
from .operations_service import MediaStudioService

logger = logging.getLogger(__name__)


class VideoTaskState(StrEnum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class VideoTask:
    """Progress narration and terminal outcome of one video generation."""

    task_id: str
    prompt: str
    state: VideoTaskState = VideoTaskState.RUNNING
    progress: list[str] = field(default_factory=list)
    handle: str | None = None
    error: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None
    runner: asyncio.Task[None] | None = field(default=None, repr=False)

    @property
    def message(self) -> str | None:
        if self.state is not VideoTaskState.RUNNING or not self.progress:
            return None
        return self.progress[-1]

    def report(self, message: str) -> None:
        self.progress.append(message)


@dataclass(slots=True)
class VideoTaskRegistry:
    """Run video generations in the background, one at a time.

    The ``generate-video`` result slot is cleared when a task starts and only
    filled when the task succeeds. Starting a task drops the finished ones and
    releases their videos from the media store.
    """

    service: MediaStudioService
    result_store: ResultStore
    _tasks: dict[str, VideoTask] = field(default_factory=dict)

    def start(
        self, prompt: str, image: bytes | None = None, mime_type: str | None = None
    ) -> VideoTask:
        if self.running() is not None:
            raise SlotBusyError(f"'{ActionSlot.GENERATE_VIDEO.value}' is already running")
        request = self.service.build_video_request(prompt, image, mime_type)
        self._discard_finished()

        task = VideoTask(task_id=uuid.uuid4().hex, prompt=prompt)
        self._tasks[task.task_id] = task
        self.result_store.clear(ActionSlot.GENERATE_VIDEO.value)
        task.runner = asyncio.create_task(self._run(task, request))
        task.runner.add_done_callback(lambda runner: self._on_runner_done(task, runner))
        logger.info("video_task.started", extra={"task_id": task.task_id})
        return task

    def get(self, task_id: str) -> VideoTask:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise NotFoundError(f"video task '{task_id}' not found") from None

    def cancel(self, task_id: str) -> VideoTask:
        task = self.get(task_id)
        if task.runner is not None and not task.runner.done():
            task.runner.cancel()
            logger.info("video_task.cancel_requested", extra={"task_id": task_id})
        return task

    def running(self) -> VideoTask | None:
        for task in self._tasks.values():
            if task.state is VideoTaskState.RUNNING:
                return task
        return None

    def _discard_finished(self) -> None:
        """Forget finished tasks and release the videos they registered."""
        media_store = self.service.job_runner.media_store
        for task_id, task in list(self._tasks.items()):
            if task.state is VideoTaskState.RUNNING:
                continue
            if task.handle is not None:
                media_store.release(task.handle)
            del self._tasks[task_id]
            logger.info(
                "video_task.discarded",
                extra={"task_id": task_id, "handle": task.handle},
            )

    async def _run(self, task: VideoTask, request: VideoJobRequest) -> None:
        try:
            artifact = await self.service.run_video(request, task.report)
        except StudioError as exc:
            task.error = str(exc)
            self._finish(task, VideoTaskState.FAILED)
            return
        task.handle = artifact.handle
        self.result_store.save(ActionSlot.GENERATE_VIDEO.value, artifact.blob)
        self._finish(task, VideoTaskState.SUCCEEDED)

    def _on_runner_done(self, task: VideoTask, runner: asyncio.Task[None]) -> None:
        # A task cancelled before its first step never enters _run.
        if runner.cancelled() and task.state is VideoTaskState.RUNNING:
            self._finish(task, VideoTaskState.CANCELLED)

    @staticmethod
    def _finish(task: VideoTask, state: VideoTaskState) -> None:
        task.state = state
        task.finished_at = _utcnow()
        logger.info(
            "video_task.finished",
            extra={"task_id": task.task_id, "state": state.value, "error": task.error},
        )
