"""Pydantic schemas and error contract for the operations API."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from .video_tasks import VideoTask


class FailureReason(StrEnum):
    INVALID_REQUEST = "invalid_request"
    SLOT_BUSY = "slot_busy"
    NOT_FOUND = "not_found"
    PROVIDER_ERROR = "provider_error"
    INTERNAL_ERROR = "internal_error"


class VideoTaskResponse(BaseModel):
    task_id: str
    state: str
    message: str | None = None
    progress: list[str] = Field(default_factory=list)
    handle: str | None = None
    error: str | None = None
    created_at: datetime
    finished_at: datetime | None = None

    @classmethod
    def from_task(cls, task: VideoTask) -> "VideoTaskResponse":
        return cls(
            task_id=task.task_id,
            state=task.state.value,
            message=task.message,
            progress=list(task.progress),
            handle=task.handle,
            error=task.error,
            created_at=task.created_at,
            finished_at=task.finished_at,
        )


class ResultSlotsResponse(BaseModel):
    keys: list[str] = Field(default_factory=list)
