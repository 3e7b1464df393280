"""User-facing media operations and their HTTP surface."""

from .action_slots import ActionSlot, ActionSlots
from .operations_service import (
    DEFAULT_OUTPAINT_PROMPT,
    UPSCALE_PROMPT,
    MediaStudioService,
)
from .video_tasks import VideoTask, VideoTaskRegistry, VideoTaskState

__all__ = [
    "ActionSlot",
    "ActionSlots",
    "DEFAULT_OUTPAINT_PROMPT",
    "UPSCALE_PROMPT",
    "MediaStudioService",
    "VideoTask",
    "VideoTaskRegistry",
    "VideoTaskState",
]
