"""In-memory media records and stores."""

from .media_models import (
    ContentPart,
    ContentResponse,
    EditRequest,
    GenerationRequest,
    JobHandle,
    JobStatus,
    MediaBlob,
    VideoArtifact,
    VideoJobRequest,
)
from .media_store import MediaStore, ResultStore

__all__ = [
    "ContentPart",
    "ContentResponse",
    "EditRequest",
    "GenerationRequest",
    "JobHandle",
    "JobStatus",
    "MediaBlob",
    "MediaStore",
    "ResultStore",
    "VideoArtifact",
    "VideoJobRequest",
]
