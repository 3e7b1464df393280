"""Data structures shared by the orchestration layer."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class MediaBlob:
    """Binary payload tagged with its MIME type."""

    data: bytes
    mime_type: str

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class EditRequest:
    image: MediaBlob
    prompt: str


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    prompt: str


@dataclass(frozen=True, slots=True)
class VideoJobRequest:
    prompt: str
    seed_image: MediaBlob | None = None


@dataclass(frozen=True, slots=True)
class JobStatus:
    """Snapshot of a long-running job as reported by the last poll."""

    done: bool = False
    result_locator: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True, slots=True)
class JobHandle:
    """Opaque job reference; each status query returns a fresh one."""

    name: str
    status: JobStatus = field(default_factory=JobStatus)

    @property
    def done(self) -> bool:
        return self.status.done


@dataclass(frozen=True, slots=True)
class ContentPart:
    """One part of a generateContent answer (inline data or text)."""

    mime_type: str | None = None
    data: bytes | None = None
    text: str | None = None

    @property
    def is_image(self) -> bool:
        return bool(self.data) and (self.mime_type or "").startswith("image/")


@dataclass(frozen=True, slots=True)
class ContentResponse:
    parts: tuple[ContentPart, ...] = ()

    def image_part(self) -> ContentPart | None:
        """Return the first image-typed part, ignoring any accompanying text."""
        for part in self.parts:
            if part.is_image:
                return part
        return None

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.parts if part.text).strip()


@dataclass(frozen=True, slots=True)
class VideoArtifact:
    """Retrieved video registered under a locally addressable handle."""

    handle: str
    blob: MediaBlob
