"""Process-memory storage for generated media and per-slot results."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

from ..exceptions import NotFoundError
from .media_models import MediaBlob

logger = logging.getLogger(__name__)

MEDIA_PATH_PREFIX = "/media/"


@dataclass(slots=True)
class MediaStore:
    """Register blobs under locally addressable handles (``/media/<id>``)."""

    _items: dict[str, MediaBlob] = field(default_factory=dict)

    def register(self, blob: MediaBlob) -> str:
        media_id = uuid.uuid4().hex
        self._items[media_id] = blob
        logger.info(
            "media.registered",
            extra={"media_id": media_id, "mime_type": blob.mime_type, "size_bytes": blob.size_bytes},
        )
        return f"{MEDIA_PATH_PREFIX}{media_id}"

    def open(self, media_id: str) -> MediaBlob:
        try:
            return self._items[_strip_prefix(media_id)]
        except KeyError:
            raise NotFoundError(f"media '{media_id}' not found") from None

    def release(self, media_id: str) -> None:
        self._items.pop(_strip_prefix(media_id), None)

    def __len__(self) -> int:
        return len(self._items)


@dataclass(slots=True)
class ResultStore:
    """Hold the last successful artifact of each result slot.

    A slot is cleared when an operation starts and only filled again on a
    clean success, so a failed run never leaves a stale or partial result.
    """

    _results: dict[str, MediaBlob] = field(default_factory=dict)

    def clear(self, key: str) -> None:
        self._results.pop(key, None)

    def save(self, key: str, blob: MediaBlob) -> None:
        self._results[key] = blob

    def get(self, key: str) -> MediaBlob:
        try:
            return self._results[key]
        except KeyError:
            raise NotFoundError(f"no result stored for '{key}'") from None

    def keys(self) -> list[str]:
        return sorted(self._results)


def _strip_prefix(media_id: str) -> str:
    if media_id.startswith(MEDIA_PATH_PREFIX):
        return media_id[len(MEDIA_PATH_PREFIX):]
    return media_id
