"""Retry-until-image loop for request/response calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from ..exceptions import NoImagesReturnedError, Operation, OperationFailedError
from ..media.media_models import ContentResponse, MediaBlob

logger = logging.getLogger(__name__)

RETRY_DELAY_SECONDS = 1.0

AttemptCall = Callable[[], Awaitable[ContentResponse]]


@dataclass(slots=True)
class RetryingFetcher:
    """Repeat a remote call until its answer carries image data.

    A text-only answer is treated as transient: the loop waits a fixed
    ``retry_delay_seconds`` and tries again, with no backoff and, unless
    ``max_attempts`` is set, no upper bound. Any exception raised by the call
    ends the loop at once and surfaces as a single
    :class:`OperationFailedError`.
    """

    retry_delay_seconds: float = RETRY_DELAY_SECONDS
    max_attempts: int | None = None
    log: logging.Logger = field(default_factory=lambda: logger)

    async def fetch(
        self, call: AttemptCall, *, operation: Operation = Operation.EDIT
    ) -> MediaBlob:
        try:
            return await self._fetch_until_image(call)
        except Exception as exc:
            self.log.error(
                "fetcher.failed",
                extra={"operation": operation.value, "error": str(exc)},
            )
            raise OperationFailedError.wrap(operation, exc) from exc

    async def _fetch_until_image(self, call: AttemptCall) -> MediaBlob:
        attempt = 1
        while True:
            response = await call()
            image = response.image_part()
            if image is not None and image.data is not None:
                self.log.info("fetcher.success", extra={"attempt": attempt})
                return MediaBlob(data=image.data, mime_type=image.mime_type or "image/png")

            if self.max_attempts is not None and attempt >= self.max_attempts:
                raise NoImagesReturnedError(f"no image returned after {attempt} attempts")

            text = response.text
            if text:
                self.log.warning(
                    "fetcher.attempt.text_only",
                    extra={"attempt": attempt, "response_text": text},
                )
            else:
                self.log.warning("fetcher.attempt.no_image", extra={"attempt": attempt})
            await asyncio.sleep(self.retry_delay_seconds)
            attempt += 1
