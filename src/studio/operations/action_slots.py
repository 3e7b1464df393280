"""One in-flight operation per action slot."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import StrEnum

from ..exceptions import SlotBusyError

logger = logging.getLogger(__name__)


class ActionSlot(StrEnum):
    """Independent user actions; each runs at most one operation at a time."""

    EDIT = "edit"
    GENERATE_IMAGE = "generate-image"
    GENERATE_VIDEO = "generate-video"
    UPSCALE = "upscale"


@dataclass(slots=True)
class ActionSlots:
    _locks: dict[ActionSlot, asyncio.Lock] = field(default_factory=dict)

    def lock(self, slot: ActionSlot) -> asyncio.Lock:
        return self._locks.setdefault(slot, asyncio.Lock())

    def is_busy(self, slot: ActionSlot) -> bool:
        return self.lock(slot).locked()

    @asynccontextmanager
    async def hold(self, slot: ActionSlot) -> AsyncIterator[None]:
        """Occupy ``slot`` for the duration of the block or fail fast."""
        lock = self.lock(slot)
        if lock.locked():
            logger.warning("slot.busy", extra={"slot": slot.value})
            raise SlotBusyError(f"'{slot.value}' is already running")
        async with lock:
            yield
