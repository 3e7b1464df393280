from __future__ import annotations

import asyncio

import pytest

from src.studio.exceptions import (
    GeminiAPIError,
    InvalidRequestError,
    NotFoundError,
    SlotBusyError,
)
from src.studio.media.media_models import MediaBlob
from src.studio.media.media_store import MediaStore, ResultStore
from src.studio.operations.action_slots import ActionSlot
from src.studio.operations.operations_service import MediaStudioService
from src.studio.operations.video_tasks import VideoTaskRegistry, VideoTaskState
from src.studio.orchestration.job_runner import (
    FETCHING_MESSAGE,
    INITIALIZING_MESSAGE,
    PROGRESS_MESSAGES,
    PollingJobRunner,
)
from src.studio.orchestration.retrying_fetcher import RetryingFetcher
from tests.mocks.backends import VIDEO_BYTES, ScriptedBackend, finished, pending

REAL_SLEEP = asyncio.sleep
SLOT = ActionSlot.GENERATE_VIDEO.value


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def result_store() -> ResultStore:
    return ResultStore()


@pytest.fixture
def registry(backend, result_store) -> VideoTaskRegistry:
    service = MediaStudioService(
        backend=backend,
        fetcher=RetryingFetcher(),
        job_runner=PollingJobRunner(backend=backend, media_store=MediaStore()),
    )
    return VideoTaskRegistry(service=service, result_store=result_store)


@pytest.fixture
def fast_polls(monkeypatch) -> None:
    async def yielding_sleep(seconds: float) -> None:
        await REAL_SLEEP(0)

    monkeypatch.setattr("src.studio.orchestration.job_runner.asyncio.sleep", yielding_sleep)


@pytest.fixture
def stalled_polls(monkeypatch) -> None:
    async def never_wakes(seconds: float) -> None:
        await asyncio.Event().wait()

    monkeypatch.setattr("src.studio.orchestration.job_runner.asyncio.sleep", never_wakes)


@pytest.mark.asyncio
async def test_successful_task_stores_result(fast_polls, backend, registry, result_store) -> None:
    backend.submit_responses = [pending()]
    backend.poll_responses = [pending(), finished()]
    backend.download_responses = [MediaBlob(data=VIDEO_BYTES, mime_type="video/mp4")]

    task = registry.start("a neon cat")
    assert task.state is VideoTaskState.RUNNING
    await task.runner

    assert task.state is VideoTaskState.SUCCEEDED
    assert task.progress == [
        INITIALIZING_MESSAGE,
        PROGRESS_MESSAGES[0],
        PROGRESS_MESSAGES[1],
        FETCHING_MESSAGE,
    ]
    assert task.message is None
    assert task.handle is not None and task.handle.startswith("/media/")
    assert task.finished_at is not None
    assert result_store.get(SLOT).data == VIDEO_BYTES


@pytest.mark.asyncio
async def test_failed_task_keeps_error_and_leaves_slot_empty(
    fast_polls, backend, registry, result_store
) -> None:
    result_store.save(SLOT, MediaBlob(data=b"previous", mime_type="video/mp4"))
    backend.submit_responses = [GeminiAPIError("quota exceeded")]

    task = registry.start("a neon cat")
    await task.runner

    assert task.state is VideoTaskState.FAILED
    assert task.error == "Video generation failed: quota exceeded"
    assert task.handle is None
    with pytest.raises(NotFoundError):
        result_store.get(SLOT)


@pytest.mark.asyncio
async def test_second_start_while_running_is_rejected(stalled_polls, backend, registry) -> None:
    backend.submit_responses = [pending()]

    task = registry.start("first")
    await REAL_SLEEP(0)

    with pytest.raises(SlotBusyError):
        registry.start("second")

    assert registry.running() is task
    assert len(backend.video_requests) == 1
    task.runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task.runner


@pytest.mark.asyncio
async def test_cancel_marks_task_cancelled(stalled_polls, backend, registry, result_store) -> None:
    backend.submit_responses = [pending()]

    task = registry.start("a neon cat")
    await REAL_SLEEP(0)
    assert task.message == PROGRESS_MESSAGES[0]

    registry.cancel(task.task_id)
    with pytest.raises(asyncio.CancelledError):
        await task.runner
    await REAL_SLEEP(0)

    assert task.state is VideoTaskState.CANCELLED
    assert task.finished_at is not None
    assert registry.running() is None
    assert backend.downloaded == []
    with pytest.raises(NotFoundError):
        result_store.get(SLOT)


@pytest.mark.asyncio
async def test_cancel_before_first_step(stalled_polls, backend, registry) -> None:
    task = registry.start("a neon cat")

    registry.cancel(task.task_id)
    with pytest.raises(asyncio.CancelledError):
        await task.runner
    await REAL_SLEEP(0)

    assert task.state is VideoTaskState.CANCELLED
    assert backend.video_requests == []


@pytest.mark.asyncio
async def test_cancel_finished_task_is_noop(fast_polls, backend, registry) -> None:
    backend.submit_responses = [finished()]
    backend.download_responses = [MediaBlob(data=VIDEO_BYTES, mime_type="video/mp4")]

    task = registry.start("a neon cat")
    await task.runner

    assert registry.cancel(task.task_id).state is VideoTaskState.SUCCEEDED


@pytest.mark.asyncio
async def test_invalid_prompt_registers_nothing(registry) -> None:
    with pytest.raises(InvalidRequestError):
        registry.start("   ")

    assert registry.running() is None


def test_unknown_task_raises_not_found(registry) -> None:
    with pytest.raises(NotFoundError):
        registry.get("missing")


@pytest.mark.asyncio
async def test_new_task_releases_previous_video(fast_polls, backend, registry, result_store) -> None:
    media_store = registry.service.job_runner.media_store
    finished_ids = []
    for round_number in range(3):
        backend.submit_responses.append(finished())
        backend.download_responses.append(
            MediaBlob(data=VIDEO_BYTES + bytes([round_number]), mime_type="video/mp4")
        )
        task = registry.start(f"take {round_number}")
        await task.runner
        assert task.state is VideoTaskState.SUCCEEDED
        finished_ids.append(task.task_id)

        assert len(media_store) == 1
        assert media_store.open(task.handle).data == VIDEO_BYTES + bytes([round_number])

    for task_id in finished_ids[:-1]:
        with pytest.raises(NotFoundError):
            registry.get(task_id)
    assert registry.get(finished_ids[-1]).handle is not None
    assert result_store.get(SLOT).data == VIDEO_BYTES + bytes([2])


@pytest.mark.asyncio
async def test_failed_start_keeps_previous_video(fast_polls, backend, registry) -> None:
    media_store = registry.service.job_runner.media_store
    backend.submit_responses = [finished()]
    backend.download_responses = [MediaBlob(data=VIDEO_BYTES, mime_type="video/mp4")]
    task = registry.start("a neon cat")
    await task.runner

    with pytest.raises(InvalidRequestError):
        registry.start("")

    assert media_store.open(task.handle).data == VIDEO_BYTES
    assert registry.get(task.task_id) is task
