from __future__ import annotations

import pytest

from src.studio.exceptions import GeminiAPIError, Operation, OperationFailedError
from src.studio.media.media_models import JobHandle, JobStatus, MediaBlob, VideoJobRequest
from src.studio.media.media_store import MediaStore
from src.studio.orchestration.job_runner import (
    FETCHING_MESSAGE,
    INITIALIZING_MESSAGE,
    PROGRESS_MESSAGES,
    PollingJobRunner,
)
from tests.mocks.backends import (
    RESULT_URI,
    VIDEO_BYTES,
    ScriptedBackend,
    finished,
    pending,
)


@pytest.fixture
def sleep_calls(monkeypatch) -> list[float]:
    calls: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        calls.append(seconds)

    monkeypatch.setattr("src.studio.orchestration.job_runner.asyncio.sleep", fake_sleep)
    return calls


@pytest.fixture
def media_store() -> MediaStore:
    return MediaStore()


def make_runner(backend: ScriptedBackend, media_store: MediaStore) -> PollingJobRunner:
    return PollingJobRunner(backend=backend, media_store=media_store)


@pytest.mark.asyncio
async def test_two_polls_then_single_retrieval(sleep_calls, media_store) -> None:
    backend = ScriptedBackend(
        submit_responses=[pending("operations/a")],
        poll_responses=[pending("operations/b"), finished("operations/c")],
        download_responses=[MediaBlob(data=VIDEO_BYTES, mime_type="video/mp4")],
    )
    progress: list[str] = []

    artifact = await make_runner(backend, media_store).run(
        VideoJobRequest(prompt="a cat running"), progress.append
    )

    assert len(backend.video_requests) == 1
    assert len(backend.polled_handles) == 2
    assert backend.downloaded == [RESULT_URI]
    assert sleep_calls == [10.0, 10.0]
    assert progress == [
        INITIALIZING_MESSAGE,
        PROGRESS_MESSAGES[0],
        PROGRESS_MESSAGES[1],
        FETCHING_MESSAGE,
    ]
    assert artifact.blob.data == VIDEO_BYTES
    assert media_store.open(artifact.handle).data == VIDEO_BYTES


@pytest.mark.asyncio
async def test_polls_with_most_recent_handle(sleep_calls, media_store) -> None:
    backend = ScriptedBackend(
        submit_responses=[pending("operations/first")],
        poll_responses=[pending("operations/second"), pending("operations/third"), finished()],
        download_responses=[MediaBlob(data=VIDEO_BYTES, mime_type="video/mp4")],
    )

    await make_runner(backend, media_store).run(VideoJobRequest(prompt="waves"))

    assert [handle.name for handle in backend.polled_handles] == [
        "operations/first",
        "operations/second",
        "operations/third",
    ]


@pytest.mark.asyncio
async def test_progress_messages_wrap_around(sleep_calls, media_store) -> None:
    polls = len(PROGRESS_MESSAGES) + 2
    backend = ScriptedBackend(
        submit_responses=[pending()],
        poll_responses=[pending() for _ in range(polls - 1)] + [finished()],
        download_responses=[MediaBlob(data=VIDEO_BYTES, mime_type="video/mp4")],
    )
    progress: list[str] = []

    await make_runner(backend, media_store).run(VideoJobRequest(prompt="loop"), progress.append)

    narration = progress[1:-1]
    assert narration == [PROGRESS_MESSAGES[i % len(PROGRESS_MESSAGES)] for i in range(polls)]
    assert narration[len(PROGRESS_MESSAGES)] == PROGRESS_MESSAGES[0]


@pytest.mark.asyncio
async def test_job_already_done_on_submit_skips_polling(sleep_calls, media_store) -> None:
    backend = ScriptedBackend(
        submit_responses=[finished()],
        download_responses=[MediaBlob(data=VIDEO_BYTES, mime_type="video/mp4")],
    )
    progress: list[str] = []

    await make_runner(backend, media_store).run(VideoJobRequest(prompt="instant"), progress.append)

    assert backend.polled_handles == []
    assert sleep_calls == []
    assert progress == [INITIALIZING_MESSAGE, FETCHING_MESSAGE]


@pytest.mark.asyncio
async def test_done_without_locator_fails_without_retrieval(sleep_calls, media_store) -> None:
    backend = ScriptedBackend(
        submit_responses=[pending()],
        poll_responses=[finished(locator=None)],
    )
    progress: list[str] = []

    with pytest.raises(OperationFailedError) as exc_info:
        await make_runner(backend, media_store).run(VideoJobRequest(prompt="x"), progress.append)

    assert backend.downloaded == []
    assert FETCHING_MESSAGE not in progress
    assert exc_info.value.operation is Operation.GENERATE_VIDEO
    assert str(exc_info.value) == (
        "Video generation failed: job finished without a result locator"
    )
    assert len(media_store) == 0


@pytest.mark.asyncio
async def test_job_error_reported_by_service(sleep_calls, media_store) -> None:
    failed = JobHandle(
        name="operations/op-1",
        status=JobStatus(done=True, failure_reason="prompt was blocked"),
    )
    backend = ScriptedBackend(submit_responses=[pending()], poll_responses=[failed])

    with pytest.raises(OperationFailedError) as exc_info:
        await make_runner(backend, media_store).run(VideoJobRequest(prompt="x"))

    assert str(exc_info.value) == "Video generation failed: prompt was blocked"
    assert backend.downloaded == []


@pytest.mark.asyncio
@pytest.mark.parametrize("stage", ["submit", "poll", "download"])
async def test_fault_at_any_stage_is_fatal(sleep_calls, media_store, stage: str) -> None:
    error = GeminiAPIError("Gemini HTTP error: connection reset")
    backend = ScriptedBackend(
        submit_responses=[error if stage == "submit" else pending()],
        poll_responses=[error if stage == "poll" else finished(), finished()],
        download_responses=[error],
    )

    with pytest.raises(OperationFailedError) as exc_info:
        await make_runner(backend, media_store).run(VideoJobRequest(prompt="x"))

    assert str(exc_info.value) == "Video generation failed: Gemini HTTP error: connection reset"
    assert len(backend.video_requests) == 1
    assert len(backend.polled_handles) == (0 if stage == "submit" else 1)
    assert len(media_store) == 0


@pytest.mark.asyncio
async def test_fault_without_message_uses_unknown_error(sleep_calls, media_store) -> None:
    backend = ScriptedBackend(submit_responses=[ConnectionError()])

    with pytest.raises(OperationFailedError) as exc_info:
        await make_runner(backend, media_store).run(VideoJobRequest(prompt="x"))

    assert str(exc_info.value) == "Unknown error while generating the video."
