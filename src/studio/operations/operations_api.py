"""HTTP routes exposing the media operations."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Request,
    UploadFile,
    status,
)
from fastapi.responses import Response

from ..exceptions import (
    InvalidRequestError,
    NotFoundError,
    OperationFailedError,
    SlotBusyError,
    StudioError,
)
from ..media.media_models import MediaBlob
from ..media.media_store import ResultStore
from .action_slots import ActionSlot, ActionSlots
from .operations_schemas import FailureReason, ResultSlotsResponse, VideoTaskResponse
from .operations_service import MediaStudioService
from .video_tasks import VideoTaskRegistry

router = APIRouter(prefix="/api", tags=["operations"])
logger = logging.getLogger(__name__)

RESULT_KEY_HEADER = "X-Result-Key"


def get_studio_service(request: Request) -> MediaStudioService:
    """Fetch the operations service from application state."""
    try:
        return request.app.state.studio_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - app built without include_routers
        raise RuntimeError("MediaStudioService is not configured") from exc


def get_action_slots(request: Request) -> ActionSlots:
    return request.app.state.action_slots  # type: ignore[attr-defined]


def get_result_store(request: Request) -> ResultStore:
    return request.app.state.result_store  # type: ignore[attr-defined]


def get_video_tasks(request: Request) -> VideoTaskRegistry:
    return request.app.state.video_tasks  # type: ignore[attr-defined]


@router.post("/edit")
async def edit_image(
    file: UploadFile | None = File(None),
    prompt: str = Form(""),
    outpaint: bool = Form(False),
    service: MediaStudioService = Depends(get_studio_service),
    slots: ActionSlots = Depends(get_action_slots),
    results: ResultStore = Depends(get_result_store),
) -> Response:
    """Edit (or outpaint) the uploaded image and return the result bytes."""
    image, mime_type, filename = await _read_upload(file)
    if outpaint:
        action = lambda: service.outpaint(image, mime_type, prompt)  # noqa: E731
    else:
        action = lambda: service.edit(image, mime_type, prompt)  # noqa: E731
    return await _run_action(slots, results, ActionSlot.EDIT, f"edit:{filename}", action)


@router.post("/outpaint")
async def outpaint_image(
    file: UploadFile | None = File(None),
    prompt: str | None = Form(None),
    service: MediaStudioService = Depends(get_studio_service),
    slots: ActionSlots = Depends(get_action_slots),
    results: ResultStore = Depends(get_result_store),
) -> Response:
    image, mime_type, filename = await _read_upload(file)
    return await _run_action(
        slots,
        results,
        ActionSlot.EDIT,
        f"edit:{filename}",
        lambda: service.outpaint(image, mime_type, prompt),
    )


@router.post("/upscale")
async def upscale_image(
    file: UploadFile | None = File(None),
    service: MediaStudioService = Depends(get_studio_service),
    slots: ActionSlots = Depends(get_action_slots),
    results: ResultStore = Depends(get_result_store),
) -> Response:
    image, mime_type, _ = await _read_upload(file)
    return await _run_action(
        slots,
        results,
        ActionSlot.UPSCALE,
        ActionSlot.UPSCALE.value,
        lambda: service.upscale(image, mime_type),
    )


@router.post("/generate-image")
async def generate_image(
    prompt: str = Form(""),
    service: MediaStudioService = Depends(get_studio_service),
    slots: ActionSlots = Depends(get_action_slots),
    results: ResultStore = Depends(get_result_store),
) -> Response:
    return await _run_action(
        slots,
        results,
        ActionSlot.GENERATE_IMAGE,
        ActionSlot.GENERATE_IMAGE.value,
        lambda: service.generate_image(prompt),
    )


@router.post(
    "/videos",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=VideoTaskResponse,
)
async def start_video(
    prompt: str = Form(""),
    file: UploadFile | None = File(None),
    tasks: VideoTaskRegistry = Depends(get_video_tasks),
) -> VideoTaskResponse:
    """Start a background video generation; poll ``GET /api/videos/{id}``."""
    image, mime_type, _ = await _read_upload(file)
    try:
        task = tasks.start(prompt, image, mime_type)
    except StudioError as exc:
        raise _http_error(exc) from exc
    return VideoTaskResponse.from_task(task)


@router.get("/videos/{task_id}", response_model=VideoTaskResponse)
async def get_video(
    task_id: str, tasks: VideoTaskRegistry = Depends(get_video_tasks)
) -> VideoTaskResponse:
    try:
        return VideoTaskResponse.from_task(tasks.get(task_id))
    except StudioError as exc:
        raise _http_error(exc) from exc


@router.delete("/videos/{task_id}", response_model=VideoTaskResponse)
async def cancel_video(
    task_id: str, tasks: VideoTaskRegistry = Depends(get_video_tasks)
) -> VideoTaskResponse:
    try:
        return VideoTaskResponse.from_task(tasks.cancel(task_id))
    except StudioError as exc:
        raise _http_error(exc) from exc


@router.get("/results", response_model=ResultSlotsResponse)
async def list_results(results: ResultStore = Depends(get_result_store)) -> ResultSlotsResponse:
    return ResultSlotsResponse(keys=results.keys())


@router.get("/results/{key:path}")
async def get_result(key: str, results: ResultStore = Depends(get_result_store)) -> Response:
    try:
        blob = results.get(key)
    except StudioError as exc:
        raise _http_error(exc) from exc
    return _blob_response(blob, key)


async def _read_upload(upload: UploadFile | None) -> tuple[bytes | None, str | None, str]:
    if upload is None:
        return None, None, ""
    data = await upload.read()
    return data or None, upload.content_type, upload.filename or ""


async def _run_action(
    slots: ActionSlots,
    results: ResultStore,
    slot: ActionSlot,
    result_key: str,
    action: Callable[[], Awaitable[MediaBlob]],
) -> Response:
    try:
        async with slots.hold(slot):
            results.clear(result_key)
            blob = await action()
            results.save(result_key, blob)
    except StudioError as exc:
        raise _http_error(exc) from exc
    logger.info(
        "operation.success",
        extra={"slot": slot.value, "result_key": result_key, "size_bytes": blob.size_bytes},
    )
    return _blob_response(blob, result_key)


def _blob_response(blob: MediaBlob, result_key: str) -> Response:
    return Response(
        content=blob.data,
        media_type=blob.mime_type,
        headers={RESULT_KEY_HEADER: result_key},
    )


def _http_error(exc: StudioError) -> HTTPException:
    if isinstance(exc, InvalidRequestError):
        code, reason = status.HTTP_400_BAD_REQUEST, FailureReason.INVALID_REQUEST
    elif isinstance(exc, SlotBusyError):
        code, reason = status.HTTP_429_TOO_MANY_REQUESTS, FailureReason.SLOT_BUSY
    elif isinstance(exc, NotFoundError):
        code, reason = status.HTTP_404_NOT_FOUND, FailureReason.NOT_FOUND
    elif isinstance(exc, OperationFailedError):
        code, reason = status.HTTP_502_BAD_GATEWAY, FailureReason.PROVIDER_ERROR
    else:
        code, reason = status.HTTP_500_INTERNAL_SERVER_ERROR, FailureReason.INTERNAL_ERROR
    logger.warning(
        "operation.error",
        extra={"status_code": code, "failure_reason": reason.value, "details": str(exc)},
    )
    return HTTPException(
        status_code=code,
        detail={
            "status": "error",
            "failure_reason": reason.value,
            "details": str(exc),
        },
    )
