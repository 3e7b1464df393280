"""Serve media registered in the in-memory store."""

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import Response

from ..exceptions import NotFoundError
from .media_store import MediaStore


def build_media_router(store: MediaStore) -> APIRouter:
    router = APIRouter(prefix="/media", tags=["media"])

    @router.get("/{media_id}")
    def get_media(media_id: str) -> Response:
        try:
            blob = store.open(media_id)
        except NotFoundError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"status": "error", "failure_reason": "not_found"},
            ) from exc
        return Response(content=blob.data, media_type=blob.mime_type)

    return router
