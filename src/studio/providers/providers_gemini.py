"""Gemini REST client covering image editing, Imagen and Veo calls."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..exceptions import GeminiAPIError
from ..media.media_models import (
    ContentPart,
    ContentResponse,
    EditRequest,
    GenerationRequest,
    JobHandle,
    JobStatus,
    MediaBlob,
    VideoJobRequest,
)
from .providers_base import MediaBackend

logger = logging.getLogger(__name__)

DEFAULT_API_URL_BASE = "https://generativelanguage.googleapis.com/v1beta"
_BODY_PREVIEW_LIMIT = 4000


@dataclass(slots=True)
class GeminiClient(MediaBackend):
    """Thin async wrapper over the Generative Language REST API.

    Every method performs exactly one remote call and raises
    :class:`GeminiAPIError` on transport faults, non-200 answers or payloads
    that cannot be decoded. Deciding whether to retry is left to callers.
    """

    api_key: str
    api_url_base: str = DEFAULT_API_URL_BASE
    edit_model: str = "gemini-2.5-flash-image"
    image_model: str = "imagen-4.0-generate-001"
    video_model: str = "veo-2.0-generate-001"
    image_output_mime: str = "image/jpeg"
    image_aspect_ratio: str = "1:1"
    timeout_seconds: float = 60.0
    log: logging.Logger = field(default_factory=lambda: logger)

    async def edit_content(self, request: EditRequest) -> ContentResponse:
        url = f"{self.api_url_base}/models/{self.edit_model}:generateContent"
        # Gemini REST accepts inline_data/mime_type in snake case.
        body: dict[str, Any] = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {
                            "inline_data": {
                                "mime_type": request.image.mime_type,
                                "data": _b64encode(request.image.data),
                            }
                        },
                        {"text": request.prompt},
                    ],
                }
            ],
            "generationConfig": {"responseModalities": ["IMAGE", "TEXT"]},
        }
        self.log.info(
            "gemini.edit.start model=%s payload_bytes=%s payload_mime=%s prompt_len=%s",
            self.edit_model,
            request.image.size_bytes,
            request.image.mime_type,
            len(request.prompt),
        )
        data = await self._post_json(url, body)
        self.log.info("gemini.edit.response %s", _response_summary(data))
        self.log.debug("gemini.edit.body %s", response_body_preview(data))
        return _parse_content(data)

    async def generate_images(self, request: GenerationRequest) -> list[MediaBlob]:
        url = f"{self.api_url_base}/models/{self.image_model}:predict"
        body = {
            "instances": [{"prompt": request.prompt}],
            "parameters": {
                "sampleCount": 1,
                "outputMimeType": self.image_output_mime,
                "aspectRatio": self.image_aspect_ratio,
            },
        }
        self.log.info(
            "gemini.generate_images.start model=%s prompt_len=%s",
            self.image_model,
            len(request.prompt),
        )
        data = await self._post_json(url, body)
        images: list[MediaBlob] = []
        for prediction in data.get("predictions") or []:
            encoded = prediction.get("bytesBase64Encoded")
            if not encoded:
                continue
            mime = prediction.get("mimeType") or self.image_output_mime
            images.append(MediaBlob(data=_b64decode(encoded), mime_type=mime))
        self.log.info("gemini.generate_images.response count=%s", len(images))
        return images

    async def submit_video(self, request: VideoJobRequest) -> JobHandle:
        url = f"{self.api_url_base}/models/{self.video_model}:predictLongRunning"
        instance: dict[str, Any] = {"prompt": request.prompt}
        if request.seed_image is not None:
            instance["image"] = {
                "bytesBase64Encoded": _b64encode(request.seed_image.data),
                "mimeType": request.seed_image.mime_type,
            }
        body = {"instances": [instance], "parameters": {"sampleCount": 1}}
        self.log.info(
            "gemini.video.submit model=%s has_seed_image=%s prompt_len=%s",
            self.video_model,
            request.seed_image is not None,
            len(request.prompt),
        )
        data = await self._post_json(url, body)
        if not data.get("name"):
            raise GeminiAPIError("Gemini did not return an operation name")
        return _parse_operation(data)

    async def get_video_operation(self, handle: JobHandle) -> JobHandle:
        url = f"{self.api_url_base}/{handle.name}"
        response = await self._get(url, headers=self._headers())
        data = _decode_json(response)
        self.log.debug("gemini.video.operation %s", response_body_preview(data))
        return _parse_operation(data, fallback_name=handle.name)

    async def download(self, locator: str) -> MediaBlob:
        """Fetch a finished artifact; the locator is only valid with the key."""
        # Locators already carry a query (alt=media) that must survive.
        url = httpx.URL(locator).copy_add_param("key", self.api_key)
        response = await self._get(url, follow_redirects=True)
        content_type = response.headers.get("Content-Type", "video/mp4")
        self.log.info(
            "gemini.download.done bytes=%s content_type=%s",
            len(response.content),
            content_type,
        )
        return MediaBlob(data=response.content, mime_type=content_type.split(";")[0].strip())

    def _headers(self) -> dict[str, str]:
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    async def _post_json(self, url: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(url, headers=self._headers(), json=body)
        except httpx.HTTPError as exc:
            raise GeminiAPIError(f"Gemini HTTP error: {exc}") from exc
        self._raise_for_status(response, url)
        return _decode_json(response)

    async def _get(self, url: str | httpx.URL, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.get(url, **kwargs)
        except httpx.HTTPError as exc:
            raise GeminiAPIError(f"Gemini HTTP error: {exc}") from exc
        self._raise_for_status(response, str(url))
        return response

    def _raise_for_status(self, response: httpx.Response, url: str) -> None:
        if response.status_code == 200:
            return
        error_detail = _extract_error(response)
        self.log.error(
            "gemini.response.error status=%s detail=%s",
            response.status_code,
            error_detail,
            extra={"status_code": response.status_code, "url": url.split("?")[0]},
        )
        raise GeminiAPIError(
            f"Gemini request failed (status={response.status_code}): {error_detail}",
            status_code=response.status_code,
        )


def _parse_content(data: dict[str, Any]) -> ContentResponse:
    candidates = data.get("candidates") or []
    first = candidates[0] if candidates else {}
    parts: list[ContentPart] = []
    for part in (first.get("content") or {}).get("parts") or []:
        inline = part.get("inline_data") or part.get("inlineData")
        if inline and inline.get("data"):
            mime = inline.get("mime_type") or inline.get("mimeType")
            parts.append(ContentPart(mime_type=mime, data=_b64decode(inline["data"])))
        elif "text" in part:
            parts.append(ContentPart(text=part.get("text") or ""))
    return ContentResponse(parts=tuple(parts))


def _parse_operation(data: dict[str, Any], *, fallback_name: str | None = None) -> JobHandle:
    failure_reason = None
    error = data.get("error")
    if isinstance(error, dict):
        failure_reason = (error.get("message") or error.get("status") or "").strip() or "unknown error"
    status = JobStatus(
        done=bool(data.get("done")),
        result_locator=_video_uri(data.get("response") or {}),
        failure_reason=failure_reason,
    )
    return JobHandle(name=data.get("name") or fallback_name or "", status=status)


def _video_uri(response: dict[str, Any]) -> str | None:
    samples = (response.get("generateVideoResponse") or {}).get("generatedSamples")
    if not samples:
        samples = response.get("generatedVideos") or []
    for sample in samples:
        uri = (sample.get("video") or {}).get("uri")
        if uri:
            return uri
    return None


def _decode_json(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as exc:
        raise GeminiAPIError("Gemini response is not valid JSON") from exc
    if not isinstance(data, dict):
        raise GeminiAPIError("Gemini response has unexpected shape")
    return data


def _extract_error(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:  # pragma: no cover - fallback
        return response.text
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        message = (error.get("message") or "").strip()
        status = (error.get("status") or "").strip()
        return " ".join(part for part in (status, message) if part)
    return str(data)


def _b64encode(payload: bytes) -> str:
    return base64.b64encode(payload).decode("ascii")


def _b64decode(encoded: str) -> bytes:
    try:
        return base64.b64decode(encoded)
    except (binascii.Error, ValueError) as exc:
        raise GeminiAPIError("Gemini response payload is invalid") from exc


def _mask_inline_data(obj: Any) -> Any:
    """Remove inline_data payloads to avoid logging base64 blobs."""
    if isinstance(obj, dict):
        result = {}
        for key, value in obj.items():
            if key in {"inline_data", "inlineData"} and isinstance(value, dict):
                result[key] = {k: v for k, v in value.items() if k != "data"}
            else:
                result[key] = _mask_inline_data(value)
        return result
    if isinstance(obj, list):
        return [_mask_inline_data(item) for item in obj]
    return obj


def _response_summary(data: dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    first = candidates[0] if candidates else {}
    part_types: list[str] = []
    text_preview = None
    for part in (first.get("content") or {}).get("parts", []):
        if "inline_data" in part or "inlineData" in part:
            part_types.append("inline_data")
        if "text" in part:
            part_types.append("text")
            if text_preview is None:
                text_preview = part.get("text", "")
    preview_full = text_preview or ""
    finish_reason = first.get("finishReason") or first.get("finish_reason")
    return (
        f"candidates={len(candidates)} "
        f"part_types={part_types} "
        f"finish_reason={finish_reason} "
        f"text_preview='{preview_full[:160]}' "
        f"text_len={len(preview_full)}"
    )


def response_body_preview(data: dict[str, Any]) -> str:
    """Serialise a response for logs with inline payloads stripped."""
    preview = json.dumps(_mask_inline_data(data), ensure_ascii=False)
    if len(preview) > _BODY_PREVIEW_LIMIT:
        preview = preview[:_BODY_PREVIEW_LIMIT] + "...(truncated)"
    return preview
