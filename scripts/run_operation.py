"""Run a single media operation from the command line.

Examples (from the project root, with ``GEMINI_API_KEY`` exported)::

    python -m scripts.run_operation edit photo.png "add a pirate hat" -o hat.png
    python -m scripts.run_operation outpaint photo.png -o wider.png
    python -m scripts.run_operation upscale photo.png -o sharp.png
    python -m scripts.run_operation generate-image "a robot holding a red skateboard"
    python -m scripts.run_operation generate-video "a neon cat hologram" -o cat.mp4
"""

from __future__ import annotations

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path

import structlog

from src.studio.config import load_config
from src.studio.dependencies import build_service
from src.studio.exceptions import StudioError
from src.studio.logging import configure_logging
from src.studio.media.media_models import MediaBlob
from src.studio.media.media_store import MediaStore
from src.studio.operations.operations_service import MediaStudioService

log = structlog.get_logger("studio.cli")

_EXTENSIONS = {"image/jpeg": ".jpeg", "image/png": ".png", "image/webp": ".webp", "video/mp4": ".mp4"}


def _read_image(path: Path) -> tuple[bytes, str]:
    mime, _ = mimetypes.guess_type(path.name)
    return path.read_bytes(), mime or "image/png"


async def _execute(args: argparse.Namespace, service: MediaStudioService) -> MediaBlob:
    if args.command == "edit":
        image, mime = _read_image(args.image)
        return await service.edit(image, mime, args.prompt)
    if args.command == "outpaint":
        image, mime = _read_image(args.image)
        return await service.outpaint(image, mime, args.prompt)
    if args.command == "upscale":
        image, mime = _read_image(args.image)
        return await service.upscale(image, mime)
    if args.command == "generate-image":
        return await service.generate_image(args.prompt)

    image = mime = None
    if args.image is not None:
        image, mime = _read_image(args.image)
    artifact = await service.generate_video(
        args.prompt, image, mime, on_progress=lambda message: log.info("progress", message=message)
    )
    return artifact.blob


def _output_path(args: argparse.Namespace, blob: MediaBlob) -> Path:
    if args.output is not None:
        return args.output
    suffix = _EXTENSIONS.get(blob.mime_type, ".bin")
    return Path(f"{args.command}-result{suffix}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run one Media Studio operation")
    sub = parser.add_subparsers(dest="command", required=True)

    edit = sub.add_parser("edit", help="edit an image with a prompt")
    edit.add_argument("image", type=Path)
    edit.add_argument("prompt")

    outpaint = sub.add_parser("outpaint", help="extend the canvas of an image")
    outpaint.add_argument("image", type=Path)
    outpaint.add_argument("prompt", nargs="?", default=None)

    upscale = sub.add_parser("upscale", help="enhance resolution and detail")
    upscale.add_argument("image", type=Path)

    generate = sub.add_parser("generate-image", help="generate an image from a prompt")
    generate.add_argument("prompt")

    video = sub.add_parser("generate-video", help="generate a video from a prompt")
    video.add_argument("prompt")
    video.add_argument("--image", type=Path, default=None, help="optional seed image")

    for command in (edit, outpaint, upscale, generate, video):
        command.add_argument("-o", "--output", type=Path, default=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    service = build_service(load_config(), MediaStore())
    try:
        blob = asyncio.run(_execute(args, service))
    except StudioError as exc:
        log.error("operation.failed", command=args.command, error=str(exc))
        print(str(exc), file=sys.stderr)
        return 1
    output = _output_path(args, blob)
    output.write_bytes(blob.data)
    log.info("operation.saved", command=args.command, path=str(output), bytes=blob.size_bytes)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
