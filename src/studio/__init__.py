"""Media Studio: edit, outpaint, upscale and generate images and videos.

The package wraps a remote generative-media service behind two result
acquisition loops (retry-until-image and submit/poll/fetch) and exposes them
as a small FastAPI application.
"""

from .operations.operations_service import MediaStudioService

__all__ = ["MediaStudioService"]
