"""Remote generative-media backends."""

from .providers_base import MediaBackend
from .providers_gemini import GeminiClient

__all__ = ["MediaBackend", "GeminiClient"]
