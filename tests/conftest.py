from __future__ import annotations

import os

os.environ.setdefault("GEMINI_API_KEY", "test-key")
os.environ.setdefault("LOG_LEVEL", "INFO")
