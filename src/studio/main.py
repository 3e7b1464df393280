"""FastAPI application entry point."""

from fastapi import FastAPI

from .config import AppConfig, load_config
from .dependencies import include_routers
from .logging import configure_logging
from .operations.operations_service import MediaStudioService


def create_app(
    config: AppConfig | None = None, *, service: MediaStudioService | None = None
) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    configure_logging()
    cfg = config or load_config()
    app = FastAPI(title="Media Studio")
    include_routers(app, cfg, service=service)
    return app


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual launch
    import uvicorn

    uvicorn.run("src.studio.main:app", host="127.0.0.1", port=8000)
