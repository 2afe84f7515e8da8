"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Response

from tubely.core.config import Settings
from tubely.core.database import create_engine, create_session_factory, init_models
from tubely.core.logging import setup_logging
from tubely.core.metrics import get_metrics, get_metrics_content_type, set_app_info
from tubely.core.middleware import (
    CorrelationIdMiddleware,
    MetricsMiddleware,
    RequestLoggingMiddleware,
)
from tubely.core.storage import StorageBackend, StorageConfig, create_storage
from tubely.modules.media.ffmpeg import (
    FFmpegRemuxer,
    FFprobeGeometryProber,
    GeometryProber,
    Remuxer,
)
from tubely.modules.video.router import router as video_router


def create_app(
    settings: Optional[Settings] = None,
    *,
    storage: Optional[StorageBackend] = None,
    prober: Optional[GeometryProber] = None,
    remuxer: Optional[Remuxer] = None,
) -> FastAPI:
    """Build the application from explicit settings and collaborators.

    Collaborators that are not supplied are built from ``settings``.
    """
    settings = settings or Settings()
    environment = "development" if settings.DEBUG else "production"

    setup_logging(
        level="DEBUG" if settings.DEBUG else settings.LOG_LEVEL,
        json_format=settings.LOG_JSON,
        include_stack_trace=True,
    )
    set_app_info(version=settings.VERSION, environment=environment)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = create_engine(settings.DATABASE_URL, echo=settings.DEBUG)
        await init_models(engine)
        app.state.engine = engine
        app.state.session_factory = create_session_factory(engine)
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Upload videos, remux them for fast start and store them by aspect ratio.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.storage = storage or create_storage(StorageConfig.from_settings(settings))
    app.state.prober = prober or FFprobeGeometryProber(
        ffprobe_path=settings.FFPROBE_PATH,
        timeout=settings.PROBE_TIMEOUT_SECONDS,
    )
    app.state.remuxer = remuxer or FFmpegRemuxer(
        ffmpeg_path=settings.FFMPEG_PATH,
        timeout=settings.REMUX_TIMEOUT_SECONDS,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(MetricsMiddleware)

    app.include_router(video_router, prefix=settings.API_PREFIX)

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(content=get_metrics(), media_type=get_metrics_content_type())

    return app


def run() -> None:
    """Run the API under uvicorn."""
    settings = Settings()
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
