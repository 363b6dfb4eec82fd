from __future__ import annotations

import time

from fastapi import FastAPI, Request

from spinner.api.metrics import router as metrics_router
from spinner.api.public.healthz import router as healthz_router
from spinner.api.public.image import CACHE_SOURCE_HEADER, CACHE_STATUS_HEADER
from spinner.api.public.image import router as image_router
from spinner.api.public.version import router as version_router
from spinner.cache.local import LocalImageCache
from spinner.cache.shared import DisabledSharedStore, RedisImageStore, SharedImageStore
from spinner.core.config import Settings, load_settings
from spinner.core.errors import ErrorCode, json_error_response
from spinner.core.logging import configure_logging, get_logger
from spinner.core.metrics import observe_image_result
from spinner.core.request_id import RequestIdMiddleware
from spinner.core.spinner import ImageSpinner

log = get_logger(__name__)


def _image_result(response) -> str:  # type: ignore[no-untyped-def]
    status = int(getattr(response, "status_code", 0) or 0)
    headers = getattr(response, "headers", None) or {}
    if status == 200:
        if headers.get(CACHE_STATUS_HEADER) == "stale":
            return "stale"
        if headers.get(CACHE_SOURCE_HEADER) == "shared":
            return "shared"
        return "ok"
    if status == 502:
        return "upstream_error"
    return "error"


def build_shared_store(settings: Settings) -> SharedImageStore:
    if not settings.shared_cache_enabled:
        return DisabledSharedStore()
    log.info("shared_cache_enabled url=%s", settings.redis_url)
    return RedisImageStore.from_url(settings.redis_url)


def build_spinner(settings: Settings) -> ImageSpinner:
    return ImageSpinner(
        local=LocalImageCache(),
        shared=build_shared_store(settings),
        min_upvotes=settings.min_upvotes,
        timeout_s=settings.upstream_timeout_s,
    )


def create_app(settings: Settings | None = None, *, spinner: ImageSpinner | None = None) -> FastAPI:
    configure_logging()
    settings = settings or load_settings()

    app = FastAPI(title="blahaj-spinner", docs_url="/api/docs", redoc_url="/api/redoc")

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):  # type: ignore[no-redef]
        log.exception("unhandled_exception path=%s", str(getattr(request, "url", "")))
        return json_error_response(
            code=ErrorCode.INTERNAL_ERROR,
            message="Internal server error",
            status_code=500,
            request=request,
            details={"error_type": type(exc).__name__},
        )

    @app.middleware("http")
    async def _metrics_middleware(request: Request, call_next):  # type: ignore[no-redef]
        if request.url.path != "/":
            return await call_next(request)

        started = time.monotonic()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            observe_image_result(result=_image_result(response), duration_s=time.monotonic() - started)

    app.add_middleware(RequestIdMiddleware)

    app.state.settings = settings
    app.state.spinner = spinner or build_spinner(settings)

    @app.on_event("shutdown")
    async def _shutdown() -> None:  # type: ignore[no-redef]
        current: ImageSpinner | None = getattr(app.state, "spinner", None)
        if current is not None:
            await current.shared.close()

    app.include_router(image_router)
    app.include_router(healthz_router)
    app.include_router(version_router)
    app.include_router(metrics_router)

    return app


app = create_app()
