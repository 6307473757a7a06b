from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from facility_registry.core.exceptions import BackendError
from facility_registry.dependencies import get_metrics, get_registry_service, get_settings
from facility_registry.errors import ApiError
from facility_registry.middleware import TracingMiddleware
from facility_registry.observability import configure_otel, configure_probe_access_log_filter
from facility_registry.response import error_response, success_response
from facility_registry.routers.edits import router as edits_router
from facility_registry.routers.facilities import router as facilities_router
from facility_registry.routers.governorates import router as governorates_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service = app.dependency_overrides.get(get_registry_service, get_registry_service)()
        try:
            await service.refresh_value_index()
        except BackendError as exc:
            logger.warning("value_index_refresh_failed", extra={"reason": str(exc)})
        yield

    app = FastAPI(title="Facility Registry", version="0.1.0", lifespan=lifespan)
    configure_otel(service_name=settings.SERVICE_NAME)
    configure_probe_access_log_filter()
    app.add_middleware(TracingMiddleware, service_name=settings.SERVICE_NAME)
    app.include_router(facilities_router)
    app.include_router(governorates_router)
    app.include_router(edits_router)

    @app.get("/healthz")
    async def healthz() -> dict:
        return success_response({"status": "ok"}, meta={})

    @app.get("/readyz")
    async def readyz() -> dict:
        service = app.dependency_overrides.get(get_registry_service, get_registry_service)()
        return success_response({"status": "ready", "live": service.is_live}, meta={})

    @app.get("/metrics")
    async def metrics() -> Response:
        collector = app.dependency_overrides.get(get_metrics, get_metrics)()
        return Response(content=collector.render(), media_type="text/plain; version=0.0.4")

    @app.exception_handler(ApiError)
    async def handle_api_error(_: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(exc.code, exc.message, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        message = "; ".join(err["msg"] for err in exc.errors())
        return JSONResponse(
            status_code=422,
            content=error_response("VALIDATION_ERROR", message),
        )

    return app


app = create_app()
