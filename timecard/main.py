import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from timecard.api.v1.api import api_router
from timecard.core.config import settings
from timecard.core.exceptions import AppException
from timecard.core.logging import setup_logging
from timecard.db.bootstrap import run_migrations
from timecard.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    run_migrations()
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)
    yield


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, debug=settings.DEBUG, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/healthz", tags=["health"])
    def healthz():
        return {"status": "ok"}

    @app.exception_handler(AppException)
    async def handle_app_exception(request: Request, exc: AppException):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        body = ErrorResponse(message=exc.message, error_code=exc.error_code, details=exc.details)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(message="Internal server error", error_code="INTERNAL_ERROR").model_dump()
        )

    return app


app = create_app()
