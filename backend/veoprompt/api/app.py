"""FastAPI application setup with lifespan and exception handlers."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from veoprompt import __version__, validate_credentials
from veoprompt.api.routes import router
from veoprompt.config import get_settings
from veoprompt.errors import PipelineError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Startup:
        - Warn about missing provider credentials
    """
    logger.info("Starting Veo Prompt API...")
    validate_credentials(get_settings())
    logger.info("API startup complete")

    yield

    logger.info("Veo Prompt API shut down")


app = FastAPI(
    title="Veo Prompt API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().server.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    """Render classified pipeline errors with their own status code."""
    logger.warning(
        f"{request.method} {request.url.path} failed ({exc.status_code}, {exc.kind.value}): {exc.message}"
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Catch-all exception handler to prevent stack traces in API responses."""
    logger.error(f"Unhandled exception in {request.method} {request.url.path}: {type(exc).__name__}: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "An unexpected error occurred. Retry the request.",
            "details": str(exc),
        }
    )
