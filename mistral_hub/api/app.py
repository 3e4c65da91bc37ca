"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware, error
handlers and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from mistral_hub.api.chat import router as chat_router
from mistral_hub.api.document import router as document_router
from mistral_hub.api.vision import router as vision_router
from mistral_hub.errors import MistralHubError
from mistral_hub.models.catalog import MODELS, ModelInfo
from mistral_hub.upstream import UpstreamClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Create the upstream client on startup and close it on shutdown.

    An unusable configuration (missing key, bad timeout) does not prevent
    startup; requests then fail with the configuration error as their message.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    logger.info("Starting MistralHub API...")
    try:
        app.state.upstream = UpstreamClient()
    except ValueError as e:
        logger.error(f"Upstream client not configured: {e}")
        app.state.upstream = None
        app.state.upstream_error = describe_config_error(e)
    yield
    logger.info("Shutting down MistralHub API...")
    if app.state.upstream is not None:
        await app.state.upstream.close()


def describe_config_error(exc: ValueError) -> str:
    """Turn an upstream configuration failure into a user-facing message.

    The missing-key message is passed through as is; anything else names the
    offending setting.
    """
    if isinstance(exc, ValidationError):
        first = exc.errors()[0]
        message = first["msg"].removeprefix("Value error, ")
        if first["loc"] == ("api_key",):
            return message
        field = ".".join(str(part) for part in first["loc"])
        return f"Invalid Mistral API configuration ({field}): {message}"
    return f"Invalid Mistral API configuration: {exc}"


async def _handle_app_error(request: Request, exc: MistralHubError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.warning(f"Invalid request body for {request.url.path}: {detail}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": f"Invalid request body: {detail}"},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="MistralHub API",
        description=(
            "Multi-modal chat relay for the Mistral API. Streams chat completions "
            "as Server-Sent Events and wraps vision and document OCR + Q&A "
            "requests."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    application.add_exception_handler(MistralHubError, _handle_app_error)
    application.add_exception_handler(RequestValidationError, _handle_validation_error)

    application.include_router(chat_router)
    application.include_router(vision_router)
    application.include_router(document_router)

    @application.get("/models", response_model=list[ModelInfo])
    async def list_models() -> list[ModelInfo]:
        """List the models offered in the model picker."""
        return list(MODELS)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "mistral-hub"}

    return application


app = create_app()
