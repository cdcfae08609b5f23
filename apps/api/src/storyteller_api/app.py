"""Storyteller API application."""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storyteller_core_schemas import NotFoundError, ServiceError, ValidationError
from storyteller_services.session import SessionService, set_session_service
from .deps import build_orchestrator, settings
from .routes import sessions_router


def create_app(
    require_auth: bool = False,
    api_keys: Optional[set[str]] = None,
    text_model: Optional[str] = None,
    image_model: Optional[str] = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        require_auth: Whether to require authentication
        api_keys: Set of valid API keys
        text_model: Gemini model for narration (client default if None)
        image_model: Imagen model for illustrations (client default if None)

    Returns:
        FastAPI application
    """
    # Configure settings
    if require_auth:
        settings.require_auth = require_auth
    if api_keys:
        settings.api_keys = api_keys
    if text_model:
        settings.text_model = text_model
    if image_model:
        settings.image_model = image_model

    # Fresh sessions for every app instance; the Gemini client is created lazily
    set_session_service(SessionService(build_orchestrator))

    app = FastAPI(
        title="Storyteller API",
        description="""
Explaining big ideas with small stories.

## Workflow

1. Create a session (`POST /sessions`)
2. Start a storyboard for a concept (`POST /sessions/{id}/storyboard`)
3. Poll the session (`GET /sessions/{id}`) while `busy` is true: the five
   narrations arrive first, then each illustration in scene order
4. Browse with `POST /sessions/{id}/prev` and `POST /sessions/{id}/next`

A scene whose illustration failed ends with `status=unavailable`; the rest of
the storyboard is unaffected. If the narration fails, the storyboard stays
empty and `error` carries a message for the viewer.
""",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content={
                "error": {
                    "code": exc.code,
                    "message": exc.message,
                }
            },
        )

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": {
                    "code": exc.code,
                    "message": exc.message,
                    "field": exc.field,
                }
            },
        )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": exc.code,
                    "message": exc.message,
                }
            },
        )

    # Register routers
    app.include_router(sessions_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


# Default app instance for uvicorn
app = create_app()
