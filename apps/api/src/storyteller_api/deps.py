"""API dependencies."""

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status

from storyteller_gemini_client import GeminiClient, get_client
from storyteller_generators import ImageGenerator, NarrationGenerator
from storyteller_generators.image import DEFAULT_CHARACTER, DEFAULT_STYLE
from storyteller_services import StoryboardOrchestrator
from storyteller_services.session import SessionService, get_session_service


# Configuration
class Settings:
    """API settings."""

    api_keys: set[str] = set()  # Empty = no auth required
    require_auth: bool = False
    text_model: Optional[str] = None  # None = client default
    image_model: Optional[str] = None
    character: str = DEFAULT_CHARACTER
    style: str = DEFAULT_STYLE


settings = Settings()


def get_settings() -> Settings:
    """Get API settings."""
    return settings


# Authentication
async def verify_token(
    authorization: Annotated[Optional[str], Header()] = None,
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    """Verify bearer token if auth is required.

    Returns:
        The token if valid, None if auth not required
    """
    if not settings.require_auth:
        return None

    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = parts[1]
    if settings.api_keys and token not in settings.api_keys:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return token


# Generation
def get_gemini_client() -> GeminiClient:
    """Get the shared Gemini client, creating it from settings on first use."""
    return get_client(model=settings.text_model, image_model=settings.image_model)


def build_orchestrator() -> StoryboardOrchestrator:
    """Build the orchestrator for a new session."""
    client = get_gemini_client()
    return StoryboardOrchestrator(
        narration_generator=NarrationGenerator(client),
        image_generator=ImageGenerator(client, character=settings.character, style=settings.style),
    )


# Service factories
def get_sessions() -> SessionService:
    """Get the session service."""
    return get_session_service()
