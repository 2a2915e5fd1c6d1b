"""FastAPI dependencies for authentication and the validation pipeline."""

import logging
import secrets
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.core.cache import Cache
from src.core.config import Settings, get_settings
from src.core.exceptions import AuthenticationError
from src.core.llm import LLMClient, TextModel
from src.services.campaign_validation import CampaignValidationService
from src.services.context_stores import (
    BestPracticesStore,
    ClientContextStore,
    FileBestPracticesStore,
    FileClientContextStore,
)

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)

AppSettings = Annotated[Settings, Depends(get_settings)]


async def verify_api_key(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    config: AppSettings,
) -> None:
    """Require ``Authorization: Bearer <API_KEY>`` when an API key is configured.

    Raises:
        AuthenticationError: If the token is missing or does not match.
    """
    if not config.auth_enabled:
        return

    if credentials is None:
        logger.warning("AUTH: No credentials provided in request")
        raise AuthenticationError("Authentication required")

    expected = config.API_KEY.get_secret_value()
    if not secrets.compare_digest(credentials.credentials.encode(), expected.encode()):
        logger.warning("AUTH: Invalid API key presented")
        raise AuthenticationError("Invalid API key")


def build_best_practices_store(config: Settings) -> FileBestPracticesStore:
    """Create the file guide store, cached when a TTL is configured."""
    cache = None
    if config.BEST_PRACTICES_CACHE_TTL > 0:
        cache = Cache(maxsize=8, ttl=config.BEST_PRACTICES_CACHE_TTL)
    return FileBestPracticesStore(config.best_practices_path, cache=cache)


def get_best_practices_store(request: Request, config: AppSettings) -> BestPracticesStore:
    """Return the app-wide guide store, or an uncached one outside the app lifespan."""
    store = getattr(request.app.state, "best_practices_store", None)
    if store is None:
        return FileBestPracticesStore(config.best_practices_path)
    return store


def get_client_context_store(config: AppSettings) -> ClientContextStore:
    return FileClientContextStore(config.client_context_dir)


def get_text_model(config: AppSettings) -> TextModel:
    """Create the model client.

    Raises:
        ConfigurationError: If the model credentials are missing.
    """
    return LLMClient(config)


def get_validation_service(
    config: AppSettings,
    model: Annotated[TextModel, Depends(get_text_model)],
    best_practices_store: Annotated[BestPracticesStore, Depends(get_best_practices_store)],
    client_context_store: Annotated[ClientContextStore, Depends(get_client_context_store)],
) -> CampaignValidationService:
    return CampaignValidationService(
        model=model,
        best_practices_store=best_practices_store,
        client_context_store=client_context_store,
        lead_sample_size=config.LEAD_SAMPLE_SIZE,
    )


# Type aliases for common dependency patterns
ValidationServiceDep = Annotated[CampaignValidationService, Depends(get_validation_service)]
