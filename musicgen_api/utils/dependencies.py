"""
FastAPI Dependencies
Injected store / vendor clients and bearer-token authentication
"""

from typing import Annotated, Optional

import structlog
from fastapi import Depends, Header, Request

from musicgen_api.config import Settings
from musicgen_api.utils.errors import AuthenticationError, UpstreamError
from musicgen_api.utils.suno_client import SunoClient
from musicgen_api.utils.supabase_client import AuthenticatedUser, SupabaseStore

logger = structlog.get_logger(__name__)

BEARER_PREFIX = "Bearer "


def get_settings_dep(request: Request) -> Settings:
    """Settings the application was built with"""
    return request.app.state.settings


def get_store(request: Request) -> SupabaseStore:
    """Supabase store constructed in the lifespan (or injected by tests)"""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise UpstreamError("Store not initialized")
    return store


def get_suno_client(request: Request) -> SunoClient:
    """Suno client constructed in the lifespan (or injected by tests)"""
    suno_client = getattr(request.app.state, "suno_client", None)
    if suno_client is None:
        raise UpstreamError("Suno client not initialized")
    return suno_client


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an Authorization header, or None if it is not a Bearer header"""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None)
) -> AuthenticatedUser:
    """
    Resolve the caller from the Authorization header

    Raises:
        AuthenticationError: no token, rejected token, or failed verification
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise AuthenticationError("No token provided")

    store = get_store(request)

    try:
        user = await store.verify_token(token)
    except Exception as e:
        logger.error("Auth error", error=str(e))
        raise AuthenticationError("Authentication failed")

    if user is None:
        raise AuthenticationError("Invalid token")

    return user


# Type aliases for cleaner dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings_dep)]
StoreDep = Annotated[SupabaseStore, Depends(get_store)]
SunoDep = Annotated[SunoClient, Depends(get_suno_client)]
CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
