"""Shared API dependencies for authentication and common functionality."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from ordinal_stage.core.errors import AuthenticationError, PermissionDeniedError
from ordinal_stage.core.security import (
    CAPABILITY_EDIT_RECORDS,
    CAPABILITY_MANAGE_OPTIONS,
    Principal,
    decode_access_token,
)
from ordinal_stage.db.session import get_db
from ordinal_stage.services.throttle import ThrottleService, get_throttle_service

# HTTP Bearer scheme; missing tokens are reported through AuthenticationError
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Principal:
    """Return the caller described by the bearer token.

    Raises:
        AuthenticationError: If the token is missing or cannot be validated.
    """
    if credentials is None:
        raise AuthenticationError("Missing bearer token")
    try:
        return decode_access_token(credentials.credentials)
    except JWTError as err:
        raise AuthenticationError("Could not validate credentials") from err


def require_capability(capability: str) -> Callable[[Principal], Principal]:
    """Build a dependency that rejects callers lacking ``capability``."""

    def _dependency(
        principal: Annotated[Principal, Depends(get_current_principal)],
    ) -> Principal:
        if not principal.can(capability):
            raise PermissionDeniedError("Insufficient permissions")
        return principal

    return _dependency


def get_throttle_service_dep() -> ThrottleService:
    """Return the throttle service used for rate limiting."""
    return get_throttle_service()


EditorDep = Annotated[Principal, Depends(require_capability(CAPABILITY_EDIT_RECORDS))]
AdminDep = Annotated[Principal, Depends(require_capability(CAPABILITY_MANAGE_OPTIONS))]
ThrottleDep = Annotated[ThrottleService, Depends(get_throttle_service_dep)]
