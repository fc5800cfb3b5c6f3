"""Bearer token helpers built on python-jose."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from ordinal_stage.core.settings import settings

CAPABILITY_EDIT_RECORDS = "edit_records"
CAPABILITY_MANAGE_OPTIONS = "manage_options"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller decoded from a bearer token."""

    subject: str
    capabilities: frozenset[str] = field(default_factory=frozenset)

    def can(self, capability: str) -> bool:
        """Return True if the caller holds ``capability``."""
        return capability in self.capabilities


def create_access_token(
    subject: str | int,
    capabilities: list[str] | tuple[str, ...] = (),
    expires_minutes: int | None = None,
) -> str:
    """Create a signed access token carrying the caller's capabilities."""
    minutes = settings.access_token_expire_minutes if expires_minutes is None else expires_minutes
    to_encode: dict[str, object] = {
        "sub": str(subject),
        "caps": sorted(set(capabilities)),
        "exp": datetime.now(UTC) + timedelta(minutes=minutes),
    }
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> Principal:
    """Decode a bearer token into a :class:`Principal`.

    Raises:
        JWTError: If the token is invalid, expired or has no subject.
    """
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    subject = payload.get("sub")
    if not subject:
        raise JWTError("Token has no subject")
    caps = payload.get("caps") or []
    if not isinstance(caps, list):
        raise JWTError("Malformed capability claim")
    return Principal(subject=str(subject), capabilities=frozenset(str(c) for c in caps))
