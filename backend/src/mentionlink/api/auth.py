"""Bearer-token authentication for mentionlink.

The token subject is the owner id. Every contact read and every mention
written or reviewed by a request is scoped to that owner, so no other
claims are carried.
"""

from datetime import datetime, timedelta, timezone
from typing import Annotated

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from ..config import get_settings
from . import AuthenticationError

bearer = HTTPBearer(auto_error=False)


class Owner(BaseModel):
    """The user whose contact book a request works on."""

    id: str


class TokenClaims(BaseModel):
    sub: str  # owner id
    exp: datetime
    iat: datetime


def issue_token(owner_id: str, ttl: timedelta | None = None) -> str:
    """Sign a token for an owner (used by ``mentionlink token``)."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    claims = TokenClaims(
        sub=owner_id,
        exp=now + (ttl or timedelta(hours=settings.jwt_expiration_hours)),
        iat=now,
    )
    return jwt.encode(
        claims.model_dump(), settings.jwt_secret, algorithm=settings.jwt_algorithm
    )


def read_token(token: str) -> TokenClaims:
    """Verify a token's signature and expiry.

    Raises:
        AuthenticationError: If the token is expired, malformed or missing claims
    """
    settings = get_settings()
    try:
        decoded = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise AuthenticationError(f"Invalid token: {e}")

    return TokenClaims.model_validate(decoded)


async def get_current_owner(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> Owner:
    """Resolve the owner from the Authorization header.

    Raises:
        AuthenticationError: If no valid bearer token was sent
    """
    if credentials is None:
        raise AuthenticationError("Authentication required")

    claims = read_token(credentials.credentials)
    # picked up by RequestLoggingMiddleware
    request.state.owner_id = claims.sub
    return Owner(id=claims.sub)


CurrentOwner = Annotated[Owner, Depends(get_current_owner)]
