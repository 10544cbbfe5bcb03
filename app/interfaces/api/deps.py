"""FastAPI dependency — bearer token auth gate."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.exceptions import AuthException
from app.core.security import TokenIdentity, TokenService
from app.interfaces.deps import get_token_service

security = HTTPBearer(auto_error=False)


def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    tokens: TokenService = Depends(get_token_service),
) -> Optional[TokenIdentity]:
    """Verify the bearer token and attach the caller's identity to the request.

    Pre-flight requests pass through unauthenticated. A missing, malformed,
    badly signed or expired token all fail the same way.
    """
    if request.method == "OPTIONS":
        return None

    if credentials is None:
        raise AuthException("Authentication failed!")

    try:
        identity = tokens.verify(credentials.credentials)
    except AuthException as e:
        raise AuthException("Authentication failed!") from e

    request.state.identity = identity
    return identity
