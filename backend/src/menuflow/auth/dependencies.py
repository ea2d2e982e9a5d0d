"""FastAPI dependencies for authentication.

Usage:
    @router.post("/ingestions/start")
    def start(actor_id: UUID = Depends(get_current_user_id)):
        ...
"""

from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .jwt import decode_token

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> UUID:
    """Validate the bearer token and return the acting user's id (`sub` claim).

    Raises:
        HTTPException 401: If the token is missing, invalid, expired or has no usable sub claim
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Missing bearer token")

    try:
        payload = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")

    subject = payload.get("sub")
    if not subject:
        raise _unauthorized("Invalid token: missing user ID claim")

    try:
        return UUID(str(subject))
    except ValueError:
        raise _unauthorized("Invalid token: malformed user ID claim")
