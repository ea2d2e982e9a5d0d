"""JWT token creation and validation.

Tokens are issued by the identity service; this package only verifies them.
`create_access_token` exists for service-to-service calls and tests.

Token structure:
- Algorithm: HS256 (configurable through JWT_ALGORITHM)
- Secret: JWT_SECRET setting
- Claims: sub (user id), exp, iat, optional tenant_id
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

import jwt

from ..config import get_settings


def create_access_token(
    user_id: UUID,
    tenant_id: Optional[UUID] = None,
    expires_minutes: int = 30,
) -> str:
    """Create a signed access token.

    Example:
        >>> token = create_access_token(UUID('12345678-1234-5678-1234-567812345678'))
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    if tenant_id is not None:
        payload["tenant_id"] = str(tenant_id)
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
    """
    settings = get_settings()
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
