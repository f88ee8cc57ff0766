"""
verify.py
---------
Purpose:
    Verify Supabase access tokens (ES256) for the calendar API.

Notes:
    - Signing keys come from the project's JWKS endpoint and are cached by
      PyJWKClient.
    - `auth_dependency` guards every calendar route; tests override it via
      `app.dependency_overrides`.
"""

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWKClient

from app.config import settings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

SUPABASE_AUDIENCE = "authenticated"
SUPABASE_ALGORITHMS = ["ES256"]

_jwk_client = PyJWKClient(settings.jwks_url(), cache_keys=True)
_security = HTTPBearer()


def verify_jwt(token: str) -> dict:
    """Decode and validate a bearer token, raising 401 on any failure."""
    try:
        signing_key = _jwk_client.get_signing_key_from_jwt(token)
        claims = jwt.decode(
            token,
            signing_key.key,
            algorithms=SUPABASE_ALGORITHMS,
            audience=SUPABASE_AUDIENCE,
            options={"verify_exp": True, "require": ["sub", "exp"]},
        )
    except jwt.PyJWTError as e:
        logger.warning("Rejected access token", error=str(e), error_type=type(e).__name__)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    return claims


def auth_dependency(credentials: HTTPAuthorizationCredentials = Depends(_security)) -> dict:
    return verify_jwt(credentials.credentials)
