# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Verifies Supabase access tokens.
#
# Supports both:
# - asymmetric Supabase signing keys (ES256 / RS256) looked up via JWKS
# - HS256 tokens signed with the project's legacy JWT secret
# =============================================================================

import logging
import time
from typing import Any
from uuid import UUID

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from app.config import settings
from app.auth.models import AuthUser

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor
security = HTTPBearer()

TOKEN_AUDIENCE = "authenticated"
JWKS_CACHE_TTL = 3600  # 1 hour

# Cached JWKS document and when it was fetched
_jwks_cache: dict[str, Any] = {"keys": [], "fetched_at": 0.0}


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _fetch_jwks() -> list[dict[str, Any]]:
    """Signing keys published by Supabase Auth (cached for an hour)."""
    if _jwks_cache["keys"] and time.time() - _jwks_cache["fetched_at"] < JWKS_CACHE_TTL:
        return _jwks_cache["keys"]

    url = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/.well-known/jwks.json"
    try:
        response = httpx.get(url, timeout=10)
        response.raise_for_status()
        _jwks_cache["keys"] = response.json().get("keys", [])
        _jwks_cache["fetched_at"] = time.time()
        logger.debug(f"Fetched {len(_jwks_cache['keys'])} signing keys from {url}")
    except httpx.HTTPError as e:
        # Stale keys are better than none while Supabase is unreachable
        logger.warning(f"Failed to fetch JWKS: {e}")

    return _jwks_cache["keys"]


def _signing_key(token: str) -> tuple[Any, str]:
    """
    Pick the verification key and algorithm for a token.

    Raises:
        HTTPException: 401 if no usable key exists
    """
    try:
        header = jwt.get_unverified_header(token)
    except JWTError:
        raise _unauthorized("Invalid token: unreadable header")

    alg = header.get("alg", "HS256")

    if alg == "HS256":
        if not settings.SUPABASE_JWT_SECRET:
            logger.error("HS256 token received but SUPABASE_JWT_SECRET is not set")
            raise _unauthorized("Invalid token: HS256 tokens are not accepted")
        return settings.SUPABASE_JWT_SECRET, alg

    kid = header.get("kid")
    for key in _fetch_jwks():
        if key.get("kid") == kid:
            return key, alg

    logger.warning(f"No signing key for alg={alg}, kid={kid}")
    raise _unauthorized("Invalid token: unknown signing key")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthUser:
    """
    Extract and validate the staff member from a Supabase JWT.

    Returns:
        AuthUser: The authenticated user

    Raises:
        HTTPException: 401 if token is invalid or expired
    """
    token = credentials.credentials
    key, algorithm = _signing_key(token)

    try:
        payload = jwt.decode(token, key, algorithms=[algorithm], audience=TOKEN_AUDIENCE)
    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise _unauthorized("Token has expired")
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise _unauthorized(f"Invalid token: {e}")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Invalid token: missing user ID")

    try:
        user_uuid = UUID(user_id)
    except ValueError:
        raise _unauthorized("Invalid token: malformed user ID")

    logger.debug(f"Authenticated user: {user_id}")
    return AuthUser(id=user_uuid, email=payload.get("email"), role=payload.get("role"))
