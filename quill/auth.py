"""Clerk session token verification and FastAPI auth dependencies.

Clerk issues short-lived RS256 JWTs. The browser sends them either as a
``Bearer`` token or in the ``__session`` cookie; ``sub`` is the Clerk user id.
"""

import logging

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from quill.config import get_settings
from quill.db import get_db
from quill.services.users import get_or_create_user
from quill.tables import User

logger = logging.getLogger(__name__)

SESSION_COOKIE = "__session"

bearer_scheme = HTTPBearer(auto_error=False)

# Lazy singleton; PyJWKClient caches fetched signing keys
_jwk_client: jwt.PyJWKClient | None = None


class AuthError(Exception):
    """Session token missing or failed verification."""


def _get_jwk_client(url: str) -> jwt.PyJWKClient:
    global _jwk_client
    if _jwk_client is None or _jwk_client.uri != url:
        _jwk_client = jwt.PyJWKClient(url, cache_keys=True)
    return _jwk_client


def _signing_key(token: str):
    settings = get_settings()
    if settings.clerk_jwt_key:
        # PEM keys in env files often carry literal \n sequences
        return settings.clerk_jwt_key.replace("\\n", "\n")
    if settings.clerk_jwks_url:
        try:
            return _get_jwk_client(settings.clerk_jwks_url).get_signing_key_from_jwt(token).key
        except jwt.PyJWKClientError as e:
            raise AuthError(f"Could not resolve signing key: {e}") from e
    raise AuthError("Session verification is not configured")


def verify_session_token(token: str) -> str:
    """Verify a Clerk session JWT and return its subject (the Clerk user id).

    Raises:
        AuthError: The token is expired, malformed, wrongly signed, or fails
            the issuer or authorized-party checks.
    """
    settings = get_settings()
    key = _signing_key(token)

    options = {"require": ["exp", "sub"], "verify_iss": bool(settings.clerk_issuer)}
    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=["RS256"],
            issuer=settings.clerk_issuer or None,
            options=options,
            leeway=5,
        )
    except jwt.ExpiredSignatureError as e:
        raise AuthError("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthError(f"Invalid token: {e}") from e

    if settings.clerk_authorized_parties:
        azp = claims.get("azp")
        if azp and azp not in settings.clerk_authorized_parties:
            raise AuthError(f"Unauthorized party: {azp}")

    subject = claims.get("sub")
    if not subject:
        raise AuthError("Token has no subject")
    return subject


def _extract_token(
    request: Request, credentials: HTTPAuthorizationCredentials | None
) -> str | None:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(SESSION_COOKIE)


def get_clerk_user_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """The verified Clerk user id of the caller; 401 otherwise."""
    token = _extract_token(request, credentials)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return verify_session_token(token)
    except AuthError as e:
        logger.info("Rejected session token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


def get_optional_clerk_user_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    """Like ``get_clerk_user_id`` but anonymous callers get None."""
    token = _extract_token(request, credentials)
    if not token:
        return None
    try:
        return verify_session_token(token)
    except AuthError:
        return None


def get_current_user(
    clerk_user_id: str = Depends(get_clerk_user_id),
    db: Session = Depends(get_db),
) -> User:
    """The caller's user row, created on first use."""
    return get_or_create_user(db, clerk_user_id)


def get_optional_user(
    clerk_user_id: str | None = Depends(get_optional_clerk_user_id),
    db: Session = Depends(get_db),
) -> User | None:
    if clerk_user_id is None:
        return None
    return get_or_create_user(db, clerk_user_id)
