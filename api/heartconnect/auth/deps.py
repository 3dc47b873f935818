"""
Authentication dependencies for FastAPI.

Identity is issued upstream as an HS256 JWT. It is accepted from:
1. the httpOnly session cookie (web clients)
2. an ``Authorization: Bearer`` header (API clients)
3. a ``token`` query parameter (websocket upgrades only)

The user row is upserted from the token's identity claims, so a user exists
from their first authenticated request on.
"""

import logging
import uuid
from typing import Any

from fastapi import Cookie, Depends, Header, HTTPException, WebSocket

from heartconnect.auth.security import decode_access_token, identity_claims
from heartconnect.config import SESSION_COOKIE_NAME
from heartconnect.deps import get_storage
from heartconnect.errors import Unauthenticated, ValidationError
from heartconnect.storage import Storage

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised when authentication fails with detailed reason."""

    def __init__(self, reason: str, detail: str = "Authentication required"):
        self.reason = reason
        self.detail = detail
        self.trace_id = str(uuid.uuid4())
        super().__init__(detail)


def _log_auth_failure(reason: str, trace_id: str, auth_source: str | None = None, token_prefix: str | None = None) -> None:
    logger.warning(f"[auth] FAILURE trace_id={trace_id} reason={reason} source={auth_source} token_prefix={token_prefix}")


def _extract_bearer(authorization: str) -> str:
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise AuthError(reason="malformed_token", detail="Invalid Authorization header")
    return parts[1].strip()


def _user_from_token(token: str, storage: Storage, auth_source: str) -> dict[str, Any]:
    try:
        payload = decode_access_token(token)
    except HTTPException as exc:
        if exc.status_code != 401:
            raise
        reason = "token_expired" if "expired" in str(exc.detail).lower() else "signature_invalid"
        raise AuthError(reason=reason, detail=str(exc.detail)) from exc

    user_id = str(payload.get("sub") or "")
    if not user_id:
        raise AuthError(reason="token_missing_subject", detail="Invalid token")

    claims = identity_claims(payload)
    user = storage.get_user(user_id)
    if user is None or any(user.get(k) != v for k, v in claims.items()):
        try:
            user = storage.upsert_user(user_id, **claims)
        except ValidationError as exc:
            raise AuthError(reason="identity_conflict", detail=exc.message) from exc
        logger.info(f"[auth] upserted user_id={user_id} email={claims.get('email')} source={auth_source}")
    return user


def get_current_user(
    session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE_NAME),
    authorization: str | None = Header(default=None, alias="Authorization"),
    storage: Storage = Depends(get_storage),
) -> dict[str, Any]:
    """Current user from the session cookie, falling back to a bearer token."""
    try:
        if session_token:
            return _user_from_token(session_token, storage, "cookie")
        if authorization:
            return _user_from_token(_extract_bearer(authorization), storage, "bearer")
        raise AuthError(reason="missing_token")
    except AuthError as e:
        _log_auth_failure(e.reason, e.trace_id, auth_source="cookie" if session_token else "bearer")
        raise Unauthenticated(e.detail)


def get_current_user_id(current_user: dict[str, Any] = Depends(get_current_user)) -> str:
    return str(current_user["id"])


def resolve_socket_user(websocket: WebSocket, storage: Storage) -> dict[str, Any] | None:
    """User for a websocket upgrade, or None when the upgrade is unauthenticated."""
    token = websocket.query_params.get("token") or websocket.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        _log_auth_failure("missing_token", str(uuid.uuid4()), auth_source="websocket")
        return None
    try:
        return _user_from_token(token, storage, "websocket")
    except AuthError as e:
        _log_auth_failure(e.reason, e.trace_id, auth_source="websocket")
        return None
