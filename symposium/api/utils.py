"""Shared utilities for API route modules."""

from __future__ import annotations

from collections.abc import Callable

from fastapi import HTTPException, Request

from symposium.core.services import Services


def bearer_token(raw: str | None) -> str | None:
    """Extract the token from an 'Authorization: Bearer <token>' style header."""
    if not raw:
        return None
    scheme, _, token = raw.strip().partition(" ")
    if scheme.lower() == "bearer":
        return token.strip() or None
    # A bare token in a custom header
    return raw.strip() if not token else None


def current_user_dependency(svc: Services) -> Callable[[Request], dict]:
    """Build a FastAPI dependency resolving the calling user from the auth header.

    Responds 401 when the header is missing or the token is unknown.
    """
    header_name = svc.config.auth.header_name
    store = svc.store

    def _current_user(request: Request) -> dict:
        token = bearer_token(request.headers.get(header_name))
        if not token:
            raise HTTPException(status_code=401, detail="Missing API token")
        user = store.get_user_by_token(token)
        if not user:
            raise HTTPException(status_code=401, detail="Invalid API token")
        return user

    return _current_user


def require_credential(svc: Services, user_id: int) -> str:
    """The user's completion credential, or 400 when none is configured."""
    credential = svc.store.get_credential(user_id)
    if not credential:
        raise HTTPException(status_code=400, detail="OpenRouter API key not configured")
    return credential
