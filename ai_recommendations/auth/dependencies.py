from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from fastapi import Depends, HTTPException, Request
from supabase import AuthError

from ..database.supabase_client import get_auth_client

logger = logging.getLogger(__name__)

TokenVerifier = Callable[[str], Optional[dict[str, Any]]]


def verify_access_token(token: str) -> dict[str, Any] | None:
    """Check ``token`` with Supabase Auth. Returns ``{id, email, role}`` or ``None``."""
    try:
        response = get_auth_client().auth.get_user(token)
    except AuthError:
        logger.info("Access token rejected by auth provider", exc_info=True)
        return None
    user = response.user if response else None
    if not user:
        return None
    return {"id": user.id, "email": user.email, "role": user.role}


def get_token_verifier() -> TokenVerifier:
    return verify_access_token


def bearer_token(request: Request) -> str | None:
    """Return the bearer token from the ``Authorization`` header, or ``None``."""
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):].strip() or None


def require_user(
    request: Request,
    verify: TokenVerifier = Depends(get_token_verifier),
) -> dict[str, Any]:
    """Raise 401 unless the request carries a valid bearer token."""
    token = bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    user = verify(token)
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
