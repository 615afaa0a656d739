"""
Admin authentication for the newsletter endpoints.

Tokens are read from ``Authorization: Bearer <token>`` or, for older
clients, the ``x-auth-token`` header.

When JWT_SECRET (or SUPABASE_JWT_SECRET) is set the JWT is verified locally
with python-jose (HS256), avoiding a network round-trip. Otherwise the token
is checked against the Supabase Auth API.

The principal is the admin id: the ``admin.id`` claim issued by the admin
login, or the standard ``sub`` claim for Supabase-issued tokens.
"""

import logging
import os
from typing import Optional

from fastapi import HTTPException, Header
from jose import jwt, JWTError, ExpiredSignatureError

from app.db import supabase

logger = logging.getLogger(__name__)

# Loaded once at startup
JWT_SECRET: Optional[str] = (
    os.environ.get("JWT_SECRET") or os.environ.get("SUPABASE_JWT_SECRET") or None
)


def _extract_token(authorization: Optional[str], x_auth_token: Optional[str]) -> str:
    if authorization:
        parts = authorization.split(" ")
        if len(parts) != 2 or parts[0] != "Bearer":
            raise HTTPException(
                status_code=401,
                detail="Invalid authentication credentials"
            )
        return parts[1]

    if x_auth_token:
        return x_auth_token

    raise HTTPException(
        status_code=401,
        detail="Not authenticated"
    )


async def get_current_admin(
    authorization: Optional[str] = Header(None),
    x_auth_token: Optional[str] = Header(None),
) -> str:
    """
    Verify the request's token and return the admin id.

    Raises:
        HTTPException: 401 if the token is missing, invalid, or expired
    """
    token = _extract_token(authorization, x_auth_token)

    if JWT_SECRET:
        return _verify_jwt_locally(token)

    return await _verify_jwt_remotely(token)


def _verify_jwt_locally(token: str) -> str:
    """
    Verify an HS256 JWT with the shared secret and return the principal id.

    Raises:
        HTTPException 401 on any verification failure.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            options={"verify_aud": False},
        )
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    admin = payload.get("admin")
    principal = admin.get("id") if isinstance(admin, dict) else None
    principal = principal or payload.get("sub")
    if not principal:
        raise HTTPException(status_code=401, detail="Invalid token")

    return str(principal)


async def _verify_jwt_remotely(token: str) -> str:
    """
    Verify a token via the Supabase Auth API (used when no secret is set).

    Raises:
        HTTPException 401 on any verification failure.
    """
    try:
        response = supabase.auth.get_user(token)

        if not response.user:
            raise HTTPException(
                status_code=401,
                detail="Invalid token"
            )

        return response.user.id

    except HTTPException:
        raise
    except Exception as e:
        error_msg = str(e).lower()
        logger.info(f"Remote token verification failed: {e}")

        if "expired" in error_msg:
            raise HTTPException(
                status_code=401,
                detail="Token expired"
            )

        raise HTTPException(
            status_code=401,
            detail="Invalid token"
        )
