"""
Identity provider adapter.

Identities are opaque strings. A session presents one as
``Authorization: Bearer <identity>``; anonymous sessions mint a fresh one
via POST /auth/anonymous. No cryptographic verification happens here.
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import Depends, HTTPException
from fastapi.security import APIKeyHeader

from app.core.ids import anonymous_identity

log = structlog.get_logger()

api_key_header = APIKeyHeader(name="Authorization", auto_error=False)

BEARER_PREFIX = "Bearer "


def parse_bearer(header: Optional[str]) -> Optional[str]:
    """Extract the identity from a Bearer header; None if absent or malformed."""
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    identity = header[len(BEARER_PREFIX):].strip()
    return identity or None


async def get_identity(authorization: Optional[str] = Depends(api_key_header)) -> str:
    """FastAPI dependency yielding the caller's identity id."""
    identity = parse_bearer(authorization)
    if identity is None:
        raise HTTPException(status_code=401, detail="Missing or malformed identity token")
    return identity


def sign_in_anonymously() -> str:
    identity = anonymous_identity()
    log.info("auth.anonymous_sign_in", identity=identity)
    return identity
