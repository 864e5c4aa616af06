"""
Identity endpoints.

POST /auth/anonymous  — Mint an anonymous identity for this session
"""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from app.core.auth import sign_in_anonymously

router = APIRouter()


class IdentityResponse(BaseModel):
    identity_id: str
    token_type: str = "bearer"


@router.post("/anonymous", response_model=IdentityResponse, status_code=201)
async def anonymous_sign_in():
    """Issue a fresh opaque identity; present it as a Bearer token afterwards."""
    return IdentityResponse(identity_id=sign_in_anonymously())
