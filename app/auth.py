import logging
from dataclasses import dataclass, field

from fastapi import Depends, Header
from supabase import Client

from app.database import get_supabase
from app.errors import Unauthenticated

logger = logging.getLogger("uvicorn.error")


@dataclass
class AuthUser:
    id: str
    email: str = ""
    metadata: dict = field(default_factory=dict)


async def get_current_user(
    authorization: str = Header(None, description="Bearer token"),
    supabase: Client = Depends(get_supabase),
) -> AuthUser:
    """Extract and verify user from the Supabase JWT"""
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthenticated("Missing or malformed authorization header")

    token = authorization.replace("Bearer ", "", 1)

    try:
        response = supabase.auth.get_user(token)
    except Exception as e:
        logger.warning("Token verification failed: %s", e)
        raise Unauthenticated("Token verification failed") from e

    if not response or not response.user:
        raise Unauthenticated("Invalid or expired token")

    user = response.user
    return AuthUser(
        id=str(user.id),
        email=user.email or "",
        metadata=dict(user.user_metadata or {}),
    )
