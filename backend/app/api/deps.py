from fastapi import Header, HTTPException
from jose import JWTError

from app.core.config import settings
from app.core.security import DELETION_TOKEN_TYPE, decode_token


def require_deletion_token(x_deletion_token: str | None = Header(default=None)) -> None:
    """Gate destructive routes behind a token from /auth/verify-deletion.

    Open unless DELETION_GUARD_ENABLED is set.
    """
    if not settings.DELETION_GUARD_ENABLED:
        return
    if not x_deletion_token:
        raise HTTPException(status_code=401, detail="Deletion token required")
    try:
        payload = decode_token(x_deletion_token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid deletion token")
    if payload.get("type") != DELETION_TOKEN_TYPE:
        raise HTTPException(status_code=401, detail="Invalid token type")
