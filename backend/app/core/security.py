import hashlib
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import jwt

from app.core.config import settings

ALGO = "HS256"
DELETION_TOKEN_TYPE = "deletion"

def now_utc() -> datetime:
    return datetime.now(timezone.utc)

def token_hash(token: str) -> str:
    # Reset tokens are stored peppered, never in clear
    raw = (settings.TOKEN_PEPPER + ":" + token).encode("utf-8")
    return hashlib.sha256(raw).hexdigest()

def random_reset_token() -> str:
    return secrets.token_hex(32)

def create_deletion_token() -> str:
    exp = now_utc() + timedelta(minutes=settings.DELETION_TOKEN_MINUTES)
    payload = {"sub": "deletion-guard", "type": DELETION_TOKEN_TYPE, "exp": exp}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=ALGO)

def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGO])

def hash_password(password: str) -> str:
    raw = password.encode("utf-8")
    return bcrypt.hashpw(raw, bcrypt.gensalt()).decode("utf-8")

def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False
