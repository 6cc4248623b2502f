"""Persisted credential store for the deletion password.

The hash lives in ``deletion_credentials`` (a single row, created with the
configured default password on first use) and reset tokens live hashed in
``deletion_reset_tokens``. Nothing here touches players, games or results.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

import sqlalchemy as sa
import structlog
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import hash_password, now_utc, random_reset_token, token_hash, verify_password
from app.services.errors import CredentialError, ForbiddenError, InvalidArgument

logger = structlog.get_logger(__name__)

_BCRYPT_MAX_BYTES = 72


@dataclass
class IssuedResetToken:
    token: str
    email: str
    expires_at: datetime


def _current_hash(db: Session) -> str:
    row = db.execute(sa.text("""
        SELECT password_hash FROM deletion_credentials WHERE id=1
    """)).scalar_one_or_none()
    if row is not None:
        return row
    db.execute(sa.text("""
        INSERT INTO deletion_credentials (id, password_hash)
        VALUES (1, :h)
        ON CONFLICT (id) DO NOTHING
    """), {"h": hash_password(settings.DELETION_DEFAULT_PASSWORD)})
    db.commit()
    logger.warning("deletion_password_initialized_with_default")
    return db.execute(sa.text("SELECT password_hash FROM deletion_credentials WHERE id=1")).scalar_one()


def _store_hash(db: Session, new_password: str) -> None:
    if len(new_password) < settings.DELETION_PASSWORD_MIN_LENGTH:
        raise InvalidArgument(
            f"New password must be at least {settings.DELETION_PASSWORD_MIN_LENGTH} characters long"
        )
    # bcrypt only accepts up to 72 bytes of input
    if len(new_password.encode("utf-8")) > _BCRYPT_MAX_BYTES:
        raise InvalidArgument(f"New password must be at most {_BCRYPT_MAX_BYTES} bytes long")
    db.execute(sa.text("""
        UPDATE deletion_credentials
        SET password_hash=:h, updated_at=now()
        WHERE id=1
    """), {"h": hash_password(new_password)})


def verify_deletion_password(db: Session, password: str) -> bool:
    return verify_password(password, _current_hash(db))


def change_deletion_password(db: Session, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, _current_hash(db)):
        raise CredentialError("Current password is incorrect")
    _store_hash(db, new_password)
    db.commit()
    logger.info("deletion_password_changed")


def deletion_status(db: Session) -> tuple[bool, bool]:
    """(has_password, is_default)"""
    current = _current_hash(db)
    return True, verify_password(settings.DELETION_DEFAULT_PASSWORD, current)


def purge_expired_tokens(db: Session, now: datetime | None = None) -> int:
    return db.execute(sa.text("""
        DELETE FROM deletion_reset_tokens
        WHERE expires_at < :now OR consumed_at IS NOT NULL
    """), {"now": now or now_utc()}).rowcount


def request_reset(db: Session, email: str) -> IssuedResetToken:
    normalized = email.strip().lower()
    if normalized != settings.ADMIN_EMAIL.strip().lower():
        raise ForbiddenError("Password reset is only available for the configured admin email")

    token = random_reset_token()
    expires_at = now_utc() + timedelta(minutes=settings.RESET_TOKEN_TTL_MINUTES)
    purged = purge_expired_tokens(db)
    db.execute(sa.text("""
        INSERT INTO deletion_reset_tokens (token_hash, email, expires_at)
        VALUES (:h, :e, :x)
    """), {"h": token_hash(token), "e": normalized, "x": expires_at})
    db.commit()
    logger.info("deletion_reset_requested", expires_at=expires_at.isoformat(), purged=purged)
    return IssuedResetToken(token=token, email=normalized, expires_at=expires_at)


def reset_with_token(db: Session, token: str, new_password: str) -> None:
    row = db.execute(sa.text("""
        SELECT token_hash, expires_at, consumed_at
        FROM deletion_reset_tokens
        WHERE token_hash=:h
        FOR UPDATE
    """), {"h": token_hash(token)}).mappings().first()
    if not row or row["consumed_at"] is not None:
        db.rollback()
        raise InvalidArgument("Invalid or expired reset token")
    if row["expires_at"] < now_utc():
        db.execute(sa.text("DELETE FROM deletion_reset_tokens WHERE token_hash=:h"), {"h": row["token_hash"]})
        db.commit()
        raise InvalidArgument("Reset token has expired")

    _current_hash(db)
    _store_hash(db, new_password)
    db.execute(sa.text("""
        UPDATE deletion_reset_tokens SET consumed_at=now() WHERE token_hash=:h
    """), {"h": row["token_hash"]})
    db.commit()
    logger.info("deletion_password_reset")
