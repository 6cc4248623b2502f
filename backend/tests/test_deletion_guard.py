from datetime import timedelta

import pytest
from fastapi import HTTPException
from jose import jwt

from app.api.deps import require_deletion_token
from app.core.config import settings
from app.core.security import (
    ALGO,
    create_deletion_token,
    decode_token,
    hash_password,
    now_utc,
    random_reset_token,
    token_hash,
    verify_password,
)
from app.services import deletion_guard
from app.services.errors import InvalidArgument
from app.services.mailer import render_reset_email, reset_link


def test_password_hash_round_trip():
    h = hash_password("admin123")
    assert verify_password("admin123", h)
    assert not verify_password("admin124", h)


def test_verify_password_with_garbage_hash_is_false():
    assert verify_password("admin123", "not-a-bcrypt-hash") is False


def test_reset_tokens_are_random_and_stored_hashed():
    a, b = random_reset_token(), random_reset_token()
    assert a != b
    assert len(a) == 64
    assert token_hash(a) == token_hash(a)
    assert token_hash(a) != a


def test_deletion_token_carries_type():
    payload = decode_token(create_deletion_token())
    assert payload["type"] == "deletion"


def test_guard_is_open_when_disabled(monkeypatch):
    monkeypatch.setattr(settings, "DELETION_GUARD_ENABLED", False)
    assert require_deletion_token(None) is None


def test_guard_requires_header_when_enabled(monkeypatch):
    monkeypatch.setattr(settings, "DELETION_GUARD_ENABLED", True)
    with pytest.raises(HTTPException) as exc:
        require_deletion_token(None)
    assert exc.value.status_code == 401


def test_guard_accepts_deletion_token(monkeypatch):
    monkeypatch.setattr(settings, "DELETION_GUARD_ENABLED", True)
    assert require_deletion_token(create_deletion_token()) is None


@pytest.mark.parametrize(
    "payload",
    [
        {"sub": "deletion-guard", "type": "access"},
        {"sub": "deletion-guard", "type": "deletion", "exp": now_utc() - timedelta(minutes=1)},
    ],
)
def test_guard_rejects_wrong_or_expired_tokens(monkeypatch, payload):
    monkeypatch.setattr(settings, "DELETION_GUARD_ENABLED", True)
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=ALGO)
    with pytest.raises(HTTPException) as exc:
        require_deletion_token(token)
    assert exc.value.status_code == 401


def test_reset_email_links_to_frontend(monkeypatch):
    monkeypatch.setattr(settings, "FRONTEND_URL", "https://patti.example.com/")
    assert reset_link("abc") == "https://patti.example.com/reset-deletion-password?token=abc"

    subject, html, text = render_reset_email("abc")
    assert "Password Reset" in subject
    assert "token=abc" in html
    assert f"{settings.RESET_TOKEN_TTL_MINUTES} minutes" in text


class _CredentialStore:
    def __init__(self, password: str):
        self.hash = hash_password(password)
        self.statements: list[str] = []
        self.commits = 0

    def execute(self, stmt, params=None):
        self.statements.append(" ".join(str(stmt).split()))
        return self

    def scalar_one_or_none(self):
        return self.hash

    def commit(self):
        self.commits += 1


def test_password_over_bcrypt_limit_is_rejected_before_hashing():
    db = _CredentialStore("admin123")
    # 40 two-byte characters pass the length cap but not bcrypt's
    with pytest.raises(InvalidArgument):
        deletion_guard.change_deletion_password(db, "admin123", "é" * 40)
    assert not any(s.startswith("UPDATE") for s in db.statements)
    assert db.commits == 0


def test_password_at_bcrypt_limit_is_stored():
    db = _CredentialStore("admin123")
    deletion_guard.change_deletion_password(db, "admin123", "x" * 72)
    assert any(s.startswith("UPDATE deletion_credentials") for s in db.statements)
    assert db.commits == 1
