from __future__ import annotations

import os

import pytest

from tests.testkit import ApiError

CURRENT_PASSWORD = os.getenv("TEST_DELETION_PASSWORD", "admin123")
ADMIN_EMAIL = os.getenv("TEST_ADMIN_EMAIL", "admin@example.com")


def test_verify_deletion_password(api):
    out = api.call("POST", "/api/auth/verify-deletion", body={"password": CURRENT_PASSWORD})
    assert out["authorized"] is True
    assert out["deletion_token"]

    with pytest.raises(ApiError) as exc:
        api.call("POST", "/api/auth/verify-deletion", body={"password": CURRENT_PASSWORD + "x"})
    assert exc.value.status_code == 401

    with pytest.raises(ApiError) as exc:
        api.call("POST", "/api/auth/verify-deletion", body={})
    assert exc.value.status_code == 400


def test_deletion_status(api):
    status = api.call("GET", "/api/auth/deletion-status")
    assert status["has_password"] is True
    assert isinstance(status["is_default"], bool)


def test_change_password_round_trip(api):
    temp = CURRENT_PASSWORD + "_tmp"
    api.call("POST", "/api/auth/change-deletion-password", body={
        "current_password": CURRENT_PASSWORD,
        "new_password": temp,
    })
    try:
        api.call("POST", "/api/auth/verify-deletion", body={"password": temp})
        with pytest.raises(ApiError) as exc:
            api.call("POST", "/api/auth/verify-deletion", body={"password": CURRENT_PASSWORD})
        assert exc.value.status_code == 401
    finally:
        api.call("POST", "/api/auth/change-deletion-password", body={
            "current_password": temp,
            "new_password": CURRENT_PASSWORD,
        })


def test_change_password_checks_current_and_length(api):
    with pytest.raises(ApiError) as exc:
        api.call("POST", "/api/auth/change-deletion-password", body={
            "current_password": "wrong-password",
            "new_password": "whatever123",
        })
    assert exc.value.status_code == 401

    with pytest.raises(ApiError) as exc:
        api.call("POST", "/api/auth/change-deletion-password", body={
            "current_password": CURRENT_PASSWORD,
            "new_password": "abc",
        })
    assert exc.value.status_code == 400


def test_reset_only_for_admin_email(api):
    with pytest.raises(ApiError) as exc:
        api.call("POST", "/api/auth/request-password-reset", body={"email": "someone@example.com"})
    assert exc.value.status_code == 403


def test_reset_token_is_single_use(api):
    out = api.call("POST", "/api/auth/request-password-reset", body={"email": ADMIN_EMAIL.upper()})
    token = out.get("dev_token")
    if not token:
        pytest.skip("No dev_token returned; run the API with ENV=dev.")

    api.call("POST", "/api/auth/reset-deletion-password", body={"token": token, "new_password": CURRENT_PASSWORD})
    with pytest.raises(ApiError) as exc:
        api.call("POST", "/api/auth/reset-deletion-password", body={"token": token, "new_password": CURRENT_PASSWORD})
    assert exc.value.status_code == 400

    assert api.call("POST", "/api/auth/verify-deletion", body={"password": CURRENT_PASSWORD})["authorized"] is True


def test_unknown_reset_token_is_rejected(api):
    with pytest.raises(ApiError) as exc:
        api.call("POST", "/api/auth/reset-deletion-password", body={"token": "deadbeef", "new_password": "secret99"})
    assert exc.value.status_code == 400
