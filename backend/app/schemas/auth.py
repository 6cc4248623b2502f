from pydantic import BaseModel, Field, field_validator

from app.schemas.player import looks_like_email


class VerifyDeletionIn(BaseModel):
    password: str | None = None


class VerifyDeletionOut(BaseModel):
    authorized: bool = True
    deletion_token: str
    expires_in: int


class ChangeDeletionPasswordIn(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., max_length=128)


class PasswordResetRequestIn(BaseModel):
    email: str = Field(..., max_length=255, examples=["admin@example.com"])

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        if not looks_like_email(v):
            raise ValueError("Invalid email")
        return v.strip()


class PasswordResetRequestOut(BaseModel):
    ok: bool = True
    message: str
    dev_token: str | None = None


class PasswordResetConfirmIn(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., max_length=128)


class DeletionStatusOut(BaseModel):
    has_password: bool
    is_default: bool


class SimpleOKOut(BaseModel):
    ok: bool = True
    message: str | None = None
