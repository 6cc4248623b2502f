from datetime import datetime

from pydantic import BaseModel, Field, field_validator


def looks_like_email(value: str) -> bool:
    v = value.strip()
    return "@" in v and "." in v.split("@")[-1]


def _blank_to_none(v):
    if isinstance(v, str) and v.strip() == "":
        return None
    return v


class _PlayerFields(BaseModel):
    email: str | None = Field(default=None, max_length=255, examples=["rahul@example.com"])
    avatar_url: str | None = Field(default=None, max_length=500)

    @field_validator("email", "avatar_url", mode="before")
    @classmethod
    def optional_blank(cls, v):
        return _blank_to_none(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not looks_like_email(v):
            raise ValueError("Invalid email")
        return v.strip()

    @field_validator("avatar_url")
    @classmethod
    def validate_avatar_url(cls, v: str | None) -> str | None:
        if v is None:
            return v
        out = v.strip()
        if not (out.startswith("http://") or out.startswith("https://")):
            raise ValueError("Invalid URL")
        return out


class PlayerCreateIn(_PlayerFields):
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        out = v.strip()
        if not out:
            raise ValueError("Name is required")
        return out


class PlayerUpdateIn(_PlayerFields):
    name: str | None = Field(default=None, min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        out = v.strip()
        if not out:
            raise ValueError("Name is required")
        return out


class PlayerOut(BaseModel):
    id: int
    name: str
    email: str | None
    avatar_url: str | None
    created_at: datetime
    updated_at: datetime


class PlayerDeleteOut(BaseModel):
    ok: bool = True
    player_id: int
    results_removed: int
