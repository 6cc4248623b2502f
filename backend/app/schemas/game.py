import datetime as dt

from pydantic import BaseModel, Field, field_validator


class GameResultIn(BaseModel):
    player_id: int = Field(..., ge=1)
    position: int = Field(..., ge=1)


class GameIn(BaseModel):
    # date defaults to today on create and to the stored date on update
    date: dt.date | None = None
    location: str | None = Field(default=None, max_length=255)
    game_type: str | None = Field(default=None, max_length=100)
    notes: str | None = None
    # emptiness is reported by the authoring rules, not here
    results: list[GameResultIn]

    @field_validator("date", "location", "game_type", "notes", mode="before")
    @classmethod
    def blank_is_absent(cls, v):
        if isinstance(v, str) and v.strip() == "":
            return None
        return v


class GameResultOut(BaseModel):
    player_id: int
    player_name: str
    position: int


class GameOut(BaseModel):
    id: int
    date: dt.date
    location: str | None
    game_type: str
    notes: str | None
    results: list[GameResultOut] = Field(default_factory=list)


class GamesPageOut(BaseModel):
    rows: list[GameOut]
    page: int
    limit: int
    total: int
    pages: int


class GameDeleteOut(BaseModel):
    ok: bool = True
    game_id: int
