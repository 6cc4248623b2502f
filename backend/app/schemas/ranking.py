import datetime as dt

from pydantic import BaseModel

class LeaderboardRow(BaseModel):
    id: int
    name: str
    avatar_url: str | None = None
    total_games: int
    games_won: int
    win_rate: float
    avg_position: float | None
    best_position: int | None
    worst_position: int | None
    last_game_date: dt.date | None
    ranking_score: float

class LeaderboardOut(BaseModel):
    timeframe: str
    sort_by: str
    sort_order: str
    total_unique_games: int
    rows: list[LeaderboardRow]
