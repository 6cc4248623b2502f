import datetime as dt

from pydantic import BaseModel, Field


class ScoreBreakdownOut(BaseModel):
    first_place_finishes: int = 0
    second_place_finishes: int = 0
    third_place_finishes: int = 0
    fourth_place_finishes: int = 0
    points: int = 0
    consistency_bonus: float = 0.0


class PlayerAggregateOut(BaseModel):
    total_games: int
    games_won: int
    win_rate: float
    avg_position: float | None
    best_position: int | None
    worst_position: int | None
    last_game_date: dt.date | None
    ranking_score: float
    score_breakdown: ScoreBreakdownOut


class MonthlyStatOut(BaseModel):
    month: str
    games_played: int
    games_won: int
    avg_position: float
    best_position: int


class PositionShareOut(BaseModel):
    position: int
    count: int
    percentage: float


class RecentResultOut(BaseModel):
    date: dt.date
    position: int
    game_id: int


class PerformanceTrendOut(BaseModel):
    period: str
    avg_position: float
    games_count: int
    wins_count: int


class PlayerAnalyticsOut(BaseModel):
    player_id: int
    player_name: str
    timeframe: str
    summary: PlayerAggregateOut
    monthly_stats: list[MonthlyStatOut] = Field(default_factory=list)
    position_distribution: list[PositionShareOut] = Field(default_factory=list)
    recent_performance: list[RecentResultOut] = Field(default_factory=list)
    performance_trends: list[PerformanceTrendOut] = Field(default_factory=list)


class ProgressionPointOut(BaseModel):
    game_id: int
    date: dt.date
    position: int
    cumulative_score: float
    cumulative: PlayerAggregateOut


class ScoreProgressionOut(BaseModel):
    player_id: int
    player_name: str
    score_progression: list[ProgressionPointOut]


class PlayerScoreAsOfOut(BaseModel):
    player_id: int
    player_name: str
    current_position: int
    cumulative_score: float
    total_games: int
    games_won: int
    win_rate: float
    avg_position: float | None
    score_breakdown: ScoreBreakdownOut


class GameScoresOut(BaseModel):
    game_id: int
    game_date: dt.date
    player_scores: list[PlayerScoreAsOfOut]


class OverviewTotalsOut(BaseModel):
    total_players: int
    total_games: int
    avg_position: float | None
    first_game_date: dt.date | None
    last_game_date: dt.date | None


class MonthlyGamesOut(BaseModel):
    month: str
    games_count: int


class ActivePlayerOut(BaseModel):
    name: str
    games_played: int


class TopPerformerOut(BaseModel):
    name: str
    games_played: int
    wins: int
    avg_position: float
    win_rate: float


class OverviewOut(BaseModel):
    timeframe: str
    total_stats: OverviewTotalsOut
    monthly_games: list[MonthlyGamesOut]
    avg_players_per_game: float
    most_active_players: list[ActivePlayerOut]
    top_performers: list[TopPerformerOut]


class TrendPointOut(BaseModel):
    period: str
    games_count: int
    total_results: int
    avg_position: float | None
    unique_players: int
    total_wins: int


class TrendsOut(BaseModel):
    period: str
    limit: int
    rows: list[TrendPointOut]
