from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.schemas.analytics import GameScoresOut, OverviewOut, PlayerAnalyticsOut, ScoreProgressionOut, TrendsOut
from app.schemas.ranking import LeaderboardOut
from app.services import analytics
from app.services.errors import InvalidArgument, NotFoundError

router = APIRouter()


@router.get("/leaderboard", response_model=LeaderboardOut)
def leaderboard(
    timeframe: str | None = Query(default=None, description="7days|30days|90days|6months|1year|lifetime"),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_order: str | None = Query(default=None, alias="sortOrder"),
    sort_by_snake: str | None = Query(default=None, alias="sort_by", include_in_schema=False),
    sort_order_snake: str | None = Query(default=None, alias="sort_order", include_in_schema=False),
    limit: int = Query(default=settings.LEADERBOARD_DEFAULT_LIMIT, ge=1, le=settings.LEADERBOARD_MAX_LIMIT),
    db: Session = Depends(get_db),
):
    try:
        return analytics.get_leaderboard(
            db,
            timeframe=timeframe,
            sort_by=sort_by_snake if sort_by_snake is not None else sort_by,
            sort_order=sort_order_snake if sort_order_snake is not None else sort_order,
            limit=limit,
        )
    except InvalidArgument as e:
        raise HTTPException(400, str(e))


@router.get("/player/{player_id}", response_model=PlayerAnalyticsOut)
def player_analytics(
    player_id: int,
    timeframe: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    try:
        return analytics.get_player_analytics(db, player_id, timeframe=timeframe)
    except InvalidArgument as e:
        raise HTTPException(400, str(e))
    except NotFoundError as e:
        raise HTTPException(404, str(e))


@router.get("/player/{player_id}/score-progression", response_model=ScoreProgressionOut)
def player_score_progression(player_id: int, db: Session = Depends(get_db)):
    try:
        return analytics.get_score_progression(db, player_id)
    except NotFoundError as e:
        raise HTTPException(404, str(e))


@router.get("/game/{game_id}/scores", response_model=GameScoresOut)
def game_scores(game_id: int, db: Session = Depends(get_db)):
    try:
        return analytics.get_cumulative_scores_as_of(db, game_id)
    except NotFoundError as e:
        raise HTTPException(404, str(e))


@router.get("/overview", response_model=OverviewOut)
def overview(timeframe: str | None = Query(default=None), db: Session = Depends(get_db)):
    try:
        return analytics.get_overview(db, timeframe=timeframe)
    except InvalidArgument as e:
        raise HTTPException(400, str(e))


@router.get("/trends", response_model=TrendsOut)
def trends(
    period: str | None = Query(default=None, description="daily|weekly|monthly"),
    limit: int = Query(default=12, ge=1, le=analytics.TRENDS_MAX_LIMIT),
    db: Session = Depends(get_db),
):
    try:
        return analytics.get_trends(db, period=period, limit=limit)
    except InvalidArgument as e:
        raise HTTPException(400, str(e))
