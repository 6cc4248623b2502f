import math

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import sqlalchemy as sa

from app.api.deps import require_deletion_token
from app.core.config import settings
from app.db.session import get_db
from app.schemas.game import GameDeleteOut, GameIn, GameOut, GameResultOut, GamesPageOut
from app.services.errors import GameValidationError, NotFoundError, TransactionFailure
from app.services.game_authoring import (
    GameMetadata,
    ResultEntry,
    delete_game,
    replace_game_results,
    submit_game,
)

router = APIRouter()


def _game_out(row) -> GameOut:
    results = [GameResultOut(**r) for r in (row["results"] or []) if r.get("player_id") is not None]
    return GameOut(
        id=row["id"],
        date=row["date"],
        location=row["location"],
        game_type=row["game_type"],
        notes=row["notes"],
        results=results,
    )


def _load_game(db: Session, game_id: int) -> GameOut:
    row = db.execute(sa.text("""
        SELECT id, date, location, game_type, notes, results
        FROM recent_games
        WHERE id=:g
    """), {"g": game_id}).mappings().first()
    if not row:
        raise HTTPException(404, "Game not found")
    return _game_out(row)


def _split_payload(payload: GameIn) -> tuple[GameMetadata, list[ResultEntry]]:
    meta = GameMetadata(
        date=payload.date,
        location=payload.location,
        game_type=payload.game_type,
        notes=payload.notes,
    )
    return meta, [ResultEntry(player_id=r.player_id, position=r.position) for r in payload.results]


@router.get("", response_model=GamesPageOut)
def list_games(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=settings.GAMES_PAGE_MAX_LIMIT),
    db: Session = Depends(get_db),
):
    total = int(db.execute(sa.text("SELECT count(*) FROM games")).scalar_one())
    rows = db.execute(sa.text("""
        SELECT id, date, location, game_type, notes, results
        FROM recent_games
        ORDER BY date DESC, id DESC
        LIMIT :limit OFFSET :offset
    """), {"limit": limit, "offset": (page - 1) * limit}).mappings().all()
    return GamesPageOut(
        rows=[_game_out(r) for r in rows],
        page=page,
        limit=limit,
        total=total,
        pages=math.ceil(total / limit),
    )


@router.get("/{game_id}", response_model=GameOut)
def get_game(game_id: int, db: Session = Depends(get_db)):
    return _load_game(db, game_id)


@router.post("", response_model=GameOut, status_code=201)
def create_game(payload: GameIn, db: Session = Depends(get_db)):
    meta, entries = _split_payload(payload)
    try:
        game_id = submit_game(db, meta, entries)
    except GameValidationError as e:
        raise HTTPException(400, e.as_detail())
    except TransactionFailure as e:
        raise HTTPException(500, str(e))
    return _load_game(db, game_id)


@router.put("/{game_id}", response_model=GameOut)
def update_game(game_id: int, payload: GameIn, db: Session = Depends(get_db)):
    meta, entries = _split_payload(payload)
    try:
        replace_game_results(db, game_id, meta, entries)
    except NotFoundError as e:
        raise HTTPException(404, str(e))
    except GameValidationError as e:
        raise HTTPException(400, e.as_detail())
    except TransactionFailure as e:
        raise HTTPException(500, str(e))
    return _load_game(db, game_id)


@router.delete("/{game_id}", response_model=GameDeleteOut, dependencies=[Depends(require_deletion_token)])
def remove_game(game_id: int, db: Session = Depends(get_db)):
    try:
        delete_game(db, game_id)
    except NotFoundError as e:
        raise HTTPException(404, str(e))
    return GameDeleteOut(game_id=game_id)
