from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Sequence

import sqlalchemy as sa
import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.services.errors import GameValidationError, NotFoundError, TransactionFailure

logger = structlog.get_logger(__name__)

RESULTS_REQUIRED = "results_required"
DUPLICATE_PLAYER = "duplicate_player"
UNKNOWN_PLAYER = "unknown_player"
POSITIONS_NOT_CONTIGUOUS = "positions_not_contiguous"


@dataclass(frozen=True)
class ResultEntry:
    player_id: int
    position: int


@dataclass(frozen=True)
class GameMetadata:
    date: date | None = None
    location: str | None = None
    game_type: str | None = None
    notes: str | None = None


def check_results_present(entries: Sequence[ResultEntry]) -> None:
    if not entries:
        raise GameValidationError(RESULTS_REQUIRED, "At least one result is required")


def check_unique_players(entries: Sequence[ResultEntry]) -> None:
    seen: set[int] = set()
    for e in entries:
        if e.player_id in seen:
            raise GameValidationError(DUPLICATE_PLAYER, f"Player {e.player_id} is listed more than once")
        seen.add(e.player_id)


def check_players_exist(entries: Sequence[ResultEntry], known_player_ids: set[int]) -> None:
    missing = sorted({e.player_id for e in entries} - known_player_ids)
    if missing:
        raise GameValidationError(UNKNOWN_PLAYER, f"Some players do not exist: {missing}")


def check_positions(entries: Sequence[ResultEntry]) -> None:
    positions = sorted(e.position for e in entries)
    if positions != list(range(1, len(entries) + 1)):
        raise GameValidationError(
            POSITIONS_NOT_CONTIGUOUS,
            "Positions must be unique and sequential starting from 1",
        )


def validate_game_results(entries: Sequence[ResultEntry], known_player_ids: set[int]) -> None:
    """Run every authoring rule in order, raising on the first violation."""
    check_results_present(entries)
    check_unique_players(entries)
    check_players_exist(entries, known_player_ids)
    check_positions(entries)


def _known_player_ids(db: Session, player_ids: list[int]) -> set[int]:
    ids_bp = sa.bindparam("ids", expanding=True)
    rows = db.execute(
        sa.text("SELECT id FROM players WHERE id IN :ids").bindparams(ids_bp),
        {"ids": player_ids},
    ).scalars().all()
    return {int(r) for r in rows}


def _validate_against_store(db: Session, entries: Sequence[ResultEntry]) -> None:
    check_results_present(entries)
    check_unique_players(entries)
    # the store-free checks run first so bad input never costs a query
    known = _known_player_ids(db, [e.player_id for e in entries])
    validate_game_results(entries, known)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    out = value.strip()
    return out or None


def _insert_results(db: Session, game_id: int, entries: Iterable[ResultEntry]) -> None:
    db.execute(
        sa.text("""
            INSERT INTO player_game_results (player_id, game_id, position)
            VALUES (:p, :g, :pos)
        """),
        [{"p": e.player_id, "g": game_id, "pos": e.position} for e in entries],
    )


def submit_game(db: Session, meta: GameMetadata, results: Iterable[ResultEntry]) -> int:
    """Validate and store a game with all its results in one transaction."""
    entries = list(results)
    try:
        _validate_against_store(db, entries)
    except GameValidationError as exc:
        db.rollback()
        logger.info("game_rejected", reason=exc.reason, participants=len(entries))
        raise

    try:
        game_id = db.execute(sa.text("""
            INSERT INTO games (date, location, game_type, notes)
            VALUES (:d, :loc, :gt, :notes)
            RETURNING id
        """), {
            "d": meta.date or date.today(),
            "loc": _clean(meta.location),
            "gt": _clean(meta.game_type) or settings.DEFAULT_GAME_TYPE,
            "notes": _clean(meta.notes),
        }).scalar_one()
        _insert_results(db, game_id, entries)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("game_create_failed", error=str(exc))
        raise TransactionFailure("Failed to create game") from exc

    logger.info("game_created", game_id=game_id, participants=len(entries))
    return int(game_id)


def replace_game_results(db: Session, game_id: int, meta: GameMetadata, results: Iterable[ResultEntry]) -> int:
    """Update a game's metadata and swap its whole result set atomically."""
    entries = list(results)
    existing = db.execute(sa.text("""
        SELECT id, date
        FROM games
        WHERE id=:g
        FOR UPDATE
    """), {"g": game_id}).mappings().first()
    if not existing:
        db.rollback()
        raise NotFoundError("Game", game_id)

    try:
        _validate_against_store(db, entries)
    except GameValidationError as exc:
        db.rollback()
        logger.info("game_update_rejected", game_id=game_id, reason=exc.reason)
        raise

    try:
        db.execute(sa.text("""
            UPDATE games
            SET date=:d, location=:loc, game_type=:gt, notes=:notes, updated_at=now()
            WHERE id=:g
        """), {
            "d": meta.date or existing["date"],
            "loc": _clean(meta.location),
            "gt": _clean(meta.game_type) or settings.DEFAULT_GAME_TYPE,
            "notes": _clean(meta.notes),
            "g": game_id,
        })
        db.execute(sa.text("DELETE FROM player_game_results WHERE game_id=:g"), {"g": game_id})
        _insert_results(db, game_id, entries)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("game_update_failed", game_id=game_id, error=str(exc))
        raise TransactionFailure("Failed to update game") from exc

    logger.info("game_updated", game_id=game_id, participants=len(entries))
    return game_id


def delete_game(db: Session, game_id: int) -> None:
    deleted = db.execute(sa.text("DELETE FROM games WHERE id=:g RETURNING id"), {"g": game_id}).first()
    if not deleted:
        db.rollback()
        raise NotFoundError("Game", game_id)
    db.commit()
    logger.info("game_deleted", game_id=game_id)


def delete_player(db: Session, player_id: int) -> int:
    """Delete a player; their result facts go with them. Returns facts removed."""
    facts = db.execute(sa.text("""
        SELECT count(*) FROM player_game_results WHERE player_id=:p
    """), {"p": player_id}).scalar_one()
    deleted = db.execute(sa.text("DELETE FROM players WHERE id=:p RETURNING id"), {"p": player_id}).first()
    if not deleted:
        db.rollback()
        raise NotFoundError("Player", player_id)
    db.commit()
    logger.info("player_deleted", player_id=player_id, results_removed=int(facts))
    return int(facts)
