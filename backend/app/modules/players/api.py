from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import sqlalchemy as sa

from app.api.deps import require_deletion_token
from app.db.session import get_db
from app.schemas.player import PlayerCreateIn, PlayerDeleteOut, PlayerOut, PlayerUpdateIn
from app.services.errors import NotFoundError
from app.services.game_authoring import delete_player

router = APIRouter()

_PLAYER_COLUMNS = "id, name, email, avatar_url, created_at, updated_at"


def _get_player_row(db: Session, player_id: int):
    row = db.execute(sa.text(f"""
        SELECT {_PLAYER_COLUMNS}
        FROM players
        WHERE id=:p
    """), {"p": player_id}).mappings().first()
    if not row:
        raise HTTPException(404, "Player not found")
    return row


def _duplicate_conflict(db: Session, exc: IntegrityError) -> HTTPException:
    db.rollback()
    msg = str(exc.orig) if exc.orig is not None else str(exc)
    if "email" in msg:
        return HTTPException(409, "A player with this email already exists")
    return HTTPException(409, "A player with this name already exists")


@router.get("", response_model=list[PlayerOut])
def list_players(db: Session = Depends(get_db)):
    rows = db.execute(sa.text(f"""
        SELECT {_PLAYER_COLUMNS}
        FROM players
        ORDER BY name ASC
    """)).mappings().all()
    return [PlayerOut(**r) for r in rows]


@router.get("/{player_id}", response_model=PlayerOut)
def get_player(player_id: int, db: Session = Depends(get_db)):
    return PlayerOut(**_get_player_row(db, player_id))


@router.post("", response_model=PlayerOut, status_code=201)
def create_player(payload: PlayerCreateIn, db: Session = Depends(get_db)):
    try:
        row = db.execute(sa.text(f"""
            INSERT INTO players (name, email, avatar_url)
            VALUES (:n, :e, :a)
            RETURNING {_PLAYER_COLUMNS}
        """), {"n": payload.name, "e": payload.email, "a": payload.avatar_url}).mappings().one()
        db.commit()
    except IntegrityError as exc:
        raise _duplicate_conflict(db, exc)
    return PlayerOut(**row)


@router.put("/{player_id}", response_model=PlayerOut)
def update_player(player_id: int, payload: PlayerUpdateIn, db: Session = Depends(get_db)):
    _get_player_row(db, player_id)

    sets = ["updated_at=now()"]
    params: dict[str, object] = {"p": player_id}
    fields = payload.model_dump(exclude_unset=True)
    for column in ("name", "email", "avatar_url"):
        if column in fields:
            if column == "name" and fields[column] is None:
                continue
            sets.append(f"{column}=:{column}")
            params[column] = fields[column]

    try:
        row = db.execute(sa.text(f"""
            UPDATE players
            SET {", ".join(sets)}
            WHERE id=:p
            RETURNING {_PLAYER_COLUMNS}
        """), params).mappings().one()
        db.commit()
    except IntegrityError as exc:
        raise _duplicate_conflict(db, exc)
    return PlayerOut(**row)


@router.delete("/{player_id}", response_model=PlayerDeleteOut, dependencies=[Depends(require_deletion_token)])
def remove_player(player_id: int, db: Session = Depends(get_db)):
    try:
        removed = delete_player(db, player_id)
    except NotFoundError as e:
        raise HTTPException(404, str(e))
    return PlayerDeleteOut(player_id=player_id, results_removed=removed)
