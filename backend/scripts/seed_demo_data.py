"""Seed a demo roster and six months of games.

Games go through the authoring service, so every seeded game obeys the same
rules as one submitted over the API. Re-running adds another batch of games
but never duplicates players.
"""
import argparse
import random
from datetime import date, timedelta

import sqlalchemy as sa

from app.db.session import SessionLocal
from app.services.game_authoring import GameMetadata, ResultEntry, submit_game

DEMO_PLAYERS = [
    ("Rahul Sharma", "rahul@example.com"),
    ("Priya Patel", "priya@example.com"),
    ("Arjun Singh", "arjun@example.com"),
    ("Sneha Gupta", "sneha@example.com"),
    ("Vikash Kumar", "vikash@example.com"),
    ("Anita Verma", "anita@example.com"),
    ("Rohan Mehta", "rohan@example.com"),
    ("Deepika Roy", "deepika@example.com"),
    ("Amit Joshi", "amit@example.com"),
    ("Kavya Nair", "kavya@example.com"),
]
DEMO_LOCATIONS = ["Rahul's House", "Community Center", "Priya's Place", "Office Break Room", "Arjun's Terrace"]


def _ensure_players(db) -> list[int]:
    for name, email in DEMO_PLAYERS:
        db.execute(sa.text("""
            INSERT INTO players (name, email)
            VALUES (:n, :e)
            ON CONFLICT (name) DO NOTHING
        """), {"n": name, "e": email})
    db.commit()
    ids_bp = sa.bindparam("names", expanding=True)
    return list(db.execute(
        sa.text("SELECT id FROM players WHERE name IN :names ORDER BY id").bindparams(ids_bp),
        {"names": [n for n, _ in DEMO_PLAYERS]},
    ).scalars().all())


def main():
    parser = argparse.ArgumentParser(description="Seed demo players and games")
    parser.add_argument("--games", type=int, default=40)
    parser.add_argument("--seed", type=int, default=7)
    args = parser.parse_args()

    rng = random.Random(args.seed)
    db = SessionLocal()
    try:
        player_ids = _ensure_players(db)
        start = date.today() - timedelta(days=180)
        for _ in range(args.games):
            table = rng.sample(player_ids, rng.randint(3, min(6, len(player_ids))))
            results = [ResultEntry(player_id=pid, position=pos) for pos, pid in enumerate(table, start=1)]
            meta = GameMetadata(
                date=start + timedelta(days=rng.randint(0, 180)),
                location=rng.choice(DEMO_LOCATIONS),
            )
            submit_game(db, meta, results)
        print(f"ok: seeded players={len(player_ids)} games={args.games}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
