"""Ranking engine.

Folds result facts (player x game -> finishing position) into per-player
aggregates and the composite ranking score:

    points            = 10*#1st + 5*#2nd + 3*#3rd + 1*#4th
    consistency_bonus = (10 - max(avg_position, 1)) * total_games / 10
    ranking_score     = points + consistency_bonus

Everything here is a pure function of its inputs. Database access and the
decoding of driver values into ``int``/``float``/``date`` live in
``app.services.analytics``.
"""
from __future__ import annotations

from bisect import bisect_right
from calendar import monthrange
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Sequence

from app.services.errors import InvalidArgument

POSITION_POINTS = {1: 10, 2: 5, 3: 3, 4: 1}
CONSISTENCY_BASE = 10
SCORE_DECIMALS = 2

SORTABLE_FIELDS = (
    "ranking_score",
    "games_won",
    "win_rate",
    "total_games",
    "avg_position",
    "best_position",
    "name",
)
SORT_ORDERS = ("ASC", "DESC")

# (field, descending) applied after the requested sort key
_DEFAULT_ORDER = (
    ("ranking_score", True),
    ("games_won", True),
    ("win_rate", True),
    ("avg_position", False),
    ("name", False),
)


class Timeframe(str, Enum):
    DAYS_7 = "7days"
    DAYS_30 = "30days"
    DAYS_90 = "90days"
    MONTHS_6 = "6months"
    YEAR_1 = "1year"
    LIFETIME = "lifetime"


# token -> (days, months); lifetime has no window
_TIMEFRAME_WINDOWS: dict[Timeframe, tuple[int, int] | None] = {
    Timeframe.DAYS_7: (7, 0),
    Timeframe.DAYS_30: (30, 0),
    Timeframe.DAYS_90: (90, 0),
    Timeframe.MONTHS_6: (0, 6),
    Timeframe.YEAR_1: (0, 12),
    Timeframe.LIFETIME: None,
}


@dataclass(frozen=True)
class ResultFact:
    player_id: int
    game_id: int
    game_date: date
    position: int


@dataclass(frozen=True)
class PlayerRef:
    id: int
    name: str
    avatar_url: str | None = None


@dataclass
class PlayerStats:
    total_games: int = 0
    games_won: int = 0
    win_rate: float = 0.0
    avg_position: float | None = None
    best_position: int | None = None
    worst_position: int | None = None
    last_game_date: date | None = None
    finishes: dict[int, int] = field(default_factory=dict)
    points: int = 0
    consistency_bonus: float = 0.0
    ranking_score: float = 0.0

    def finish_count(self, position: int) -> int:
        return self.finishes.get(position, 0)


@dataclass
class LeaderboardEntry:
    id: int
    name: str
    avatar_url: str | None
    stats: PlayerStats

    def sort_value(self, key: str):
        if key == "name":
            return self.name
        return getattr(self.stats, key)


@dataclass
class ProgressionPoint:
    game_id: int
    game_date: date
    position: int
    stats: PlayerStats


def shift_months(d: date, months: int) -> date:
    """Move ``d`` back by ``months`` calendar months, clamping the day."""
    idx = d.year * 12 + (d.month - 1) - months
    year, month = divmod(idx, 12)
    month += 1
    day = min(d.day, monthrange(year, month)[1])
    return date(year, month, day)


def parse_timeframe(raw: str | None) -> Timeframe:
    if raw is None or raw.strip() == "":
        return Timeframe.LIFETIME
    try:
        return Timeframe(raw.strip().lower())
    except ValueError:
        valid = "|".join(t.value for t in Timeframe)
        raise InvalidArgument(f"timeframe must be one of {valid}")


def timeframe_cutoff(timeframe: Timeframe, today: date) -> date | None:
    """First calendar day included by ``timeframe``, or None for lifetime."""
    window = _TIMEFRAME_WINDOWS[timeframe]
    if window is None:
        return None
    days, months = window
    if months:
        return shift_months(today, months)
    return today - timedelta(days=days)


def normalize_sort(sort_by: str | None, sort_order: str | None) -> tuple[str, bool]:
    """Validate a sort request against the whitelist. Returns (field, descending)."""
    key = (sort_by or "").strip() or "ranking_score"
    if key not in SORTABLE_FIELDS:
        raise InvalidArgument("Invalid sort column")
    order = (sort_order or "").strip().upper() or "DESC"
    if order not in SORT_ORDERS:
        raise InvalidArgument("Invalid sort order")
    return key, order == "DESC"


def _round(value: float) -> float:
    return round(value, SCORE_DECIMALS)


def consistency_bonus(avg_position: float, total_games: int) -> float:
    # average is floored at 1 before the bonus is taken
    return (CONSISTENCY_BASE - max(avg_position, 1)) * total_games / 10


def aggregate(facts: Iterable[ResultFact]) -> PlayerStats:
    """Fold one player's facts into their aggregate statistics."""
    positions: list[int] = []
    last_date: date | None = None
    finishes: dict[int, int] = defaultdict(int)
    for f in facts:
        positions.append(f.position)
        finishes[f.position] += 1
        if last_date is None or f.game_date > last_date:
            last_date = f.game_date

    total = len(positions)
    if total == 0:
        return PlayerStats()

    wins = finishes.get(1, 0)
    avg = sum(positions) / total
    points = sum(POSITION_POINTS.get(pos, 0) * n for pos, n in finishes.items())
    bonus = consistency_bonus(avg, total)

    return PlayerStats(
        total_games=total,
        games_won=wins,
        win_rate=_round(wins / total * 100),
        avg_position=_round(avg),
        best_position=min(positions),
        worst_position=max(positions),
        last_game_date=last_date,
        finishes=dict(finishes),
        points=points,
        consistency_bonus=_round(bonus),
        ranking_score=_round(points + bonus),
    )


def filter_as_of(facts: Iterable[ResultFact], as_of: date) -> list[ResultFact]:
    return [f for f in facts if f.game_date <= as_of]


def _sorted_by(rows: list[LeaderboardEntry], key: str, descending: bool) -> list[LeaderboardEntry]:
    # Stable single-key sort; entries without a value (no games) always go last
    present = [r for r in rows if r.sort_value(key) is not None]
    missing = [r for r in rows if r.sort_value(key) is None]
    present.sort(key=lambda r: r.sort_value(key), reverse=descending)
    return present + missing


def order_leaderboard(
    rows: Sequence[LeaderboardEntry],
    sort_by: str = "ranking_score",
    descending: bool = True,
) -> list[LeaderboardEntry]:
    chain = [(sort_by, descending)] + [k for k in _DEFAULT_ORDER if k[0] != sort_by]
    out = list(rows)
    for key, desc in reversed(chain):
        out = _sorted_by(out, key, desc)
    return out


def build_leaderboard(
    players: Iterable[PlayerRef],
    facts: Iterable[ResultFact],
    *,
    sort_by: str = "ranking_score",
    descending: bool = True,
    limit: int | None = None,
) -> list[LeaderboardEntry]:
    """Aggregate every player (including those without facts) and rank them."""
    by_player: dict[int, list[ResultFact]] = defaultdict(list)
    for f in facts:
        by_player[f.player_id].append(f)

    rows = [
        LeaderboardEntry(id=p.id, name=p.name, avatar_url=p.avatar_url, stats=aggregate(by_player.get(p.id, [])))
        for p in players
    ]
    ordered = order_leaderboard(rows, sort_by, descending)
    if limit is not None:
        ordered = ordered[:limit]
    return ordered


def score_progression(facts: Iterable[ResultFact]) -> list[ProgressionPoint]:
    """One cumulative snapshot per game, oldest first.

    Each snapshot folds the facts dated on or before that game's date, so
    games sharing a date share the same snapshot.
    """
    ordered = sorted(facts, key=lambda f: (f.game_date, f.game_id))
    dates = [f.game_date for f in ordered]
    out: list[ProgressionPoint] = []
    for f in ordered:
        upto = bisect_right(dates, f.game_date)
        out.append(ProgressionPoint(
            game_id=f.game_id,
            game_date=f.game_date,
            position=f.position,
            stats=aggregate(ordered[:upto]),
        ))
    return out
