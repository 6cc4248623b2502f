from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from enum import Enum

import sqlalchemy as sa
from sqlalchemy.orm import Session

from app.schemas.analytics import (
    ActivePlayerOut,
    GameScoresOut,
    MonthlyGamesOut,
    MonthlyStatOut,
    OverviewOut,
    OverviewTotalsOut,
    PerformanceTrendOut,
    PlayerAggregateOut,
    PlayerAnalyticsOut,
    PlayerScoreAsOfOut,
    PositionShareOut,
    ProgressionPointOut,
    RecentResultOut,
    ScoreBreakdownOut,
    ScoreProgressionOut,
    TopPerformerOut,
    TrendPointOut,
    TrendsOut,
)
from app.schemas.ranking import LeaderboardOut, LeaderboardRow
from app.services.errors import InvalidArgument, NotFoundError
from app.services.ranking import (
    PlayerRef,
    PlayerStats,
    ResultFact,
    Timeframe,
    aggregate,
    build_leaderboard,
    filter_as_of,
    normalize_sort,
    parse_timeframe,
    score_progression,
    shift_months,
    timeframe_cutoff,
)

MONTHLY_STATS_LIMIT = 12
RECENT_RESULTS_LIMIT = 20
TOP_LIST_LIMIT = 5
TOP_PERFORMER_MIN_GAMES = 3
TRENDS_MAX_LIMIT = 120

# Window for the per-month trend series, keyed by the requested timeframe
_TREND_WINDOW_MONTHS = {
    Timeframe.MONTHS_6: 6,
    Timeframe.YEAR_1: 12,
}
_TREND_WINDOW_DAYS = {
    Timeframe.DAYS_7: 30,
    Timeframe.DAYS_30: 30,
    Timeframe.DAYS_90: 90,
}
_OVERVIEW_MONTHLY_WINDOW_MONTHS = {
    Timeframe.DAYS_90: 3,
    Timeframe.MONTHS_6: 6,
    Timeframe.YEAR_1: 12,
}


class TrendPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


# period -> to_char label format
_TREND_LABELS = {
    TrendPeriod.DAILY: "YYYY-MM-DD",
    TrendPeriod.WEEKLY: 'YYYY-"W"WW',
    TrendPeriod.MONTHLY: "YYYY-MM",
}


# --- read-boundary decoding -------------------------------------------------

def _to_int(value: object | None) -> int:
    if value is None:
        return 0
    return int(value)


def _to_float(value: object | None) -> float:
    if value is None:
        return 0.0
    if isinstance(value, Decimal):
        return float(round(value, 2))
    return round(float(value), 2)


def _to_opt_float(value: object | None) -> float | None:
    return _to_float(value) if value is not None else None


def _decode_fact(r) -> ResultFact:
    return ResultFact(
        player_id=int(r["player_id"]),
        game_id=int(r["game_id"]),
        game_date=r["game_date"],
        position=int(r["position"]),
    )


# --- fact store reads -------------------------------------------------------

def load_players(db: Session) -> list[PlayerRef]:
    rows = db.execute(sa.text("""
        SELECT id, name, avatar_url
        FROM players
        ORDER BY name ASC
    """)).mappings().all()
    return [PlayerRef(id=int(r["id"]), name=r["name"], avatar_url=r["avatar_url"]) for r in rows]


def load_facts(
    db: Session,
    *,
    player_id: int | None = None,
    since: date | None = None,
) -> list[ResultFact]:
    where = ["1=1"]
    params: dict[str, object] = {}
    if player_id is not None:
        where.append("pgr.player_id=:player_id")
        params["player_id"] = player_id
    if since is not None:
        where.append("g.date >= :since")
        params["since"] = since

    rows = db.execute(sa.text(f"""
        SELECT pgr.player_id, pgr.game_id, g.date AS game_date, pgr.position
        FROM player_game_results pgr
        JOIN games g ON g.id = pgr.game_id
        WHERE {" AND ".join(where)}
        ORDER BY g.date ASC, g.id ASC
    """), params).mappings().all()
    return [_decode_fact(r) for r in rows]


def _load_player(db: Session, player_id: int):
    row = db.execute(sa.text("""
        SELECT id, name FROM players WHERE id=:p
    """), {"p": player_id}).mappings().first()
    if not row:
        raise NotFoundError("Player", player_id)
    return row


def _breakdown(stats: PlayerStats) -> ScoreBreakdownOut:
    return ScoreBreakdownOut(
        first_place_finishes=stats.finish_count(1),
        second_place_finishes=stats.finish_count(2),
        third_place_finishes=stats.finish_count(3),
        fourth_place_finishes=stats.finish_count(4),
        points=stats.points,
        consistency_bonus=stats.consistency_bonus,
    )


def aggregate_out(stats: PlayerStats) -> PlayerAggregateOut:
    return PlayerAggregateOut(
        total_games=stats.total_games,
        games_won=stats.games_won,
        win_rate=stats.win_rate,
        avg_position=stats.avg_position,
        best_position=stats.best_position,
        worst_position=stats.worst_position,
        last_game_date=stats.last_game_date,
        ranking_score=stats.ranking_score,
        score_breakdown=_breakdown(stats),
    )


# --- leaderboard ------------------------------------------------------------

def get_leaderboard(
    db: Session,
    *,
    timeframe: str | None,
    sort_by: str | None,
    sort_order: str | None,
    limit: int,
    today: date | None = None,
) -> LeaderboardOut:
    tf = parse_timeframe(timeframe)
    key, descending = normalize_sort(sort_by, sort_order)
    cutoff = timeframe_cutoff(tf, today or date.today())

    entries = build_leaderboard(
        load_players(db),
        load_facts(db, since=cutoff),
        sort_by=key,
        descending=descending,
        limit=limit,
    )

    total_unique_games = db.execute(sa.text("SELECT count(*) FROM games")).scalar_one()

    return LeaderboardOut(
        timeframe=tf.value,
        sort_by=key,
        sort_order="DESC" if descending else "ASC",
        total_unique_games=_to_int(total_unique_games),
        rows=[
            LeaderboardRow(
                id=e.id,
                name=e.name,
                avatar_url=e.avatar_url,
                total_games=e.stats.total_games,
                games_won=e.stats.games_won,
                win_rate=e.stats.win_rate,
                avg_position=e.stats.avg_position,
                best_position=e.stats.best_position,
                worst_position=e.stats.worst_position,
                last_game_date=e.stats.last_game_date,
                ranking_score=e.stats.ranking_score,
            )
            for e in entries
        ],
    )


# --- player analytics -------------------------------------------------------

def _trend_cutoff(tf: Timeframe, today: date) -> date | None:
    if tf == Timeframe.LIFETIME:
        return None
    days = _TREND_WINDOW_DAYS.get(tf)
    if days is not None:
        return today - timedelta(days=days)
    return shift_months(today, _TREND_WINDOW_MONTHS[tf])


def get_player_analytics(
    db: Session,
    player_id: int,
    *,
    timeframe: str | None,
    today: date | None = None,
) -> PlayerAnalyticsOut:
    tf = parse_timeframe(timeframe)
    player = _load_player(db, player_id)
    today = today or date.today()
    cutoff = timeframe_cutoff(tf, today)

    facts = load_facts(db, player_id=player_id, since=cutoff)
    stats = aggregate(facts)

    where = ["pgr.player_id=:p"]
    params: dict[str, object] = {"p": player_id}
    if cutoff is not None:
        where.append("g.date >= :since")
        params["since"] = cutoff
    where_sql = " AND ".join(where)

    monthly = db.execute(sa.text(f"""
        SELECT
            to_char(g.date, 'YYYY-MM') AS month,
            count(pgr.id) AS games_played,
            sum(CASE WHEN pgr.position = 1 THEN 1 ELSE 0 END) AS games_won,
            round(avg(pgr.position), 2) AS avg_position,
            min(pgr.position) AS best_position
        FROM player_game_results pgr
        JOIN games g ON g.id = pgr.game_id
        WHERE {where_sql}
        GROUP BY 1
        ORDER BY 1 DESC
        LIMIT :limit
    """), {**params, "limit": MONTHLY_STATS_LIMIT}).mappings().all()

    distribution = db.execute(sa.text(f"""
        SELECT pgr.position, count(*) AS count
        FROM player_game_results pgr
        JOIN games g ON g.id = pgr.game_id
        WHERE {where_sql}
        GROUP BY pgr.position
        ORDER BY pgr.position
    """), params).mappings().all()

    recent = db.execute(sa.text(f"""
        SELECT g.date, pgr.position, pgr.game_id
        FROM player_game_results pgr
        JOIN games g ON g.id = pgr.game_id
        WHERE {where_sql}
        ORDER BY g.date DESC, g.id DESC
        LIMIT :limit
    """), {**params, "limit": RECENT_RESULTS_LIMIT}).mappings().all()

    trend_where = list(where)
    trend_params = dict(params)
    trend_cutoff = _trend_cutoff(tf, today)
    if trend_cutoff is not None:
        trend_where.append("g.date >= :trend_since")
        trend_params["trend_since"] = trend_cutoff
    trends = db.execute(sa.text(f"""
        SELECT
            to_char(g.date, 'YYYY-MM') AS period,
            round(avg(pgr.position), 2) AS avg_position,
            count(pgr.id) AS games_count,
            sum(CASE WHEN pgr.position = 1 THEN 1 ELSE 0 END) AS wins_count
        FROM player_game_results pgr
        JOIN games g ON g.id = pgr.game_id
        WHERE {" AND ".join(trend_where)}
        GROUP BY 1
        ORDER BY 1 DESC
    """), trend_params).mappings().all()

    total = stats.total_games
    return PlayerAnalyticsOut(
        player_id=int(player["id"]),
        player_name=player["name"],
        timeframe=tf.value,
        summary=aggregate_out(stats),
        monthly_stats=[
            MonthlyStatOut(
                month=r["month"],
                games_played=_to_int(r["games_played"]),
                games_won=_to_int(r["games_won"]),
                avg_position=_to_float(r["avg_position"]),
                best_position=_to_int(r["best_position"]),
            )
            for r in monthly
        ],
        position_distribution=[
            PositionShareOut(
                position=_to_int(r["position"]),
                count=_to_int(r["count"]),
                percentage=round(_to_int(r["count"]) * 100.0 / total, 2) if total else 0.0,
            )
            for r in distribution
        ],
        recent_performance=[
            RecentResultOut(date=r["date"], position=_to_int(r["position"]), game_id=_to_int(r["game_id"]))
            for r in recent
        ],
        performance_trends=[
            PerformanceTrendOut(
                period=r["period"],
                avg_position=_to_float(r["avg_position"]),
                games_count=_to_int(r["games_count"]),
                wins_count=_to_int(r["wins_count"]),
            )
            for r in trends
        ],
    )


# --- cumulative reads -------------------------------------------------------

def get_score_progression(db: Session, player_id: int) -> ScoreProgressionOut:
    player = _load_player(db, player_id)
    points = score_progression(load_facts(db, player_id=player_id))
    return ScoreProgressionOut(
        player_id=int(player["id"]),
        player_name=player["name"],
        score_progression=[
            ProgressionPointOut(
                game_id=p.game_id,
                date=p.game_date,
                position=p.position,
                cumulative_score=p.stats.ranking_score,
                cumulative=aggregate_out(p.stats),
            )
            for p in points
        ],
    )


def get_cumulative_scores_as_of(db: Session, game_id: int) -> GameScoresOut:
    game = db.execute(sa.text("SELECT id, date FROM games WHERE id=:g"), {"g": game_id}).mappings().first()
    if not game:
        raise NotFoundError("Game", game_id)
    game_date: date = game["date"]

    participants = db.execute(sa.text("""
        SELECT pgr.player_id, p.name AS player_name, pgr.position
        FROM player_game_results pgr
        JOIN players p ON p.id = pgr.player_id
        WHERE pgr.game_id=:g
        ORDER BY pgr.position
    """), {"g": game_id}).mappings().all()

    ids = [int(r["player_id"]) for r in participants]
    facts_by_player: dict[int, list[ResultFact]] = {pid: [] for pid in ids}
    if ids:
        ids_bp = sa.bindparam("ids", expanding=True)
        rows = db.execute(
            sa.text("""
                SELECT pgr.player_id, pgr.game_id, g.date AS game_date, pgr.position
                FROM player_game_results pgr
                JOIN games g ON g.id = pgr.game_id
                WHERE pgr.player_id IN :ids
            """).bindparams(ids_bp),
            {"ids": ids},
        ).mappings().all()
        for r in rows:
            fact = _decode_fact(r)
            facts_by_player[fact.player_id].append(fact)

    scores = []
    for r in participants:
        pid = int(r["player_id"])
        stats = aggregate(filter_as_of(facts_by_player[pid], game_date))
        scores.append(PlayerScoreAsOfOut(
            player_id=pid,
            player_name=r["player_name"],
            current_position=int(r["position"]),
            cumulative_score=stats.ranking_score,
            total_games=stats.total_games,
            games_won=stats.games_won,
            win_rate=stats.win_rate,
            avg_position=stats.avg_position,
            score_breakdown=_breakdown(stats),
        ))
    scores.sort(key=lambda s: (-s.cumulative_score, s.player_name))

    return GameScoresOut(game_id=int(game["id"]), game_date=game_date, player_scores=scores)


# --- overview & trends ------------------------------------------------------

def _overview_monthly_cutoff(tf: Timeframe, today: date) -> date | None:
    # lifetime lists every month on record
    if tf == Timeframe.LIFETIME:
        return None
    months = _OVERVIEW_MONTHLY_WINDOW_MONTHS.get(tf)
    if months is None:
        return today - timedelta(days=30)
    return shift_months(today, months)


def get_overview(db: Session, *, timeframe: str | None, today: date | None = None) -> OverviewOut:
    tf = parse_timeframe(timeframe)
    today = today or date.today()
    cutoff = timeframe_cutoff(tf, today)

    game_where = ["1=1"]
    params: dict[str, object] = {}
    if cutoff is not None:
        game_where.append("g.date >= :since")
        params["since"] = cutoff
    game_where_sql = " AND ".join(game_where)

    totals = db.execute(sa.text(f"""
        SELECT
            count(DISTINCT pgr.player_id) AS active_players,
            count(DISTINCT g.id) AS total_games,
            avg(pgr.position) AS avg_position,
            min(g.date) AS first_game_date,
            max(g.date) AS last_game_date
        FROM games g
        LEFT JOIN player_game_results pgr ON pgr.game_id = g.id
        WHERE {game_where_sql}
    """), params).mappings().one()
    if cutoff is None:
        total_players = db.execute(sa.text("SELECT count(*) FROM players")).scalar_one()
    else:
        total_players = totals["active_players"]

    monthly_where = ["1=1"]
    monthly_params: dict[str, object] = {}
    monthly_since = _overview_monthly_cutoff(tf, today)
    if monthly_since is not None:
        monthly_where.append("date >= :since")
        monthly_params["since"] = monthly_since
    monthly = db.execute(sa.text(f"""
        SELECT to_char(date, 'YYYY-MM') AS month, count(*) AS games_count
        FROM games
        WHERE {" AND ".join(monthly_where)}
        GROUP BY 1
        ORDER BY 1 DESC
    """), monthly_params).mappings().all()

    # table size across all recorded games, whatever the window
    avg_players = db.execute(sa.text("""
        SELECT avg(player_count) AS avg_players_per_game
        FROM (
            SELECT count(*) AS player_count
            FROM player_game_results
            GROUP BY game_id
        ) AS game_counts
    """)).scalar_one()

    most_active = db.execute(sa.text(f"""
        SELECT p.name, count(pgr.id) AS games_played
        FROM players p
        JOIN player_game_results pgr ON pgr.player_id = p.id
        JOIN games g ON g.id = pgr.game_id
        WHERE {game_where_sql}
        GROUP BY p.id, p.name
        ORDER BY games_played DESC, p.name ASC
        LIMIT :limit
    """), {**params, "limit": TOP_LIST_LIMIT}).mappings().all()

    top_performers = db.execute(sa.text(f"""
        SELECT
            p.name,
            count(pgr.id) AS games_played,
            sum(CASE WHEN pgr.position = 1 THEN 1 ELSE 0 END) AS wins,
            round(avg(pgr.position), 2) AS avg_position,
            round(sum(CASE WHEN pgr.position = 1 THEN 1 ELSE 0 END)::numeric / count(pgr.id) * 100, 1) AS win_rate
        FROM players p
        JOIN player_game_results pgr ON pgr.player_id = p.id
        JOIN games g ON g.id = pgr.game_id
        WHERE {game_where_sql}
        GROUP BY p.id, p.name
        HAVING count(pgr.id) >= :min_games
        ORDER BY win_rate DESC, wins DESC, avg_position ASC, p.name ASC
        LIMIT :limit
    """), {**params, "limit": TOP_LIST_LIMIT, "min_games": TOP_PERFORMER_MIN_GAMES}).mappings().all()

    return OverviewOut(
        timeframe=tf.value,
        total_stats=OverviewTotalsOut(
            total_players=_to_int(total_players),
            total_games=_to_int(totals["total_games"]),
            avg_position=_to_opt_float(totals["avg_position"]),
            first_game_date=totals["first_game_date"],
            last_game_date=totals["last_game_date"],
        ),
        monthly_games=[MonthlyGamesOut(month=r["month"], games_count=_to_int(r["games_count"])) for r in monthly],
        avg_players_per_game=_to_float(avg_players),
        most_active_players=[
            ActivePlayerOut(name=r["name"], games_played=_to_int(r["games_played"])) for r in most_active
        ],
        top_performers=[
            TopPerformerOut(
                name=r["name"],
                games_played=_to_int(r["games_played"]),
                wins=_to_int(r["wins"]),
                avg_position=_to_float(r["avg_position"]),
                win_rate=_to_float(r["win_rate"]),
            )
            for r in top_performers
        ],
    )


def parse_trend_period(raw: str | None) -> TrendPeriod:
    if raw is None or raw.strip() == "":
        return TrendPeriod.MONTHLY
    try:
        return TrendPeriod(raw.strip().lower())
    except ValueError:
        raise InvalidArgument("period must be daily|weekly|monthly")


def trends_cutoff(period: TrendPeriod, limit: int, today: date) -> date:
    if period == TrendPeriod.DAILY:
        return today - timedelta(days=limit)
    if period == TrendPeriod.WEEKLY:
        return today - timedelta(weeks=limit)
    return shift_months(today, limit)


def get_trends(db: Session, *, period: str | None, limit: int, today: date | None = None) -> TrendsOut:
    p = parse_trend_period(period)
    if limit < 1 or limit > TRENDS_MAX_LIMIT:
        raise InvalidArgument(f"limit must be between 1 and {TRENDS_MAX_LIMIT}")
    since = trends_cutoff(p, limit, today or date.today())

    rows = db.execute(sa.text("""
        SELECT
            to_char(g.date, :fmt) AS period,
            count(DISTINCT g.id) AS games_count,
            count(pgr.id) AS total_results,
            avg(pgr.position) AS avg_position,
            count(DISTINCT pgr.player_id) AS unique_players,
            sum(CASE WHEN pgr.position = 1 THEN 1 ELSE 0 END) AS total_wins
        FROM games g
        LEFT JOIN player_game_results pgr ON pgr.game_id = g.id
        WHERE g.date >= :since
        GROUP BY 1
        ORDER BY 1 DESC
    """), {"fmt": _TREND_LABELS[p], "since": since}).mappings().all()

    return TrendsOut(
        period=p.value,
        limit=limit,
        rows=[
            TrendPointOut(
                period=r["period"],
                games_count=_to_int(r["games_count"]),
                total_results=_to_int(r["total_results"]),
                avg_position=_to_opt_float(r["avg_position"]),
                unique_players=_to_int(r["unique_players"]),
                total_wins=_to_int(r["total_wins"]),
            )
            for r in rows
        ],
    )
