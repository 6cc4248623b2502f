from datetime import date

import pytest

from app.services.errors import InvalidArgument
from app.services.ranking import (
    PlayerRef,
    ResultFact,
    Timeframe,
    aggregate,
    build_leaderboard,
    consistency_bonus,
    filter_as_of,
    normalize_sort,
    parse_timeframe,
    score_progression,
    shift_months,
    timeframe_cutoff,
)


def _facts(player_id: int, *rows: tuple[int, str, int]) -> list[ResultFact]:
    return [
        ResultFact(player_id=player_id, game_id=game_id, game_date=date.fromisoformat(d), position=pos)
        for game_id, d, pos in rows
    ]


def test_aggregate_two_wins_and_a_third():
    stats = aggregate(_facts(1, (1, "2026-01-01", 1), (2, "2026-01-02", 1), (3, "2026-01-03", 3)))
    assert stats.total_games == 3
    assert stats.games_won == 2
    assert stats.win_rate == 66.67
    assert stats.avg_position == 1.67
    assert stats.best_position == 1
    assert stats.worst_position == 3
    assert stats.last_game_date == date(2026, 1, 3)
    assert stats.points == 23
    assert stats.consistency_bonus == 2.5
    assert stats.ranking_score == 25.5


def test_aggregate_without_games_is_zeroed():
    stats = aggregate([])
    assert stats.total_games == 0
    assert stats.games_won == 0
    assert stats.win_rate == 0
    assert stats.ranking_score == 0
    assert stats.avg_position is None
    assert stats.best_position is None
    assert stats.last_game_date is None


def test_positions_past_fourth_score_no_points_but_count_for_bonus():
    stats = aggregate(_facts(1, (1, "2026-01-01", 5), (2, "2026-01-02", 6)))
    assert stats.points == 0
    assert stats.avg_position == 5.5
    assert stats.consistency_bonus == 0.9
    assert stats.ranking_score == 0.9


def test_consistency_bonus_floors_average_at_one():
    assert consistency_bonus(0.5, 2) == consistency_bonus(1, 2) == pytest.approx(1.8)


def test_equal_players_are_ordered_by_name():
    players = [PlayerRef(1, "Zara"), PlayerRef(2, "Amit"), PlayerRef(3, "Kavya")]
    facts = _facts(1, (10, "2026-02-01", 1)) + _facts(2, (11, "2026-02-02", 1)) + _facts(3, (12, "2026-02-03", 1))
    rows = build_leaderboard(players, facts)
    assert [r.name for r in rows] == ["Amit", "Kavya", "Zara"]


def test_default_order_uses_score_then_wins():
    players = [PlayerRef(1, "A"), PlayerRef(2, "B"), PlayerRef(3, "C")]
    facts = (
        _facts(1, (1, "2026-03-01", 2), (2, "2026-03-02", 2))
        + _facts(2, (1, "2026-03-01", 1), (2, "2026-03-02", 1))
        + _facts(3, (3, "2026-03-03", 3))
    )
    rows = build_leaderboard(players, facts)
    assert [r.id for r in rows] == [2, 1, 3]


def test_players_without_games_are_listed_last_for_any_direction():
    players = [PlayerRef(1, "Idle"), PlayerRef(2, "Busy"), PlayerRef(3, "Busier")]
    facts = _facts(2, (1, "2026-04-01", 2)) + _facts(3, (1, "2026-04-01", 1))

    asc = build_leaderboard(players, facts, sort_by="avg_position", descending=False)
    desc = build_leaderboard(players, facts, sort_by="avg_position", descending=True)
    assert [r.id for r in asc] == [3, 2, 1]
    assert [r.id for r in desc] == [2, 3, 1]

    idle = asc[-1]
    assert idle.stats.total_games == 0
    assert idle.stats.ranking_score == 0


def test_leaderboard_limit_applies_after_ordering():
    players = [PlayerRef(i, f"P{i}") for i in range(1, 6)]
    facts = [ResultFact(i, i, date(2026, 5, i), i) for i in range(1, 6)]
    rows = build_leaderboard(players, facts, limit=2)
    assert [r.id for r in rows] == [1, 2]


def test_sort_by_name_ascending():
    players = [PlayerRef(1, "Charlie"), PlayerRef(2, "alpha"), PlayerRef(3, "Bravo")]
    rows = build_leaderboard(players, [], sort_by="name", descending=False)
    assert [r.name for r in rows] == ["Bravo", "Charlie", "alpha"]


@pytest.mark.parametrize("sort_by", ["password", "ranking_score; DROP TABLE players", "id"])
def test_sort_column_outside_whitelist_is_rejected(sort_by):
    with pytest.raises(InvalidArgument):
        normalize_sort(sort_by, "DESC")


def test_sort_order_is_case_insensitive():
    assert normalize_sort("games_won", "asc") == ("games_won", False)
    assert normalize_sort("win_rate", "Desc") == ("win_rate", True)
    assert normalize_sort(None, None) == ("ranking_score", True)


def test_invalid_sort_order_is_rejected():
    with pytest.raises(InvalidArgument):
        normalize_sort("ranking_score", "sideways")


def test_blank_sort_parameters_fall_back_to_defaults():
    assert normalize_sort("", " ") == ("ranking_score", True)
    assert normalize_sort("  ", "asc") == ("ranking_score", False)


def test_parse_timeframe():
    assert parse_timeframe(None) is Timeframe.LIFETIME
    assert parse_timeframe("") is Timeframe.LIFETIME
    assert parse_timeframe(" 30DAYS ") is Timeframe.DAYS_30
    with pytest.raises(InvalidArgument):
        parse_timeframe("forever")


@pytest.mark.parametrize(
    "tf, expected",
    [
        (Timeframe.DAYS_7, date(2026, 10, 11)),
        (Timeframe.DAYS_30, date(2026, 9, 18)),
        (Timeframe.DAYS_90, date(2026, 7, 20)),
        (Timeframe.MONTHS_6, date(2026, 4, 18)),
        (Timeframe.YEAR_1, date(2025, 10, 18)),
        (Timeframe.LIFETIME, None),
    ],
)
def test_timeframe_cutoff(tf, expected):
    assert timeframe_cutoff(tf, date(2026, 10, 18)) == expected


def test_shift_months_clamps_to_month_end():
    assert shift_months(date(2024, 3, 31), 1) == date(2024, 2, 29)
    assert shift_months(date(2026, 1, 15), 2) == date(2025, 11, 15)
    assert shift_months(date(2026, 8, 31), 6) == date(2026, 2, 28)


def test_as_of_snapshot_ignores_later_games():
    facts = _facts(1, (1, "2026-01-01", 1), (2, "2026-01-10", 3))
    snapshot = aggregate(filter_as_of(facts, date(2026, 1, 10)))

    later = facts + _facts(1, (3, "2026-02-01", 4))
    assert aggregate(filter_as_of(later, date(2026, 1, 10))) == snapshot
    assert snapshot.total_games == 2


def test_score_progression_accumulates_by_date():
    facts = _facts(1, (3, "2026-01-05", 1), (1, "2026-01-01", 1), (2, "2026-01-05", 3))
    points = score_progression(facts)

    assert [p.game_id for p in points] == [1, 2, 3]
    assert points[0].stats.total_games == 1
    assert points[0].stats.ranking_score == 10.9
    # games on the same date share one cumulative snapshot
    assert points[1].stats == points[2].stats
    assert points[2].stats.total_games == 3
    assert points[2].stats.ranking_score == 25.5
    assert [p.position for p in points] == [1, 3, 1]


def test_score_progression_empty():
    assert score_progression([]) == []
