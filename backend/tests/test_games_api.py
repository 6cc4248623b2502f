from __future__ import annotations

import pytest

from tests.testkit import ApiError, create_game, create_players, leaderboard_row


def test_create_game_returns_results_by_position(api, names):
    a, b, c = create_players(api, names, 3, "gm")
    game = create_game(api, [b, c, a], date="2026-09-01", location="Community Center")

    assert game["date"] == "2026-09-01"
    assert game["game_type"] == "3 Patti"
    assert game["location"] == "Community Center"
    assert [r["player_id"] for r in game["results"]] == [b["id"], c["id"], a["id"]]
    assert [r["position"] for r in game["results"]] == [1, 2, 3]
    assert game["results"][0]["player_name"] == b["name"]

    fetched = api.call("GET", f"/api/games/{game['id']}")
    assert fetched == game


def test_single_player_game_is_allowed(api, names):
    (solo,) = create_players(api, names, 1, "solo")
    game = create_game(api, [solo])
    assert len(game["results"]) == 1


@pytest.mark.parametrize(
    "positions, reason",
    [
        ([1, 2, 2, 4], "positions_not_contiguous"),
        ([1, 2, 4], "positions_not_contiguous"),
        ([2, 3, 4], "positions_not_contiguous"),
    ],
)
def test_invalid_positions_are_rejected_atomically(api, names, positions, reason):
    players = create_players(api, names, len(positions), "bad")
    before = api.call("GET", "/api/games?page=1&limit=1")["total"]

    with pytest.raises(ApiError) as exc:
        api.call("POST", "/api/games", body={
            "results": [{"player_id": p["id"], "position": pos} for p, pos in zip(players, positions)],
        })
    assert exc.value.status_code == 400
    assert exc.value.payload["detail"]["reason"] == reason

    assert api.call("GET", "/api/games?page=1&limit=1")["total"] == before
    for p in players:
        assert leaderboard_row(api, p["id"])["total_games"] == 0


def test_duplicate_and_unknown_players_are_rejected(api, names):
    a, b = create_players(api, names, 2, "dup")

    with pytest.raises(ApiError) as exc:
        api.call("POST", "/api/games", body={"results": [
            {"player_id": a["id"], "position": 1},
            {"player_id": a["id"], "position": 2},
        ]})
    assert exc.value.status_code == 400
    assert exc.value.payload["detail"]["reason"] == "duplicate_player"

    with pytest.raises(ApiError) as exc:
        api.call("POST", "/api/games", body={"results": [
            {"player_id": b["id"], "position": 1},
            {"player_id": 2_000_000_000, "position": 2},
        ]})
    assert exc.value.status_code == 400
    assert exc.value.payload["detail"]["reason"] == "unknown_player"

    with pytest.raises(ApiError) as exc:
        api.call("POST", "/api/games", body={"results": []})
    assert exc.value.payload["detail"]["reason"] == "results_required"


def test_update_replaces_whole_result_set(api, names):
    a, b, c = create_players(api, names, 3, "upd")
    game = create_game(api, [a, b, c], date="2026-08-10")

    updated = api.call("PUT", f"/api/games/{game['id']}", body={
        "notes": "recount",
        "results": [
            {"player_id": c["id"], "position": 1},
            {"player_id": a["id"], "position": 2},
        ],
    })
    assert updated["date"] == "2026-08-10"
    assert updated["notes"] == "recount"
    assert [r["player_id"] for r in updated["results"]] == [c["id"], a["id"]]
    assert leaderboard_row(api, b["id"])["total_games"] == 0


def test_failed_update_keeps_stored_results(api, names):
    a, b = create_players(api, names, 2, "keep")
    game = create_game(api, [a, b])

    with pytest.raises(ApiError) as exc:
        api.call("PUT", f"/api/games/{game['id']}", body={"results": [
            {"player_id": a["id"], "position": 1},
            {"player_id": b["id"], "position": 3},
        ]})
    assert exc.value.status_code == 400
    assert api.call("GET", f"/api/games/{game['id']}")["results"] == game["results"]


def test_delete_game_removes_its_facts(api, names, deletion_headers):
    a, b = create_players(api, names, 2, "delg")
    game = create_game(api, [a, b])
    assert leaderboard_row(api, a["id"])["total_games"] == 1

    out = api.call("DELETE", f"/api/games/{game['id']}", headers=deletion_headers)
    assert out == {"ok": True, "game_id": game["id"]}
    assert leaderboard_row(api, a["id"])["total_games"] == 0

    with pytest.raises(ApiError) as exc:
        api.call("GET", f"/api/games/{game['id']}")
    assert exc.value.status_code == 404


def test_games_pagination_bounds(api):
    page = api.call("GET", "/api/games?page=1&limit=5")
    assert page["page"] == 1
    assert page["limit"] == 5
    assert len(page["rows"]) <= 5

    for query in ("page=0&limit=5", "page=1&limit=0", "page=1&limit=101"):
        with pytest.raises(ApiError) as exc:
            api.call("GET", f"/api/games?{query}")
        assert exc.value.status_code == 422
