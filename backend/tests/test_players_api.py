from __future__ import annotations

import pytest

from tests.testkit import ApiError, create_game, create_player, create_players, leaderboard_row


def test_create_and_fetch_player(api, names):
    email = names.next_email("anita")
    player = create_player(api, names, "anita", email=email, avatar_url="")
    assert player["email"] == email
    assert player["avatar_url"] is None

    fetched = api.call("GET", f"/api/players/{player['id']}")
    assert fetched["name"] == player["name"]

    listed = api.call("GET", "/api/players")
    assert player["id"] in {p["id"] for p in listed}


def test_duplicate_name_is_conflict(api, names):
    player = create_player(api, names, "twin")
    with pytest.raises(ApiError) as exc:
        api.call("POST", "/api/players", body={"name": player["name"]})
    assert exc.value.status_code == 409


def test_update_player(api, names):
    player = create_player(api, names, "ren")
    new_name = names.next_name("renamed")
    updated = api.call("PUT", f"/api/players/{player['id']}", body={"name": new_name})
    assert updated["name"] == new_name
    assert updated["updated_at"] >= player["updated_at"]


def test_missing_player_is_not_found(api):
    with pytest.raises(ApiError) as exc:
        api.call("GET", "/api/players/2000000000")
    assert exc.value.status_code == 404


def test_delete_player_cascades_to_results(api, names, deletion_headers):
    a, b, c = create_players(api, names, 3, "casc")
    game = create_game(api, [a, b, c])

    out = api.call("DELETE", f"/api/players/{b['id']}", headers=deletion_headers)
    assert out["results_removed"] == 1

    remaining = api.call("GET", f"/api/games/{game['id']}")["results"]
    assert [r["player_id"] for r in remaining] == [a["id"], c["id"]]
    assert leaderboard_row(api, a["id"])["total_games"] == 1

    with pytest.raises(ApiError) as exc:
        api.call("GET", f"/api/players/{b['id']}")
    assert exc.value.status_code == 404
