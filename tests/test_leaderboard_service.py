"""
Tests for the leaderboard service over recorded games
"""

from datetime import date

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from app import db
from app.models import Game, Player
from app.services.leaderboard_service import LeaderboardService, PlayerNotFoundError
from app.utils.periods import Period
from app.utils.scoring import ActionKind
from app.utils.scoring_rules import SCORING_RULES, get_weights

JANUARY = Period(date(2026, 1, 1), date(2026, 2, 1))


@pytest.fixture
def season(players):
    """
    Ten January games:
    - Ani plays all ten, wins twice and dies first once
    - Arev plays nine and wins once
    - Davo plays one game and comes second
    - one February game that must not count
    """
    ani, arev, davo = players["Ani"], players["Arev"], players["Davo"]

    for day in range(1, 11):
        participants = [ani.id]
        actions = []
        if day != 10:
            participants.append(arev.id)
        if day == 10:
            participants.append(davo.id)
            actions.append((davo.id, "second_place"))
        if day in (1, 2):
            actions.append((ani.id, "win"))
        if day == 3:
            actions.append((arev.id, "win"))
            actions.append((ani.id, "first_dead"))
        Game.record(date(2026, 1, day), participants, actions)

    Game.record(date(2026, 2, 1), [davo.id], [(davo.id, "win")])
    db.session.commit()
    return players


def test_leaderboard_over_period(app, season):
    service = LeaderboardService(SCORING_RULES["B"])

    result = service.get_leaderboard(JANUARY)

    assert result["period"] == {"start_date": "2026-01-01", "end_date": "2026-02-01"}
    assert result["total_games"] == 10
    assert result["scoring_rules"]["first_dead"] == -5

    board = {entry["player_name"]: entry for entry in result["leaderboard"]}
    # Ani: (10 + 10 - 5) * 10/10
    assert board["Ani"]["points"] == 15.0
    # Arev: 10 * 9/10
    assert board["Arev"]["points"] == 9.0
    assert board["Arev"]["absence_rate"] == pytest.approx(10.0)
    # Davo: 5 * 1/10
    assert board["Davo"]["points"] == 0.5
    assert board["Davo"]["action_counts"]["second_place"] == 1
    assert board["Davo"]["action_counts"]["win"] == 0

    assert [entry["player_name"] for entry in result["leaderboard"]] == [
        "Ani",
        "Arev",
        "Davo",
    ]


def test_leaderboard_depends_on_rule_table(app, season):
    result = LeaderboardService(get_weights("A")).get_leaderboard(JANUARY)
    board = {entry["player_name"]: entry["points"] for entry in result["leaderboard"]}
    # Ani: 10 + 10 - 1
    assert board["Ani"] == 19.0


def test_leaderboard_includes_players_without_games(app, season):
    Player.create("Khcho")
    db.session.commit()

    result = LeaderboardService(SCORING_RULES["B"]).get_leaderboard(JANUARY)
    khcho = result["leaderboard"][-1]

    assert khcho["player_name"] == "Khcho"
    assert khcho["points"] == 0.0
    assert khcho["games_played"] == 0
    assert khcho["absence_rate"] == 100.0


def test_leaderboard_for_empty_period(app, season):
    empty = Period(date(2024, 1, 1), date(2024, 2, 1))

    result = LeaderboardService(SCORING_RULES["B"]).get_leaderboard(empty)

    assert result["total_games"] == 0
    assert all(entry["points"] == 0.0 for entry in result["leaderboard"])
    assert all(entry["absence_rate"] == 0 for entry in result["leaderboard"])


def test_leaderboard_is_empty_when_database_fails(app, monkeypatch):
    def broken(period):
        raise OperationalError("SELECT", {}, Exception("database is gone"))

    monkeypatch.setattr(Game, "count_in_period", staticmethod(broken))

    result = LeaderboardService(SCORING_RULES["B"]).get_leaderboard(JANUARY)

    assert result["total_games"] == 0
    assert result["leaderboard"] == []


def test_service_from_config(app):
    app.config["SCORING_RULES"] = "A"
    app.config["SCORING_WEIGHTS"] = "win=12"

    service = LeaderboardService.from_config(app.config)

    assert service.weights == get_weights("A", {ActionKind.WIN: 12})


def test_player_stats(app, season):
    ani = season["Ani"]

    stats = LeaderboardService(SCORING_RULES["B"]).get_player_stats(ani.id, JANUARY)

    assert stats["player"]["name"] == "Ani"
    assert stats["total_games"] == 10
    assert stats["games_played"] == 10
    assert stats["absence_rate"] == 0
    assert stats["points"] == 15.0
    assert stats["action_counts"]["win"] == 2
    assert stats["action_counts"]["first_dead"] == 1
    assert len(stats["game_breakdown"]) == 10

    latest = stats["game_breakdown"][0]
    assert latest["game_date"] == "2026-01-10"
    assert latest["actions"] == []

    third = next(g for g in stats["game_breakdown"] if g["game_date"] == "2026-01-03")
    assert third["actions"] == [{"action_type": "first_dead", "points": -5}]


def test_player_stats_for_occasional_player(app, season):
    davo = season["Davo"]

    stats = LeaderboardService(SCORING_RULES["B"]).get_player_stats(davo.id, JANUARY)

    assert stats["games_played"] == 1
    assert stats["absence_rate"] == pytest.approx(90.0)
    assert stats["points"] == 0.5


def test_player_stats_unknown_player(app):
    with pytest.raises(PlayerNotFoundError):
        LeaderboardService(SCORING_RULES["B"]).get_player_stats(42, JANUARY)


def test_unrecognized_stored_action_scores_zero(app, season, caplog):
    ani = season["Ani"]
    first_game = Game.query.filter_by(game_date=date(2026, 1, 1)).one()
    # Written by a newer rule revision, outside Game.record
    db.session.execute(
        text(
            "INSERT INTO game_actions (game_id, player_id, action_type) "
            "VALUES (:game_id, :player_id, 'double_win')"
        ),
        {"game_id": first_game.id, "player_id": ani.id},
    )
    db.session.commit()
    service = LeaderboardService(SCORING_RULES["B"])

    result = service.get_leaderboard(JANUARY)

    board = {entry["player_name"]: entry for entry in result["leaderboard"]}
    assert result["total_games"] == 10
    assert board["Ani"]["points"] == 15.0
    assert "double_win" not in board["Ani"]["action_counts"]
    assert "double_win" in caplog.text

    stats = service.get_player_stats(ani.id, JANUARY)
    assert stats["points"] == 15.0
    first = next(g for g in stats["game_breakdown"] if g["game_date"] == "2026-01-01")
    assert {"action_type": "double_win", "points": 0} in first["actions"]
