"""
Tests for the scoring engine: base points, participation weighting,
rounding and leaderboard ranking
"""

import logging
import random

import pytest

from app.utils.scoring import (
    ActionKind,
    absence_rate,
    apply_participation_weight,
    build_leaderboard,
    compute_base_points,
    compute_player_points,
    count_actions,
    round2,
)


def test_action_kind_parse():
    assert ActionKind.parse("win") is ActionKind.WIN
    assert ActionKind.parse(ActionKind.BARKING_DEAD) is ActionKind.BARKING_DEAD
    assert ActionKind.parse("double_win") is None
    assert ActionKind.parse(None) is None


def test_base_points_sums_weights(weights):
    actions = ["win", "win", "first_dead", "barking_diffuse", "second_place"]
    # 10 + 10 - 5 - 1 + 5
    assert compute_base_points(actions, weights) == 19


def test_base_points_is_order_independent(weights):
    actions = [kind for kind in ActionKind] * 3
    shuffled = list(actions)
    random.Random(7).shuffle(shuffled)

    expected = sum(weights[kind] * 3 for kind in ActionKind)
    assert compute_base_points(actions, weights) == expected
    assert compute_base_points(shuffled, weights) == expected


def test_base_points_empty(weights):
    assert compute_base_points([], weights) == 0


def test_unknown_action_kind_counts_zero_and_is_logged(weights, caplog):
    with caplog.at_level(logging.WARNING, logger="app.utils.scoring"):
        points = compute_base_points(["win", "nope_kitten"], weights)

    assert points == 10
    assert "nope_kitten" in caplog.text


def test_kind_missing_from_weight_table_counts_zero():
    assert compute_base_points(["win", "first_dead"], {ActionKind.WIN: 10}) == 10


def test_weight_table_is_injected(weights):
    other = dict(weights)
    other[ActionKind.FIRST_DEAD] = -1
    assert compute_base_points(["first_dead"], weights) == -5
    assert compute_base_points(["first_dead"], other) == -1


@pytest.mark.parametrize("base", [-7, 0, 3, 12.5])
@pytest.mark.parametrize("games_played", [0, 1, 4])
def test_zero_total_games_returns_base_points(base, games_played):
    assert apply_participation_weight(base, 0, games_played) == base


@pytest.mark.parametrize("base", [-20, -1, 0, 1, 35])
@pytest.mark.parametrize("total_games", [1, 5, 20])
def test_no_participation_scores_zero(base, total_games):
    assert apply_participation_weight(base, total_games, 0) == 0


@pytest.mark.parametrize("base", [-9, 0, 4, 17.25])
def test_full_participation_has_no_penalty(base):
    assert apply_participation_weight(base, 12, 12) == round2(base)


def test_participation_penalty_scales_both_signs():
    assert apply_participation_weight(10, 20, 18) == 9.0
    assert apply_participation_weight(-10, 20, 18) == -9.0


def test_more_games_than_total_does_not_raise():
    assert apply_participation_weight(10, 4, 6) == 15.0


def test_negative_counts_do_not_raise():
    assert apply_participation_weight(10, 4, -2) == -5.0
    assert apply_participation_weight(10, -4, 2) == -5.0


def test_scaling_is_monotonic_for_positive_points():
    results = [apply_participation_weight(13, 15, played) for played in range(16)]
    assert results == sorted(results)


def test_scaling_is_monotonic_for_negative_points():
    results = [apply_participation_weight(-13, 15, played) for played in range(1, 16)]
    assert results == sorted(results, reverse=True)


def test_round2_halves_away_from_zero():
    assert round2(2.675) == 2.68
    assert round2(-2.675) == -2.68
    assert round2(0.125) == 0.13
    assert round2(1.004) == 1.0
    assert round2(-0.001) == 0.0


def test_player_points_have_at_most_two_decimals(weights):
    for total in range(1, 13):
        for played in range(0, total + 1):
            points = compute_player_points(["win", "barking_dead"], total, played, weights)
            assert round(points, 2) == points


def test_scenario_partial_participation(weights):
    assert compute_player_points(["win"], 20, 18, weights) == 9.0


def test_scenario_full_participation(weights):
    assert compute_player_points(["win", "first_dead"], 10, 10, weights) == 5.0


def test_scenario_no_participation_beats_positive_points(weights):
    assert compute_player_points(["win"], 5, 0, weights) == 0.0


def test_scenario_empty_period(weights):
    assert compute_player_points([], 0, 0, weights) == 0.0


def test_thirds_are_rounded(weights):
    # 10 * 2/3 = 6.666...
    assert compute_player_points(["win"], 3, 2, weights) == 6.67


def test_absence_rate():
    assert absence_rate(20, 18) == pytest.approx(10.0)
    assert absence_rate(3, 1) == pytest.approx(66.6666667)
    assert absence_rate(0, 0) == 0


def test_count_actions_zero_fills_every_kind():
    counts = count_actions(["win", ActionKind.WIN, "barking_dead", "mystery"])

    assert set(counts) == {kind.value for kind in ActionKind}
    assert counts["win"] == 2
    assert counts["barking_dead"] == 1
    assert counts["first_dead"] == 0


def test_leaderboard_sorted_by_points(weights):
    players = [
        {"id": 1, "name": "Ani", "actions": ["win"], "games_played": 18},
        {"id": 2, "name": "Arev", "actions": ["barking_diffuse", "first_exploded"], "games_played": 20},
        {"id": 3, "name": "Davo", "actions": ["win", "first_dead"], "games_played": 20},
    ]

    board = build_leaderboard(players, 20, weights)

    assert [entry["points"] for entry in board] == [9.0, 5.0, -2.0]
    assert [entry["player_id"] for entry in board] == [1, 3, 2]
    for first, second in zip(board, board[1:]):
        assert first["points"] >= second["points"]


def test_leaderboard_entry_fields(weights):
    board = build_leaderboard(
        [{"id": 7, "name": "Seroj", "color": "#00FF00", "actions": ["win"], "games_played": 18}],
        20,
        weights,
    )

    assert board == [
        {
            "player_id": 7,
            "player_name": "Seroj",
            "color": "#00FF00",
            "points": 9.0,
            "games_played": 18,
            "total_games": 20,
            "absence_rate": pytest.approx(10.0),
            "action_counts": {
                "first_dead": 0,
                "first_exploded": 0,
                "barking_diffuse": 0,
                "barking_dead": 0,
                "second_place": 0,
                "win": 1,
            },
        }
    ]


def test_leaderboard_ties_break_by_name_then_id(weights):
    players = [
        {"id": 5, "name": "davo", "actions": ["win"], "games_played": 4},
        {"id": 2, "name": "Ani", "actions": ["win"], "games_played": 4},
        {"id": 9, "name": "Ani", "actions": ["win"], "games_played": 4},
        {"id": 1, "name": "Khcho", "actions": [], "games_played": 4},
    ]

    expected = [2, 9, 5, 1]
    assert [e["player_id"] for e in build_leaderboard(players, 4, weights)] == expected
    assert [
        e["player_id"] for e in build_leaderboard(list(reversed(players)), 4, weights)
    ] == expected


def test_leaderboard_for_empty_period(weights):
    board = build_leaderboard(
        [{"id": 1, "name": "Ani", "actions": [], "games_played": 0}], 0, weights
    )
    assert board[0]["points"] == 0.0
    assert board[0]["absence_rate"] == 0


def test_leaderboard_with_no_players(weights):
    assert build_leaderboard([], 10, weights) == []
