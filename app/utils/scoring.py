"""
Scoring Engine for the Kittens Scoreboard

This module turns a player's recorded actions plus participation counts into a
weighted point total, and ranks players into a leaderboard.
Everything here is pure: no database access, no Flask context.
The weight table is always passed in, see app/utils/scoring_rules.py.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


class ActionKind(Enum):
    FIRST_DEAD = "first_dead"
    FIRST_EXPLODED = "first_exploded"
    BARKING_DIFFUSE = "barking_diffuse"
    BARKING_DEAD = "barking_dead"
    SECOND_PLACE = "second_place"
    WIN = "win"

    @classmethod
    def parse(cls, value):
        """Return the matching ActionKind, or None if value is not a known kind"""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


def round2(value):
    """
    Round to 2 decimal places, halves away from zero.

    The float is rounded from its shortest decimal representation so that
    2.675 becomes 2.68 rather than 2.67.
    """
    rounded = Decimal(repr(float(value))).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    # Avoid returning -0.0 for tiny negative values
    return float(rounded) + 0.0


def compute_base_points(actions, weights):
    """
    Sum the point weight of every action.

    Args:
        actions: Iterable of ActionKind members or their string values
        weights: Mapping of ActionKind to integer points

    Returns:
        Unrounded point total. Unknown kinds contribute nothing.
    """
    total = 0
    for action in actions:
        kind = ActionKind.parse(action)
        if kind is None:
            logger.warning(f"Ignoring unknown action kind: {action!r}")
            continue
        if kind not in weights:
            logger.warning(f"No point weight configured for {kind.value}, counting 0")
            continue
        total += weights[kind]
    return total


def apply_participation_weight(base_points, total_games, games_played):
    """
    Scale points by the share of period games the player took part in.

    - No games in the period: points are returned as they are.
    - Player did not play at all: 0, whatever the base points.
    - Otherwise: base_points * games_played / total_games.

    The result is rounded to 2 decimal places.
    """
    if total_games == 0:
        return round2(base_points)

    if games_played == 0:
        return 0.0

    return round2(base_points * (games_played / total_games))


def compute_player_points(actions, total_games, games_played, weights):
    """Weighted, rounded point total for one player over a period"""
    base_points = compute_base_points(actions, weights)
    return round2(apply_participation_weight(base_points, total_games, games_played))


def absence_rate(total_games, games_played):
    """Percentage of period games the player missed (unrounded)"""
    if total_games > 0:
        return (total_games - games_played) / total_games * 100
    return 0


def count_actions(actions):
    """Count actions per kind, every ActionKind present (zero filled)"""
    counts = {kind.value: 0 for kind in ActionKind}
    for action in actions:
        kind = ActionKind.parse(action)
        if kind is not None:
            counts[kind.value] += 1
    return counts


def _ranking_key(entry):
    name = entry["player_name"] or ""
    return (-entry["points"], name.casefold(), entry["player_id"])


def build_leaderboard(players, total_games, weights):
    """
    Score and rank players for a period.

    Args:
        players: Iterable of dicts with "id", "name", "actions" and
            "games_played" keys ("color" is optional)
        total_games: Number of games played by the group in the period
        weights: Mapping of ActionKind to integer points

    Returns:
        List of leaderboard entries sorted by points (descending). Equal
        points are ordered by player name (case-insensitive), then player id.
    """
    leaderboard = []

    for player in players:
        actions = list(player.get("actions") or [])
        games_played = player.get("games_played") or 0

        leaderboard.append(
            {
                "player_id": player["id"],
                "player_name": player.get("name"),
                "color": player.get("color"),
                "points": compute_player_points(
                    actions, total_games, games_played, weights
                ),
                "games_played": games_played,
                "total_games": total_games,
                "absence_rate": absence_rate(total_games, games_played),
                "action_counts": count_actions(actions),
            }
        )

    leaderboard.sort(key=_ranking_key)

    return leaderboard
