"""
Kittens Scoreboard Leaderboard Service

Resolves a period to the aggregates the scoring engine needs (games played by
the group, games played per player, action counts per player) and hands them
to app.utils.scoring.
"""

from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.models import Game, GameAction, GameParticipant, Player
from app.models.player import DEFAULT_PLAYER_COLOR
from app.utils.logging_config import ContextualLogger
from app.utils.performance import timer
from app.utils.scoring import (
    absence_rate,
    build_leaderboard,
    compute_player_points,
    count_actions,
)
from app.utils.scoring_rules import describe_weights, weights_from_config


class PlayerNotFoundError(LookupError):
    """Raised when player stats are requested for an unknown player"""


def _expand_counts(counts):
    """Turn {ActionKind: count} into a flat list of kinds"""
    actions = []
    for kind, count in counts.items():
        actions.extend([kind] * count)
    return actions


class LeaderboardService:
    """Builds leaderboards and player statistics from recorded games"""

    def __init__(self, weights):
        self.weights = dict(weights)

    @classmethod
    def from_config(cls, config):
        """Create a service using the weight table configured for the app"""
        return cls(weights_from_config(config))

    def _empty_leaderboard(self, period):
        return {
            "period": period.to_dict(),
            "total_games": 0,
            "scoring_rules": describe_weights(self.weights),
            "leaderboard": [],
        }

    @timer
    def get_leaderboard(self, period):
        """
        Leaderboard for every registered player over a period.

        Database failures are logged and produce an empty leaderboard.
        """
        log = ContextualLogger(__name__, {"period": repr(period)})

        try:
            total_games = Game.count_in_period(period)
            games_played = GameParticipant.games_played_by_player(period)
            action_counts = GameAction.action_counts_by_player(period)
            players = Player.get_all()
        except SQLAlchemyError as e:
            db.session.rollback()
            log.error(f"Failed to load leaderboard data: {e}")
            return self._empty_leaderboard(period)

        leaderboard = build_leaderboard(
            (
                {
                    "id": player.id,
                    "name": player.name,
                    "color": player.color or DEFAULT_PLAYER_COLOR,
                    "actions": _expand_counts(action_counts.get(player.id, {})),
                    "games_played": games_played.get(player.id, 0),
                }
                for player in players
            ),
            total_games,
            self.weights,
        )

        log.info(
            f"Built leaderboard for {len(leaderboard)} players over {total_games} games"
        )

        return {
            "period": period.to_dict(),
            "total_games": total_games,
            "scoring_rules": describe_weights(self.weights),
            "leaderboard": leaderboard,
        }

    @timer
    def get_player_stats(self, player_id, period):
        """
        Detailed statistics for one player over a period.

        Raises:
            PlayerNotFoundError: if the player does not exist
        """
        player = db.session.get(Player, player_id)
        if player is None:
            raise PlayerNotFoundError(f"Player {player_id} not found")

        total_games = Game.count_in_period(period)
        games_played = GameParticipant.games_played_by_player(
            period, player_id=player_id
        ).get(player_id, 0)
        counts = GameAction.action_counts_by_player(period, player_id=player_id).get(
            player_id, {}
        )
        actions = _expand_counts(counts)

        game_breakdown = []
        for game, kinds in Game.get_breakdown_for_player(player_id, period):
            game_breakdown.append(
                {
                    "game_id": game.id,
                    "game_date": game.game_date.isoformat(),
                    "actions": [
                        {
                            "action_type": getattr(kind, "value", kind),
                            "points": self.weights.get(kind, 0),
                        }
                        for kind in kinds
                    ],
                }
            )

        return {
            "player": player.to_dict(),
            "period": period.to_dict(),
            "total_games": total_games,
            "games_played": games_played,
            "absence_rate": absence_rate(total_games, games_played),
            "points": compute_player_points(
                actions, total_games, games_played, self.weights
            ),
            "action_counts": count_actions(actions),
            "game_breakdown": game_breakdown,
        }
