from datetime import datetime, timezone

from sqlalchemy import and_, func

from app import db
from app.utils.scoring import ActionKind


class GameRecordError(ValueError):
    """Raised when a game submission breaks the recording rules"""


class Game(db.Model):
    __tablename__ = "games"

    id = db.Column(db.Integer, primary_key=True)
    game_date = db.Column(db.Date, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    participants = db.relationship(
        "GameParticipant",
        backref="game",
        lazy="select",
        cascade="all, delete-orphan",
    )
    actions = db.relationship(
        "GameAction",
        backref="game",
        lazy="select",
        cascade="all, delete-orphan",
    )

    __table_args__ = (db.Index("idx_game_date", "game_date"),)

    def __repr__(self):
        return f"<Game {self.id} on {self.game_date}>"

    @staticmethod
    def _validate_submission(participant_ids, actions):
        """
        Check a game submission and normalize it.

        Returns:
            (participant_ids, [(player_id, ActionKind), ...])

        Raises:
            GameRecordError: no participants, unknown players or action kinds,
                an action kind used twice, or an action for a non-participant
        """
        from .player import Player

        participant_ids = list(dict.fromkeys(participant_ids or []))
        if not participant_ids:
            raise GameRecordError("At least one participant is required")

        known_ids = {
            player_id
            for (player_id,) in db.session.query(Player.id)
            .filter(Player.id.in_(participant_ids))
            .all()
        }
        missing = [pid for pid in participant_ids if pid not in known_ids]
        if missing:
            raise GameRecordError(f"Unknown player id(s): {missing}")

        parsed_actions = []
        seen_kinds = set()
        for player_id, action_type in actions or []:
            kind = ActionKind.parse(action_type)
            if kind is None:
                raise GameRecordError(f"Unknown action type '{action_type}'")
            if kind in seen_kinds:
                raise GameRecordError(
                    "Each action type can only be assigned once per game"
                )
            if player_id not in known_ids:
                raise GameRecordError(
                    f"Player {player_id} is not a participant of this game"
                )
            seen_kinds.add(kind)
            parsed_actions.append((player_id, kind))

        return participant_ids, parsed_actions

    def _set_submission(self, participant_ids, parsed_actions):
        self.participants = [
            GameParticipant(player_id=player_id) for player_id in participant_ids
        ]
        self.actions = [
            GameAction(player_id=player_id, action_type=kind.value)
            for player_id, kind in parsed_actions
        ]

    @staticmethod
    def record(game_date, participant_ids, actions=None):
        """
        Record a game with its participants and actions.

        Args:
            game_date: date the game was played
            participant_ids: ids of the players present
            actions: iterable of (player_id, action kind) pairs

        Raises:
            GameRecordError: see _validate_submission
        """
        participant_ids, parsed_actions = Game._validate_submission(
            participant_ids, actions
        )

        game = Game(game_date=game_date)
        game._set_submission(participant_ids, parsed_actions)
        db.session.add(game)
        return game

    def update(self, game_date, participant_ids, actions=None):
        """
        Replace the date, participants and actions of a recorded game.

        The submission follows the same rules as record(); nothing is changed
        when it is rejected. The caller commits.

        Raises:
            GameRecordError: see _validate_submission
        """
        participant_ids, parsed_actions = Game._validate_submission(
            participant_ids, actions
        )

        self.game_date = game_date

        # Old rows must be gone before the unique constraints see the new ones
        self.participants.clear()
        self.actions.clear()
        db.session.flush()

        self._set_submission(participant_ids, parsed_actions)
        return self

    @staticmethod
    def in_period(period):
        """Filter expression for games inside a half-open period"""
        return and_(Game.game_date >= period.start, Game.game_date < period.end)

    @staticmethod
    def count_in_period(period):
        """Total games played by the group in the period"""
        return Game.query.filter(Game.in_period(period)).count()

    @staticmethod
    def get_for_period(period):
        """Games in the period, most recent first"""
        return (
            Game.query.filter(Game.in_period(period))
            .order_by(Game.game_date.desc(), Game.created_at.desc())
            .all()
        )

    @staticmethod
    def get_breakdown_for_player(player_id, period):
        """
        Games the player took part in during the period, most recent first.

        Returns:
            list of (Game, [ActionKind, ...]) with only that player's actions;
            stored kinds that are no longer recognized are passed through as
            plain strings
        """
        games = (
            Game.query.join(GameParticipant, GameParticipant.game_id == Game.id)
            .filter(GameParticipant.player_id == player_id, Game.in_period(period))
            .order_by(Game.game_date.desc(), Game.created_at.desc())
            .all()
        )

        breakdown = []
        for game in games:
            kinds = [
                action.kind or action.action_type
                for action in game.actions
                if action.player_id == player_id
            ]
            breakdown.append((game, kinds))
        return breakdown

    def to_dict(self):
        """Convert game to dictionary"""
        return {
            "id": self.id,
            "game_date": self.game_date.isoformat() if self.game_date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "participants": [
                {"id": p.player_id, "name": p.player.name if p.player else None}
                for p in self.participants
            ],
            "actions": [action.to_dict() for action in self.actions],
        }


class GameParticipant(db.Model):
    __tablename__ = "game_participants"

    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey("games.id"), nullable=False)
    player_id = db.Column(db.Integer, db.ForeignKey("players.id"), nullable=False)

    __table_args__ = (
        db.UniqueConstraint("game_id", "player_id", name="unique_game_participant"),
        db.Index("idx_participant_player", "player_id"),
    )

    def __repr__(self):
        return f"<GameParticipant game_id={self.game_id} player_id={self.player_id}>"

    @staticmethod
    def games_played_by_player(period, player_id=None):
        """
        Count distinct games each player took part in during the period.

        Returns:
            dict mapping player_id to games played (players with none are absent)
        """
        query = (
            db.session.query(
                GameParticipant.player_id,
                func.count(func.distinct(GameParticipant.game_id)),
            )
            .join(Game, GameParticipant.game_id == Game.id)
            .filter(Game.in_period(period))
        )
        if player_id is not None:
            query = query.filter(GameParticipant.player_id == player_id)

        rows = query.group_by(GameParticipant.player_id).all()
        return {pid: int(count) for pid, count in rows}


class GameAction(db.Model):
    __tablename__ = "game_actions"

    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey("games.id"), nullable=False)
    player_id = db.Column(db.Integer, db.ForeignKey("players.id"), nullable=False)
    # ActionKind value; kept as plain text so rows written under other rule
    # revisions still load
    action_type = db.Column(db.String(32), nullable=False)

    # One occurrence of each action kind per game
    __table_args__ = (
        db.UniqueConstraint("game_id", "action_type", name="unique_game_action_type"),
        db.Index("idx_action_player", "player_id"),
    )

    def __repr__(self):
        return f"<GameAction {self.action_type} player_id={self.player_id} game_id={self.game_id}>"

    @property
    def kind(self):
        """ActionKind for this action, or None if the stored value is unknown"""
        return ActionKind.parse(self.action_type)

    @staticmethod
    def action_counts_by_player(period, player_id=None):
        """
        Count each player's actions per kind during the period.

        Only actions from games the player participated in are counted.

        Returns:
            dict mapping player_id to {ActionKind: count}; unrecognized
            stored kinds are keyed by their raw string
        """
        query = (
            db.session.query(
                GameAction.player_id,
                GameAction.action_type,
                func.count(GameAction.id),
            )
            .join(Game, GameAction.game_id == Game.id)
            .join(
                GameParticipant,
                and_(
                    GameParticipant.game_id == GameAction.game_id,
                    GameParticipant.player_id == GameAction.player_id,
                ),
            )
            .filter(Game.in_period(period))
        )
        if player_id is not None:
            query = query.filter(GameAction.player_id == player_id)

        rows = query.group_by(GameAction.player_id, GameAction.action_type).all()

        counts = {}
        for pid, action_type, count in rows:
            kind = ActionKind.parse(action_type) or action_type
            counts.setdefault(pid, {})[kind] = int(count)
        return counts

    def to_dict(self):
        return {
            "id": self.id,
            "player_id": self.player_id,
            "player_name": self.player.name if self.player else None,
            "action_type": self.action_type,
        }
