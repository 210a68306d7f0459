from datetime import datetime, timezone

from app import db

DEFAULT_PLAYER_COLOR = "#FF6B35"


class Player(db.Model):
    __tablename__ = "players"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True, index=True)

    # Chart/leaderboard color
    color = db.Column(db.String(7), default=DEFAULT_PLAYER_COLOR)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    participations = db.relationship(
        "GameParticipant", backref="player", lazy="dynamic", cascade="all, delete"
    )
    actions = db.relationship(
        "GameAction", backref="player", lazy="dynamic", cascade="all, delete"
    )

    def __repr__(self):
        return f"<Player {self.name}>"

    @staticmethod
    def create(name, color=None):
        """Create a new player (name is trimmed and required)"""
        name = (name or "").strip()
        if not name:
            raise ValueError("Player name is required")

        player = Player(name=name, color=color or DEFAULT_PLAYER_COLOR)
        db.session.add(player)
        return player

    def update(self, name=None, color=None):
        """
        Rename and/or recolor the player. The caller commits.

        Raises:
            ValueError: blank name, or a name already used by another player
        """
        if name is not None:
            name = name.strip()
            if not name:
                raise ValueError("Player name is required")
            clash = Player.query.filter(
                Player.name == name, Player.id != self.id
            ).first()
            if clash:
                raise ValueError(f"Player with name '{name}' already exists")
            self.name = name

        if color is not None:
            self.color = color or DEFAULT_PLAYER_COLOR
        return self

    @staticmethod
    def get_all():
        """All players ordered by name"""
        return Player.query.order_by(Player.name.asc()).all()

    def to_dict(self):
        """Convert player to dictionary"""
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color or DEFAULT_PLAYER_COLOR,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
