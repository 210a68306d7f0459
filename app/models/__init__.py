from app import db  # noqa: F401 - imported for model imports

from .game import Game, GameAction, GameParticipant, GameRecordError
from .player import Player

__all__ = [
    "Player",
    "Game",
    "GameParticipant",
    "GameAction",
    "GameRecordError",
]
