"""
Repositories package

Each repository encapsulates database operations for a model group and is
constructed with the session it works on:

Usage:
    from f95rss.repositories.game_repository import GameRepository
    store = GameRepository(db.session)
    view = store.get_game_by_id(123)
"""

from .game_repository import GameRepository, GameView

__all__ = ["GameRepository", "GameView"]
