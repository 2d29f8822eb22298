"""
Models package

One module per table:
- game.py
- creator.py
- media.py (covers and previews)
- taxonomy.py (tag and prefix memberships)
"""

from .creator import Creator
from .game import Game
from .media import Cover, Preview
from .taxonomy import GamePrefix, GameTag

__all__ = [
    "Creator",
    "Game",
    "Cover",
    "Preview",
    "GameTag",
    "GamePrefix",
]
