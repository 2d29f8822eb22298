"""
Models: GameTag, GamePrefix

Pure set membership between a game and the catalog's numeric taxonomy ids.
"""

from f95rss.db import db


class GameTag(db.Model):
    __tablename__ = "game_tag"

    game_id = db.Column(db.Integer, db.ForeignKey("game.id"), primary_key=True)
    tag_id = db.Column(db.Integer, primary_key=True)


class GamePrefix(db.Model):
    __tablename__ = "game_prefix"

    game_id = db.Column(db.Integer, db.ForeignKey("game.id"), primary_key=True)
    prefix_id = db.Column(db.Integer, primary_key=True)
