"""
Models: Cover, Preview

Append-only image urls attached to a game. A url is unique within one game;
two games may share the same asset.
"""

from f95rss.db import db


class Cover(db.Model):
    __tablename__ = "cover"

    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey("game.id"), nullable=False, index=True)
    url = db.Column(db.String, nullable=False)

    __table_args__ = (db.UniqueConstraint("game_id", "url", name="uq_cover_game_url"),)


class Preview(db.Model):
    __tablename__ = "preview"

    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey("game.id"), nullable=False, index=True)
    url = db.Column(db.String, nullable=False)

    __table_args__ = (db.UniqueConstraint("game_id", "url", name="uq_preview_game_url"),)
