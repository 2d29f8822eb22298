"""
Model: Game

The primary key is the thread id assigned by the catalog, never generated here.
"""

from f95rss.db import db
from f95rss.utils import now_utc


class Game(db.Model):
    __tablename__ = "game"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    title = db.Column(db.String, nullable=False)
    version = db.Column(db.String, nullable=False)
    creator_id = db.Column(db.Integer, db.ForeignKey("creator.id"), nullable=True, index=True)
    # Cover row currently shown; plain column as cover.game_id already references game
    cover_id = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=now_utc)
    # Advanced on every upsert, even when nothing changed; the feed's pubDate
    updated_at = db.Column(db.DateTime, nullable=False, default=now_utc, index=True)

    creator = db.relationship("Creator", backref=db.backref("games", lazy="dynamic"))
    covers = db.relationship("Cover", order_by="Cover.id", backref="game", lazy="select")
    current_cover = db.relationship(
        "Cover", primaryjoin="foreign(Game.cover_id) == Cover.id", uselist=False, viewonly=True
    )
    previews = db.relationship("Preview", order_by="Preview.id", backref="game", lazy="select")
    tags = db.relationship("GameTag", order_by="GameTag.tag_id", lazy="select")
    prefixes = db.relationship("GamePrefix", order_by="GamePrefix.prefix_id", lazy="select")
