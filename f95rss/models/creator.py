"""
Model: Creator
"""

from f95rss.db import db


class Creator(db.Model):
    __tablename__ = "creator"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String, unique=True, nullable=False)
