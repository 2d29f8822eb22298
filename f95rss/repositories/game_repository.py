"""
Repository for Game database operations

Every write for one canonical record (creator, game row, cover, previews and
taxonomy memberships) is committed as a single transaction, so a concurrent
reader sees either the previous state of that game or the new one.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Tuple

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from f95rss.metrics import track_db_query
from f95rss.exceptions import StoreError
from f95rss.models import Cover, Creator, Game, GamePrefix, GameTag, Preview
from f95rss.utils import ensure_utc, now_utc

logger = structlog.get_logger("store")


@dataclass(frozen=True)
class GameView:
    """Read-only snapshot of one stored game and its facets"""

    id: int
    title: str
    version: str
    creator: Optional[str]
    created_at: datetime
    updated_at: datetime
    cover_url: Optional[str] = None
    cover_urls: Tuple[str, ...] = field(default_factory=tuple)
    preview_urls: Tuple[str, ...] = field(default_factory=tuple)
    tag_ids: Tuple[int, ...] = field(default_factory=tuple)
    prefix_ids: Tuple[int, ...] = field(default_factory=tuple)

    @classmethod
    def from_model(cls, game: Game) -> "GameView":
        return cls(
            id=game.id,
            title=game.title,
            version=game.version,
            creator=game.creator.name if game.creator else None,
            created_at=ensure_utc(game.created_at),
            updated_at=ensure_utc(game.updated_at),
            cover_url=game.current_cover.url if game.current_cover else None,
            cover_urls=tuple(c.url for c in game.covers),
            preview_urls=tuple(p.url for p in game.previews),
            tag_ids=tuple(t.tag_id for t in game.tags),
            prefix_ids=tuple(p.prefix_id for p in game.prefixes),
        )


class GameRepository:
    """Repository for Game and facet database operations"""

    def __init__(self, session):
        self.session = session

    @contextmanager
    def _transaction(self, operation: str, game_id: int = None):
        try:
            yield self.session
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            # Keep driver text out of the message, it may carry paths or SQL
            raise StoreError(f"{operation} failed ({e.__class__.__name__})", game_id=game_id) from e

    # === WRITES ===

    @track_db_query("upsert_game", phase="write")
    def upsert_game(self, record, now: datetime = None) -> GameView:
        """
        Insert or overwrite one game and append its facets in one transaction.

        title, version and creator are replaced; created_at is kept from the
        first insert; updated_at is set to ``now`` on every call. A record
        carrying a cover makes it the current one, even if that url was
        stored before; a record without one leaves the current cover alone.
        """
        now = ensure_utc(now or now_utc())
        with self._transaction("upsert_game", game_id=record.id):
            creator_id = self._get_or_create_creator(record.creator) if record.creator else None

            stmt = insert(Game).values(
                id=record.id,
                title=record.title,
                version=record.version,
                creator_id=creator_id,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[Game.id],
                set_={
                    "title": stmt.excluded.title,
                    "version": stmt.excluded.version,
                    "creator_id": stmt.excluded.creator_id,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            self.session.execute(stmt)

            if record.cover_url:
                cover_id = self._append_url(Cover, record.id, record.cover_url)
                self._set_current_cover(record.id, cover_id)
            for url in record.preview_urls:
                self._append_url(Preview, record.id, url)
            self._append_memberships(GameTag, "tag_id", record.id, record.tag_ids)
            self._append_memberships(GamePrefix, "prefix_id", record.id, record.prefix_ids)

        logger.debug("Game upserted", game_id=record.id, version=record.version)
        return self.get_game_by_id(record.id)

    def upsert_creator(self, name: str) -> int:
        """Get or create a creator by its unique name and return its id"""
        with self._transaction("upsert_creator"):
            creator_id = self._get_or_create_creator(name)
        return creator_id

    def append_cover_if_absent(self, game_id: int, url: str) -> None:
        with self._transaction("append_cover", game_id=game_id):
            cover_id = self._append_url(Cover, game_id, url)
            self._set_current_cover(game_id, cover_id, only_if_unset=True)

    def append_preview_if_absent(self, game_id: int, url: str) -> None:
        with self._transaction("append_preview", game_id=game_id):
            self._append_url(Preview, game_id, url)

    def append_tag_memberships(self, game_id: int, tag_ids: Iterable[int]) -> None:
        with self._transaction("append_tags", game_id=game_id):
            self._append_memberships(GameTag, "tag_id", game_id, tag_ids)

    def append_prefix_memberships(self, game_id: int, prefix_ids: Iterable[int]) -> None:
        with self._transaction("append_prefixes", game_id=game_id):
            self._append_memberships(GamePrefix, "prefix_id", game_id, prefix_ids)

    def _get_or_create_creator(self, name: str) -> int:
        # ON CONFLICT DO NOTHING absorbs a concurrent first insert of the same name
        self.session.execute(
            insert(Creator).values(name=name).on_conflict_do_nothing(index_elements=[Creator.name])
        )
        return self.session.execute(select(Creator.id).where(Creator.name == name)).scalar_one()

    def _append_url(self, model, game_id: int, url: str) -> int:
        self.session.execute(
            insert(model)
            .values(game_id=game_id, url=url)
            .on_conflict_do_nothing(index_elements=[model.game_id, model.url])
        )
        return self.session.execute(
            select(model.id).where(model.game_id == game_id, model.url == url)
        ).scalar_one()

    def _set_current_cover(self, game_id: int, cover_id: int, only_if_unset: bool = False) -> None:
        stmt = update(Game).where(Game.id == game_id)
        if only_if_unset:
            stmt = stmt.where(Game.cover_id.is_(None))
        self.session.execute(stmt.values(cover_id=cover_id).execution_options(synchronize_session=False))

    def _append_memberships(self, model, column: str, game_id: int, ids: Iterable[int]) -> None:
        rows = [{"game_id": game_id, column: taxonomy_id} for taxonomy_id in sorted(set(ids))]
        if not rows:
            return
        self.session.execute(insert(model).values(rows).on_conflict_do_nothing())

    # === READS ===

    @track_db_query("get_game_by_id", phase="read")
    def get_game_by_id(self, game_id: int) -> Optional[GameView]:
        """Return the stored game, or None if absent"""
        try:
            # Joined eager loading keeps the whole record in one SELECT,
            # i.e. one consistent snapshot even while a cycle is committing
            game = (
                self.session.query(Game)
                .options(
                    joinedload(Game.creator),
                    joinedload(Game.covers),
                    joinedload(Game.current_cover),
                    joinedload(Game.previews),
                    joinedload(Game.tags),
                    joinedload(Game.prefixes),
                )
                .populate_existing()
                .filter(Game.id == game_id)
                .first()
            )
            view = GameView.from_model(game) if game is not None else None
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"get_game_by_id failed ({e.__class__.__name__})", game_id=game_id) from e
        return view

    def count_games(self) -> int:
        try:
            count = self.session.execute(select(func.count()).select_from(Game)).scalar_one()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"count_games failed ({e.__class__.__name__})") from e
        return count
