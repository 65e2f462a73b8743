from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import joinedload

from ..core.config import DEFAULT_PAGE_SIZE
from ..core.errors import InternalError, NotFound, coerce_store_errors
from ..db import Database
from ..models import Game, LibraryEntry, generate_id, utcnow
from .catalog import normalize_page

logger = logging.getLogger(__name__)


def _dialect_insert(dialect_name: str):
    if dialect_name == "postgresql":
        return postgresql.insert
    if dialect_name == "sqlite":
        return sqlite.insert
    logger.error("Library upsert is not supported on %s", dialect_name)
    raise InternalError()


class LibraryStore:
    def __init__(self, database: Database):
        self.database = database

    @coerce_store_errors
    def install(self, account_id: str, game_id: str, install_path: Optional[str] = None) -> bool:
        """Record the game as installed for the account.

        Returns False when the game is missing or not available.
        """
        now = utcnow()
        insert = _dialect_insert(self.database.dialect_name)
        statement = insert(LibraryEntry).values(
            id=generate_id(),
            user_id=account_id,
            game_id=game_id,
            is_installed=True,
            install_path=install_path,
            installed_at=now,
            play_time_minutes=0,
            created_at=now,
        )
        # Play time and last_played belong to the history and survive reinstalls.
        statement = statement.on_conflict_do_update(
            index_elements=["user_id", "game_id"],
            set_={
                "is_installed": True,
                "install_path": statement.excluded.install_path,
                "installed_at": statement.excluded.installed_at,
            },
        )

        with self.database.session() as db:
            game = db.get(Game, game_id)
            if game is None or not game.is_available:
                return False
            db.execute(statement)
            db.commit()
        logger.info("Installed game %s for account %s", game_id, account_id)
        return True

    @coerce_store_errors
    def uninstall(self, account_id: str, game_id: str) -> bool:
        with self.database.session() as db:
            result = db.execute(
                update(LibraryEntry)
                .where(LibraryEntry.user_id == account_id, LibraryEntry.game_id == game_id)
                .values(is_installed=False, install_path=None)
            )
            db.commit()
        return bool(result.rowcount)

    @coerce_store_errors
    def list_library(
        self,
        account_id: str,
        page: int = 1,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> tuple[list[LibraryEntry], int]:
        page, per_page = normalize_page(page, per_page)
        with self.database.session() as db:
            entries = list(
                db.execute(
                    select(LibraryEntry)
                    .options(joinedload(LibraryEntry.game))
                    .where(LibraryEntry.user_id == account_id)
                    .order_by(LibraryEntry.created_at.desc())
                    .offset((page - 1) * per_page)
                    .limit(per_page)
                ).scalars()
            )
            total = db.execute(
                select(func.count(LibraryEntry.id)).where(LibraryEntry.user_id == account_id)
            ).scalar_one()
        return entries, int(total)

    @coerce_store_errors
    def get_library_entry(self, account_id: str, game_id: str) -> LibraryEntry:
        with self.database.session() as db:
            entry = db.execute(
                select(LibraryEntry)
                .options(joinedload(LibraryEntry.game))
                .where(LibraryEntry.user_id == account_id, LibraryEntry.game_id == game_id)
            ).scalar_one_or_none()
        if entry is None:
            raise NotFound("Library entry")
        return entry

    @coerce_store_errors
    def add_playtime(self, account_id: str, game_id: str, minutes: int) -> bool:
        minutes = max(0, int(minutes))
        with self.database.session() as db:
            result = db.execute(
                update(LibraryEntry)
                .where(LibraryEntry.user_id == account_id, LibraryEntry.game_id == game_id)
                .values(
                    play_time_minutes=LibraryEntry.play_time_minutes + minutes,
                    last_played=utcnow(),
                )
            )
            db.commit()
        return bool(result.rowcount)
