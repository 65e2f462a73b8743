from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from sqlalchemy import delete, func, select, update

from ..core.config import DEFAULT_PAGE_SIZE, GAMES_AVAILABLE_BY_DEFAULT, MAX_PAGE_SIZE
from ..core.errors import NotFound, coerce_store_errors
from ..db import Database
from ..models import Game, utcnow
from ..schemas import ProviderGame
from .metadata import METADATA_COLUMNS, denormalize

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "file_path", "file_size", "is_available")


def normalize_page(page: Optional[int], per_page: Optional[int]) -> tuple[int, int]:
    page_value = int(page or 1)
    if page_value < 1:
        page_value = 1
    per_page_value = int(per_page or DEFAULT_PAGE_SIZE)
    per_page_value = max(1, min(MAX_PAGE_SIZE, per_page_value))
    return page_value, per_page_value


class CatalogStore:
    def __init__(self, database: Database, available_by_default: bool = GAMES_AVAILABLE_BY_DEFAULT):
        self.database = database
        self.available_by_default = available_by_default

    @coerce_store_errors
    def create_game(
        self,
        name: str,
        igdb_id: Optional[int] = None,
        file_path: Optional[str] = None,
        file_size: Optional[int] = None,
        added_by: Optional[str] = None,
    ) -> Game:
        game = Game(
            name=name,
            igdb_id=igdb_id,
            file_path=file_path,
            file_size=file_size,
            is_available=self.available_by_default,
            added_by=added_by,
        )
        with self.database.session() as db:
            db.add(game)
            db.commit()
            db.refresh(game)
        logger.info("Added game %s (%s)", game.name, game.id)
        return game

    @coerce_store_errors
    def get_game(self, game_id: str) -> Game:
        with self.database.session() as db:
            game = db.get(Game, game_id)
        if game is None:
            raise NotFound("Game")
        return game

    @coerce_store_errors
    def list_games(
        self,
        page: int = 1,
        per_page: int = DEFAULT_PAGE_SIZE,
        available_only: bool = False,
    ) -> tuple[list[Game], int]:
        page, per_page = normalize_page(page, per_page)
        query = select(Game)
        count_query = select(func.count(Game.id))
        if available_only:
            query = query.where(Game.is_available.is_(True))
            count_query = count_query.where(Game.is_available.is_(True))

        with self.database.session() as db:
            games = list(
                db.execute(
                    query.order_by(Game.created_at.desc())
                    .offset((page - 1) * per_page)
                    .limit(per_page)
                ).scalars()
            )
            total = db.execute(count_query).scalar_one()
        return games, int(total)

    @coerce_store_errors
    def update_game(self, game_id: str, fields: Mapping[str, Any]) -> Game:
        """Apply only the fields present in ``fields``.

        Each field is written by its own UPDATE, so concurrent edits of the same
        game can interleave between fields. An empty update only touches
        ``updated_at``.
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        with self.database.session() as db:
            if not fields:
                db.execute(update(Game).where(Game.id == game_id).values(updated_at=utcnow()))
                db.commit()
            for field in UPDATABLE_FIELDS:
                if field not in fields:
                    continue
                db.execute(
                    update(Game)
                    .where(Game.id == game_id)
                    .values({field: fields[field], "updated_at": utcnow()})
                )
                db.commit()
        return self.get_game(game_id)

    @coerce_store_errors
    def delete_game(self, game_id: str) -> bool:
        with self.database.session() as db:
            result = db.execute(delete(Game).where(Game.id == game_id))
            db.commit()
        deleted = bool(result.rowcount)
        if deleted:
            logger.info("Deleted game %s", game_id)
        return deleted

    @coerce_store_errors
    def apply_metadata(self, game_id: str, record: ProviderGame) -> Game:
        values = denormalize(record)
        values = {column: values[column] for column in METADATA_COLUMNS}
        values["updated_at"] = utcnow()
        with self.database.session() as db:
            result = db.execute(update(Game).where(Game.id == game_id).values(values))
            db.commit()
        if not result.rowcount:
            raise NotFound("Game")
        logger.info("Applied IGDB metadata %s to game %s", record.id, game_id)
        return self.get_game(game_id)
