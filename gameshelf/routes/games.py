from fastapi import APIRouter, Depends, Query

from ..core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.errors import NotFound
from ..models import Account
from ..schemas import (
    ApiResponse,
    GameCreate,
    GameListOut,
    GameOut,
    GameUpdate,
    ok,
)
from ..services.catalog import CatalogStore
from ..services.igdb_client import IgdbClient
from ..services.metadata import sync_game_metadata
from .deps import get_catalog, get_current_user, get_provider, require_admin_access

router = APIRouter()


@router.get("", response_model=ApiResponse[GameListOut])
def list_games(
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    _admin: Account = Depends(require_admin_access),
    catalog: CatalogStore = Depends(get_catalog),
):
    games, total = catalog.list_games(page, per_page)
    return ok(
        GameListOut(
            games=[GameOut.model_validate(game) for game in games],
            total=total,
            page=page,
            per_page=per_page,
        )
    )


@router.post("", response_model=ApiResponse[GameOut], status_code=201)
def create_game(
    payload: GameCreate,
    admin: Account = Depends(require_admin_access),
    catalog: CatalogStore = Depends(get_catalog),
):
    game = catalog.create_game(
        payload.name,
        igdb_id=payload.igdb_id,
        file_path=payload.file_path,
        file_size=payload.file_size,
        added_by=admin.id,
    )
    return ok(GameOut.model_validate(game))


@router.get("/{game_id}", response_model=ApiResponse[GameOut])
def get_game(
    game_id: str,
    _current_user: Account = Depends(get_current_user),
    catalog: CatalogStore = Depends(get_catalog),
):
    return ok(GameOut.model_validate(catalog.get_game(game_id)))


@router.put("/{game_id}", response_model=ApiResponse[GameOut])
def update_game(
    game_id: str,
    payload: GameUpdate,
    _admin: Account = Depends(require_admin_access),
    catalog: CatalogStore = Depends(get_catalog),
):
    game = catalog.update_game(game_id, payload.model_dump(exclude_unset=True))
    return ok(GameOut.model_validate(game))


@router.delete("/{game_id}", response_model=ApiResponse[None])
def delete_game(
    game_id: str,
    _admin: Account = Depends(require_admin_access),
    catalog: CatalogStore = Depends(get_catalog),
):
    if not catalog.delete_game(game_id):
        raise NotFound("Game")
    return ok(None)


@router.post("/{game_id}/metadata", response_model=ApiResponse[GameOut])
def fetch_game_metadata(
    game_id: str,
    _admin: Account = Depends(require_admin_access),
    catalog: CatalogStore = Depends(get_catalog),
    provider: IgdbClient = Depends(get_provider),
):
    game = sync_game_metadata(catalog, provider, game_id)
    return ok(GameOut.model_validate(game))
