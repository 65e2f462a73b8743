from fastapi import APIRouter, Depends, Query

from ..core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..schemas import ApiResponse, GameListOut, GameOut, ok
from ..services.catalog import CatalogStore
from .deps import get_catalog, get_current_user

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/games", response_model=ApiResponse[GameListOut])
def list_store_games(
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    catalog: CatalogStore = Depends(get_catalog),
):
    games, total = catalog.list_games(page, per_page, available_only=True)
    return ok(
        GameListOut(
            games=[GameOut.model_validate(game) for game in games],
            total=total,
            page=page,
            per_page=per_page,
        )
    )
