from fastapi import APIRouter, Depends, Query

from ..schemas import ApiResponse, ProviderGame, ok
from ..services.igdb_client import IgdbClient
from .deps import get_provider, require_admin_access

router = APIRouter(dependencies=[Depends(require_admin_access)])


@router.get("/igdb", response_model=ApiResponse[list[ProviderGame]])
def search_igdb_games(
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=500),
    provider: IgdbClient = Depends(get_provider),
):
    return ok(provider.search(q, limit))
