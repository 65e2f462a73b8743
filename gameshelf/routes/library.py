from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from ..core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.errors import NotFound
from ..models import Account
from ..schemas import (
    ApiResponse,
    InstallRequest,
    LibraryEntryOut,
    LibraryListOut,
    PlaytimeIn,
    ok,
)
from ..services.library import LibraryStore
from .deps import get_current_user, get_library

router = APIRouter()


@router.get("", response_model=ApiResponse[LibraryListOut])
def list_library(
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: Account = Depends(get_current_user),
    library: LibraryStore = Depends(get_library),
):
    entries, total = library.list_library(current_user.id, page, per_page)
    return ok(
        LibraryListOut(
            games=[LibraryEntryOut.from_entry(entry) for entry in entries],
            total=total,
            page=page,
            per_page=per_page,
        )
    )


@router.get("/{game_id}", response_model=ApiResponse[LibraryEntryOut])
def get_library_entry(
    game_id: str,
    current_user: Account = Depends(get_current_user),
    library: LibraryStore = Depends(get_library),
):
    entry = library.get_library_entry(current_user.id, game_id)
    return ok(LibraryEntryOut.from_entry(entry))


@router.post("/{game_id}/install", response_model=ApiResponse[LibraryEntryOut], status_code=201)
def install_game(
    game_id: str,
    payload: Optional[InstallRequest] = Body(default=None),
    current_user: Account = Depends(get_current_user),
    library: LibraryStore = Depends(get_library),
):
    install_path = payload.install_path if payload else None
    if not library.install(current_user.id, game_id, install_path):
        raise NotFound("Available game")
    entry = library.get_library_entry(current_user.id, game_id)
    return ok(LibraryEntryOut.from_entry(entry))


@router.delete("/{game_id}", response_model=ApiResponse[None])
def uninstall_game(
    game_id: str,
    current_user: Account = Depends(get_current_user),
    library: LibraryStore = Depends(get_library),
):
    if not library.uninstall(current_user.id, game_id):
        raise NotFound("Library entry")
    return ok(None)


@router.post("/{game_id}/playtime", response_model=ApiResponse[LibraryEntryOut])
def add_playtime(
    game_id: str,
    payload: PlaytimeIn,
    current_user: Account = Depends(get_current_user),
    library: LibraryStore = Depends(get_library),
):
    if not library.add_playtime(current_user.id, game_id, payload.minutes):
        raise NotFound("Library entry")
    entry = library.get_library_entry(current_user.id, game_id)
    return ok(LibraryEntryOut.from_entry(entry))
