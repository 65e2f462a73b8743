from datetime import date, datetime
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, EmailStr, Field, field_validator

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool
    data: Optional[T] = None


def ok(data: Any) -> dict:
    return {"success": True, "data": data}


def failure(message: str) -> dict:
    return {"success": False, "error": message}


class LoginRequest(BaseModel):
    username: str
    password: str


class AccountCreate(BaseModel):
    username: str
    password: str
    email: Optional[EmailStr] = None
    is_admin: bool = False

    @field_validator("username")
    @classmethod
    def username_shape(cls, value: str) -> str:
        if not value or value.strip() != value:
            raise ValueError("must not be blank or padded with whitespace")
        if len(value) < 3:
            raise ValueError("must be at least 3 characters")
        if len(value) > 50:
            raise ValueError("must be at most 50 characters")
        return value

    @field_validator("password")
    @classmethod
    def password_length(cls, value: str) -> str:
        if len(value) < 8:
            raise ValueError("must be at least 8 characters")
        # bcrypt only looks at the first 72 bytes.
        if len(value.encode("utf-8")) > 72:
            raise ValueError("must be at most 72 bytes")
        return value


class AccountOut(BaseModel):
    id: str
    username: str
    email: Optional[str] = None
    is_admin: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoginOut(BaseModel):
    user: AccountOut
    token: str
    expires_at: datetime


class SweepOut(BaseModel):
    deleted: int


class GameCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    igdb_id: Optional[int] = None
    file_path: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)


class GameUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    file_path: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)
    is_available: Optional[bool] = None

    @field_validator("name", "is_available")
    @classmethod
    def not_null(cls, value):
        # Omit the field to leave it unchanged; these columns cannot be cleared.
        if value is None:
            raise ValueError("must not be null")
        return value


class GameOut(BaseModel):
    id: str
    igdb_id: Optional[int] = None
    name: str
    summary: Optional[str] = None
    storyline: Optional[str] = None
    rating: Optional[float] = None
    release_date: Optional[date] = None
    cover_url: Optional[str] = None
    screenshots: Optional[List[str]] = None
    genres: Optional[List[str]] = None
    platforms: Optional[List[str]] = None
    developer: Optional[str] = None
    publisher: Optional[str] = None
    file_path: Optional[str] = None
    file_size: Optional[int] = None
    is_available: bool
    added_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GameListOut(BaseModel):
    games: List[GameOut]
    total: int
    page: int
    per_page: int


class GameSummaryOut(BaseModel):
    id: str
    name: str
    summary: Optional[str] = None
    rating: Optional[float] = None
    cover_url: Optional[str] = None
    genres: Optional[List[str]] = None
    developer: Optional[str] = None
    publisher: Optional[str] = None

    class Config:
        from_attributes = True


class LibraryEntryOut(BaseModel):
    user_game_id: str
    is_installed: bool
    install_path: Optional[str] = None
    installed_at: Optional[datetime] = None
    last_played: Optional[datetime] = None
    play_time_minutes: int
    game: GameSummaryOut

    @classmethod
    def from_entry(cls, entry: Any) -> "LibraryEntryOut":
        return cls(
            user_game_id=entry.id,
            is_installed=bool(entry.is_installed),
            install_path=entry.install_path,
            installed_at=entry.installed_at,
            last_played=entry.last_played,
            play_time_minutes=int(entry.play_time_minutes or 0),
            game=GameSummaryOut.model_validate(entry.game),
        )


class LibraryListOut(BaseModel):
    games: List[LibraryEntryOut]
    total: int
    page: int
    per_page: int


class InstallRequest(BaseModel):
    install_path: Optional[str] = None


class PlaytimeIn(BaseModel):
    minutes: int = Field(ge=1)


class ProviderImage(BaseModel):
    id: int
    url: Optional[str] = None


class ProviderNamed(BaseModel):
    id: int
    name: Optional[str] = None


class ProviderInvolvedCompany(BaseModel):
    company: ProviderNamed
    developer: bool = False
    publisher: bool = False


class ProviderGame(BaseModel):
    id: int
    name: str
    summary: Optional[str] = None
    storyline: Optional[str] = None
    rating: Optional[float] = None
    first_release_date: Optional[int] = None
    cover: Optional[ProviderImage] = None
    screenshots: Optional[List[ProviderImage]] = None
    genres: Optional[List[ProviderNamed]] = None
    platforms: Optional[List[ProviderNamed]] = None
    involved_companies: Optional[List[ProviderInvolvedCompany]] = None
