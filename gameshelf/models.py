import json
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator

from .db import Base


def generate_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    # Naive UTC, matching what SQLite hands back from DateTime columns.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class JSONEncodedList(TypeDecorator):
    """List of strings stored as JSON text; callers only ever see lists."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return json.dumps([str(item) for item in value])

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        try:
            decoded = json.loads(value)
        except ValueError:
            return []
        if not isinstance(decoded, list):
            return []
        return [str(item) for item in decoded]


class Account(Base):
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=generate_id)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    is_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    sessions = relationship(
        "AuthSession",
        back_populates="account",
        cascade="all, delete",
        passive_deletes=True,
    )
    library = relationship(
        "LibraryEntry",
        back_populates="account",
        cascade="all, delete",
        passive_deletes=True,
    )


class AuthSession(Base):
    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(128), unique=True, index=True, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)

    account = relationship("Account", back_populates="sessions")


class Game(Base):
    __tablename__ = "games"

    id = Column(String(36), primary_key=True, default=generate_id)
    igdb_id = Column(BigInteger, nullable=True, index=True)
    name = Column(String(200), nullable=False)
    summary = Column(Text, nullable=True)
    storyline = Column(Text, nullable=True)
    rating = Column(Float, nullable=True)
    release_date = Column(Date, nullable=True)
    cover_url = Column(String(500), nullable=True)
    screenshots = Column(JSONEncodedList, nullable=True)
    genres = Column(JSONEncodedList, nullable=True)
    platforms = Column(JSONEncodedList, nullable=True)
    developer = Column(String(200), nullable=True)
    publisher = Column(String(200), nullable=True)
    file_path = Column(String(1000), nullable=True)
    file_size = Column(BigInteger, nullable=True)
    is_available = Column(Boolean, default=False, nullable=False)
    added_by = Column(String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    library_entries = relationship(
        "LibraryEntry",
        back_populates="game",
        cascade="all, delete",
        passive_deletes=True,
    )


class LibraryEntry(Base):
    __tablename__ = "user_games"
    __table_args__ = (UniqueConstraint("user_id", "game_id", name="uq_user_game"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    game_id = Column(String(36), ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    is_installed = Column(Boolean, default=False, nullable=False)
    install_path = Column(String(1000), nullable=True)
    installed_at = Column(DateTime, nullable=True)
    last_played = Column(DateTime, nullable=True)
    play_time_minutes = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    account = relationship("Account", back_populates="library")
    game = relationship("Game", back_populates="library_entries")
