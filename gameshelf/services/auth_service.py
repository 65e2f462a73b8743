from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Optional

import bcrypt
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from ..core.config import SESSION_TTL_HOURS
from ..core.errors import (
    InternalError,
    InvalidCredentials,
    NotFound,
    SessionExpired,
    UserNotFound,
    UsernameExists,
    coerce_store_errors,
)
from ..db import Database
from ..models import Account, AuthSession, generate_id, utcnow

logger = logging.getLogger(__name__)

BCRYPT_MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    encoded = password.encode("utf-8")
    # Stored passwords are capped at 72 bytes, so a longer one can never match.
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        logger.error("Stored password hash is not a valid bcrypt hash")
        raise InternalError()


def generate_token() -> str:
    return secrets.token_urlsafe(32)


class AuthService:
    def __init__(self, database: Database, session_ttl: Optional[timedelta] = None):
        self.database = database
        self.session_ttl = session_ttl if session_ttl is not None else timedelta(hours=SESSION_TTL_HOURS)

    @coerce_store_errors
    def create_account(
        self,
        username: str,
        password: str,
        email: Optional[str] = None,
        is_admin: bool = False,
    ) -> Account:
        with self.database.session() as db:
            existing = db.execute(
                select(Account.id).where(Account.username == username)
            ).first()
            if existing is not None:
                raise UsernameExists()

            # Check and insert are separate statements; a concurrent insert of the
            # same name lands on the unique index below.
            account = Account(
                username=username,
                password_hash=hash_password(password),
                email=email,
                is_admin=bool(is_admin),
            )
            db.add(account)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise UsernameExists()
            db.refresh(account)
            logger.info("Created account %s (admin=%s)", account.username, account.is_admin)
            return account

    @coerce_store_errors
    def login(self, username: str, password: str) -> tuple[Account, AuthSession]:
        with self.database.session() as db:
            account = db.execute(
                select(Account).where(Account.username == username)
            ).scalar_one_or_none()
        if account is None or not verify_password(password, account.password_hash):
            raise InvalidCredentials()
        session = self.issue_session(account.id)
        return account, session

    @coerce_store_errors
    def issue_session(self, account_id: str) -> AuthSession:
        now = utcnow()
        session = AuthSession(
            id=generate_id(),
            user_id=account_id,
            token=generate_token(),
            expires_at=now + self.session_ttl,
            created_at=now,
        )
        with self.database.session() as db:
            db.add(session)
            db.commit()
            db.refresh(session)
        return session

    @coerce_store_errors
    def validate_session(self, token: str) -> Account:
        with self.database.session() as db:
            session = db.execute(
                select(AuthSession).where(
                    AuthSession.token == token,
                    AuthSession.expires_at > utcnow(),
                )
            ).scalar_one_or_none()
            if session is None:
                raise SessionExpired()
            account = db.get(Account, session.user_id)
            if account is None:
                logger.warning("Session %s refers to a missing account", session.id)
                raise UserNotFound()
            return account

    @coerce_store_errors
    def logout(self, token: str) -> None:
        with self.database.session() as db:
            db.execute(delete(AuthSession).where(AuthSession.token == token))
            db.commit()

    @coerce_store_errors
    def sweep_expired_sessions(self) -> int:
        with self.database.session() as db:
            result = db.execute(delete(AuthSession).where(AuthSession.expires_at <= utcnow()))
            db.commit()
            deleted = int(result.rowcount or 0)
        if deleted:
            logger.info("Swept %d expired sessions", deleted)
        return deleted

    @coerce_store_errors
    def list_accounts(self) -> list[Account]:
        with self.database.session() as db:
            return list(
                db.execute(
                    select(Account).order_by(Account.created_at.desc())
                ).scalars()
            )

    @coerce_store_errors
    def delete_account(self, account_id: str) -> None:
        with self.database.session() as db:
            result = db.execute(delete(Account).where(Account.id == account_id))
            db.commit()
            if not result.rowcount:
                raise NotFound("User")
        logger.info("Deleted account %s", account_id)

    @coerce_store_errors
    def bootstrap_admin(self, username: str, password: str, email: Optional[str] = None) -> Optional[Account]:
        """Create the first admin when no accounts exist yet."""
        with self.database.session() as db:
            has_accounts = db.execute(select(Account.id).limit(1)).first() is not None
        if has_accounts:
            return None
        account = self.create_account(username, password, email=email, is_admin=True)
        logger.info("Bootstrapped admin account %s", username)
        return account
