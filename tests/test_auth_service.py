from datetime import timedelta

import pytest
from sqlalchemy import create_engine, delete, false, func, select
from sqlalchemy.pool import StaticPool

from gameshelf.core.errors import (
    InvalidCredentials,
    NotFound,
    SessionExpired,
    UserNotFound,
    UsernameExists,
)
from gameshelf.db import Database
from gameshelf.models import Account, AuthSession, LibraryEntry
from gameshelf.services import auth_service as auth_module
from gameshelf.services.auth_service import AuthService, hash_password, verify_password

from .helpers import set_created_at


def test_password_hash_round_trip():
    hashed = hash_password("correct horse battery")
    assert hashed != "correct horse battery"
    assert verify_password("correct horse battery", hashed)
    assert not verify_password("correct horse batterY", hashed)
    assert not verify_password("", hashed)


def test_password_hashes_are_salted():
    assert hash_password("same-password") != hash_password("same-password")


def test_create_account_never_stores_plaintext(auth_service, database):
    account = auth_service.create_account("alice", "alice-password", email="alice@example.com")
    assert account.username == "alice"
    assert account.email == "alice@example.com"
    assert account.is_admin is False
    with database.session() as db:
        stored = db.get(Account, account.id)
    assert stored.password_hash != "alice-password"
    assert verify_password("alice-password", stored.password_hash)


def test_duplicate_username_is_rejected(auth_service, database):
    auth_service.create_account("bob", "bob-password")
    with pytest.raises(UsernameExists):
        auth_service.create_account("bob", "another-password")
    with database.session() as db:
        count = db.execute(select(func.count(Account.id)).where(Account.username == "bob")).scalar_one()
    assert count == 1


def test_usernames_are_case_sensitive(auth_service):
    auth_service.create_account("Carol", "carol-password")
    other = auth_service.create_account("carol", "carol-password")
    assert other.username == "carol"


def test_duplicate_insert_after_passed_check_is_still_username_exists(auth_service, monkeypatch):
    auth_service.create_account("racer", "racer-password")
    real_select = auth_module.select
    # Simulates a concurrent insert landing between the check and the insert.
    monkeypatch.setattr(auth_module, "select", lambda *args: real_select(*args).where(false()))
    with pytest.raises(UsernameExists):
        auth_service.create_account("racer", "other-password")


def test_login_issues_new_session_each_time(auth_service, user):
    account, first = auth_service.login("player", "player-password")
    _, second = auth_service.login("player", "player-password")
    assert account.id == user.id
    assert first.token != second.token
    assert first.id != second.id
    assert first.token != first.id


def test_login_failures_are_indistinguishable(auth_service, user):
    with pytest.raises(InvalidCredentials) as wrong_password:
        auth_service.login("player", "wrong-password")
    with pytest.raises(InvalidCredentials) as unknown_user:
        auth_service.login("nobody", "player-password")
    assert str(wrong_password.value) == str(unknown_user.value)


def test_login_with_overlong_password_is_invalid_credentials(auth_service, user):
    with pytest.raises(InvalidCredentials):
        auth_service.login("player", "x" * 100)
    with pytest.raises(InvalidCredentials):
        auth_service.login("nobody", "x" * 100)


def test_overlong_password_never_verifies():
    hashed = hash_password("player-password")
    assert verify_password("player-password" + "x" * 80, hashed) is False


def test_overlong_password_cannot_be_hashed():
    with pytest.raises(ValueError):
        hash_password("é" * 40)


def test_session_expires_after_ttl(auth_service, user):
    session = auth_service.issue_session(user.id)
    assert session.expires_at - session.created_at == timedelta(hours=24)
    assert auth_service.validate_session(session.token).id == user.id


def test_expired_session_is_rejected(database, user):
    service = AuthService(database, session_ttl=timedelta(seconds=-1))
    session = service.issue_session(user.id)
    with pytest.raises(SessionExpired):
        service.validate_session(session.token)


def test_unknown_token_reports_session_expired(auth_service):
    with pytest.raises(SessionExpired):
        auth_service.validate_session("never-issued")


def test_logout_is_idempotent(auth_service, user):
    _, session = auth_service.login("player", "player-password")
    auth_service.logout(session.token)
    auth_service.logout(session.token)
    auth_service.logout("never-issued")
    with pytest.raises(SessionExpired):
        auth_service.validate_session(session.token)


def test_sweep_removes_only_expired_sessions(database, auth_service, user):
    expired_service = AuthService(database, session_ttl=timedelta(seconds=-1))
    expired_service.issue_session(user.id)
    expired_service.issue_session(user.id)
    live = auth_service.issue_session(user.id)

    assert auth_service.sweep_expired_sessions() == 2
    assert auth_service.sweep_expired_sessions() == 0
    assert auth_service.validate_session(live.token).id == user.id


def test_orphaned_session_reports_user_not_found():
    # No foreign key enforcement, so the session can outlive its account.
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    database = Database(engine=engine)
    database.create_all()
    service = AuthService(database)
    account = service.create_account("ghost", "ghost-password")
    session = service.issue_session(account.id)
    with database.session() as db:
        db.execute(delete(Account).where(Account.id == account.id))
        db.commit()

    with pytest.raises(UserNotFound):
        service.validate_session(session.token)
    database.dispose()


def test_list_accounts_newest_first(auth_service, database):
    first = auth_service.create_account("first", "first-password")
    second = auth_service.create_account("second", "second-password")
    third = auth_service.create_account("third", "third-password")
    set_created_at(database, Account, first.id, 30)
    set_created_at(database, Account, second.id, 20)
    set_created_at(database, Account, third.id, 10)

    names = [account.username for account in auth_service.list_accounts()]
    assert names == ["third", "second", "first"]


def test_delete_account_cascades(auth_service, catalog, library, database, user, available_game):
    auth_service.issue_session(user.id)
    assert library.install(user.id, available_game.id, "/mnt/games")

    auth_service.delete_account(user.id)

    with database.session() as db:
        assert db.get(Account, user.id) is None
        sessions = db.execute(select(func.count(AuthSession.id))).scalar_one()
        entries = db.execute(select(func.count(LibraryEntry.id))).scalar_one()
    assert sessions == 0
    assert entries == 0
    assert catalog.get_game(available_game.id).id == available_game.id


def test_delete_missing_account(auth_service):
    with pytest.raises(NotFound):
        auth_service.delete_account("missing")


def test_bootstrap_admin_only_on_empty_store(auth_service):
    admin = auth_service.bootstrap_admin("owner", "owner-password")
    assert admin is not None
    assert admin.is_admin is True
    assert auth_service.bootstrap_admin("second-owner", "owner-password") is None
    assert [account.username for account in auth_service.list_accounts()] == ["owner"]
