"""
Credential store: data access for users and refresh tokens.

Persistence only. Expiry and revocation policy live in
services.token_service; this module never decides whether a token is usable.
Writes are staged on the session; callers commit with save().
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.db_storage import DBStorage
from models.user import User
from models.refresh_token import RefreshToken
from utils.exceptions import ConflictError, PersistenceError


class CredentialStore:
    def __init__(self, storage: DBStorage):
        self.storage = storage

    @property
    def session(self):
        return self.storage.get_session()

    # users

    def email_exists(self, email: str) -> bool:
        return (
            self.session.query(func.count(User.id))
            .filter(User.email == email, User.active())
            .scalar()
            > 0
        )

    def create_user(self, email: str, password_hash: str, name: str) -> User:
        """Insert and commit a user. A duplicate email raises ConflictError."""
        user = User(email=email, password_hash=password_hash, name=name)
        self.storage.new(user)
        try:
            self.session.flush()
        except IntegrityError as exc:
            # lost a race against a concurrent registration
            self.storage.rollback()
            raise ConflictError("Email already registered") from exc
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise PersistenceError("Failed to create user") from exc
        self.storage.save()
        return user

    def find_user_by_email(self, email: str) -> User | None:
        return (
            self.session.query(User)
            .filter(User.email == email, User.active())
            .first()
        )

    def get_user(self, user_id: int) -> User | None:
        return self.storage.get(User, user_id)

    # refresh tokens

    def add_refresh_token(self, user_id: int, token: str, expires_at: datetime) -> RefreshToken:
        """Stage a new refresh token row; the caller commits."""
        record = RefreshToken(token=token, user_id=user_id, expires_at=expires_at, revoked=False)
        self.storage.new(record)
        return record

    def find_active_refresh_token(self, token: str) -> RefreshToken | None:
        """Exact-value lookup among unrevoked, non-deleted tokens."""
        return (
            self.session.query(RefreshToken)
            .filter(
                RefreshToken.token == token,
                RefreshToken.revoked.is_(False),
                RefreshToken.active(),
            )
            .first()
        )

    def revoke_refresh_token(self, token: str) -> bool:
        """
        Conditionally revoke one token. Only a row that is still unrevoked is
        updated, so of two concurrent callers exactly one gets True.
        """
        updated = (
            self.session.query(RefreshToken)
            .filter(RefreshToken.token == token, RefreshToken.revoked.is_(False))
            .update({RefreshToken.revoked: True}, synchronize_session="fetch")
        )
        return updated == 1

    def revoke_all_for_user(self, user_id: int) -> int:
        return (
            self.session.query(RefreshToken)
            .filter(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
            .update({RefreshToken.revoked: True}, synchronize_session="fetch")
        )

    def soft_delete_expired_tokens(self, now: datetime) -> int:
        return (
            self.session.query(RefreshToken)
            .filter(RefreshToken.expires_at <= now, RefreshToken.active())
            .update(
                {RefreshToken.revoked: True, RefreshToken.deleted_at: now},
                synchronize_session="fetch",
            )
        )

    def save(self):
        self.storage.save()

    def rollback(self):
        self.storage.rollback()

    def run_update(self, fn, *args):
        """Run a bulk update and commit it, wrapping driver errors."""
        try:
            result = fn(*args)
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise PersistenceError("Failed to write to the database") from exc
        self.storage.save()
        return result
