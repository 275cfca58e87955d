"""
Token service: issues, verifies and rotates access/refresh token pairs.

Access tokens are stateless HS256 JWTs carrying user_id and email; they cannot
be revoked before they expire. Refresh tokens are opaque random strings kept
in the refresh_tokens table so they can be revoked server-side; keep the
access lifetime short relative to the refresh lifetime.

Rotation is transactional: the conditional revoke of the presented token and
the insert of its replacement are committed together, so a failed issuance
leaves the old token usable instead of locking the user out.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from models.credential_store import CredentialStore
from models.user import User
from utils.exceptions import InvalidTokenError, ExpiredTokenError, PersistenceError
from utils.security import create_jwt_token, decode_token, generate_refresh_token, utcnow

logger = logging.getLogger(__name__)

DEFAULT_ACCESS_TOKEN_TTL = timedelta(hours=24)
DEFAULT_REFRESH_TOKEN_TTL = timedelta(days=7)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int


@dataclass(frozen=True)
class AccessClaims:
    user_id: int
    email: str
    expires_at: datetime


class TokenService:
    def __init__(
        self,
        store: CredentialStore,
        secret: str,
        algorithm: str = "HS256",
        access_token_ttl: timedelta = DEFAULT_ACCESS_TOKEN_TTL,
        refresh_token_ttl: timedelta = DEFAULT_REFRESH_TOKEN_TTL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.secret = secret
        self.algorithm = algorithm
        self.access_token_ttl = access_token_ttl
        self.refresh_token_ttl = refresh_token_ttl
        self.clock = clock

    @property
    def expires_in(self) -> int:
        return int(self.access_token_ttl.total_seconds())

    def _stage_pair(self, user: User) -> TokenPair:
        now = self.clock()
        access_token = create_jwt_token(
            user.id,
            user.email,
            self.secret,
            self.access_token_ttl,
            algorithm=self.algorithm,
            now=now,
        )
        refresh_token = generate_refresh_token()
        self.store.add_refresh_token(user.id, refresh_token, now + self.refresh_token_ttl)
        return TokenPair(access_token, refresh_token, self.expires_in)

    def issue_pair(self, user: User) -> TokenPair:
        """Create an access token and persist a fresh refresh token for user."""
        pair = self._stage_pair(user)
        self.store.save()
        return pair

    def verify_access(self, token: str) -> AccessClaims:
        decoded = decode_token(token, self.secret, algorithm=self.algorithm)
        return AccessClaims(
            user_id=decoded["user_id"],
            email=decoded.get("email", ""),
            expires_at=datetime.fromtimestamp(decoded["exp"], timezone.utc).replace(tzinfo=None),
        )

    def rotate(self, refresh_token: str) -> TokenPair:
        """Exchange a usable refresh token for a new pair; the old one is spent."""
        if not refresh_token:
            raise InvalidTokenError("Invalid refresh token")

        record = self.store.find_active_refresh_token(refresh_token)
        if record is None:
            raise InvalidTokenError("Invalid refresh token")

        if self.clock() >= record.expires_at:
            # expired tokens are never reusable, even on the failure path
            self.store.run_update(self.store.revoke_refresh_token, refresh_token)
            logger.info("Expired refresh token presented (user_id=%s)", record.user_id)
            raise ExpiredTokenError("Refresh token expired")

        user = self.store.get_user(record.user_id)
        if user is None:
            raise InvalidTokenError("User not found")

        try:
            won = self.store.revoke_refresh_token(refresh_token)
        except SQLAlchemyError as exc:
            self.store.rollback()
            raise PersistenceError("Failed to rotate refresh token") from exc
        if not won:
            self.store.rollback()
            logger.warning("Refresh token reused concurrently (user_id=%s)", user.id)
            raise InvalidTokenError("Invalid refresh token")

        pair = self._stage_pair(user)
        self.store.save()
        logger.info("Refresh token rotated (user_id=%s)", user.id)
        return pair

    def revoke_all_for_user(self, user_id: int) -> int:
        count = self.store.run_update(self.store.revoke_all_for_user, user_id)
        logger.info("Revoked %d refresh token(s) (user_id=%s)", count, user_id)
        return count

    def purge_expired(self) -> int:
        """Soft-delete refresh tokens whose expiry has passed."""
        count = self.store.run_update(self.store.soft_delete_expired_tokens, self.clock())
        if count:
            logger.info("Purged %d expired refresh token(s)", count)
        return count
