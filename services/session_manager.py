"""
Session manager: registration, login, refresh, logout and logout-all.

Ties the credential store, the session store and the token codec together.
A refresh-token session moves ACTIVE -> EXPIRED -> DEACTIVATED -> purged;
expiry is detected lazily on use through compute_status(), never by trusting
the stored is_active flag alone.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from argon2 import PasswordHasher

from models.base_model import utcnow
from models.credential_store import CredentialStore
from models.refresh_token import RefreshToken, SessionStatus, compute_status
from models.session_store import SessionStore
from models.user import User, UserRole
from services.errors import AuthenticationError, ConflictError, ForbiddenError
from utils.security import (
    AuthenticatedIdentity,
    TokenCodec,
    hash_password,
    password_needs_rehash,
    verify_password,
)

logger = logging.getLogger(__name__)

REFRESH_TOKEN_BYTES = 64
INVALID_CREDENTIALS = "Invalid email or password"


@dataclass(frozen=True)
class ClientMeta:
    """Transport-supplied client details, stored with the session as-is."""
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None


@dataclass
class AuthResult:
    access_token: str
    refresh_token: str
    expires_in: int
    user: User


@dataclass
class RefreshResult:
    access_token: str
    refresh_token: str
    expires_in: int


def identity_for(user: User) -> AuthenticatedIdentity:
    role = user.role.value if isinstance(user.role, UserRole) else str(user.role)
    return AuthenticatedIdentity(identity_id=user.id, email=user.email, role=role)


class SessionManager:
    def __init__(
        self,
        credentials: CredentialStore,
        sessions: SessionStore,
        codec: TokenCodec,
        hasher: PasswordHasher,
        refresh_ttl: timedelta,
        rotate_refresh_tokens: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.credentials = credentials
        self.sessions = sessions
        self.codec = codec
        self.hasher = hasher
        self.refresh_ttl = refresh_ttl
        self.rotate_refresh_tokens = rotate_refresh_tokens
        self._clock = clock or utcnow
        self._dummy_hash = None

    @property
    def access_ttl_seconds(self) -> int:
        return int(self.codec.access_ttl.total_seconds())

    def register(
        self,
        name: str,
        email: str,
        password: str,
        role: Optional[UserRole] = None,
        client: Optional[ClientMeta] = None,
    ) -> AuthResult:
        if self.credentials.find_by_email(email):
            raise ConflictError("User with this email already exists")

        user = self.credentials.create(
            name=name,
            email=email,
            password_hash=hash_password(self.hasher, password),
            role=UserRole(role) if role else UserRole.USER,
        )
        logger.info("Registered user %s", user.id)
        return self._issue(user, client)

    def login(self, email: str, password: str, client: Optional[ClientMeta] = None) -> AuthResult:
        user = self.credentials.find_by_email(email)
        if not user:
            # Same hashing cost as a real mismatch
            verify_password(self.hasher, password, self._get_dummy_hash())
            logger.warning("Failed login: unknown email")
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not verify_password(self.hasher, password, user.password_hash):
            logger.warning("Failed login for user %s: bad password", user.id)
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not user.is_active:
            logger.warning("Login refused for deactivated user %s", user.id)
            raise ForbiddenError("Account is deactivated")

        if password_needs_rehash(self.hasher, user.password_hash):
            self.credentials.update(user.id, password_hash=hash_password(self.hasher, password))

        logger.info("User %s logged in", user.id)
        return self._issue(user, client)

    def refresh(self, token: str) -> RefreshResult:
        record = self.sessions.find_by_token(token)
        if record is None:
            raise AuthenticationError("Invalid refresh token")

        status = compute_status(record, self._clock())
        if status is SessionStatus.EXPIRED:
            self.sessions.deactivate(token)
            logger.warning("Expired refresh token presented for user %s", record.user_id)
            raise AuthenticationError("Refresh token expired")
        if status is SessionStatus.DEACTIVATED:
            logger.warning("Revoked refresh token presented for user %s", record.user_id)
            raise AuthenticationError("Refresh token has been revoked")

        # Re-read so role and email changes apply on the next refresh
        user = self.credentials.find_by_id(record.user_id)
        if not user or not user.is_active:
            raise ForbiddenError("User account is deactivated")

        refresh_token = token
        if self.rotate_refresh_tokens:
            # Only the request whose UPDATE flips the row may mint a successor
            if not self.sessions.deactivate(token):
                logger.warning("Refresh token for user %s was already rotated", record.user_id)
                raise AuthenticationError("Refresh token has been revoked")
            client = ClientMeta(user_agent=record.user_agent, ip_address=record.ip_address)
            refresh_token = self._create_session(user, client).token

        return RefreshResult(
            access_token=self.codec.issue_access_token(identity_for(user)),
            refresh_token=refresh_token,
            expires_in=self.access_ttl_seconds,
        )

    def logout(self, token: str) -> bool:
        changed = self.sessions.deactivate(token)
        if changed:
            logger.info("Refresh token session revoked")
        return changed

    def logout_all(self, identity_id: str) -> bool:
        changed = self.sessions.deactivate_all_for_identity(identity_id)
        logger.info("All sessions revoked for user %s", identity_id)
        return changed

    def list_sessions(self, identity_id: str) -> List[RefreshToken]:
        now = self._clock()
        return [
            s for s in self.sessions.list_active_for_identity(identity_id)
            if compute_status(s, now) is SessionStatus.ACTIVE
        ]

    def profile(self, identity_id: str) -> User:
        return self.credentials.get(identity_id)

    def change_role(self, identity_id: str, role: UserRole) -> User:
        return self.credentials.update(identity_id, role=UserRole(role))

    def deactivate_account(self, identity_id: str) -> User:
        user = self.credentials.update(identity_id, is_active=False)
        self.sessions.deactivate_all_for_identity(identity_id)
        logger.info("Deactivated user %s", identity_id)
        return user

    def delete_account(self, identity_id: str) -> None:
        self.credentials.delete(identity_id)
        self.sessions.deactivate_all_for_identity(identity_id)
        logger.info("Soft-deleted user %s", identity_id)

    def purge_expired_sessions(self) -> int:
        removed = self.sessions.purge_expired_inactive(self._clock())
        logger.info("Purged %d expired refresh token sessions", removed)
        return removed

    def _issue(self, user: User, client: Optional[ClientMeta]) -> AuthResult:
        record = self._create_session(user, client)
        return AuthResult(
            access_token=self.codec.issue_access_token(identity_for(user)),
            refresh_token=record.token,
            expires_in=self.access_ttl_seconds,
            user=user,
        )

    def _create_session(self, user: User, client: Optional[ClientMeta]) -> RefreshToken:
        client = client or ClientMeta()
        return self.sessions.create(
            token=self.codec.generate_opaque_secret(REFRESH_TOKEN_BYTES),
            identity_id=user.id,
            expires_at=self._clock() + self.refresh_ttl,
            user_agent=client.user_agent,
            ip_address=client.ip_address,
        )

    def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = hash_password(self.hasher, "dummy-password-for-timing")
        return self._dummy_hash
