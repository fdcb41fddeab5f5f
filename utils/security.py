"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Access-token creation/verification via PyJWT (TokenCodec)
- Opaque refresh-token secrets from the `secrets` CSPRNG
"""
from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from services.errors import InvalidTokenError

ACCESS_TOKEN_TYPE = "access"
REQUIRED_CLAIMS = ["sub", "email", "role", "iat", "exp"]


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """The verified caller, attached to the request for downstream handlers."""
    identity_id: str
    email: str
    role: str

    def to_dict(self) -> dict:
        return asdict(self)


def build_password_hasher(config) -> PasswordHasher:
    """Argon2id hasher with cost parameters from the app config (mapping)."""
    return PasswordHasher(
        time_cost=int(config.get("ARGON2_TIME_COST", 3)),
        memory_cost=int(config.get("ARGON2_MEMORY_COST", 65536)),
        parallelism=int(config.get("ARGON2_PARALLELISM", 4)),
    )


def hash_password(ph: PasswordHasher, password: str) -> str:
    """Hash a plaintext password using Argon2 (random per-password salt)
    """
    return ph.hash(password)


def verify_password(ph: PasswordHasher, password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def password_needs_rehash(ph: PasswordHasher, password_hash: str) -> bool:
    try:
        return ph.check_needs_rehash(password_hash)
    except InvalidHashError:
        return True


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def generate_opaque_secret(byte_length: int = 64) -> str:
    """Random hex string (2 chars per byte) for refresh tokens."""
    if byte_length < 16:
        raise ValueError("byte_length must be at least 16")
    return secrets.token_hex(byte_length)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """
    Stateless signed access tokens. Possession of `secret` is the only basis
    of trust; there is no revocation list for access tokens.
    """

    def __init__(
        self,
        secret: str,
        access_ttl: timedelta,
        algorithm: str = "HS256",
        issuer: str = "team-manager-api",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not secret:
            raise ValueError("A signing secret is required")
        self._secret = secret
        self.access_ttl = access_ttl
        self.algorithm = algorithm
        self.issuer = issuer
        self._clock = clock or _now

    def __repr__(self):
        return f"<TokenCodec alg={self.algorithm} iss={self.issuer}>"

    def issue_access_token(self, claims: AuthenticatedIdentity, ttl: Optional[timedelta] = None) -> str:
        now = self._clock()
        exp = now + (ttl if ttl is not None else self.access_ttl)
        payload = {
            "iss": self.issuer,
            "sub": str(claims.identity_id),
            "email": claims.email,
            "role": claims.role,
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
            "type": ACCESS_TOKEN_TYPE,
            "jti": generate_jti(),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify_access_token(self, token: str) -> AuthenticatedIdentity:
        """
        Decode and validate an access token. Every failure (bad signature,
        malformed, expired, wrong type) raises the same InvalidTokenError.
        """
        try:
            decoded = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError() from exc

        if decoded.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidTokenError()
        return AuthenticatedIdentity(
            identity_id=decoded["sub"],
            email=decoded["email"],
            role=decoded["role"],
        )

    generate_opaque_secret = staticmethod(generate_opaque_secret)
