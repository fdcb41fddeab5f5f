from __future__ import annotations


class AuthError(Exception):
    """
    Base class for auth-core failures. Each subclass carries a stable `kind`
    and the HTTP status the API layer maps it to. Messages are safe to return
    to clients: they never contain hashes, tokens or secrets.
    """

    status_code: int = 400
    kind: str = "BAD_REQUEST"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    default_message = "Bad request"


class ConflictError(AuthError):
    status_code = 409
    kind = "CONFLICT"
    default_message = "Conflict"


class AuthenticationError(AuthError):
    """Bad credentials or an invalid, expired or revoked token (401)."""
    status_code = 401
    kind = "UNAUTHORIZED"
    default_message = "Authentication required"


class InvalidTokenError(AuthenticationError):
    """Access token rejected. Malformed, forged and expired are not told apart."""
    default_message = "Invalid or expired token"


class ForbiddenError(AuthError):
    status_code = 403
    kind = "FORBIDDEN"
    default_message = "You do not have permission to access this resource"


class NotFoundError(AuthError):
    status_code = 404
    kind = "NOT_FOUND"
    default_message = "Resource not found"
