from __future__ import annotations
from functools import wraps
from typing import Iterable, Optional

from flask import request, g, current_app

from services.errors import AuthenticationError, ForbiddenError
from utils.security import AuthenticatedIdentity

BEARER_PREFIX = "Bearer "


def extract_bearer_token(header: Optional[str]) -> str:
    """Return the token from an `Authorization: Bearer <token>` header value."""
    if not header or not header.startswith(BEARER_PREFIX):
        raise AuthenticationError("No token provided")
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationError("No token provided")
    return token


def authorize(identity: Optional[AuthenticatedIdentity], roles: Iterable[str]) -> None:
    """Deny (403) unless the authenticated identity holds one of `roles`."""
    if identity is None:
        raise AuthenticationError("Authentication required")
    allowed = {getattr(r, "value", r) for r in roles}
    if identity.role not in allowed:
        raise ForbiddenError("You do not have permission to access this resource")


def current_identity() -> Optional[AuthenticatedIdentity]:
    return getattr(g, "identity", None)


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = extract_bearer_token(request.headers.get("Authorization"))
            codec = current_app.extensions["token_codec"]
            # InvalidTokenError is an AuthenticationError; the error handler maps it to 401
            g.identity = codec.verify_access_token(token)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(required_roles: Iterable[str]):
    """
    Authenticate, then allow access only if the caller's role is in required_roles.
    """
    required = list(required_roles or [])

    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            authorize(current_identity(), required)
            return fn(*args, **kwargs)

        return wrapper

    return decorator
