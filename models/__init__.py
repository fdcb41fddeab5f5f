"""Persistence layer: SQLAlchemy models, the DBStorage engine wrapper and the auth stores."""
from models.base_model import Base
from models.user import User, UserRole
from models.refresh_token import RefreshToken, SessionStatus, compute_status
from models.db_storage import DBStorage

__all__ = [
    "Base",
    "DBStorage",
    "RefreshToken",
    "SessionStatus",
    "User",
    "UserRole",
    "compute_status",
]
