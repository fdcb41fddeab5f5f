import enum

from models.base_model import Base, BaseModel, SoftDeleteMixin
from sqlalchemy import Column, String, Boolean, Enum
from sqlalchemy.orm import relationship


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"
    MODERATOR = "moderator"


def normalize_email(email):
    """Emails are stored stripped and lower-cased; lookups normalize the same way."""
    return email.strip().lower() if isinstance(email, str) else email


class User(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "users"
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", native_enum=False,
             values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.USER,
    )
    is_active = Column(Boolean, nullable=False, default=True)

    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<User id={self.id} role={self.role.value if self.role else None}>"
