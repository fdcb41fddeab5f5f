"""
Credential store: user records for the auth core.

All lookups skip soft-deleted rows. Emails are normalized once, here, on the
way in; queries compare against the stored lower-case value.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from models.db_storage import DBStorage
from models.user import User, UserRole, normalize_email
from services.errors import ConflictError, NotFoundError

UPDATABLE_FIELDS = ("name", "email", "password_hash", "role", "is_active")


class CredentialStore:
    def __init__(self, storage: DBStorage):
        self.storage = storage

    def _query(self):
        session = self.storage.get_session()
        return session.query(User).filter(User.deleted_at.is_(None))

    def find_by_email(self, email: str) -> User | None:
        return self._query().filter(User.email == normalize_email(email)).first()

    def find_by_id(self, user_id: str) -> User | None:
        return self._query().filter(User.id == user_id).first()

    def get(self, user_id: str) -> User:
        user = self.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def create(self, **fields) -> User:
        fields["email"] = normalize_email(fields["email"])
        if self._email_taken(fields["email"]):
            raise ConflictError("User with this email already exists")
        fields.setdefault("role", UserRole.USER)
        fields.setdefault("is_active", True)

        user = User(**fields)
        self.storage.new(user)
        self._commit()
        return user

    def update(self, user_id: str, **fields) -> User:
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        user = self.get(user_id)
        if "email" in fields:
            fields["email"] = normalize_email(fields["email"])
            if fields["email"] != user.email and self._email_taken(fields["email"]):
                raise ConflictError("User with this email already exists")
        for key, value in fields.items():
            setattr(user, key, value)
        self._commit()
        return user

    def delete(self, user_id: str) -> None:
        """Soft delete; the row stays for audit."""
        user = self.get(user_id)
        user.soft_delete()
        self._commit()

    def _email_taken(self, email: str) -> bool:
        # Soft-deleted rows still hold the unique index entry
        session = self.storage.get_session()
        return session.query(User.id).filter(User.email == email).first() is not None

    def _commit(self):
        try:
            self.storage.save()
        except IntegrityError as exc:
            # Lost a race against a concurrent insert of the same email
            raise ConflictError("User with this email already exists") from exc
