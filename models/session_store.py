"""
Session store: persisted refresh-token sessions.

Every mutation is a single UPDATE/DELETE followed by a commit, so concurrent
callers rely on the database for consistency and repeated calls are harmless.
"""
from __future__ import annotations

from datetime import datetime
from typing import List

from models.base_model import utcnow
from models.db_storage import DBStorage
from models.refresh_token import RefreshToken


class SessionStore:
    def __init__(self, storage: DBStorage):
        self.storage = storage

    def _query(self):
        session = self.storage.get_session()
        return session.query(RefreshToken).filter(RefreshToken.deleted_at.is_(None))

    def create(
        self,
        token: str,
        identity_id: str,
        expires_at: datetime,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> RefreshToken:
        record = RefreshToken(
            token=token,
            user_id=identity_id,
            expires_at=expires_at,
            is_active=True,
            user_agent=user_agent,
            ip_address=ip_address,
        )
        self.storage.new(record)
        self.storage.save()
        return record

    def find_active_by_token(self, token: str) -> RefreshToken | None:
        """Active, not soft-deleted. Expiry is left to the caller."""
        return self._query().filter(
            RefreshToken.token == token,
            RefreshToken.is_active.is_(True),
        ).first()

    def find_by_token(self, token: str) -> RefreshToken | None:
        """Any activity state, so a revoked token can be told from an unknown one."""
        return self._query().filter(RefreshToken.token == token).first()

    def list_active_for_identity(self, identity_id: str) -> List[RefreshToken]:
        return (
            self._query()
            .filter(RefreshToken.user_id == identity_id, RefreshToken.is_active.is_(True))
            .order_by(RefreshToken.created_at.desc())
            .all()
        )

    def deactivate(self, token: str) -> bool:
        session = self.storage.get_session()
        changed = (
            session.query(RefreshToken)
            .filter(RefreshToken.token == token, RefreshToken.is_active.is_(True))
            .update({RefreshToken.is_active: False}, synchronize_session="evaluate")
        )
        self.storage.save()
        return changed > 0

    def deactivate_all_for_identity(self, identity_id: str) -> bool:
        session = self.storage.get_session()
        changed = (
            session.query(RefreshToken)
            .filter(RefreshToken.user_id == identity_id, RefreshToken.is_active.is_(True))
            .update({RefreshToken.is_active: False}, synchronize_session="evaluate")
        )
        self.storage.save()
        return changed > 0

    def purge_expired_inactive(self, now: datetime | None = None) -> int:
        """Hard-delete rows that are both inactive and past expiry."""
        now = now or utcnow()
        session = self.storage.get_session()
        removed = (
            session.query(RefreshToken)
            .filter(RefreshToken.is_active.is_(False), RefreshToken.expires_at <= now)
            .delete(synchronize_session=False)
        )
        self.storage.save()
        return removed
