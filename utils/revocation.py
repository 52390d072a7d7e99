"""
Revocation store: the token blacklist written at logout and read on every request.

Append only. There is no un-revoke; an entry can only stop counting if an operator
deactivates it directly in the database.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.token_blacklist import TokenBlacklist
from utils.exceptions import TransientStoreError

logger = logging.getLogger(__name__)


class RevocationStore:
    def __init__(self, storage):
        self._storage = storage

    def revoke(self, jti: str, actor_user_id: str | None = None, commit: bool = True) -> None:
        """
        Blacklist a JTI. Calling it again for the same JTI changes nothing.
        With commit=False the entry joins the caller's unit of work.
        """
        session = self._storage.get_session()
        try:
            existing = session.query(TokenBlacklist).filter(TokenBlacklist.jti == jti).first()
            if existing is not None and existing.is_active:
                return
            if existing is not None:
                logger.warning("jti %s had a deactivated revocation entry; re-activating", jti)
                existing.is_active = True
                existing.touch(actor_user_id)
            else:
                session.add(TokenBlacklist(jti=jti, created_by=actor_user_id))
            if commit:
                session.commit()
        except IntegrityError:
            # a concurrent logout inserted the same jti first
            session.rollback()
            logger.info("jti %s already revoked concurrently", jti)
            return
        except SQLAlchemyError as exc:
            session.rollback()
            raise TransientStoreError() from exc
        logger.info("revoked jti %s (actor=%s)", jti, actor_user_id)

    def is_revoked(self, jti: str) -> bool:
        session = self._storage.get_session()
        try:
            found = (
                session.query(TokenBlacklist.id)
                .filter(TokenBlacklist.jti == jti, TokenBlacklist.is_active.is_(True))
                .first()
            )
        except SQLAlchemyError as exc:
            session.rollback()
            raise TransientStoreError() from exc
        return found is not None
