"""
Permission resolver: walks user_roles -> roles -> role_permissions -> permissions.

Every hop must be active. Nothing is cached here; role and permission edits
show up on the very next call.
"""
from __future__ import annotations

import logging
from typing import FrozenSet, List, Tuple

from sqlalchemy.exc import SQLAlchemyError

from models.role import Permission, Role, RolePermission, UserRole
from utils.exceptions import TransientStoreError

logger = logging.getLogger(__name__)


class PermissionResolver:
    def __init__(self, storage):
        self._storage = storage

    def _graph_query(self, session, *columns):
        return (
            session.query(*columns)
            .select_from(UserRole)
            .join(Role, Role.id == UserRole.role_id)
            .join(RolePermission, RolePermission.role_id == Role.id)
            .join(Permission, Permission.id == RolePermission.permission_id)
            .filter(
                UserRole.is_active.is_(True),
                Role.is_active.is_(True),
                RolePermission.is_active.is_(True),
                Permission.is_active.is_(True),
            )
        )

    def effective_permissions(self, user_id: str) -> FrozenSet[str]:
        """Names of every permission reachable from user_id; empty when there are none."""
        session = self._storage.get_session()
        try:
            rows = (
                self._graph_query(session, Permission.name)
                .filter(UserRole.user_id == user_id)
                .distinct()
                .all()
            )
        except SQLAlchemyError as exc:
            session.rollback()
            raise TransientStoreError() from exc
        return frozenset(name for (name,) in rows)

    def roles_and_permissions(self, user_id: str) -> Tuple[List[str], List[str]]:
        """
        Role names and permission names for display, each sorted and deduplicated.
        Roles without any active permission are still listed.
        """
        session = self._storage.get_session()
        try:
            roles = (
                session.query(Role.name)
                .join(UserRole, UserRole.role_id == Role.id)
                .filter(
                    UserRole.user_id == user_id,
                    UserRole.is_active.is_(True),
                    Role.is_active.is_(True),
                )
                .distinct()
                .all()
            )
        except SQLAlchemyError as exc:
            session.rollback()
            raise TransientStoreError() from exc
        return sorted(name for (name,) in roles), sorted(self.effective_permissions(user_id))
