"""
Idempotent seeding of the role/permission graph.

Only missing rows are inserted; existing rows (including deactivated ones) are
left as they are so operator edits survive restarts.
"""
import logging

from models.role import Permission, Role, RolePermission
from utils.constants import DEFAULT_ROLE_PERMISSIONS

logger = logging.getLogger(__name__)


def _get_or_create(session, cls, **filters):
    obj = session.query(cls).filter_by(**filters).first()
    if obj is None:
        obj = cls(**filters)
        session.add(obj)
        session.flush()
    return obj


def seed_authorization(storage, graph=None):
    graph = DEFAULT_ROLE_PERMISSIONS if graph is None else graph
    session = storage.get_session()
    created = 0
    for role_name, permission_names in graph.items():
        role = _get_or_create(session, Role, name=role_name)
        for permission_name in permission_names:
            permission = _get_or_create(session, Permission, name=permission_name)
            link = (
                session.query(RolePermission)
                .filter_by(role_id=role.id, permission_id=permission.id)
                .first()
            )
            if link is None:
                session.add(RolePermission(role_id=role.id, permission_id=permission.id))
                created += 1
    storage.save()
    logger.info("authorization graph seeded (%d new role-permission links)", created)
