"""
Authorization graph: users -> user_roles -> roles -> role_permissions -> permissions.

Link rows are full models (not bare association tables) so they carry their own
is_active flag; a deactivated link cuts the path just like a deactivated role.
"""
from sqlalchemy import Column, String, ForeignKey, UniqueConstraint

from models.base_model import BaseModel, Base


class Role(BaseModel, Base):
    __tablename__ = "roles"

    name = Column(String(50), nullable=False, unique=True, index=True)


class Permission(BaseModel, Base):
    __tablename__ = "permissions"

    name = Column(String(50), nullable=False, unique=True, index=True)


class RolePermission(BaseModel, Base):
    __tablename__ = "role_permissions"

    role_id = Column(String(36), ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_id = Column(String(36), ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
    )


class UserRole(BaseModel, Base):
    __tablename__ = "user_roles"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role_id = Column(String(36), ForeignKey("roles.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_user_role"),
    )
