from __future__ import annotations

import math
from typing import Tuple

from flask import Blueprint, request, jsonify, g, abort

from api.container import services
from models.role import Role, UserRole
from models.schemas.user import ChangePasswordSchema, RoleAssignSchema, UserOutSchema
from models.user import User
from utils.constants import ASSIGN_ROLE, VIEW_USER
from utils.decorators import jwt_required, permissions_required
from utils.exceptions import BadRequest, NotFound
from utils.security import hash_password, verify_password

MAX_LIMIT = 100

bp = Blueprint("users", __name__)

user_out_schema = UserOutSchema()
user_list_out_schema = UserOutSchema(many=True, exclude=("roles", "permissions"))
change_password_schema = ChangePasswordSchema()
role_assign_schema = RoleAssignSchema()


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        page_size = int(request.args.get("page_size", "10"))
        page = max(page, 1)
        page_size = max(1, min(page_size, MAX_LIMIT))
        return page, page_size
    except ValueError:
        abort(400, description="page and page_size must be integers")


def _active_user_or_404(user_id: str) -> User:
    user = services().storage.get(User, user_id)
    if not user:
        raise NotFound("User does not exist", code="USER_NOT_FOUND")
    return user


def _profile(user: User) -> dict:
    roles, permissions = services().permissions.roles_and_permissions(user.id)
    out = user_out_schema.dump(user)
    out.update(roles=roles, permissions=permissions)
    return out


@bp.get("/me")
@jwt_required()
def me():
    """
    Get current user info with roles and permissions
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
      404:
        description: User no longer exists
    """
    user = _active_user_or_404(g.current_user.user_id)
    return jsonify({"data": _profile(user)}), 200


@bp.get("/users")
@permissions_required([VIEW_USER])
def list_users():
    """
    List active users
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: query
        name: page
        type: integer
        default: 1
      - in: query
        name: page_size
        type: integer
        default: 10
    responses:
      200: { description: OK }
      403: { description: Missing view_user permission }
    """
    session = services().storage.get_session()
    page, page_size = parse_pagination()

    query = session.query(User).filter(User.is_active.is_(True))
    total = query.count()
    rows = (
        query.order_by(User.first_name.asc(), User.last_name.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return jsonify(
        {
            "data": user_list_out_schema.dump(rows),
            "meta": {
                "total_items": total,
                "total_pages": math.ceil(total / page_size),
                "page": page,
                "page_size": page_size,
            },
        }
    )


@bp.patch("/users/change-password")
@jwt_required()
def change_password():
    """
    Change the current user's password
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            old_password: { type: string }
            new_password: { type: string }
            re_new_password: { type: string }
    responses:
      200: { description: Password changed }
      400: { description: Old password is wrong }
      422: { description: Validation error }
    """
    payload = request.get_json(silent=True) or {}
    data = change_password_schema.load(payload)

    principal = g.current_user
    user = _active_user_or_404(principal.user_id)
    if not verify_password(data["old_password"], user.password_hash):
        raise BadRequest("Invalid password", code="INVALID_PASSWORD")

    user.password_hash = hash_password(data["new_password"])
    user.touch(principal.user_id)
    services().storage.save()
    return jsonify({"message": "Password changed successfully"}), 200


@bp.post("/users/<user_id>/roles")
@permissions_required([ASSIGN_ROLE])
def assign_roles(user_id: str):
    """
    Link roles (by name) to a user. Takes effect on the user's next request.
    Body: { "roles": ["Editor"] }
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: path
         name: user_id
         type: string
         required: true
      -  in: body
         name: body
         schema:
           type: object
           properties:
             roles:
               type: array
               items: { type: string }
    responses:
      200: { description: OK }
      404: { description: User not found }
      422: { description: Unknown role }
    """
    payload = request.get_json(silent=True) or {}
    names = set(role_assign_schema.load(payload)["roles"])

    svc = services()
    session = svc.storage.get_session()
    user = _active_user_or_404(user_id)

    roles = session.query(Role).filter(Role.name.in_(names), Role.is_active.is_(True)).all()
    unknown = names - {r.name for r in roles}
    if unknown:
        abort(422, description=f"Unknown roles: {sorted(unknown)}")

    actor = g.current_user.user_id
    for role in roles:
        link = session.query(UserRole).filter_by(user_id=user.id, role_id=role.id).first()
        if link is None:
            svc.storage.new(UserRole(user_id=user.id, role_id=role.id, created_by=actor))
        elif not link.is_active:
            link.is_active = True
            link.touch(actor)
    svc.storage.save()

    return jsonify({"data": _profile(user)}), 200
