"""
Authentication blueprint:
- POST /user    register (gets the default User role)
- POST /login   returns access_token, refresh_token and the access expiry
- POST /logout  deactivates the login record and revokes the token's JTI

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues an access/refresh pair sharing one JTI (utils.tokens.TokenService)
- Records every login in login_history so the JTI can be traced and revoked
"""
from __future__ import annotations

import logging
import uuid

from flask import Blueprint, g, jsonify, request

from api.container import services
from models.login_history import LoginHistory
from models.role import Role, UserRole
from models.schemas.user import LoginSchema, UserOutSchema, UserRegisterSchema
from models.user import User
from utils.constants import ROLE_USER
from utils.decorators import jwt_required
from utils.exceptions import BadRequest, Conflict, InvalidCredentials
from utils.security import generate_jti, hash_password, needs_rehash, verify_password
from utils.tokens import Identity

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

user_register_schema = UserRegisterSchema()
login_schema = LoginSchema()
user_out_schema = UserOutSchema()


def _unique_username(session, email: str) -> str:
    """Local part of the email; a short suffix is added when it is taken."""
    base = email.split("@")[0][:40] or "user"
    username = base
    while session.query(User.id).filter(User.username == username).first():
        username = f"{base}-{uuid.uuid4().hex[:6]}"
    return username


@bp.post("/user")
def register():
    """
    Register a new user.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            first_name: { type: string }
            last_name: { type: string }
            email: { type: string }
            phone: { type: string }
            gender: { type: boolean }
            password: { type: string, minLength: 6 }
    responses:
      201:
        description: Created
      409:
        description: Email already taken
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = user_register_schema.load(payload)

    svc = services()
    session = svc.storage.get_session()
    if session.query(User.id).filter(User.email == data["email"]).first():
        raise Conflict("Email is already taken", code="EMAIL_TAKEN")

    user = User(
        first_name=data["first_name"],
        last_name=data["last_name"],
        email=data["email"],
        phone=data["phone"],
        gender=data["gender"],
        username=_unique_username(session, data["email"]),
        password_hash=hash_password(data["password"]),
        is_admin=False,
    )
    user.created_by = user.id
    svc.storage.new(user)

    role = session.query(Role).filter(Role.name == ROLE_USER, Role.is_active.is_(True)).first()
    if role is not None:
        svc.storage.new(UserRole(user_id=user.id, role_id=role.id, created_by=user.id))
    else:
        logger.warning("default role %s is missing; user %s registered without roles", ROLE_USER, user.id)
    svc.storage.save()

    roles, permissions = svc.permissions.roles_and_permissions(user.id)
    out = user_out_schema.dump(user)
    out.update(roles=roles, permissions=permissions)
    return jsonify({"data": out}), 201


@bp.post("/login")
def login():
    """
    Login: return access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid credentials
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)

    svc = services()
    session = svc.storage.get_session()
    user = (
        session.query(User)
        .filter(User.email == data["email"], User.is_active.is_(True))
        .first()
    )
    if not user or not verify_password(data["password"], user.password_hash):
        logger.info("failed login for %s", data["email"])
        raise InvalidCredentials()

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(data["password"])

    jti = generate_jti()
    access_token, refresh_token, expire = svc.tokens.issue_token_pair(Identity.from_user(user), jti)
    svc.storage.new(
        LoginHistory(
            user_id=user.id,
            jti=jti,
            access_token=access_token,
            refresh_token=refresh_token,
            created_by=user.id,
        )
    )
    svc.storage.save()
    logger.info("user %s logged in (jti=%s)", user.id, jti)

    return jsonify(
        {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
            "expire": expire,
        }
    ), 200


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: deactivates the login record and revokes the access token's JTI
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      400:
        description: Unknown or already closed login session
      401:
        description: Unauthorized
    """
    principal = g.current_user
    svc = services()
    session = svc.storage.get_session()

    history = (
        session.query(LoginHistory)
        .filter(LoginHistory.jti == principal.jti, LoginHistory.is_active.is_(True))
        .first()
    )
    if history is None:
        raise BadRequest("JTI does not exist", code="INVALID_TOKEN")

    history.deactivate(principal.user_id)
    svc.revocations.revoke(principal.jti, principal.user_id, commit=False)
    svc.storage.save()
    logger.info("user %s logged out (jti=%s)", principal.user_id, principal.jti)

    return jsonify({"message": "Logout successfully"}), 200
