from models.login_history import LoginHistory
from models.user import User
from tests.conftest import PASSWORD, BrokenStorage, bearer, login
from utils.permissions import PermissionResolver

REGISTER = {
    "first_name": "Lan",
    "last_name": "Tran",
    "email": "Lan@Example.com",
    "phone": "0912345678",
    "password": PASSWORD,
}


def test_health(client):
    res = client.get("/api/v1/health")
    assert res.status_code == 200
    assert res.get_json()["status"] == "ok"
    assert res.headers.get("X-Request-ID")


def test_register_assigns_default_role(client):
    res = client.post("/api/v1/user", json=REGISTER)
    assert res.status_code == 201, res.get_data(as_text=True)
    data = res.get_json()["data"]
    assert data["email"] == "lan@example.com"
    assert data["roles"] == ["User"]
    assert "create_pet" in data["permissions"]
    assert "password" not in data and "password_hash" not in data


def test_register_duplicate_email(client):
    assert client.post("/api/v1/user", json=REGISTER).status_code == 201
    res = client.post("/api/v1/user", json=dict(REGISTER, email="lan@example.com"))
    assert res.status_code == 409
    assert res.get_json()["error"] == "EMAIL_TAKEN"


def test_register_validation(client):
    res = client.post("/api/v1/user", json=dict(REGISTER, password="123"))
    assert res.status_code == 422
    body = res.get_json()
    assert body["error"] == "VALIDATION_ERROR"
    assert "password" in body["details"]


def test_login_returns_token_pair_and_records_session(app, client, svc):
    client.post("/api/v1/user", json=REGISTER)
    tokens = login(client, "lan@example.com")
    assert tokens["token_type"] == "bearer"
    assert isinstance(tokens["expire"], int)

    claims = svc.tokens.decode(tokens["access_token"])
    refresh = svc.tokens.decode(tokens["refresh_token"], expected_kind="refresh")
    assert claims.jti == refresh.jti
    with app.app_context():
        history = svc.storage.get_session().query(LoginHistory).filter_by(jti=claims.jti).one()
        assert history.is_active


def test_login_wrong_password_and_unknown_user(client):
    client.post("/api/v1/user", json=REGISTER)
    wrong = client.post("/api/v1/login", json={"email": "lan@example.com", "password": "nope-nope"})
    unknown = client.post("/api/v1/login", json={"email": "ghost@example.com", "password": PASSWORD})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.get_json()["error"] == unknown.get_json()["error"] == "INVALID_CREDENTIALS"


def test_me_requires_token(client):
    res = client.get("/api/v1/me")
    assert res.status_code == 401
    assert res.get_json()["message"] == "Authorization header required"

    res = client.get("/api/v1/me", headers={"Authorization": "Token abc"})
    assert res.status_code == 401
    assert res.get_json()["message"] == "Invalid authorization format"


def test_me_returns_profile(client, auth_headers):
    headers = auth_headers("me@example.com", roles=("User", "Editor"))
    res = client.get("/api/v1/me", headers=headers)
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert data["email"] == "me@example.com"
    assert data["roles"] == ["Editor", "User"]
    assert "edit_pet" in data["permissions"]


def test_refresh_token_cannot_call_protected_routes(client, user_factory):
    user_factory("refresh@example.com")
    tokens = login(client, "refresh@example.com")
    res = client.get("/api/v1/me", headers=bearer(tokens["refresh_token"]))
    assert res.status_code == 401
    assert res.get_json()["error"] == "INVALID_TOKEN"


def test_logout_revokes_the_token(client, user_factory):
    user_factory("bye@example.com")
    tokens = login(client, "bye@example.com")
    headers = bearer(tokens["access_token"])

    assert client.get("/api/v1/me", headers=headers).status_code == 200
    res = client.post("/api/v1/logout", headers=headers)
    assert res.status_code == 200
    assert res.get_json()["message"] == "Logout successfully"

    res = client.get("/api/v1/me", headers=headers)
    assert res.status_code == 401
    assert res.get_json()["message"] == "Token has been revoked"

    # a second login is unaffected
    fresh = bearer(login(client, "bye@example.com")["access_token"])
    assert client.get("/api/v1/me", headers=fresh).status_code == 200


def test_revocation_store_outage_fails_closed(client, svc, auth_headers, monkeypatch):
    headers = auth_headers("outage@example.com")
    from utils.exceptions import TransientStoreError

    def broken(jti):
        raise TransientStoreError()

    monkeypatch.setattr(svc.revocations, "is_revoked", broken)
    res = client.get("/api/v1/me", headers=headers)
    assert res.status_code == 401
    assert res.get_json()["message"] == "Unable to verify token"


def test_permission_store_outage_fails_closed(client, svc, auth_headers, monkeypatch):
    headers = auth_headers("perm-outage@example.com")
    monkeypatch.setattr(svc.gate, "_permissions", PermissionResolver(BrokenStorage()))
    res = client.get("/api/v1/pets", headers=headers)
    assert res.status_code == 401
    body = res.get_json()
    assert body["error"] == "UNAUTHORIZED"
    assert body["message"] == "Unable to verify permissions"


def test_change_password(client, user_factory):
    user_factory("pw@example.com")
    headers = bearer(login(client, "pw@example.com")["access_token"])

    bad = client.patch(
        "/api/v1/users/change-password",
        json={"old_password": "wrong-one", "new_password": "brand-new-1", "re_new_password": "brand-new-1"},
        headers=headers,
    )
    assert bad.status_code == 400
    assert bad.get_json()["error"] == "INVALID_PASSWORD"

    mismatch = client.patch(
        "/api/v1/users/change-password",
        json={"old_password": PASSWORD, "new_password": "brand-new-1", "re_new_password": "brand-new-2"},
        headers=headers,
    )
    assert mismatch.status_code == 422

    ok = client.patch(
        "/api/v1/users/change-password",
        json={"old_password": PASSWORD, "new_password": "brand-new-1", "re_new_password": "brand-new-1"},
        headers=headers,
    )
    assert ok.status_code == 200
    assert login(client, "pw@example.com", "brand-new-1")["access_token"]


def test_list_users_needs_view_user(client, auth_headers):
    plain = auth_headers("plain@example.com")
    res = client.get("/api/v1/users", headers=plain)
    assert res.status_code == 403
    assert res.get_json()["error"] == "PERMISSION_DENIED"

    admin = auth_headers("boss@example.com", roles=("Admin",))
    res = client.get("/api/v1/users?page=1&page_size=1", headers=admin)
    assert res.status_code == 200
    body = res.get_json()
    assert body["meta"]["total_items"] == 2
    assert body["meta"]["total_pages"] == 2
    assert len(body["data"]) == 1


def test_admin_flag_bypasses_roles(client, auth_headers):
    headers = auth_headers("root@example.com", roles=(), is_admin=True)
    assert client.get("/api/v1/users", headers=headers).status_code == 200


def test_user_without_roles_has_no_permissions(client, auth_headers):
    headers = auth_headers("lonely@example.com", roles=())
    res = client.get("/api/v1/users", headers=headers)
    assert res.status_code == 403
    assert res.get_json()["message"] == "User has no permissions"


def test_assign_role_takes_effect_on_next_request(app, client, svc, auth_headers):
    admin = auth_headers("assigner@example.com", roles=("Admin",))
    target = auth_headers("target@example.com", roles=())
    with app.app_context():
        target_id = svc.storage.get_session().query(User).filter_by(email="target@example.com").one().id

    assert client.get("/api/v1/pets", headers=target).status_code == 403

    res = client.post(f"/api/v1/users/{target_id}/roles", json={"roles": ["Editor"]}, headers=admin)
    assert res.status_code == 200
    assert res.get_json()["data"]["roles"] == ["Editor"]

    # same token, new permissions
    assert client.get("/api/v1/pets", headers=target).status_code == 200


def test_assign_unknown_role(app, client, svc, auth_headers):
    admin = auth_headers("assigner2@example.com", roles=("Admin",))
    with app.app_context():
        admin_id = svc.storage.get_session().query(User).filter_by(email="assigner2@example.com").one().id
    res = client.post(f"/api/v1/users/{admin_id}/roles", json={"roles": ["Wizard"]}, headers=admin)
    assert res.status_code == 422
