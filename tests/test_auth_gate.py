from datetime import timedelta

import pytest

from utils.auth_gate import AuthGate, Principal, extract_bearer
from utils.exceptions import (
    Forbidden,
    InvalidToken,
    TokenExpired,
    TransientStoreError,
    Unauthorized,
    WrongTokenKind,
)
from utils.tokens import Identity, TokenService

SECRET = "gate-test-secret-for-hs256-signing-0123"


class FakeRevocations:
    def __init__(self, revoked=(), broken=False):
        self.revoked = set(revoked)
        self.broken = broken

    def is_revoked(self, jti):
        if self.broken:
            raise TransientStoreError()
        return jti in self.revoked


class FakePermissions:
    def __init__(self, grants=None, broken=False):
        self.grants = grants or {}
        self.broken = broken
        self.calls = 0

    def effective_permissions(self, user_id):
        self.calls += 1
        if self.broken:
            raise TransientStoreError()
        return frozenset(self.grants.get(user_id, ()))


def _identity(user_id="u-1", is_admin=False):
    return Identity(
        user_id=user_id,
        username="alice",
        first_name="Alice",
        last_name="Nguyen",
        email="alice@example.com",
        is_admin=is_admin,
    )


@pytest.fixture
def tokens():
    return TokenService(SECRET)


def _gate(tokens, revocations=None, permissions=None):
    return AuthGate(tokens, revocations or FakeRevocations(), permissions or FakePermissions())


def _headers(tokens, jti="jti-1", **kwargs):
    access, _, _ = tokens.issue_token_pair(_identity(**kwargs), jti)
    return {"Authorization": f"Bearer {access}"}


def _principal(is_admin=False, user_id="u-1"):
    return Principal(
        user_id=user_id,
        username="alice",
        first_name="Alice",
        last_name="Nguyen",
        email="alice@example.com",
        is_admin=is_admin,
        jti="jti-1",
        token_kind="access",
    )


class TestExtractBearer:
    def test_missing_header(self):
        with pytest.raises(Unauthorized, match="Authorization header required"):
            extract_bearer({})

    @pytest.mark.parametrize(
        "value",
        ["Token abc", "Bearer", "Bearer ", "Bearer a b", "bearer abc", "abc"],
    )
    def test_bad_format(self, value):
        with pytest.raises(Unauthorized, match="Invalid authorization format"):
            extract_bearer({"Authorization": value})

    def test_returns_token(self):
        assert extract_bearer({"Authorization": "Bearer abc.def"}) == "abc.def"


class TestAuthenticate:
    @pytest.mark.parametrize("is_admin", [False, True])
    def test_principal_mirrors_issued_identity(self, tokens, is_admin):
        identity = _identity(is_admin=is_admin)
        access, _, _ = tokens.issue_token_pair(identity, "jti-9")
        principal = _gate(tokens).authenticate({"Authorization": f"Bearer {access}"})
        assert principal == Principal(
            user_id=identity.user_id,
            username=identity.username,
            first_name=identity.first_name,
            last_name=identity.last_name,
            email=identity.email,
            is_admin=is_admin,
            jti="jti-9",
            token_kind="access",
        )

    def test_refresh_token_rejected(self, tokens):
        _, refresh, _ = tokens.issue_token_pair(_identity(), "jti-1")
        with pytest.raises(WrongTokenKind):
            _gate(tokens).authenticate({"Authorization": f"Bearer {refresh}"})

    def test_tampered_token(self, tokens):
        access, _, _ = tokens.issue_token_pair(_identity(), "jti-1")
        header, payload, signature = access.split(".")
        forged = tokens.issue_token_pair(_identity(is_admin=True), "jti-1")[0].split(".")[1]
        assert forged != payload
        with pytest.raises(InvalidToken):
            _gate(tokens).authenticate({"Authorization": f"Bearer {header}.{forged}.{signature}"})

    def test_expired_token(self):
        expired = TokenService(SECRET, access_ttl=timedelta(seconds=-30))
        with pytest.raises(TokenExpired):
            _gate(expired).authenticate(_headers(expired))

    def test_revoked_token(self, tokens):
        gate = _gate(tokens, revocations=FakeRevocations(revoked={"jti-1"}))
        with pytest.raises(Unauthorized, match="revoked"):
            gate.authenticate(_headers(tokens, jti="jti-1"))

    def test_revocation_store_down_denies(self, tokens):
        gate = _gate(tokens, revocations=FakeRevocations(broken=True))
        with pytest.raises(Unauthorized) as exc:
            gate.authenticate(_headers(tokens))
        assert exc.value.status == 401


class TestAuthorize:
    def test_admin_bypasses_graph(self, tokens):
        permissions = FakePermissions()
        _gate(tokens, permissions=permissions).authorize(_principal(is_admin=True), ["assign_role"])
        assert permissions.calls == 0

    def test_granted_when_all_present(self, tokens):
        gate = _gate(tokens, permissions=FakePermissions({"u-1": {"view_pet", "edit_pet"}}))
        gate.authorize(_principal(), ["view_pet", "edit_pet"])

    def test_missing_one_permission(self, tokens):
        gate = _gate(tokens, permissions=FakePermissions({"u-1": {"view_pet"}}))
        with pytest.raises(Forbidden, match="Permission denied"):
            gate.authorize(_principal(), ["view_pet", "edit_pet"])

    def test_no_permissions_at_all(self, tokens):
        with pytest.raises(Forbidden, match="User has no permissions"):
            _gate(tokens).authorize(_principal(), ["view_pet"])

    def test_empty_requirement_still_needs_some_permission(self, tokens):
        with pytest.raises(Forbidden):
            _gate(tokens).authorize(_principal(), [])
        gate = _gate(tokens, permissions=FakePermissions({"u-1": {"view_pet"}}))
        gate.authorize(_principal(), [])

    def test_permission_store_down_is_unauthorized(self, tokens):
        gate = _gate(tokens, permissions=FakePermissions(broken=True))
        with pytest.raises(Unauthorized, match="Unable to verify permissions") as exc:
            gate.authorize(_principal(), ["view_pet"])
        assert exc.value.status == 401

    def test_cache_is_used_within_one_request(self, tokens):
        permissions = FakePermissions({"u-1": {"view_pet", "create_pet"}})
        gate = _gate(tokens, permissions=permissions)
        cache = {}
        gate.authorize(_principal(), ["view_pet"], cache=cache)
        gate.authorize(_principal(), ["create_pet"], cache=cache)
        assert permissions.calls == 1

        gate.authorize(_principal(), ["view_pet"])
        assert permissions.calls == 2
