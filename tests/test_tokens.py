from datetime import datetime, timedelta, timezone

import jwt
import pytest

from utils.exceptions import InvalidToken, MalformedToken, TokenExpired, WrongTokenKind
from utils.tokens import ACCESS, REFRESH, Identity, TokenService

SECRET = "unit-test-secret-for-hs256-signing-0123"

IDENTITY = Identity(
    user_id="u-1",
    username="alice",
    first_name="Alice",
    last_name="Nguyen",
    email="alice@example.com",
    is_admin=False,
)


@pytest.fixture
def tokens():
    return TokenService(SECRET, issuer="pet-service-api")


def _raw(payload, secret=SECRET):
    return jwt.encode(payload, secret, algorithm="HS256")


def _payload(**overrides):
    now = int(datetime.now(timezone.utc).timestamp())
    payload = {
        "sub": "u-1",
        "username": "alice",
        "first_name": "Alice",
        "last_name": "Nguyen",
        "email": "alice@example.com",
        "is_admin": False,
        "jti": "jti-1",
        "type": ACCESS,
        "iat": now,
        "exp": now + 60,
        "iss": "pet-service-api",
    }
    payload.update(overrides)
    return {k: v for k, v in payload.items() if v is not None}


def test_pair_shares_jti_and_decodes(tokens):
    access, refresh, expire = tokens.issue_token_pair(IDENTITY, "jti-42")

    claims = tokens.decode(access)
    assert claims.user_id == "u-1"
    assert claims.email == "alice@example.com"
    assert claims.is_admin is False
    assert claims.jti == "jti-42"
    assert claims.kind == ACCESS
    assert claims.expires_at == expire

    refresh_claims = tokens.decode(refresh, expected_kind=REFRESH)
    assert refresh_claims.jti == "jti-42"
    assert refresh_claims.expires_at > claims.expires_at


def test_access_expiry_is_one_day_out(tokens):
    before = datetime.now(timezone.utc)
    _, _, expire = tokens.issue_token_pair(IDENTITY, "jti-1")
    delta = datetime.fromtimestamp(expire, timezone.utc) - before
    assert timedelta(hours=23, minutes=59) <= delta <= timedelta(days=1, seconds=5)


def test_refresh_token_rejected_where_access_expected(tokens):
    _, refresh, _ = tokens.issue_token_pair(IDENTITY, "jti-1")
    with pytest.raises(WrongTokenKind):
        tokens.decode(refresh)


def test_expired_token(tokens):
    now = int(datetime.now(timezone.utc).timestamp())
    token = _raw(_payload(iat=now - 120, exp=now - 60))
    with pytest.raises(TokenExpired) as exc:
        tokens.decode(token)
    assert exc.value.status == 401


def test_wrong_secret_is_malformed(tokens):
    token = _raw(_payload(), secret="someone-elses-secret-key-0123456789abcdef")
    with pytest.raises(MalformedToken):
        tokens.decode(token)


@pytest.mark.parametrize("token", ["", "abc", "a.b.c"])
def test_garbage_is_malformed(tokens, token):
    with pytest.raises(MalformedToken):
        tokens.decode(token)


def test_is_admin_must_be_boolean(tokens):
    with pytest.raises(MalformedToken):
        tokens.decode(_raw(_payload(is_admin="true")))


def test_missing_identity_claim(tokens):
    with pytest.raises(MalformedToken):
        tokens.decode(_raw(_payload(email=None)))


def test_missing_jti_claim(tokens):
    with pytest.raises(InvalidToken):
        tokens.decode(_raw(_payload(jti=None)))


def test_unknown_token_type(tokens):
    with pytest.raises(MalformedToken):
        tokens.decode(_raw(_payload(type="session")))


def test_issuer_is_checked(tokens):
    with pytest.raises(MalformedToken):
        tokens.decode(_raw(_payload(iss="somebody-else")))


def test_empty_secret_refused():
    with pytest.raises(ValueError):
        TokenService("")
