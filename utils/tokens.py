"""
Token service: issues and validates the signed access/refresh pair handed out at login.

- JWT creation/verification via PyJWT (HS256 by default)
- Both tokens of a pair share one JTI; the JTI is the revocation key
- Claims are validated once, at decode time, into a frozen TokenClaims
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Tuple

import jwt

from utils.exceptions import MalformedToken, TokenExpired, WrongTokenKind

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"
TOKEN_KINDS = (ACCESS, REFRESH)

# claims that must decode to str
_STRING_CLAIMS = ("sub", "username", "first_name", "last_name", "email", "jti", "type")
_REQUIRED_CLAIMS = ["exp", "iat", "sub", "jti", "type"]


@dataclass(frozen=True)
class Identity:
    """The subject fields copied into every token of a pair."""

    user_id: str
    username: str
    first_name: str
    last_name: str
    email: str
    is_admin: bool = False

    @classmethod
    def from_user(cls, user) -> "Identity":
        return cls(
            user_id=str(user.id),
            username=user.username or "",
            first_name=user.first_name or "",
            last_name=user.last_name or "",
            email=user.email or "",
            is_admin=bool(user.is_admin),
        )


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    username: str
    first_name: str
    last_name: str
    email: str
    is_admin: bool
    jti: str
    kind: str
    issued_at: int
    expires_at: int

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "TokenClaims":
        for name in _STRING_CLAIMS:
            if not isinstance(payload.get(name), str):
                raise MalformedToken(f"Invalid token: claim '{name}' missing or not a string")
        if not isinstance(payload.get("is_admin"), bool):
            raise MalformedToken("Invalid token: claim 'is_admin' missing or not a boolean")
        if payload["type"] not in TOKEN_KINDS:
            raise MalformedToken("Invalid token: unknown token type")
        return cls(
            user_id=payload["sub"],
            username=payload["username"],
            first_name=payload["first_name"],
            last_name=payload["last_name"],
            email=payload["email"],
            is_admin=payload["is_admin"],
            jti=payload["jti"],
            kind=payload["type"],
            issued_at=int(payload["iat"]),
            expires_at=int(payload["exp"]),
        )


class TokenService:
    """
    Signs and verifies tokens with a secret handed in at construction.
    Rotating the secret invalidates every outstanding token.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(days=1),
        refresh_ttl: timedelta = timedelta(days=365),
        issuer: str | None = None,
    ):
        if not secret:
            raise ValueError("a signing secret is required")
        self._secret = secret
        self._algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.issuer = issuer

    def _claims(self, identity: Identity, jti: str, kind: str, now: datetime, ttl: timedelta) -> Dict[str, Any]:
        payload = {
            "sub": identity.user_id,
            "username": identity.username,
            "first_name": identity.first_name,
            "last_name": identity.last_name,
            "email": identity.email,
            "is_admin": identity.is_admin,
            "jti": jti,
            "type": kind,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        if self.issuer:
            payload["iss"] = self.issuer
        return payload

    def _encode(self, payload: Dict[str, Any]) -> str:
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def issue_token_pair(self, identity: Identity, jti: str) -> Tuple[str, str, int]:
        """Return (access_token, refresh_token, access_expiry_epoch)."""
        now = datetime.now(timezone.utc)
        access_claims = self._claims(identity, jti, ACCESS, now, self.access_ttl)
        refresh_claims = self._claims(identity, jti, REFRESH, now, self.refresh_ttl)
        return self._encode(access_claims), self._encode(refresh_claims), access_claims["exp"]

    def decode(self, token: str, expected_kind: str = ACCESS) -> TokenClaims:
        """
        Decode and validate a JWT.
        Raises TokenExpired, MalformedToken (bad signature, garbage, bad claims)
        or WrongTokenKind; all of them are InvalidToken.
        """
        options = {"require": list(_REQUIRED_CLAIMS)}
        kwargs = {}
        if self.issuer:
            options["require"].append("iss")
            kwargs["issuer"] = self.issuer
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm], options=options, **kwargs)
        except jwt.ExpiredSignatureError:
            raise TokenExpired()
        except jwt.InvalidTokenError as exc:
            logger.debug("rejected token: %s", exc)
            raise MalformedToken()

        claims = TokenClaims.from_payload(payload)
        if claims.kind != expected_kind:
            raise WrongTokenKind()
        return claims
