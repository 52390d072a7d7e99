"""
Authorization gate: the per-request pipeline in front of every protected route.

    extract bearer -> decode (access only) -> revocation check -> principal
    -> (route specific) permission check

The first failing step ends the request. Store errors never fall through as
success: a failed revocation or permission lookup is a 401, never a 403 or a
pass. Nothing is retried.

Revocation is best effort with respect to requests already in flight: a request
that passed the revocation check before a concurrent logout committed finishes
normally.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, MutableMapping, Optional

from utils.exceptions import Forbidden, TransientStoreError, Unauthorized
from utils.tokens import ACCESS, TokenClaims

logger = logging.getLogger(__name__)

BEARER = "Bearer"


@dataclass(frozen=True)
class Principal:
    user_id: str
    username: str
    first_name: str
    last_name: str
    email: str
    is_admin: bool
    jti: str
    token_kind: str

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "Principal":
        return cls(
            user_id=claims.user_id,
            username=claims.username,
            first_name=claims.first_name,
            last_name=claims.last_name,
            email=claims.email,
            is_admin=claims.is_admin,
            jti=claims.jti,
            token_kind=claims.kind,
        )


def extract_bearer(headers: Mapping[str, str]) -> str:
    auth = headers.get("Authorization")
    if not auth:
        raise Unauthorized("Authorization header required")
    parts = auth.split(" ")
    if len(parts) != 2 or parts[0] != BEARER or not parts[1]:
        raise Unauthorized("Invalid authorization format")
    return parts[1]


class AuthGate:
    def __init__(self, tokens, revocations, permissions):
        self._tokens = tokens
        self._revocations = revocations
        self._permissions = permissions

    def authenticate(self, headers: Mapping[str, str]) -> Principal:
        """Headers in, Principal out; raises Unauthorized / InvalidToken on any failure."""
        token = extract_bearer(headers)
        claims = self._tokens.decode(token, expected_kind=ACCESS)

        try:
            revoked = self._revocations.is_revoked(claims.jti)
        except TransientStoreError:
            logger.error("revocation store unavailable; denying jti %s", claims.jti)
            raise Unauthorized("Unable to verify token")
        if revoked:
            logger.info("rejected revoked jti %s for user %s", claims.jti, claims.user_id)
            raise Unauthorized("Token has been revoked")

        return Principal.from_claims(claims)

    def authorize(
        self,
        principal: Principal,
        required: Iterable[str],
        cache: Optional[MutableMapping[str, frozenset]] = None,
    ) -> None:
        """
        Grant iff the principal is an admin, or every required permission is in
        the principal's effective permission set. `cache` may hold resolved sets
        for the lifetime of one request only.
        """
        required = frozenset(required or ())

        if principal.is_admin:
            # Admin trust boundary: the flag comes from a verified, unrevoked token
            # and grants everything without consulting the role/permission graph.
            logger.debug("admin bypass for user %s on %s", principal.user_id, sorted(required))
            return

        granted = self.effective_permissions(principal, cache)
        if not granted:
            raise Forbidden("User has no permissions")
        missing = required - granted
        if missing:
            logger.info("user %s lacks %s", principal.user_id, sorted(missing))
            raise Forbidden("Permission denied")

    def effective_permissions(
        self,
        principal: Principal,
        cache: Optional[MutableMapping[str, frozenset]] = None,
    ) -> frozenset:
        if cache is not None and principal.user_id in cache:
            return cache[principal.user_id]
        try:
            granted = self._permissions.effective_permissions(principal.user_id)
        except TransientStoreError:
            logger.error("permission store unavailable; denying user %s", principal.user_id)
            raise Unauthorized("Unable to verify permissions")
        if cache is not None:
            cache[principal.user_id] = granted
        return granted
