"""
Explicitly wired collaborators for one app instance.

create_app() builds a Services and stores it in app.extensions["pet_service"];
blueprints reach it through services(), tests can swap single members.
"""
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from models.db_storage import DBStorage
from utils.auth_gate import AuthGate
from utils.notifier import DeferredNotifier
from utils.permissions import PermissionResolver
from utils.revocation import RevocationStore
from utils.tokens import TokenService

EXTENSION_KEY = "pet_service"


@dataclass
class Services:
    storage: DBStorage
    tokens: TokenService
    revocations: RevocationStore
    permissions: PermissionResolver
    gate: AuthGate
    notifier: DeferredNotifier

    @classmethod
    def from_config(cls, config) -> "Services":
        storage = DBStorage(config["DATABASE_URL"], echo=config.get("SQL_ECHO", False))
        tokens = TokenService(
            secret=config["JWT_SECRET"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            access_ttl=config["ACCESS_TOKEN_EXPIRES"],
            refresh_ttl=config["REFRESH_TOKEN_EXPIRES"],
            issuer=config.get("JWT_ISSUER"),
        )
        revocations = RevocationStore(storage)
        permissions = PermissionResolver(storage)
        return cls(
            storage=storage,
            tokens=tokens,
            revocations=revocations,
            permissions=permissions,
            gate=AuthGate(tokens, revocations, permissions),
            notifier=DeferredNotifier(config.get("NOTIFY_DELAY_SECONDS", 10)),
        )


def services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
