from __future__ import annotations

from functools import wraps

from flask import current_app, g, request


def _gate():
    return current_app.extensions["pet_service"].gate


def jwt_required():
    """Authenticate the request and bind the Principal to g.current_user."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            principal = _gate().authenticate(request.headers)
            g.current_user = principal
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def permissions_required(required_permissions: list[str]):
    """
    Allow access only if the user holds ALL of the required permissions
    (admins always pass). Implies jwt_required().
    """
    required = frozenset(required_permissions or [])

    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            cache = g.setdefault("effective_permissions", {})
            _gate().authorize(g.current_user, required, cache=cache)
            return fn(*args, **kwargs)

        return wrapper

    return decorator
