# harvestchain/auth.py
from __future__ import annotations

import logging
from typing import Any, Dict

from flask import current_app, g, request
from flask_bcrypt import Bcrypt
from flask_jwt_extended import (
    JWTManager,
    create_access_token,
    get_jwt,
    get_jwt_identity,
    verify_jwt_in_request,
)
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import PyJWTError

from harvestchain.errors import AuthError, ConfigurationError

log = logging.getLogger(__name__)

bcrypt = Bcrypt()
jwt = JWTManager()

ROLES = ("master", "admin")


def init_auth(app):
    bcrypt.init_app(app)
    jwt.init_app(app)


def sign_auth_token(admin_id: str, role: str) -> str:
    """Issue a 12h bearer token carrying the admin id (sub) and role claim."""
    if not (current_app.config.get("JWT_SECRET_KEY") or "").strip():
        raise ConfigurationError("JWT_SECRET_KEY must be set in .env")
    if role not in ROLES:
        raise ValueError(f"unknown admin role: {role!r}")
    return create_access_token(identity=str(admin_id), additional_claims={"role": role})


def require_admin_token():
    """
    before_request hook for protected admin routes.
    Missing header, wrong scheme, bad signature and expiry all fail the same way.
    """
    if request.method == "OPTIONS":
        return None
    try:
        verify_jwt_in_request()
        claims = get_jwt()
        identity = get_jwt_identity()
    except (JWTExtendedException, PyJWTError) as e:
        log.info("Rejected admin token on %s: %s", request.path, e)
        raise AuthError("Invalid or expired token") from e

    role = claims.get("role")
    if not identity or role not in ROLES:
        raise AuthError("Invalid or expired token")

    g.auth = {"id": identity, "role": role}
    return None


def current_auth() -> Dict[str, Any]:
    return g.auth
