"""
Caller identity for the rules API.

Auth is off by default for local use and every caller then acts as an
administrator. With ``PROMO_AUTH_DISABLED=false`` callers present either a
bearer JWT (see ``core.security``) or the static ``PROMO_AUTH_TOKEN`` used
by back-office services; rule writes require the ``ADMIN`` role.
"""

from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException

from .config import env_flag, get_app_env
from .security import TokenError, decode_access_token

ADMIN_ROLE = "ADMIN"
SERVICE_USER_ID = "service"

logger = logging.getLogger("auth")


@dataclass(frozen=True)
class UserContext:
    role: str
    user_id: Optional[str] = None
    username: Optional[str] = None

    def has_role(self, *roles: str) -> bool:
        return self.role.upper() in {r.upper() for r in roles}


def _service_token() -> str:
    token = os.getenv("PROMO_AUTH_TOKEN")
    if token:
        return token
    return "" if get_app_env() == "prod" else "demo-token"


def _bearer(authorization: Optional[str]) -> Optional[str]:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def _identity_from_claims(claims: dict) -> UserContext:
    role = str(claims.get("role") or "").strip().upper()
    username = str(claims.get("sub") or "").strip()
    user_id = str(claims.get("user_id") or "").strip()
    if not (role and username and user_id):
        raise HTTPException(status_code=401, detail="Invalid token claims")
    return UserContext(role=role, user_id=user_id, username=username)


def get_current_user(
    authorization: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None, alias="X-User-Name"),
) -> UserContext:
    if env_flag("PROMO_AUTH_DISABLED"):
        return UserContext(role=ADMIN_ROLE, username=x_user_name)
    token = _bearer(authorization)
    if token is None:
        raise HTTPException(status_code=401, detail="Missing bearer token")
    try:
        return _identity_from_claims(decode_access_token(token))
    except TokenError as exc:
        expected = _service_token()
        if expected and secrets.compare_digest(token, expected):
            return UserContext(role=ADMIN_ROLE, user_id=SERVICE_USER_ID, username=x_user_name or SERVICE_USER_ID)
        logger.info("Rejected bearer token reason=%s", exc)
        raise HTTPException(status_code=401, detail="Invalid token") from exc


def require_roles(*roles: str):
    def _dep(user: UserContext = Depends(get_current_user)) -> UserContext:
        if roles and not user.has_role(*roles):
            raise HTTPException(status_code=403, detail="Forbidden")
        return user

    return _dep
