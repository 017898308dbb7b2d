"""
Signed access tokens (HS256 JWT) for API callers.

Tokens are normally issued by the identity provider in front of this
service; ``create_access_token`` exists for service-to-service callers and
tests. Every token carries ``iss=promo-rules`` plus the caller's ``sub``,
``role`` and ``user_id``.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

TOKEN_ISSUER = "promo-rules"
DEV_JWT_SECRET = "dev-jwt-secret-change-me"
_HEADER = {"alg": "HS256", "typ": "JWT"}


class TokenError(ValueError):
    """The bearer token is malformed, forged, expired or not ours."""


def _encode_segment(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _decode_segment(segment: str) -> bytes:
    try:
        return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except ValueError as exc:
        raise TokenError("Bad base64 segment") from exc


def _jwt_secret() -> str:
    secret = (os.getenv("PROMO_JWT_SECRET") or os.getenv("PROMO_AUTH_TOKEN") or "").strip()
    if secret:
        return secret
    env = (os.getenv("PROMO_ENV") or os.getenv("APP_ENV") or "dev").strip().lower()
    return "" if env == "prod" else DEV_JWT_SECRET


def _jwt_exp_minutes() -> int:
    try:
        return max(1, int(os.getenv("PROMO_JWT_EXP_MIN", "720")))
    except Exception:
        return 720


def _signature(secret: str, signing_input: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), signing_input.encode("ascii"), hashlib.sha256).digest()


def create_access_token(*, sub: str, role: str, user_id: str) -> str:
    secret = _jwt_secret()
    if not secret:
        raise RuntimeError("PROMO_JWT_SECRET is required when auth is enabled")
    issued = datetime.now(timezone.utc)
    expires = issued + timedelta(minutes=_jwt_exp_minutes())
    claims = {
        "iss": TOKEN_ISSUER,
        "sub": sub,
        "role": role,
        "user_id": user_id,
        "iat": int(issued.timestamp()),
        "exp": int(expires.timestamp()),
    }
    signing_input = f"{_encode_segment(_HEADER)}.{_encode_segment(claims)}"
    signature = base64.urlsafe_b64encode(_signature(secret, signing_input)).rstrip(b"=").decode("ascii")
    return f"{signing_input}.{signature}"


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature, issuer and expiry; return the claims."""
    secret = _jwt_secret()
    if not secret:
        raise TokenError("JWT secret not configured")
    try:
        header_seg, claims_seg, signature_seg = token.split(".")
    except ValueError as exc:
        raise TokenError("Malformed token") from exc
    expected = _signature(secret, f"{header_seg}.{claims_seg}")
    if not secrets.compare_digest(expected, _decode_segment(signature_seg)):
        raise TokenError("Invalid signature")
    try:
        claims = json.loads(_decode_segment(claims_seg).decode("utf-8"))
    except ValueError as exc:
        raise TokenError("Invalid claims") from exc
    if not isinstance(claims, dict):
        raise TokenError("Invalid claims")
    if claims.get("iss") != TOKEN_ISSUER:
        raise TokenError("Unexpected issuer")
    try:
        exp = int(claims.get("exp") or 0)
    except (TypeError, ValueError) as exc:
        raise TokenError("Invalid exp") from exc
    if exp <= 0:
        raise TokenError("Missing exp")
    if datetime.now(timezone.utc).timestamp() >= exp:
        raise TokenError("Token expired")
    return claims
