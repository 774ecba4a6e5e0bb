# Overview: JWT issuing/decoding for access and refresh tokens.

"""
Access and refresh tokens are HS256 JWTs signed with JWT_SECRET.

- access token: identity claims + token_use="access", 15 minute lifetime.
  Verified statelessly on every request.
- refresh token: {id, type, jti} + token_use="refresh", 30 day lifetime.
  Also recorded server-side (RefreshToken.token_hash) so it can be revoked
  before it expires; see auth_service.

The jti makes every refresh token unique even when two are minted for
the same principal within the same second.
"""

import hashlib
import secrets
from datetime import timedelta

import jwt
from flask import current_app

from ..time_utils import to_unix, utcnow

ACCESS = "access"
REFRESH = "refresh"


def hash_token(token: str) -> str:
    """SHA-256 hex digest used to store refresh tokens at rest."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _encode(claims: dict) -> str:
    return jwt.encode(
        claims,
        current_app.config["JWT_SECRET"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )


def staff_claims(staff) -> dict:
    return {
        "id": staff.id,
        "fullname": staff.fullname,
        "username": staff.username,
        "role_id": staff.role_id,
        "type": "staff",
    }


def user_claims(user) -> dict:
    return {
        "id": user.id,
        "fullname": user.fullname,
        "username": user.username,
        "phone": user.phone,
        "telegram_id": user.telegram_id,
        "type": "user",
    }


def issue_access_token(claims: dict) -> str:
    ttl = timedelta(minutes=current_app.config.get("ACCESS_TOKEN_TTL_MINUTES", 15))
    now = utcnow()
    payload = dict(claims)
    payload.update({"token_use": ACCESS, "iat": to_unix(now), "exp": to_unix(now + ttl)})
    return _encode(payload)


def issue_refresh_token(owner_type: str, owner_id: int):
    """Returns (token, expires_at)."""
    ttl = timedelta(days=current_app.config.get("REFRESH_TOKEN_TTL_DAYS", 30))
    now = utcnow()
    expires_at = now + ttl
    token = _encode({
        "id": owner_id,
        "type": owner_type,
        "token_use": REFRESH,
        "jti": secrets.token_hex(16),
        "iat": to_unix(now),
        "exp": to_unix(expires_at),
    })
    return token, expires_at


def decode_token(token: str, expected_use: str = ACCESS) -> dict | None:
    """
    Verify signature and expiry. Returns the claims or None.

    A refresh token presented as an access token (or vice versa) is rejected.
    """
    try:
        claims = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
        )
    except jwt.ExpiredSignatureError:
        current_app.logger.info("Auth: Token expired")
        return None
    except jwt.InvalidTokenError:
        current_app.logger.warning("Auth: Invalid token signature or structure")
        return None

    if claims.get("token_use") != expected_use:
        current_app.logger.warning("Auth: Token used for the wrong purpose")
        return None
    return claims
