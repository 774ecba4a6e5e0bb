# backend/shopfront/routes/auth.py
"""
Staff authentication routes (public prefix, the refresh cookie lives here).

COOKIE: the refresh token travels only in the httpOnly "auth" cookie,
scoped to /api/public/auth so no other endpoint ever receives it.
Access tokens are returned in the JSON body and sent back as
"Authorization: Bearer ...".
"""

from flask import Blueprint, current_app, make_response, request

from ..context import context_from_request
from ..decorators import require_auth
from ..responses import error_response, from_result, success_response
from ..services import auth_service
from ..validation import require_string

auth_bp = Blueprint("auth", __name__, url_prefix="/api/public/auth")


def set_refresh_cookie(response, token: str, expires_at):
    config = current_app.config
    response.set_cookie(
        config["REFRESH_COOKIE_NAME"],
        token,
        max_age=config["REFRESH_TOKEN_TTL_DAYS"] * 24 * 60 * 60,
        expires=expires_at,
        path=config["REFRESH_COOKIE_PATH"],
        secure=config.get("APP_ENV") != "development",
        httponly=True,
        samesite="Strict",
    )
    return response


def clear_refresh_cookie(response):
    config = current_app.config
    response.delete_cookie(
        config["REFRESH_COOKIE_NAME"],
        path=config["REFRESH_COOKIE_PATH"],
        secure=config.get("APP_ENV") != "development",
        httponly=True,
        samesite="Strict",
    )
    return response


def _refresh_cookie():
    return request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"])


@auth_bp.post("/login")
def login():
    """
    Staff login.

    Body: {"username": 3..255 chars, "password": 8..255 chars}
    Returns {token, staff}; sets the refresh cookie.
    """
    payload = request.get_json(silent=True) or {}
    username = require_string(payload, "username", min_length=3, max_length=255)
    password = require_string(payload, "password", min_length=8, max_length=255)

    result = auth_service.login(context_from_request(), username, password)
    if not result.success:
        return from_result(result)

    data = result.data
    response = make_response(success_response({"token": data["token"], "staff": data["staff"]}))
    return set_refresh_cookie(response, data["refresh_token"], data["refresh_expires_at"])


@auth_bp.post("/refresh")
def refresh():
    """Rotate the refresh cookie and return a new access token."""
    ctx = context_from_request()
    token = _refresh_cookie()
    if not token:
        ctx.logger.warning("Auth: Refresh token cookie not found")
        return error_response("Unauthorized", 401)

    result = auth_service.refresh(ctx, token)
    if not result.success:
        return clear_refresh_cookie(make_response(from_result(result)))

    data = result.data
    response = make_response(success_response({"token": data["token"]}))
    return set_refresh_cookie(response, data["refresh_token"], data["refresh_expires_at"])


@auth_bp.post("/logout")
def logout():
    result = auth_service.logout(context_from_request(), _refresh_cookie())
    return clear_refresh_cookie(make_response(from_result(result)))


@auth_bp.get("/me")
@require_auth
def me():
    """Profile of the bearer (staff with role and permissions, or user)."""
    return from_result(auth_service.get_profile(context_from_request()))
