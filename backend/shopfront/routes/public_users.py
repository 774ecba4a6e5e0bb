# backend/shopfront/routes/public_users.py
"""
Storefront sign-in through the Telegram Login Widget.

The widget posts the signed payload (id, first_name, last_name, username,
photo_url, auth_date, hash). We verify the HMAC with the bot token,
reject payloads older than TELEGRAM_AUTH_MAX_AGE_SECONDS, then find or
create the user and issue tokens like staff login does.
"""

from flask import Blueprint, current_app, make_response, request

from ..context import context_from_request
from ..responses import error_response, from_result, success_response
from ..services import auth_service, users_service
from ..telegram import is_auth_date_fresh, validate_telegram_hash
from ..validation import ValidationError
from .auth import set_refresh_cookie

public_users_bp = Blueprint("public_users", __name__, url_prefix="/api/public/users")

TELEGRAM_FIELDS = {"id", "first_name", "last_name", "username", "photo_url", "auth_date", "hash"}


def _parse_telegram_body(payload) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    unknown = set(payload) - TELEGRAM_FIELDS
    if unknown:
        raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")
    for key in ("id", "auth_date"):
        if isinstance(payload.get(key), bool) or not isinstance(payload.get(key), int):
            raise ValidationError(f"{key} must be an integer")
    if not isinstance(payload.get("first_name"), str) or not payload["first_name"]:
        raise ValidationError("first_name is required")
    if not isinstance(payload.get("hash"), str) or not payload["hash"]:
        raise ValidationError("hash is required")
    return payload


@public_users_bp.post("/telegram")
def telegram_login():
    ctx = context_from_request()
    body = _parse_telegram_body(request.get_json(silent=True))

    bot_token = current_app.config.get("TELEGRAM_BOT_TOKEN")
    if not bot_token:
        ctx.logger.error("Users: TELEGRAM_BOT_TOKEN is not configured")
        return error_response("Server configuration error", 500)

    if not validate_telegram_hash(body, bot_token):
        ctx.logger.warning("Users: Invalid Telegram hash", telegramId=body["id"])
        return error_response("Invalid authentication data", 401)

    max_age = current_app.config.get("TELEGRAM_AUTH_MAX_AGE_SECONDS", 300)
    if not is_auth_date_fresh(body["auth_date"], max_age):
        ctx.logger.warning("Users: Telegram auth data expired", telegramId=body["id"], authDate=body["auth_date"])
        return error_response("Authentication data expired", 401)

    result = users_service.create_or_update_from_telegram(ctx, body)
    if not result.success:
        return from_result(result)

    user = result.data
    tokens = auth_service.start_user_session(ctx, user)

    ctx.logger.info("Users: Telegram authentication successful", userId=user.id, telegramId=body["id"])
    response = make_response(success_response({"user": user.to_dict(), "token": tokens["token"]}))
    return set_refresh_cookie(response, tokens["refresh_token"], tokens["refresh_expires_at"])
