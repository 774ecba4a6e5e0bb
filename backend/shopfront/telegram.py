# Overview: Telegram Login Widget payload verification.

"""
Telegram signs login widget payloads with the bot token.

data_check_string = "\n".join("key=value" for every field except
"hash", skipping None values, in key order)
secret_key        = SHA256(bot_token)
hash              = hex(HMAC_SHA256(secret_key, data_check_string))

See https://core.telegram.org/widgets/login#checking-authorization
"""

import hashlib
import hmac
import time
from typing import Mapping, Optional

# Tolerated clock difference between Telegram and this server
MAX_CLOCK_SKEW_SECONDS = 30


def build_data_check_string(data: Mapping) -> str:
    keys = sorted(key for key, value in data.items() if key != "hash" and value is not None)
    return "\n".join(f"{key}={data[key]}" for key in keys)


def compute_telegram_hash(data: Mapping, bot_token: str) -> str:
    secret_key = hashlib.sha256(bot_token.encode("utf-8")).digest()
    check_string = build_data_check_string(data)
    return hmac.new(secret_key, check_string.encode("utf-8"), hashlib.sha256).hexdigest()


def validate_telegram_hash(data: Mapping, bot_token: str) -> bool:
    supplied = data.get("hash")
    if not isinstance(supplied, str) or not supplied:
        return False
    return hmac.compare_digest(compute_telegram_hash(data, bot_token), supplied)


def is_auth_date_fresh(auth_date, max_age_seconds: int, now: Optional[float] = None) -> bool:
    """auth_date (unix seconds) must be no older than max_age_seconds and not in the future."""
    if isinstance(auth_date, bool) or not isinstance(auth_date, int):
        return False
    current = time.time() if now is None else now
    return current - max_age_seconds <= auth_date <= current + MAX_CLOCK_SKEW_SECONDS
