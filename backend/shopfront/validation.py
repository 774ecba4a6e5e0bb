from __future__ import annotations
from datetime import datetime
from decimal import Decimal, InvalidOperation
from shopfront.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, JSON, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


# Numeric(10, 2): 99,999,999.99 is the largest storable amount
MAX_MONEY = Decimal("99999999.99")

DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """400-level business rule conflict (e.g., duplicate username)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - extra_fields: accepted payload keys that are not model columns (e.g. "password")
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    extra_fields: set[str] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_money(key: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, (int, float, str, Decimal)):
        try:
            # str() first so 19.99 (float) becomes Decimal("19.99"), not its binary expansion
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{key} must be a number")
        if not amount.is_finite():
            raise ValidationError(f"{key} must be a number")
        if amount != amount.quantize(Decimal("0.01")):
            raise ValidationError(f"{key} must have at most 2 decimal places")
        return amount.quantize(Decimal("0.01"))
    raise ValidationError(f"{key} must be a number")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    if isinstance(coltype, Numeric):
        return _coerce_money(col.key, value)

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, JSON):
        if not isinstance(value, dict):
            raise ValidationError(f"{col.key} must be an object")
        return value

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list, bool)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)

    Keys listed in policy.extra_fields are passed through untouched for
    the caller to check (they have no column to validate against).
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    extra = policy.extra_fields or set()

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k in extra:
            continue
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        if k in extra:
            patch[k] = raw
            continue

        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def require_string(payload: dict, key: str, *, min_length: int = 1, max_length: int = 255) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise ValidationError(f"{key} is required")
    if len(value) < min_length:
        raise ValidationError(f"{key} must be at least {min_length} characters")
    if len(value) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return value


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    for key in ("price", "costprice"):
        if key in patch and patch[key] is not None:
            if patch[key] < 0:
                raise ValidationError(f"{key} must be >= 0")
            if patch[key] > MAX_MONEY:
                raise ValidationError(f"{key} cannot exceed {MAX_MONEY}")
    if "remaining" in patch and patch["remaining"] is not None and patch["remaining"] < 0:
        raise ValidationError("remaining must be >= 0")


def enforce_rules_user(patch: dict) -> None:
    from .models import User

    if "language" in patch and patch["language"] not in User.LANGUAGES:
        raise ValidationError(f"language must be one of: {', '.join(User.LANGUAGES)}")


def enforce_rules_order_update(patch: dict) -> None:
    from .models import Order

    if "payment_type" in patch and patch["payment_type"] not in Order.PAYMENT_TYPES:
        raise ValidationError(f"payment_type must be one of: {', '.join(Order.PAYMENT_TYPES)}")
    if "status" in patch and patch["status"] not in Order.STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(Order.STATUSES)}")


def parse_order_items(payload: dict) -> list[dict]:
    """
    Validate the `items` list of an order body.

    Returns [{"product_id": int, "quantity": int, "data": dict}]. Repeated
    product ids are merged: quantities are summed and their data objects
    combined in request order (later keys win).
    """
    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    merged: dict[int, dict] = {}
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{index}] must be an object")
        product_id = _coerce_int(f"items[{index}].product_id", item.get("product_id"))
        quantity = _coerce_int(f"items[{index}].quantity", item.get("quantity"))
        if quantity <= 0:
            raise ValidationError(f"items[{index}].quantity must be > 0")
        data = item.get("data")
        if data is not None and not isinstance(data, dict):
            raise ValidationError(f"items[{index}].data must be an object")

        line = merged.setdefault(product_id, {"product_id": product_id, "quantity": 0, "data": {}})
        line["quantity"] += quantity
        line["data"].update(data or {})

    return list(merged.values())


def parse_pagination(args) -> tuple[int, int]:
    """page >= 1 (default 1), 1 <= limit <= MAX_PAGE_LIMIT (default 20)."""
    page = args.get("page", 1, type=int)
    limit = args.get("limit", DEFAULT_PAGE_LIMIT, type=int)
    if page < 1:
        raise ValidationError("page must be >= 1")
    if limit < 1 or limit > MAX_PAGE_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_LIMIT}")
    return page, limit


def parse_bool_arg(args, key: str, default: bool = False) -> bool:
    raw = args.get(key)
    if raw is None or raw == "":
        return default
    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes"):
        return True
    if lowered in ("0", "false", "no"):
        return False
    raise ValidationError(f"{key} must be a boolean")


def parse_int_list_arg(args, key: str) -> list[int] | None:
    """Comma-separated ids ("1,2,3") -> [1, 2, 3]; None when absent."""
    raw = args.get(key)
    if raw is None or raw.strip() == "":
        return None
    return [_coerce_int(key, part) for part in raw.split(",") if part.strip()]


def parse_money_arg(args, key: str) -> Decimal | None:
    raw = args.get(key)
    if raw is None or raw.strip() == "":
        return None
    return _coerce_money(key, raw)


def parse_datetime_arg(args, key: str) -> datetime | None:
    raw = args.get(key)
    try:
        return parse_iso_datetime(raw)
    except ValueError:
        raise ValidationError(f"{key} must be an ISO-8601 datetime")


def parse_choice_arg(args, key: str, choices) -> str | None:
    raw = args.get(key)
    if raw is None or raw == "":
        return None
    if raw not in choices:
        raise ValidationError(f"{key} must be one of: {', '.join(choices)}")
    return raw
