# Overview: Request authentication and permission decorators for API routes.

from functools import wraps
from flask import request, g, current_app

from .context import Token
from .extensions import db
from .logging_setup import ContextLogger
from .models import Staff, User
from .permissions import has_all_permissions, has_any_permission
from .responses import error_response
from .services import token_service


def _is_authenticated() -> bool:
    return getattr(g, "current_actor", None) is not None


def _logger() -> ContextLogger:
    return ContextLogger(current_app.logger, getattr(g, "request_id", None))


def _load_principal(token: Token):
    """(exists, permissions) for the decoded actor."""
    if token.is_staff:
        staff = db.session.get(Staff, token.id)
        if staff is None:
            return False, ()
        return True, tuple(staff.permissions)
    user = db.session.get(User, token.id)
    if user is None or user.is_deleted:
        return False, ()
    return True, ()


def require_auth(f):
    """
    Require a valid bearer access token.

    Sets on flask.g:
    - g.current_actor: decoded Token (id, type "staff" | "user", ...)
    - g.permissions: the staff member's role permissions, read from the
      database on every request (empty for users)

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid signature, expired, or a refresh token used as access token
    - Payload shape mismatch
    - Staff/user no longer exists (or user is soft-deleted)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            _logger().debug("Auth: Token not found")
            return error_response("Unauthorized", 401)

        claims = token_service.decode_token(auth_header.split(" ", 1)[1])
        if claims is None:
            return error_response("Unauthorized", 401)

        token = Token.from_claims(claims)
        if token is None:
            _logger().error("Auth: Token structure mismatch")
            return error_response("Unauthorized", 401)

        exists, permissions = _load_principal(token)
        if not exists:
            _logger().warning("Auth: User or Staff not found in database", userId=token.id, type=token.type)
            return error_response("Unauthorized", 401)

        g.current_actor = token
        g.permissions = permissions

        return f(*args, **kwargs)

    return decorated_function


def _staff_only():
    actor = g.current_actor
    if not actor.is_staff:
        _logger().warning("Auth: User type does not support permissions", userId=actor.id, type=actor.type)
        return error_response("Forbidden", 403)
    return None


def _denied(required):
    _logger().warning(
        "Auth: Permission denied",
        staffId=g.current_actor.id,
        required=list(required),
        path=request.path,
    )
    body, status = error_response("Forbidden", 403)
    body["required_permissions"] = list(required)
    return body, status


def require_all_permissions(*permission_codes):
    """
    Require every listed permission. Only staff carry permissions; storefront
    users get 403. Must be stacked under @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return error_response("Unauthorized", 401)

            rejected = _staff_only()
            if rejected:
                return rejected

            if not has_all_permissions(g.permissions, permission_codes):
                return _denied(permission_codes)

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_permission(permission_code: str):
    """Require a single permission (see require_all_permissions)."""
    return require_all_permissions(permission_code)


def require_any_permission(*permission_codes):
    """Require at least one of the listed permissions."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return error_response("Unauthorized", 401)

            rejected = _staff_only()
            if rejected:
                return rejected

            if not has_any_permission(g.permissions, permission_codes):
                return _denied(permission_codes)

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_user(f):
    """Storefront-only endpoints: the caller must be a user, not staff."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return error_response("Unauthorized", 401)
        actor = g.current_actor
        if not actor.is_user:
            _logger().warning("Auth: Staff token on user-only endpoint", staffId=actor.id)
            return error_response("Forbidden", 403)
        return f(*args, **kwargs)
    return decorated_function
