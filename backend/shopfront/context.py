# Overview: Per-call service context (injected session, actor, permissions, logger).

"""
ServiceContext is the one argument every service function takes first.

It carries the SQLAlchemy session to use (so services never reach for a
global), the authenticated actor decoded from the access token, the
actor's permission set, and request metadata for logging and audit.

Routes build it with context_from_request(); the CLI and tests build it
directly (ServiceContext.system(db.session)).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from flask import current_app, g, request

from .extensions import db
from .logging_setup import ContextLogger
from .permissions import has_permission, has_permission_with_scope

ACTOR_STAFF = "staff"
ACTOR_USER = "user"


@dataclass(frozen=True)
class Token:
    """Decoded identity carried by an access token."""
    id: int
    type: str
    fullname: Optional[str] = None
    username: Optional[str] = None
    role_id: Optional[int] = None
    phone: Optional[str] = None
    telegram_id: Optional[str] = None

    @property
    def is_staff(self) -> bool:
        return self.type == ACTOR_STAFF

    @property
    def is_user(self) -> bool:
        return self.type == ACTOR_USER

    @classmethod
    def from_claims(cls, claims: dict) -> Optional["Token"]:
        """Build from JWT claims; None when the payload has the wrong shape."""
        if not isinstance(claims, dict):
            return None
        actor_id = claims.get("id")
        actor_type = claims.get("type")
        if not isinstance(actor_id, int) or isinstance(actor_id, bool):
            return None
        if actor_type not in (ACTOR_STAFF, ACTOR_USER):
            return None
        return cls(
            id=actor_id,
            type=actor_type,
            fullname=claims.get("fullname"),
            username=claims.get("username"),
            role_id=claims.get("role_id"),
            phone=claims.get("phone"),
            telegram_id=claims.get("telegram_id"),
        )


@dataclass
class ServiceContext:
    session: object
    logger: ContextLogger
    actor: Optional[Token] = None
    permissions: tuple = field(default_factory=tuple)
    request_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def staff_id(self) -> Optional[int]:
        return self.actor.id if self.actor and self.actor.is_staff else None

    @property
    def user_id(self) -> Optional[int]:
        return self.actor.id if self.actor and self.actor.is_user else None

    def has(self, code: str) -> bool:
        return has_permission(self.permissions, code)

    def can(self, resource: str, action: str, scope: Optional[str] = None) -> bool:
        return has_permission_with_scope(self.permissions, resource, action, scope)

    @classmethod
    def system(cls, session, logger=None, permissions=()) -> "ServiceContext":
        """Context for CLI / background work: no actor, SYSTEM in the audit trail."""
        base = logger or current_app.logger
        return cls(session=session, logger=ContextLogger(base), permissions=tuple(permissions))


def context_from_request() -> ServiceContext:
    """Build a ServiceContext from the current Flask request (after auth decorators ran)."""
    request_id = getattr(g, "request_id", None)
    return ServiceContext(
        session=db.session,
        logger=ContextLogger(current_app.logger, request_id),
        actor=getattr(g, "current_actor", None),
        permissions=tuple(getattr(g, "permissions", ()) or ()),
        request_id=request_id,
        ip_address=request.remote_addr or None,
        user_agent=request.headers.get("User-Agent"),
    )
