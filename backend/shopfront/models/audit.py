from __future__ import annotations

from sqlalchemy import event

from ..extensions import db
from shopfront.time_utils import to_utc_z, utcnow


class AuditLogImmutableError(RuntimeError):
    """Raised when something tries to modify or delete an audit row."""


class AuditLog(db.Model):
    """
    Append-only audit trail of state-changing operations.

    One row per instrumented operation: who (actor_id/actor_type), what
    (entity_type/entity_id/action), before/after snapshots, and request
    metadata (ip address, user agent). request_id ties together every row
    written while serving one HTTP request.

    IMMUTABLE: Never update or delete. Enforced by mapper events below.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_entity", "entity_type", "entity_id"),
        db.Index("ix_audit_logs_actor", "actor_type", "actor_id"),
        {"sqlite_autoincrement": True},
    )

    ACTOR_TYPES = ("STAFF", "USER", "SYSTEM")
    ACTIONS = (
        "CREATE",
        "UPDATE",
        "DELETE",
        "RESTORE",
        "LOGIN",
        "LOGOUT",
        "PASSWORD_CHANGE",
        "PERMISSION_CHANGE",
        "ORDER_STATUS_CHANGE",
        "INVENTORY_ADJUST",
    )

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.String(64), nullable=True, index=True)

    actor_id = db.Column(db.Integer, nullable=True)
    actor_type = db.Column(db.String(16), nullable=False)

    entity_type = db.Column(db.String(64), nullable=False)
    entity_id = db.Column(db.Integer, nullable=False)
    action = db.Column(db.String(32), nullable=False, index=True)

    previous_data = db.Column(db.JSON, nullable=True)
    new_data = db.Column(db.JSON, nullable=True)
    # "metadata" is reserved on declarative models
    meta = db.Column("metadata", db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<AuditLog id={self.id} {self.action} {self.entity_type}#{self.entity_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "request_id": self.request_id,
            "actor_id": self.actor_id,
            "actor_type": self.actor_type,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "action": self.action,
            "previous_data": self.previous_data,
            "new_data": self.new_data,
            "metadata": self.meta,
            "created_at": to_utc_z(self.created_at),
        }


@event.listens_for(AuditLog, "before_update")
def _reject_audit_update(mapper, connection, target):
    raise AuditLogImmutableError("Audit log entries are append-only")


@event.listens_for(AuditLog, "before_delete")
def _reject_audit_delete(mapper, connection, target):
    raise AuditLogImmutableError("Audit log entries are append-only")
