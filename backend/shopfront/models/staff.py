from __future__ import annotations

from ..extensions import db
from shopfront.time_utils import to_utc_z, utcnow


class Role(db.Model):
    """
    Named bundle of permission tokens assigned to staff.

    Permissions are stored as a JSON list of codes from the closed catalog
    (shopfront.permissions). A staff member's effective permission set is
    exactly its role's list; there are no per-staff overrides.
    """
    __tablename__ = "roles"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True)
    permissions = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Role id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "permissions": list(self.permissions or []),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Staff(db.Model):
    """
    Back-office account (admin console). Authenticates with username/password.

    SECURITY: password_hash is an argon2 hash and never leaves the model
    (to_dict omits it).
    """
    __tablename__ = "staff"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    fullname = db.Column(db.String(255), nullable=False)
    username = db.Column(db.String(255), nullable=False, unique=True)
    password_hash = db.Column(db.String(255), nullable=False)
    telegram_id = db.Column(db.String(64), nullable=True, unique=True)

    role_id = db.Column(
        db.Integer,
        db.ForeignKey("roles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    role = db.relationship("Role", backref=db.backref("staff", lazy=True))

    def __repr__(self) -> str:
        return f"<Staff id={self.id} username={self.username!r} role_id={self.role_id}>"

    @property
    def permissions(self) -> list[str]:
        return list(self.role.permissions or []) if self.role else []

    def to_dict(self, include_role: bool = False) -> dict:
        data = {
            "id": self.id,
            "fullname": self.fullname,
            "username": self.username,
            "telegram_id": self.telegram_id,
            "role_id": self.role_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_role and self.role is not None:
            data["role"] = self.role.to_dict()
        return data


class RefreshToken(db.Model):
    """
    Server-side record of an issued refresh token.

    SECURITY:
    - Only the SHA-256 of the token is stored (token_hash).
    - Exactly one of staff_id / user_id is set when issued (staff_id is
      nulled if the staff account is later removed).
    - Rows are never deleted; logout and rotation flip `revoked`.
    """
    __tablename__ = "refresh_tokens"
    __table_args__ = (
        db.Index("ix_refresh_tokens_staff_revoked", "staff_id", "revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True)

    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id", ondelete="SET NULL"), nullable=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    expired_at = db.Column(db.DateTime(timezone=True), nullable=False)
    revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        owner = f"staff_id={self.staff_id}" if self.staff_id else f"user_id={self.user_id}"
        return f"<RefreshToken id={self.id} {owner} revoked={self.revoked}>"

    @property
    def owner_type(self) -> str:
        return "staff" if self.staff_id is not None else "user"
