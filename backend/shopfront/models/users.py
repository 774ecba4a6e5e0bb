from __future__ import annotations

from ..extensions import db
from shopfront.time_utils import to_utc_z, utcnow


class User(db.Model):
    """
    Storefront customer. Authenticates through the Telegram login widget.

    Soft delete: deleted_at is set instead of removing the row, so orders
    keep their customer reference.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_deleted", "deleted_at"),
        {"sqlite_autoincrement": True},
    )

    LANGUAGES = ("uz", "ru")

    id = db.Column(db.Integer, primary_key=True)
    fullname = db.Column(db.String(255), nullable=False)
    username = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True, unique=True)
    photo = db.Column(db.String(1024), nullable=True)
    telegram_id = db.Column(db.String(64), nullable=True, unique=True)
    language = db.Column(db.String(2), nullable=False, default="uz")

    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<User id={self.id} fullname={self.fullname!r}>"

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "fullname": self.fullname,
            "username": self.username,
            "phone": self.phone,
            "photo": self.photo,
            "telegram_id": self.telegram_id,
            "language": self.language,
            "deleted_at": to_utc_z(self.deleted_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
