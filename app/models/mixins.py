"""Shared columns and serialization helpers."""
from datetime import datetime, timezone
from app.extensions import db


def utcnow():
    """Current UTC time as a naive datetime, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value):
    return value.isoformat() if value is not None else None


class TimestampMixin:
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def timestamps(self):
        return {
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
