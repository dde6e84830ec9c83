"""Notification model."""
from app.extensions import db
from app.models.mixins import TimestampMixin, isoformat

PRIORITIES = ('low', 'normal', 'high')


class Notification(TimestampMixin, db.Model):
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    type = db.Column(db.String(50), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    data = db.Column(db.JSON)
    read_at = db.Column(db.DateTime, index=True)
    action_url = db.Column(db.String(500))
    priority = db.Column(db.Enum(*PRIORITIES, name='notification_priority'), default='normal', nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'data': self.data,
            'read_at': isoformat(self.read_at),
            'is_read': self.read_at is not None,
            'action_url': self.action_url,
            'priority': self.priority,
            **self.timestamps(),
        }
