"""Notification routes - every operation is scoped to the caller."""

from flask import request
from flask_babel import gettext as _
from sqlalchemy import select

from app.models import Notification
from app.models.mixins import utcnow
from app.routes.base import BaseController, to_bool


class NotificationController(BaseController):

    def _owned_or_404(self, notification_id, user_id):
        notification = self.db.fetch(
            Notification,
            id=self.parse_id(notification_id, _('Notification not found')),
            user_id=user_id,
        )
        if notification is None:
            self.error(_('Notification not found'), 404)
        return notification

    def index(self):
        claims = self.require_auth()
        user_id = claims['user_id']
        page, per_page = self.page_args()

        stmt = select(Notification).where(Notification.user_id == user_id)
        if to_bool(request.args.get('unread', False)):
            stmt = stmt.where(Notification.read_at.is_(None))
        if request.args.get('type'):
            stmt = stmt.where(Notification.type == request.args['type'])
        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc())

        notifications, pagination = self.paginate(stmt, page, per_page)
        unread = self.db.count(Notification, Notification.read_at.is_(None), user_id=user_id)
        return self.success({
            'notifications': [notification.to_dict() for notification in notifications],
            'unread_count': unread,
            'pagination': pagination,
        }, _('Notifications retrieved successfully'))

    def show(self, notification_id):
        claims = self.require_auth()
        notification = self._owned_or_404(notification_id, claims['user_id'])
        return self.success(notification.to_dict(), _('Notification retrieved successfully'))

    def mark_as_read(self, notification_id):
        claims = self.require_auth()
        notification = self._owned_or_404(notification_id, claims['user_id'])
        if notification.read_at is None:
            notification.read_at = utcnow()
            self.db.save(notification)
        return self.success(notification.to_dict(), _('Notification marked as read'))

    def mark_all_as_read(self):
        claims = self.require_auth()
        updated = self.db.update(
            Notification,
            {'read_at': utcnow()},
            Notification.read_at.is_(None),
            user_id=claims['user_id'],
        )
        return self.success({'updated': updated}, _('All notifications marked as read'))

    def destroy(self, notification_id):
        claims = self.require_auth()
        notification = self._owned_or_404(notification_id, claims['user_id'])
        self.db.remove(notification)
        return self.success([], _('Notification deleted successfully'))


def register(router, controller):
    router.get('/notifications', controller.index)
    router.get('/notifications/{id}', controller.show)
    router.put('/notifications/read-all', controller.mark_all_as_read)
    router.put('/notifications/{id}/read', controller.mark_as_read)
    router.delete('/notifications/{id}', controller.destroy)
