"""User management routes."""
from flask import request
from flask_babel import gettext as _
from sqlalchemy import or_, select

from app.models import User, UserType
from app.routes.base import BaseController, to_bool, to_int

SELF_EDITABLE = ('username', 'email', 'mobile_phone', 'avatar', 'bio')
ADMIN_EDITABLE = ('permission_level', 'user_type_id', 'is_active')


class UserController(BaseController):

    def __init__(self, database, settings, gate, auth_service):
        super().__init__(database, settings, gate)
        self.auth = auth_service

    def _get_or_404(self, user_id):
        user = self.db.get(User, self.parse_id(user_id, _('User not found')))
        if user is None:
            self.error(_('User not found'), 404)
        return user

    def _require_self_or_admin(self, user_id):
        """Authorize against the requested id before it is looked up."""
        claims = self.require_auth()
        ident = self.parse_id(user_id, _('User not found'))
        if ident != claims['user_id'] and not self.is_admin(claims):
            self.error(_('Forbidden: insufficient permissions'), 403)
        return claims

    def _set_active(self, user_id, active):
        claims = self.require_admin()
        user = self._get_or_404(user_id)
        if user.id == claims['user_id'] and not active:
            self.error(_('You cannot deactivate your own account'), 400)
        user.is_active = active
        self.db.save(user)
        if not active:
            self.auth.destroy_all_user_sessions(user.id)
        return user

    # ==================== Routes ====================

    def index(self):
        self.require_admin()
        page, per_page = self.page_args()
        stmt = select(User)
        search = request.args.get('search')
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(User.username.like(pattern), User.email.like(pattern)))
        if request.args.get('is_active') is not None:
            stmt = stmt.where(User.is_active.is_(to_bool(request.args['is_active'])))
        stmt = stmt.order_by(User.created_at.desc(), User.id.desc())

        users, pagination = self.paginate(stmt, page, per_page)
        return self.success({
            'users': [user.to_dict() for user in users],
            'pagination': pagination,
        }, _('Users retrieved successfully'))

    def show(self, user_id):
        self._require_self_or_admin(user_id)
        user = self._get_or_404(user_id)
        return self.success(user.to_dict(), _('User retrieved successfully'))

    def update(self, user_id):
        claims = self._require_self_or_admin(user_id)
        user = self._get_or_404(user_id)
        data = self.get_request_data()

        if 'email' in data and not self.validate_email(data['email']):
            self.error(_('Invalid email format'), 400)

        changes = {}
        for field in SELF_EDITABLE:
            if data.get(field) is not None:
                changes[field] = self.sanitize_string(str(data[field]))

        admin_fields = [field for field in ADMIN_EDITABLE if field in data]
        if admin_fields and not self.is_admin(claims):
            self.error(_('Forbidden: insufficient permissions'), 403)
        if 'permission_level' in data:
            level = to_int(data['permission_level'])
            if level is None or level < 0:
                self.error(_('Validation failed'), 400, [_('Permission level must be a non-negative integer')])
            changes['permission_level'] = level
        if 'user_type_id' in data:
            type_id = to_int(data['user_type_id'])
            if data['user_type_id'] is not None and (type_id is None or self.db.get(UserType, type_id) is None):
                self.error(_('User type not found'), 400)
            changes['user_type_id'] = type_id
        if 'is_active' in data:
            changes['is_active'] = to_bool(data['is_active'])

        if not changes:
            self.error(_('No valid fields to update'), 400)

        taken = []
        if 'username' in changes:
            taken.append(User.username == changes['username'])
        if 'email' in changes:
            taken.append(User.email == changes['email'])
        if taken and self.db.fetch(User, or_(*taken), User.id != user.id):
            self.error(_('Username or email already exists'), 400)

        for field, value in changes.items():
            setattr(user, field, value)
        self.db.save(user)
        if changes.get('is_active') is False:
            self.auth.destroy_all_user_sessions(user.id)
        return self.success(user.to_dict(), _('User updated successfully'))

    def destroy(self, user_id):
        """Users are never hard-deleted: deactivate and revoke every session."""
        self._set_active(user_id, False)
        return self.success([], _('User deleted successfully'))

    def activate(self, user_id):
        user = self._set_active(user_id, True)
        return self.success(user.to_dict(), _('User activated successfully'))

    def deactivate(self, user_id):
        user = self._set_active(user_id, False)
        return self.success(user.to_dict(), _('User deactivated successfully'))


def register(router, controller):
    router.get('/users', controller.index)
    router.get('/users/{id}', controller.show)
    router.put('/users/{id}', controller.update)
    router.delete('/users/{id}', controller.destroy)
    router.put('/users/{id}/activate', controller.activate)
    router.put('/users/{id}/deactivate', controller.deactivate)
