"""Authentication routes - login, registration, sessions and password reset."""
from flask import g
from flask_babel import gettext as _
from sqlalchemy import or_

from app.models import User
from app.routes.base import BaseController


def is_strong_password(password, min_length=6):
    """At least ``min_length`` characters."""
    return isinstance(password, str) and len(password) >= min_length


class AuthController(BaseController):

    def __init__(self, database, settings, gate, auth_service):
        super().__init__(database, settings, gate)
        self.auth = auth_service

    @property
    def min_password_length(self):
        return self.config.get('auth.password_min_length', 6)

    def _check_password_strength(self, password, message=None):
        if not is_strong_password(password, self.min_password_length):
            self.error(message or _('Password must be at least %(count)d characters long',
                                    count=self.min_password_length), 400)

    # ==================== Routes ====================

    def login(self):
        data = self.get_request_data()
        self.require_fields(data, ['identifier', 'password'])

        user = self.auth.authenticate(str(data['identifier']), str(data['password']))
        if user is None:
            self.error(_('Invalid credentials'), 401)
        if not user.is_active:
            self.error(_('Account is deactivated'), 401)

        token = self.auth.generate_token(user)
        if not self.auth.create_session(user.id, token):
            self.error(_('Failed to create session'), 500)

        self.auth.record_login(user.id)
        self.log_activity('user_login', {'user_id': user.id})
        return self.success({'token': token, 'user': user.to_dict()}, _('Login successful'))

    def register(self):
        data = self.get_request_data()
        self.require_fields(data, ['username', 'email', 'password'])

        if not self.validate_email(data['email']):
            self.error(_('Invalid email format'), 400)
        self._check_password_strength(data['password'])

        user_data = self.sanitize_dict({
            'username': data['username'],
            'email': data['email'],
            'mobile_phone': data.get('mobile_phone'),
        })
        # Passwords are hashed verbatim, never sanitized.
        user_data['password'] = data['password']

        user_id = self.auth.register(user_data)
        if not user_id:
            self.error(_('Failed to register user. Username or email may already exist.'), 400)

        self.log_activity('user_register', {'user_id': user_id})
        return self.success({'user_id': user_id}, _('User registered successfully'), 201)

    def logout(self):
        claims = self.require_auth()
        if not self.auth.destroy_session(g.auth_token):
            self.error(_('Failed to logout'), 500)
        self.log_activity('user_logout', {'user_id': claims['user_id']})
        return self.success(None, _('Logout successful'))

    def me(self):
        claims = self.require_auth()
        user = self.auth.get_user_by_id(claims['user_id'])
        if user is None:
            self.error(_('User not found'), 404)
        return self.success(user.to_dict())

    def update_profile(self):
        claims = self.require_auth()
        user_id = claims['user_id']
        data = self.get_request_data()

        if 'email' in data and not self.validate_email(data['email']):
            self.error(_('Invalid email format'), 400)

        update_data = {}
        for field in ('username', 'email', 'mobile_phone'):
            if data.get(field) is not None:
                update_data[field] = self.sanitize_string(str(data[field]))

        if not update_data:
            self.error(_('No valid fields to update'), 400)

        taken = []
        if 'username' in update_data:
            taken.append(User.username == update_data['username'])
        if 'email' in update_data:
            taken.append(User.email == update_data['email'])
        if taken and self.db.fetch(User, or_(*taken), User.id != user_id):
            self.error(_('Username or email already exists'), 400)

        if not self.auth.update_user_profile(user_id, update_data):
            self.error(_('Failed to update profile'), 500)

        self.log_activity('profile_update', {'user_id': user_id})
        return self.success(None, _('Profile updated successfully'))

    def request_password_reset(self):
        data = self.get_request_data()
        self.require_fields(data, ['email'])
        if not self.validate_email(data['email']):
            self.error(_('Invalid email format'), 400)

        token = self.auth.generate_password_reset_token(data['email'])
        if token:
            # Delivery is left to the mail integration; only record the request.
            self.log_activity('password_reset_requested', {'email': data['email']})

        # Same answer whether or not the address exists.
        return self.success(None, _('If the email exists, a reset link has been sent'))

    def reset_password(self):
        data = self.get_request_data()
        self.require_fields(data, ['token', 'password'])
        self._check_password_strength(data['password'])

        if not self.auth.reset_password_with_token(str(data['token']), data['password']):
            self.error(_('Invalid or expired reset token'), 400)

        self.log_activity('password_reset_completed', {'token': str(data['token'])[:8] + '...'})
        return self.success(None, _('Password reset successful'))

    def change_password(self):
        claims = self.require_auth()
        data = self.get_request_data()
        self.require_fields(data, ['current_password', 'new_password'])
        self._check_password_strength(
            data['new_password'],
            _('New password must be at least %(count)d characters long', count=self.min_password_length),
        )

        user = self.auth.get_user_by_id(claims['user_id'])
        if user is None:
            self.error(_('User not found'), 404)
        if not self.auth.check_password(user, str(data['current_password'])):
            self.error(_('Current password is incorrect'), 401)

        if not self.auth.update_password(user.id, data['new_password']):
            self.error(_('Failed to change password'), 500)

        self.log_activity('password_changed', {'user_id': user.id})
        return self.success(None, _('Password changed successfully'))


def register(router, controller):
    router.post('/auth/login', controller.login)
    router.post('/auth/register', controller.register)
    router.post('/auth/logout', controller.logout)
    router.get('/auth/me', controller.me)
    router.put('/auth/profile', controller.update_profile)
    router.post('/auth/request-reset', controller.request_password_reset)
    router.post('/auth/reset-password', controller.reset_password)
    router.post('/auth/change-password', controller.change_password)
