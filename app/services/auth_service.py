"""Authentication service.

Credential checks, JWT issuance, session bookkeeping and the password reset
token lifecycle. Database failures are logged and reported as ``None`` /
``False`` results; callers decide what to tell the client.
"""
import logging
import secrets
import time
import uuid
from datetime import timedelta

import jwt
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from app.models import PasswordReset, Session, User
from app.models.mixins import utcnow

logger = logging.getLogger(__name__)

PROFILE_PROTECTED_FIELDS = ('password', 'password_hash', 'id', 'created_at')


class AuthService:

    def __init__(self, database, settings):
        self.db = database
        self.config = settings

    # ==================== Credentials ====================

    def hash_password(self, password):
        return generate_password_hash(password, method=self.config.get('auth.password_hash_method', 'scrypt'))

    def check_password(self, user, password):
        return bool(user.password_hash) and check_password_hash(user.password_hash, password)

    def authenticate(self, identifier, password):
        """Return the user for a username/email + password pair, else None.

        Unknown identifier and wrong password are indistinguishable.
        """
        user = self.db.fetch(User, or_(User.username == identifier, User.email == identifier))
        if user is None or not self.check_password(user, password):
            return None
        return user

    # ==================== Tokens ====================

    def generate_token(self, user):
        jwt_config = self.config.get('jwt')
        now = int(time.time())
        payload = {
            'iss': jwt_config['issuer'],
            'aud': jwt_config['audience'],
            'iat': now,
            'exp': now + jwt_config['expires_in'],
            'jti': uuid.uuid4().hex,
            'user_id': user.id,
            'username': user.username,
            'email': user.email,
            'permission_level': user.permission_level or 0,
        }
        return jwt.encode(payload, jwt_config['secret'], algorithm=jwt_config['algorithm'])

    def decode_token(self, token):
        """Decode and verify a token. Raises ``jwt.InvalidTokenError`` subclasses."""
        jwt_config = self.config.get('jwt')
        return jwt.decode(
            token,
            jwt_config['secret'],
            algorithms=[jwt_config['algorithm']],
            audience=jwt_config['audience'],
            issuer=jwt_config['issuer'],
        )

    def verify_token(self, token):
        try:
            return self.decode_token(token)
        except jwt.InvalidTokenError:
            return None

    # ==================== Sessions ====================

    def create_session(self, user_id, token):
        expires_at = utcnow() + timedelta(seconds=self.config.get('jwt.expires_in'))
        try:
            self.db.insert(Session, {
                'user_id': user_id,
                'session_token': token,
                'created_at': utcnow(),
                'expires_at': expires_at,
            })
            return True
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Could not create session for user %s", user_id)
            return False

    def find_session(self, user_id, token):
        return self.db.fetch(Session, user_id=user_id, session_token=token)

    def destroy_session(self, token):
        try:
            self.db.delete(Session, session_token=token)
            return True
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Could not destroy session")
            return False

    def destroy_all_user_sessions(self, user_id):
        try:
            self.db.delete(Session, user_id=user_id)
            return True
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Could not destroy sessions for user %s", user_id)
            return False

    def is_session_valid(self, token):
        return self.db.fetch(Session, Session.expires_at > utcnow(), session_token=token) is not None

    def clean_expired_sessions(self):
        try:
            return self.db.delete(Session, Session.expires_at < utcnow())
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Could not clean expired sessions")
            return 0

    # ==================== Users ====================

    def register(self, user_data):
        """Create a user and return its id, or None on any failure."""
        for field in ('username', 'email', 'password'):
            if not user_data.get(field):
                logger.info("Registration rejected: field '%s' is required", field)
                return None

        try:
            existing = self.db.fetch(User, or_(User.username == user_data['username'],
                                               User.email == user_data['email']))
            if existing is not None:
                logger.info("Registration rejected: username or email already exists")
                return None

            user = self.db.insert(User, {
                'username': user_data['username'],
                'email': user_data['email'],
                'password_hash': self.hash_password(user_data['password']),
                'mobile_phone': user_data.get('mobile_phone'),
                'permission_level': user_data.get('permission_level') or 0,
                'user_type_id': user_data.get('user_type_id'),
            })
            return user.id
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Registration failed")
            return None

    def get_user_by_id(self, user_id):
        return self.db.get(User, user_id)

    def record_login(self, user_id):
        try:
            self.db.update(User, {'last_login_at': utcnow()}, id=user_id)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Could not record login for user %s", user_id)

    def update_password(self, user_id, new_password):
        try:
            updated = self.db.update(User, {'password_hash': self.hash_password(new_password)}, id=user_id)
            return updated > 0
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Could not update password for user %s", user_id)
            return False

    def update_user_profile(self, user_id, data):
        data = {key: value for key, value in data.items() if key not in PROFILE_PROTECTED_FIELDS}
        if not data:
            return False
        try:
            return self.db.update(User, data, id=user_id) > 0
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Could not update profile for user %s", user_id)
            return False

    # ==================== Password reset ====================

    def generate_password_reset_token(self, email):
        """Issue a single-use reset token, or None when the email is unknown."""
        try:
            user = self.db.fetch(User, email=email)
            if user is None:
                return None

            token = secrets.token_hex(32)
            ttl = self.config.get('auth.password_reset_expires_in', 3600)
            self.db.insert(PasswordReset, {
                'token': token,
                'user_id': user.id,
                'email': email,
                'created_at': utcnow(),
                'expires_at': utcnow() + timedelta(seconds=ttl),
            })
            return token
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Could not create password reset token")
            return None

    def verify_password_reset_token(self, token):
        """Email bound to an unexpired, unused token, else None."""
        reset = self.db.fetch(PasswordReset, PasswordReset.expires_at > utcnow(),
                              token=token, used=False)
        return reset.email if reset else None

    def reset_password_with_token(self, token, new_password):
        try:
            email = self.verify_password_reset_token(token)
            if not email:
                return False

            def apply(db):
                updated = db.update(User, {'password_hash': self.hash_password(new_password)}, email=email)
                if not updated:
                    return False
                db.delete(PasswordReset, token=token)
                return True

            return self.db.transaction(apply)
        except SQLAlchemyError:
            logger.exception("Password reset failed")
            return False

    def clean_expired_reset_tokens(self):
        try:
            return self.db.delete(PasswordReset, PasswordReset.expires_at < utcnow())
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Could not clean expired reset tokens")
            return 0
