"""User and UserType models."""
from app.extensions import db
from app.models.mixins import TimestampMixin, isoformat


class UserType(TimestampMixin, db.Model):
    __tablename__ = 'user_types'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text)
    permissions = db.Column(db.JSON)  # list of permission strings, e.g. 'items.create'
    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'permissions': self.permissions or [],
            'is_active': self.is_active,
            **self.timestamps(),
        }


class User(TimestampMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    mobile_phone = db.Column(db.String(20))
    avatar = db.Column(db.String(500))
    bio = db.Column(db.Text)
    permission_level = db.Column(db.Integer, default=0, nullable=False)  # 0 regular, 1 admin
    user_type_id = db.Column(db.Integer, db.ForeignKey('user_types.id', ondelete='SET NULL'), index=True)
    last_login_at = db.Column(db.DateTime)
    email_verified_at = db.Column(db.DateTime)
    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)

    user_type = db.relationship('UserType', backref='users')
    sessions = db.relationship('Session', backref='user', cascade='all, delete-orphan', passive_deletes=True)

    def to_dict(self):
        """Public representation; the password hash never leaves the model."""
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'mobile_phone': self.mobile_phone,
            'avatar': self.avatar,
            'bio': self.bio,
            'permission_level': self.permission_level,
            'user_type_id': self.user_type_id,
            'last_login_at': isoformat(self.last_login_at),
            'email_verified_at': isoformat(self.email_verified_at),
            'is_active': self.is_active,
            **self.timestamps(),
        }
