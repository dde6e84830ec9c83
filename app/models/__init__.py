"""Models package - Re-exports all models for convenient importing."""
from app.extensions import db
from app.models.user import User, UserType
from app.models.session import Session, PasswordReset
from app.models.category import Category
from app.models.item import Item, Tag, ItemTag
from app.models.notification import Notification

__all__ = [
    'db', 'User', 'UserType', 'Session', 'PasswordReset',
    'Category', 'Item', 'Tag', 'ItemTag', 'Notification',
]
