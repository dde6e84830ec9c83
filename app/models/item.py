"""Item, Tag and the ItemTag pivot."""
from app.extensions import db
from app.models.mixins import TimestampMixin, isoformat, utcnow

ITEM_STATUSES = ('draft', 'published', 'archived')


class ItemTag(db.Model):
    __tablename__ = 'item_tags'

    item_id = db.Column(db.Integer, db.ForeignKey('items.id', ondelete='CASCADE'), primary_key=True)
    tag_id = db.Column(db.Integer, db.ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)


class Tag(TimestampMixin, db.Model):
    __tablename__ = 'tags'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text)
    color = db.Column(db.String(7))  # hex, '#rrggbb'
    usage_count = db.Column(db.Integer, default=0, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'description': self.description,
            'color': self.color,
            'usage_count': self.usage_count,
            **self.timestamps(),
        }


class Item(TimestampMixin, db.Model):
    __tablename__ = 'items'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False)
    description = db.Column(db.Text)
    content = db.Column(db.Text)
    type = db.Column(db.String(50), default='general', nullable=False, index=True)
    status = db.Column(db.Enum(*ITEM_STATUSES, name='item_status'), default='draft', nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id', ondelete='SET NULL'), index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    featured_image = db.Column(db.String(500))
    price = db.Column(db.Numeric(10, 2))
    metadata_ = db.Column('metadata', db.JSON)
    view_count = db.Column(db.Integer, default=0, nullable=False)
    is_featured = db.Column(db.Boolean, default=False, nullable=False, index=True)
    published_at = db.Column(db.DateTime, index=True)

    category = db.relationship('Category', backref='items')
    tags = db.relationship('Tag', secondary='item_tags', backref='items', order_by='Tag.name')

    def to_dict(self, with_tags=False):
        data = {
            'id': self.id,
            'title': self.title,
            'slug': self.slug,
            'description': self.description,
            'content': self.content,
            'type': self.type,
            'status': self.status,
            'category_id': self.category_id,
            'user_id': self.user_id,
            'featured_image': self.featured_image,
            'price': float(self.price) if self.price is not None else None,
            'metadata': self.metadata_,
            'view_count': self.view_count,
            'is_featured': self.is_featured,
            'published_at': isoformat(self.published_at),
            **self.timestamps(),
        }
        if with_tags:
            data['tags'] = [tag.to_dict() for tag in self.tags]
        return data
