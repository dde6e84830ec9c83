"""Item routes - content records with tags, counters and related items."""
from decimal import Decimal, InvalidOperation

from flask import request
from flask_babel import gettext as _
from sqlalchemy import or_, select

from app.models import Category, Item, Tag
from app.models.item import ITEM_STATUSES
from app.models.mixins import utcnow
from app.routes.base import BaseController, to_bool, to_int

RELATED_LIMIT = 5
IMAGE_EXTENSIONS = ('jpg', 'jpeg', 'png', 'gif')


class ItemController(BaseController):

    def _get_or_404(self, item_id):
        item = self.db.get(Item, self.parse_id(item_id, _('Item not found')))
        if item is None:
            self.error(_('Item not found'), 404)
        return item

    def _require_owner_or_admin(self, item):
        claims = self.require_auth()
        if item.user_id != claims['user_id'] and not self.is_admin(claims):
            self.error(_('Forbidden: you do not own this item'), 403)
        return claims

    def _slug_taken(self, slug, exclude_id=None):
        criteria = [Item.slug == slug]
        if exclude_id is not None:
            criteria.append(Item.id != exclude_id)
        return self.db.fetch(Item, *criteria) is not None

    def _resolve_tags(self, tag_ids):
        if not isinstance(tag_ids, list):
            self.error(_('Tags must be a list of tag ids'), 400)
        ids = [to_int(tag_id) for tag_id in tag_ids]
        tags = self.db.fetch_all(Tag, Tag.id.in_([i for i in ids if i is not None]))
        if len(tags) != len(set(ids)):
            self.error(_('One or more tags do not exist'), 400)
        return tags

    def _set_tags(self, item, tags):
        """Replace the item's tags, keeping usage counters in step."""
        old = {tag.id for tag in item.tags}
        new = {tag.id for tag in tags}
        for tag in item.tags:
            if tag.id not in new:
                tag.usage_count = max(0, tag.usage_count - 1)
        for tag in tags:
            if tag.id not in old:
                tag.usage_count += 1
        item.tags = list(tags)

    def _validated_fields(self, data, item=None):
        fields = {}
        for field in ('title', 'slug', 'description', 'type', 'featured_image'):
            if data.get(field) is not None:
                fields[field] = self.sanitize_string(data[field])
        if 'content' in data:
            fields['content'] = data['content']
        if 'metadata' in data:
            fields['metadata_'] = data['metadata']

        if 'status' in data:
            if data['status'] not in ITEM_STATUSES:
                self.error(_('Validation failed'), 400,
                           [_('Status must be one of: %(values)s', values=', '.join(ITEM_STATUSES))])
            fields['status'] = data['status']
            if data['status'] == 'published' and (item is None or item.published_at is None):
                fields['published_at'] = utcnow()

        if 'category_id' in data:
            category_id = to_int(data['category_id'])
            if data['category_id'] is not None and (category_id is None or self.db.get(Category, category_id) is None):
                self.error(_('Category not found'), 400)
            fields['category_id'] = category_id

        if 'price' in data:
            if data['price'] is None:
                fields['price'] = None
            else:
                try:
                    fields['price'] = Decimal(str(data['price']))
                except InvalidOperation:
                    self.error(_('Validation failed'), 400, [_('Price must be a number')])

        if 'is_featured' in data:
            fields['is_featured'] = to_bool(data['is_featured'])
        return fields

    def _bump_counter(self, item, key):
        metadata = dict(item.metadata_ or {})
        metadata[key] = int(metadata.get(key, 0)) + 1
        item.metadata_ = metadata
        self.db.save(item)
        return metadata[key]

    # ==================== Routes ====================

    def index(self):
        page, per_page = self.page_args()
        stmt = select(Item)

        category_id = to_int(request.args.get('category_id'))
        if category_id is not None:
            stmt = stmt.where(Item.category_id == category_id)
        if request.args.get('status'):
            stmt = stmt.where(Item.status == request.args['status'])
        if request.args.get('type'):
            stmt = stmt.where(Item.type == request.args['type'])
        if request.args.get('featured') is not None:
            stmt = stmt.where(Item.is_featured.is_(to_bool(request.args['featured'])))
        search = request.args.get('search')
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(Item.title.like(pattern), Item.description.like(pattern)))
        stmt = stmt.order_by(Item.created_at.desc(), Item.id.desc())

        items, pagination = self.paginate(stmt, page, per_page)
        return self.success({
            'items': [item.to_dict() for item in items],
            'pagination': pagination,
        }, _('Items retrieved successfully'))

    def show(self, item_id):
        item = self._get_or_404(item_id)
        item.view_count = (item.view_count or 0) + 1
        self.db.save(item)
        return self.success(item.to_dict(with_tags=True), _('Item retrieved successfully'))

    def related(self, item_id):
        item = self._get_or_404(item_id)
        if item.category_id is None:
            return self.success([], _('Related items retrieved successfully'))

        stmt = (
            select(Item)
            .where(Item.category_id == item.category_id, Item.id != item.id)
            .order_by((Item.status == 'published').desc(), Item.view_count.desc(), Item.id.desc())
            .limit(RELATED_LIMIT)
        )
        related = self.db.scalars(stmt)
        return self.success([other.to_dict() for other in related], _('Related items retrieved successfully'))

    def store(self):
        claims = self.require_auth()
        data = self.get_request_data()
        self.require_fields(data, ['title', 'slug'])

        if self._slug_taken(data['slug']):
            self.error(_('Item slug must be unique'), 400)

        fields = self._validated_fields(data)
        tags = self._resolve_tags(data['tags']) if data.get('tags') is not None else []

        def create(db):
            item = Item(user_id=claims['user_id'], **fields)
            self._set_tags(item, tags)
            return db.save(item)

        item = self.db.transaction(create)
        return self.success(item.to_dict(with_tags=True), _('Item created successfully'), 201)

    def update(self, item_id):
        item = self._get_or_404(item_id)
        self._require_owner_or_admin(item)
        data = self.get_request_data()

        if data.get('slug') is not None and self._slug_taken(data['slug'], exclude_id=item.id):
            self.error(_('Item slug must be unique'), 400)

        fields = self._validated_fields(data, item)
        tags = self._resolve_tags(data['tags']) if data.get('tags') is not None else None

        def apply(db):
            for field, value in fields.items():
                setattr(item, field, value)
            if tags is not None:
                self._set_tags(item, tags)
            return db.save(item)

        self.db.transaction(apply)
        return self.success(item.to_dict(with_tags=True), _('Item updated successfully'))

    def destroy(self, item_id):
        item = self._get_or_404(item_id)
        self._require_owner_or_admin(item)

        def remove(db):
            self._set_tags(item, [])
            db.remove(item)

        self.db.transaction(remove)
        return self.success([], _('Item deleted successfully'))

    def upload_image(self, item_id):
        item = self._get_or_404(item_id)
        self._require_owner_or_admin(item)
        item.featured_image = self.handle_file_upload('image', IMAGE_EXTENSIONS)
        self.db.save(item)
        self.log_activity('item_image_uploaded', {'item_id': item.id})
        return self.success(item.to_dict(), _('Image uploaded successfully'))

    def like(self, item_id):
        self.require_auth()
        item = self._get_or_404(item_id)
        likes = self._bump_counter(item, 'likes')
        return self.success({'id': item.id, 'likes': likes}, _('Item liked'))

    def share(self, item_id):
        self.require_auth()
        item = self._get_or_404(item_id)
        shares = self._bump_counter(item, 'shares')
        return self.success({'id': item.id, 'shares': shares}, _('Item shared'))


def register(router, controller):
    router.get('/items', controller.index)
    router.get('/items/{id}', controller.show)
    router.get('/items/{id}/related', controller.related)
    router.post('/items', controller.store)
    router.put('/items/{id}', controller.update)
    router.delete('/items/{id}', controller.destroy)
    router.post('/items/{id}/image', controller.upload_image)
    router.post('/items/{id}/like', controller.like)
    router.post('/items/{id}/share', controller.share)
