"""Tag routes."""
import re

from flask import request
from flask_babel import gettext as _
from sqlalchemy import or_, select

from app.models import Tag
from app.routes.base import BaseController, to_int

HEX_COLOR = re.compile(r'^#[0-9a-fA-F]{6}$')
POPULAR_LIMIT = 10


class TagController(BaseController):

    def _get_or_404(self, tag_id):
        tag = self.db.get(Tag, self.parse_id(tag_id, _('Tag not found')))
        if tag is None:
            self.error(_('Tag not found'), 404)
        return tag

    def _check_unique(self, data, exclude_id=None):
        for field, message in (('name', _('Tag name must be unique')), ('slug', _('Tag slug must be unique'))):
            if data.get(field) is None:
                continue
            criteria = [getattr(Tag, field) == data[field]]
            if exclude_id is not None:
                criteria.append(Tag.id != exclude_id)
            if self.db.fetch(Tag, *criteria) is not None:
                self.error(message, 400)

    def _check_color(self, color):
        if color is not None and not HEX_COLOR.match(str(color)):
            self.error(_('Validation failed'), 400, [_('Color must be a hex code like #1a2b3c')])

    # ==================== Routes ====================

    def index(self):
        page, per_page = self.page_args()
        stmt = select(Tag)
        search = request.args.get('search')
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(Tag.name.like(pattern), Tag.description.like(pattern)))
        stmt = stmt.order_by(Tag.name.asc())

        tags, pagination = self.paginate(stmt, page, per_page)
        return self.success({
            'tags': [tag.to_dict() for tag in tags],
            'pagination': pagination,
        }, _('Tags retrieved successfully'))

    def popular(self):
        limit = min(max(1, to_int(request.args.get('limit'), POPULAR_LIMIT)), 100)
        stmt = select(Tag).order_by(Tag.usage_count.desc(), Tag.name.asc()).limit(limit)
        return self.success([tag.to_dict() for tag in self.db.scalars(stmt)],
                            _('Popular tags retrieved successfully'))

    def show(self, tag_id):
        tag = self._get_or_404(tag_id)
        return self.success(tag.to_dict(), _('Tag retrieved successfully'))

    def store(self):
        self.require_auth()
        data = self.get_request_data()
        self.require_fields(data, ['name', 'slug'])
        self._check_unique(data)
        self._check_color(data.get('color'))

        tag = self.db.insert(Tag, {
            'name': self.sanitize_string(data['name']),
            'slug': self.sanitize_string(data['slug']),
            'description': self.sanitize_string(data.get('description')),
            'color': data.get('color'),
        })
        return self.success(tag.to_dict(), _('Tag created successfully'), 201)

    def update(self, tag_id):
        self.require_auth()
        tag = self._get_or_404(tag_id)
        data = self.get_request_data()
        self._check_unique(data, exclude_id=tag.id)
        if 'color' in data:
            self._check_color(data['color'])
            tag.color = data['color']

        for field in ('name', 'slug', 'description'):
            if data.get(field) is not None:
                setattr(tag, field, self.sanitize_string(data[field]))
        self.db.save(tag)
        return self.success(tag.to_dict(), _('Tag updated successfully'))

    def destroy(self, tag_id):
        self.require_auth()
        tag = self._get_or_404(tag_id)
        self.db.remove(tag)
        return self.success([], _('Tag deleted successfully'))


def register(router, controller):
    router.get('/tags', controller.index)
    # Literal paths go before the {id} pattern; the first match wins.
    router.get('/tags/popular', controller.popular)
    router.get('/tags/{id}', controller.show)
    router.post('/tags', controller.store)
    router.put('/tags/{id}', controller.update)
    router.delete('/tags/{id}', controller.destroy)
