"""Category routes - CRUD plus the nested tree view."""
from flask import request
from flask_babel import gettext as _
from sqlalchemy import or_, select

from app.models import Category
from app.routes.base import BaseController, to_bool, to_int

UPDATABLE_FIELDS = ('name', 'slug', 'description', 'parent_id', 'sort_order', 'is_active')
TEXT_FIELDS = ('name', 'slug', 'description')


def build_category_tree(categories, parent_id=None, _ancestors=frozenset()):
    """Nest flat category dicts under their parents.

    Roots are the rows whose ``parent_id`` equals ``parent_id`` (None for the
    whole tree). A node already on the current path is not descended into
    again, so a corrupted parent chain cannot recurse forever.
    """
    tree = []
    for category in categories:
        if category['parent_id'] != parent_id or category['id'] in _ancestors:
            continue
        node = dict(category)
        node['children'] = build_category_tree(categories, category['id'], _ancestors | {category['id']})
        tree.append(node)
    return tree


class CategoryController(BaseController):

    def _get_or_404(self, category_id):
        category = self.db.get(Category, self.parse_id(category_id, _('Category not found')))
        if category is None:
            self.error(_('Category not found'), 404)
        return category

    def _slug_taken(self, slug, exclude_id=None):
        criteria = [Category.slug == slug]
        if exclude_id is not None:
            criteria.append(Category.id != exclude_id)
        return self.db.fetch(Category, *criteria) is not None

    def _check_parent(self, parent_id, category_id=None):
        """Reject unknown parents and assignments that would close a cycle."""
        if parent_id is None:
            return None
        parent_id = to_int(parent_id)
        if parent_id is None or self.db.get(Category, parent_id) is None:
            self.error(_('Parent category not found'), 400)

        seen = set()
        current = parent_id
        while current is not None and current not in seen:
            if current == category_id:
                self.error(_('A category cannot be its own ancestor'), 400)
            seen.add(current)
            current = self.db.scalar(select(Category.parent_id).where(Category.id == current))
        return parent_id

    # ==================== Routes ====================

    def index(self):
        page, per_page = self.page_args()
        parent_id = request.args.get('parent_id')
        search = request.args.get('search')

        stmt = select(Category)
        if parent_id is not None:
            if parent_id in ('0', 'null'):
                stmt = stmt.where(Category.parent_id.is_(None))
            elif to_int(parent_id) is None:
                self.error(_('Validation failed'), 400, [_('parent_id must be an integer, 0 or null')])
            else:
                stmt = stmt.where(Category.parent_id == to_int(parent_id))
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(Category.name.like(pattern), Category.description.like(pattern)))
        stmt = stmt.order_by(Category.sort_order.asc(), Category.name.asc())

        categories, pagination = self.paginate(stmt, page, per_page)
        return self.success({
            'categories': [category.to_dict() for category in categories],
            'pagination': pagination,
        }, _('Categories retrieved successfully'))

    def tree(self):
        categories = self.db.fetch_all(Category, order_by=[Category.sort_order.asc(), Category.name.asc()])
        tree = build_category_tree([category.to_dict() for category in categories])
        return self.success(tree, _('Category tree retrieved successfully'))

    def show(self, category_id):
        category = self._get_or_404(category_id)
        return self.success(category.to_dict(), _('Category retrieved successfully'))

    def store(self):
        self.require_auth()
        data = self.get_request_data()
        self.require_fields(data, ['name', 'slug'])

        if self._slug_taken(data['slug']):
            self.error(_('Category slug must be unique'), 400)

        category = self.db.insert(Category, {
            'name': self.sanitize_string(data['name']),
            'slug': self.sanitize_string(data['slug']),
            'description': self.sanitize_string(data.get('description')),
            'parent_id': self._check_parent(data.get('parent_id')),
            'sort_order': to_int(data.get('sort_order'), 0),
            'is_active': to_bool(data.get('is_active', True)),
            'metadata_': data.get('metadata'),
        })
        return self.success(category.to_dict(), _('Category created successfully'), 201)

    def update(self, category_id):
        self.require_auth()
        category = self._get_or_404(category_id)
        data = self.get_request_data()

        if data.get('slug') is not None and self._slug_taken(data['slug'], exclude_id=category.id):
            self.error(_('Category slug must be unique'), 400)

        changes = {}
        for field in UPDATABLE_FIELDS:
            if field not in data:
                continue
            value = data[field]
            # Explicit null only means something for parent_id (move to root).
            if value is None and field != 'parent_id':
                continue
            if field in TEXT_FIELDS:
                value = self.sanitize_string(value)
            elif field == 'parent_id':
                value = self._check_parent(value, category.id)
            elif field == 'sort_order':
                value = to_int(value, category.sort_order)
            elif field == 'is_active':
                value = to_bool(value)
            changes[field] = value
        if 'metadata' in data:
            changes['metadata_'] = data['metadata']

        for field, value in changes.items():
            setattr(category, field, value)
        self.db.save(category)
        return self.success(category.to_dict(), _('Category updated successfully'))

    def destroy(self, category_id):
        self.require_auth()
        category = self._get_or_404(category_id)

        def remove(db):
            db.delete(Category, parent_id=category.id)
            db.delete(Category, id=category.id)

        self.db.transaction(remove)
        return self.success([], _('Category deleted successfully'))


def register(router, controller):
    router.get('/categories', controller.index)
    router.get('/categories/tree', controller.tree)
    router.get('/categories/{id}', controller.show)
    router.post('/categories', controller.store)
    router.put('/categories/{id}', controller.update)
    router.delete('/categories/{id}', controller.destroy)
