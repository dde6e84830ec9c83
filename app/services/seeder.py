"""Default data for a fresh database."""
import logging

from app.models import Category, Tag, User, UserType

logger = logging.getLogger(__name__)

USER_TYPES = [
    ('Administrator', 'Full system access with all permissions', [
        'users.create', 'users.read', 'users.update', 'users.delete',
        'categories.create', 'categories.read', 'categories.update', 'categories.delete',
        'items.create', 'items.read', 'items.update', 'items.delete',
        'tags.create', 'tags.read', 'tags.update', 'tags.delete',
        'notifications.create', 'notifications.read', 'notifications.update', 'notifications.delete',
        'system.settings', 'system.analytics',
    ]),
    ('Editor', 'Can manage content and categories', [
        'categories.read', 'categories.create', 'categories.update',
        'items.create', 'items.read', 'items.update', 'items.delete',
        'tags.create', 'tags.read', 'tags.update',
        'notifications.read',
    ]),
    ('Author', 'Can create and manage own content', [
        'categories.read', 'items.create', 'items.read', 'items.update.own',
        'tags.read', 'tags.create', 'notifications.read',
    ]),
    ('Subscriber', 'Read-only access to public content', [
        'categories.read', 'items.read.published', 'tags.read', 'notifications.read.own',
    ]),
    ('Guest', 'Temporary or limited access user', ['items.read.published']),
]

# (username, email, password, permission_level)
USERS = [
    ('admin', 'admin@example.com', 'admin123!', 1),
    ('demo_user', 'user@example.com', 'user123!', 0),
    ('test_user', 'test@example.com', 'user123!', 0),
]

# (name, slug, description, parent slug, sort order)
CATEGORIES = [
    ('Technology', 'technology', 'All things related to technology and innovation', None, 1),
    ('Business', 'business', 'Business strategies, entrepreneurship, and market insights', None, 2),
    ('Lifestyle', 'lifestyle', 'Health, wellness, and lifestyle content', None, 3),
    ('Web Development', 'web-development', 'Frontend, backend, and full-stack development', 'technology', 1),
    ('Mobile Development', 'mobile-development', 'iOS, Android, and cross-platform apps', 'technology', 2),
    ('Entrepreneurship', 'entrepreneurship', 'Starting and growing a business', 'business', 1),
]

# (name, slug, description, color)
TAGS = [
    ('Python', 'python', 'Python programming language', '#3776ab'),
    ('JavaScript', 'javascript', 'JavaScript programming language', '#f7df1e'),
    ('API', 'api', 'Application Programming Interface', '#0066cc'),
    ('REST', 'rest', 'RESTful web services', '#009688'),
    ('Docker', 'docker', 'Containerization platform', '#2496ed'),
    ('Entrepreneurship', 'entrepreneurship', 'Starting and running businesses', '#ff6b35'),
    ('Leadership', 'leadership', 'Management and leadership skills', '#059669'),
    ('Tutorial', 'tutorial', 'Step-by-step guides', '#3b82f6'),
    ('Tips', 'tips', 'Quick tips and tricks', '#f59e0b'),
    ('News', 'news', 'Latest news and updates', '#ef4444'),
]


def seed_database(database, auth_service):
    """Insert the defaults that are not present yet; returns counts per table."""
    created = {'user_types': 0, 'users': 0, 'categories': 0, 'tags': 0}

    def run(db):
        for name, description, permissions in USER_TYPES:
            if db.fetch(UserType, name=name) is None:
                db.insert(UserType, {'name': name, 'description': description, 'permissions': permissions})
                created['user_types'] += 1

        for username, email, password, level in USERS:
            if db.fetch(User, username=username) is None:
                db.insert(User, {
                    'username': username,
                    'email': email,
                    'password_hash': auth_service.hash_password(password),
                    'permission_level': level,
                })
                created['users'] += 1

        for name, slug, description, parent_slug, sort_order in CATEGORIES:
            if db.fetch(Category, slug=slug) is not None:
                continue
            parent = db.fetch(Category, slug=parent_slug) if parent_slug else None
            db.insert(Category, {
                'name': name,
                'slug': slug,
                'description': description,
                'parent_id': parent.id if parent else None,
                'sort_order': sort_order,
            })
            created['categories'] += 1

        for name, slug, description, color in TAGS:
            if db.fetch(Tag, slug=slug) is None:
                db.insert(Tag, {'name': name, 'slug': slug, 'description': description, 'color': color})
                created['tags'] += 1

    database.transaction(run)
    logger.info("Seeded defaults: %s", created)
    return created
