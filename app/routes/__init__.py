"""Routes package - controller construction and route registration."""
from app.routes import auth, categories, items, main, notifications, tags, users
from app.routes.auth import AuthController
from app.routes.categories import CategoryController
from app.routes.items import ItemController
from app.routes.main import MainController
from app.routes.notifications import NotificationController
from app.routes.tags import TagController
from app.routes.users import UserController


def register_routes(router, database, settings, gate, auth_service):
    """Build every controller once and bind its handlers into the route table."""
    auth.register(router, AuthController(database, settings, gate, auth_service))
    categories.register(router, CategoryController(database, settings, gate))
    items.register(router, ItemController(database, settings, gate))
    tags.register(router, TagController(database, settings, gate))
    notifications.register(router, NotificationController(database, settings, gate))
    users.register(router, UserController(database, settings, gate, auth_service))
    main.register(router, MainController(settings))
