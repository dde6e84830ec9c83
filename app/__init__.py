"""
Generic API - Application Factory
"""
import logging
import os

from flask import Flask, current_app, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from app.core import ApiError, AuthGate, Database, Router, Settings
from app.core.http import error_response
from app.core.router import METHODS, base_path_for
from app.extensions import db, babel
from app.routes import register_routes
from app.services.auth_service import AuthService
from config.settings import config


def get_locale():
    """Determine the best locale for the client."""
    return request.accept_languages.best_match(current_app.config.get('LANGUAGES', ['en']))


def create_app(config_name=None):
    """Application Factory."""
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV') or os.environ.get('APP_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config.get(config_name, config['default']))

    settings = Settings.from_app_config(app.config)
    configure_logging(app, settings)

    # Initialize extensions
    db.init_app(app)
    babel.init_app(app, locale_selector=get_locale)

    # Explicitly constructed collaborators, shared by the router and controllers
    database = Database(db)
    auth_service = AuthService(database, settings)
    gate = AuthGate(auth_service)
    router = Router(
        gate,
        base_path=base_path_for(settings.get('app.env')),
        public_post=settings.get('router.public_post', []),
        private_get=settings.get('router.private_get', []),
    )
    register_routes(router, database, settings, gate, auth_service)

    app.extensions['settings'] = settings
    app.extensions['database'] = database
    app.extensions['auth_service'] = auth_service
    app.extensions['router'] = router

    def dispatch(path=''):
        return router.dispatch(request.method, request.path, request.headers)

    app.add_url_rule('/', 'dispatch', dispatch, methods=list(METHODS), provide_automatic_options=False)
    app.add_url_rule('/<path:path>', 'dispatch', dispatch, methods=list(METHODS),
                     provide_automatic_options=False)

    register_error_handlers(app, database, settings)
    register_cors(app, settings)

    # CLI Commands
    register_cli_commands(app, database, auth_service)

    return app


def configure_logging(app, settings):
    level = getattr(logging, settings.get('logging.level', 'INFO'), logging.INFO)
    app.logger.setLevel(level)
    logging.getLogger('app').setLevel(level)
    if not logging.getLogger().handlers:
        logging.basicConfig(format='%(asctime)s %(levelname)s %(name)s: %(message)s')


def register_error_handlers(app, database, settings):
    """Render every failure with the JSON error envelope."""

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        return error_response(error.message, error.status_code, error.errors)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return error_response(error.description or error.name, error.code)

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        database.rollback()
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        message = 'Internal server error'
        if settings.get('app.debug'):
            message = f"{message}: {error}"
        return error_response(message, 500)


def register_cors(app, settings):
    """CORS for every route; the origin is echoed only when allow-listed."""
    CORS(
        app,
        origins=settings.get('cors.allowed_origins', []),
        methods=settings.get('cors.allowed_methods', []),
        allow_headers=settings.get('cors.allowed_headers', []),
        expose_headers=settings.get('cors.exposed_headers') or None,
        supports_credentials=settings.get('cors.credentials', False),
        max_age=settings.get('cors.max_age', 3600),
    )


def register_cli_commands(app, database, auth_service):
    """Register CLI commands."""

    @app.cli.command("init-db")
    def init_db_command():
        """Creates database tables."""
        db.create_all()
        print("Initialized the database.")

    @app.cli.command("seed")
    def seed_command():
        """Inserts default user types, users, categories and tags."""
        from app.services.seeder import seed_database
        created = seed_database(database, auth_service)
        for table, count in created.items():
            print(f"{table}: {count} created")

    @app.cli.command("clean-expired")
    def clean_expired_command():
        """Deletes expired sessions and password reset tokens."""
        sessions = auth_service.clean_expired_sessions()
        resets = auth_service.clean_expired_reset_tokens()
        print(f"Removed {sessions} expired sessions and {resets} expired reset tokens.")
