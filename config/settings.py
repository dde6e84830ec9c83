"""
Application settings.

One class per environment, selected by the application factory through the
``config`` mapping at the bottom of this module. Values come from the process
environment (a ``.env`` file is loaded first when present).
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name, default):
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _env_list(name, default, fallback=None):
    raw = os.environ.get(name)
    if raw is None and fallback:
        raw = os.environ.get(fallback)
    if raw is None:
        raw = default
    return [part.strip() for part in raw.split(',') if part.strip()]


def _database_url():
    """Build the SQLAlchemy URL from DATABASE_URL or the DB_* variables."""
    url = os.environ.get('DATABASE_URL')
    if url:
        return url

    connection = os.environ.get('DB_CONNECTION', 'sqlite')
    name = os.environ.get('DB_NAME', 'generic_api.db')
    if connection == 'sqlite':
        return f"sqlite:///{name}"

    drivers = {'mysql': 'mysql+pymysql', 'pgsql': 'postgresql'}
    if connection not in drivers:
        raise ValueError(f"Unsupported database connection: {connection}")

    default_port = 3306 if connection == 'mysql' else 5432
    return "{driver}://{user}:{password}@{host}:{port}/{name}".format(
        driver=drivers[connection],
        user=os.environ.get('DB_USER', 'root'),
        password=os.environ.get('DB_PASS', ''),
        host=os.environ.get('DB_HOST', '127.0.0.1'),
        port=_env_int('DB_PORT', default_port),
        name=name,
    )


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev_key_please_change')
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    BABEL_DEFAULT_LOCALE = 'en'
    LANGUAGES = ['en', 'es', 'pt']

    # Grouped sections, read through app.core.config.Settings ("jwt.secret").
    APP = {
        'name': os.environ.get('APP_NAME', 'Generic API'),
        'version': os.environ.get('APP_VERSION', '1.0.0'),
        'env': os.environ.get('APP_ENV', 'development'),
        'debug': _env_bool('APP_DEBUG'),
        'url': os.environ.get('APP_URL', 'http://localhost:8000'),
        'timezone': os.environ.get('APP_TIMEZONE', 'UTC'),
    }

    DATABASE = {
        'connection': os.environ.get('DB_CONNECTION', 'sqlite'),
        'url': SQLALCHEMY_DATABASE_URI,
    }

    JWT = {
        'secret': os.environ.get('JWT_SECRET', 'default_secret_change_this'),
        'algorithm': os.environ.get('JWT_ALGORITHM', 'HS256'),
        'expires_in': _env_int('JWT_EXPIRES_IN', 86400),
        'issuer': os.environ.get('JWT_ISSUER', 'generic-api'),
        'audience': os.environ.get('JWT_AUDIENCE', 'generic-api-users'),
    }

    AUTH = {
        'password_reset_expires_in': _env_int('PASSWORD_RESET_EXPIRES_IN', 3600),
        'password_min_length': 6,
        'password_hash_method': os.environ.get('PASSWORD_HASH_METHOD', 'scrypt'),
        'admin_permission_level': _env_int('ADMIN_PERMISSION_LEVEL', 1),
    }

    ROUTER = {
        'public_post': [
            '/auth/login',
            '/auth/register',
            '/auth/request-reset',
            '/auth/reset-password',
            '/health',
            '/info',
        ],
        'private_get': [
            '/auth/me',
            '/auth/profile',
            '/notifications',
            '/notifications/{id}',
            '/users',
            '/users/{id}',
        ],
    }

    CORS = {
        'allowed_origins': _env_list('CORS_ALLOWED_ORIGINS', 'http://localhost:3000',
                                     fallback='CROSS_ORIGIN_ACCEPTED_URL'),
        'allowed_methods': _env_list('CORS_ALLOWED_METHODS', 'GET,POST,PUT,DELETE,OPTIONS'),
        'allowed_headers': _env_list('CORS_ALLOWED_HEADERS', 'Content-Type,Authorization,X-Requested-With'),
        'exposed_headers': _env_list('CORS_EXPOSED_HEADERS', ''),
        'max_age': _env_int('CORS_MAX_AGE', 3600),
        'credentials': _env_bool('CORS_CREDENTIALS'),
    }

    STORAGE = {
        'upload_path': os.environ.get('UPLOAD_PATH', 'uploads/'),
        'max_file_size': _env_int('UPLOAD_MAX_SIZE', 10485760),
        'allowed_extensions': _env_list('ALLOWED_EXTENSIONS', 'jpg,jpeg,png,gif,pdf,doc,docx'),
    }

    # Declared for deployments that put a limiter in front; not enforced here.
    RATE_LIMIT = {
        'enabled': _env_bool('RATE_LIMIT_ENABLED', True),
        'max_requests': _env_int('RATE_LIMIT_MAX_REQUESTS', 100),
        'window_minutes': _env_int('RATE_LIMIT_WINDOW_MINUTES', 60),
    }

    LOGGING = {
        'enabled': _env_bool('LOG_ENABLED', True),
        'level': os.environ.get('LOG_LEVEL', 'DEBUG').upper(),
    }


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False
    APP = {**Config.APP, 'env': 'production', 'debug': False}
    LOGGING = {**Config.LOGGING, 'level': os.environ.get('LOG_LEVEL', 'INFO').upper()}


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    APP = {**Config.APP, 'env': 'testing', 'debug': False}
    DATABASE = {'connection': 'sqlite', 'url': 'sqlite:///:memory:'}
    JWT = {**Config.JWT, 'secret': 'test-secret-key-with-at-least-32-bytes', 'expires_in': 3600}
    AUTH = {**Config.AUTH, 'password_hash_method': 'pbkdf2:sha256:1000'}
    CORS = {**Config.CORS, 'allowed_origins': ['http://localhost:3000']}
    LOGGING = {'enabled': True, 'level': 'WARNING'}


config = {
    'development': DevelopmentConfig,
    'local': DevelopmentConfig,
    'production': ProductionConfig,
    'prod': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}
