from app.core.config import Settings
from config.settings import TestingConfig, config


def test_dotted_lookup():
    settings = Settings({'jwt': {'secret': 's3cret', 'expires_in': 60}})
    assert settings.get('jwt.secret') == 's3cret'
    assert settings.get('jwt.expires_in') == 60
    assert settings.get('jwt.missing') is None
    assert settings.get('jwt.missing', 'fallback') == 'fallback'
    assert settings.get('nope.deeper.still', 5) == 5


def test_lookup_through_a_scalar_returns_default():
    settings = Settings({'app': {'name': 'Generic API'}})
    assert settings.get('app.name.first', 'x') == 'x'


def test_set_creates_intermediate_sections():
    settings = Settings()
    settings.set('storage.limits.max_files', 5)
    assert settings.get('storage.limits.max_files') == 5
    assert settings.has('storage.limits')
    assert not settings.has('storage.quota')


def test_all_returns_a_copy():
    settings = Settings({'cors': {'allowed_origins': ['http://a']}})
    snapshot = settings.all()
    snapshot['cors']['allowed_origins'].append('http://b')
    assert settings.get('cors.allowed_origins') == ['http://a']


def test_from_app_config_lowercases_sections():
    settings = Settings.from_app_config({
        'JWT': {'algorithm': 'HS256'},
        'ROUTER': {'public_post': ['/auth/login']},
        'SECRET_KEY': 'ignored',
    })
    assert settings.get('jwt.algorithm') == 'HS256'
    assert settings.get('router.public_post') == ['/auth/login']
    assert settings.get('secret_key') is None


def test_environment_mapping():
    assert config['testing'] is TestingConfig
    assert config['prod'] is config['production']
    assert config['local'] is config['development']
    assert TestingConfig.AUTH['admin_permission_level'] == 1


def test_app_exposes_settings(app):
    settings = app.extensions['settings']
    assert settings.get('app.env') == 'testing'
    assert settings.get('jwt.expires_in') == 3600
    assert '/auth/login' in settings.get('router.public_post')


def test_sections_exposed_to_settings(app):
    settings = app.extensions['settings']
    assert settings.get('storage.max_file_size') == 10485760
    assert settings.get('mail') is None
