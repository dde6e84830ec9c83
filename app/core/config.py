"""Dotted-path access to the grouped configuration sections."""
import copy

SECTIONS = ('APP', 'DATABASE', 'JWT', 'AUTH', 'ROUTER', 'CORS',
            'STORAGE', 'RATE_LIMIT', 'LOGGING')


class Settings:
    """Key/value store built once at startup and passed to whoever needs it.

    Keys are dotted paths into nested sections, e.g. ``settings.get('jwt.secret')``.
    """

    def __init__(self, values=None):
        self._config = copy.deepcopy(values) if values else {}

    @classmethod
    def from_app_config(cls, app_config):
        """Collect the uppercase section dicts of a Flask config."""
        return cls({name.lower(): app_config[name] for name in SECTIONS if name in app_config})

    def get(self, key, default=None):
        value = self._config
        for part in key.split('.'):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def set(self, key, value):
        parts = key.split('.')
        current = self._config
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[parts[-1]] = value

    def has(self, key):
        return self.get(key) is not None

    def all(self):
        return copy.deepcopy(self._config)
