"""Route table and dispatcher.

Routes are registered once at startup as ``(method, pattern) -> handler``.
``{name}`` placeholders compile to ``([a-zA-Z0-9_-]+)``; captured segments are
passed to the handler positionally. Within a method the first registered
pattern that matches wins.
"""
import logging
import re
from typing import Callable, NamedTuple, Pattern

from flask import Response, make_response
from flask_babel import gettext as _

from app.core.http import error_response

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r'\{[a-zA-Z_][a-zA-Z0-9_]*\}')
SEGMENT = '([a-zA-Z0-9_-]+)'

METHODS = ('GET', 'POST', 'PUT', 'DELETE', 'OPTIONS')
ALWAYS_PROTECTED = frozenset({'PUT', 'DELETE'})
PRODUCTION_ENVS = ('production', 'prod')


def compile_pattern(path: str) -> Pattern:
    literals = PLACEHOLDER.split(path)
    return re.compile('^' + SEGMENT.join(re.escape(part) for part in literals) + '$')


def base_path_for(env: str) -> str:
    return '/api' if env in PRODUCTION_ENVS else ''


class Route(NamedTuple):
    method: str
    path: str
    pattern: Pattern
    handler: Callable


class Router:

    def __init__(self, gate, base_path='', public_post=(), private_get=()):
        self.gate = gate
        self.base_path = base_path.rstrip('/')
        self.public_post = frozenset(public_post)
        self.private_get = [compile_pattern(path) for path in private_get]
        self._routes = {method: [] for method in METHODS}

    # -- registration ------------------------------------------------------

    def add(self, method: str, path: str, handler: Callable) -> Route:
        method = method.upper()
        if method not in self._routes:
            raise ValueError(f"Unsupported method: {method}")
        route = Route(method, path, compile_pattern(path), handler)
        self._routes[method].append(route)
        return route

    def get(self, path, handler):
        return self.add('GET', path, handler)

    def post(self, path, handler):
        return self.add('POST', path, handler)

    def put(self, path, handler):
        return self.add('PUT', path, handler)

    def delete(self, path, handler):
        return self.add('DELETE', path, handler)

    def options(self, path, handler):
        return self.add('OPTIONS', path, handler)

    def routes(self, method=None):
        if method is not None:
            return list(self._routes.get(method.upper(), []))
        return [route for routes in self._routes.values() for route in routes]

    # -- resolution --------------------------------------------------------

    def normalize(self, path: str) -> str:
        if self.base_path and (path == self.base_path or path.startswith(self.base_path + '/')):
            path = path[len(self.base_path):] or '/'
        return path

    def is_public(self, method: str, path: str) -> bool:
        if method in ALWAYS_PROTECTED:
            return False
        if method == 'GET':
            return not any(pattern.match(path) for pattern in self.private_get)
        if method == 'POST':
            return path in self.public_post
        return False

    def match(self, method: str, path: str):
        """Return ``(route, params)`` for the first matching route, or None."""
        for route in self._routes.get(method, ()):
            found = route.pattern.match(path)
            if found:
                return route, found.groups()
        return None

    def dispatch(self, method, path, headers) -> Response:
        method = method.upper()
        if method == 'HEAD':
            method = 'GET'
        path = self.normalize(path)
        self.gate.reset()

        if method == 'OPTIONS':
            for route in self._routes['OPTIONS']:
                if route.path == path:
                    return make_response(route.handler())
            return Response(status=200)

        if not self.is_public(method, path):
            self.gate.authorize(headers)

        resolved = self.match(method, path)
        if resolved is None:
            logger.debug("No route for %s %s", method, path)
            return make_response(error_response(_('Route not found'), 404))

        route, params = resolved
        return make_response(route.handler(*params))
