"""Main routes - health check and API info."""
from flask import jsonify

from app.models.mixins import utcnow


class MainController:

    def __init__(self, settings):
        self.config = settings

    def health(self):
        return jsonify({
            'status': 'healthy',
            'timestamp': utcnow().strftime('%Y-%m-%d %H:%M:%S'),
            'version': self.config.get('app.version', '1.0.0'),
        })

    def info(self):
        return jsonify({
            'name': self.config.get('app.name'),
            'version': self.config.get('app.version'),
            'environment': self.config.get('app.env'),
            'endpoints': {
                'documentation': '/docs',
                'authentication': '/auth/*',
                'health_check': '/health',
            },
        })


def register(router, controller):
    router.get('/health', controller.health)
    router.get('/info', controller.info)
