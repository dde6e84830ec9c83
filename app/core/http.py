"""JSON envelopes and the error type every handler raises."""
from flask import jsonify


class ApiError(Exception):
    """Terminates the current request with an error envelope."""

    def __init__(self, message, status_code=400, errors=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or []

    def to_dict(self):
        payload = {'success': False, 'message': self.message}
        if self.errors:
            payload['errors'] = self.errors
        return payload


def success_response(data=None, message='Success', status_code=200):
    payload = {'success': True, 'message': message}
    if data is not None:
        payload['data'] = data
    return jsonify(payload), status_code


def error_response(message, status_code=400, errors=None):
    return jsonify(ApiError(message, status_code, errors).to_dict()), status_code
