"""Bearer-token check shared by the router and the controllers."""
import logging
import re

import jwt
from flask import g
from flask_babel import gettext as _

from app.core.http import ApiError

logger = logging.getLogger(__name__)

BEARER = re.compile(r'^Bearer\s(\S+)')


def extract_bearer_token(headers):
    header = headers.get('Authorization')
    if not header:
        return None
    match = BEARER.match(header)
    return match.group(1) if match else None


class AuthGate:
    """Verifies the request's bearer token against the session store.

    A valid signature is not enough: the ``(user_id, token)`` pair must still
    have a session row, so logged-out tokens are refused before they expire.
    """

    def __init__(self, auth_service):
        self.auth = auth_service

    def authorize(self, headers):
        """Return the decoded claims or raise a 401 ``ApiError``."""
        token = extract_bearer_token(headers)
        if token is None:
            raise ApiError(_('Unauthorized: Missing or invalid token'), 401)

        try:
            claims = self.auth.decode_token(token)
        except jwt.ExpiredSignatureError:
            self.auth.destroy_session(token)
            raise ApiError(_('Unauthorized: JWT Invalid or Expired'), 401)
        except jwt.InvalidTokenError as exc:
            logger.info("Rejected token: %s", exc)
            raise ApiError(_('Unauthorized: Invalid token'), 401)

        if self.auth.find_session(claims.get('user_id'), token) is None:
            raise ApiError(_('Unauthorized: Invalid session'), 401)

        g.auth_claims = claims
        g.auth_token = token
        return claims

    def reset(self):
        g.pop('auth_claims', None)
        g.pop('auth_token', None)

    def current_claims(self, headers):
        """Claims for this request, authorizing on first use."""
        claims = g.get('auth_claims')
        if claims is None:
            claims = self.authorize(headers)
        return claims
