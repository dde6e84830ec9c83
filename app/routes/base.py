"""Base controller - response envelopes, validation and pagination helpers."""
import json
import logging
import math
import os
import re
import uuid

from flask import request
from flask_babel import gettext as _
from werkzeug.utils import secure_filename

from app.core.http import ApiError, success_response
from app.models.mixins import utcnow

activity_logger = logging.getLogger('app.activity')

TAG_PATTERN = re.compile(r'<[^>]*>')
EMAIL_PATTERN = re.compile(r'^[A-Za-z0-9._%+-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}$')
DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100


def is_valid_email(email):
    """Standard email regex validation."""
    return isinstance(email, str) and EMAIL_PATTERN.match(email) is not None


def sanitize_string(value):
    """Strip tags and trim; inner whitespace and entities are kept."""
    return TAG_PATTERN.sub('', value).strip()


def to_int(value, default=None):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def to_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


class BaseController:
    """Shared plumbing for the resource controllers.

    ``database``, ``settings`` and ``gate`` are created by the application
    factory and handed to every controller.
    """

    def __init__(self, database, settings, gate):
        self.db = database
        self.config = settings
        self.gate = gate

    # ==================== Responses ====================

    def success(self, data=None, message=None, status_code=200):
        return success_response(data, message or _('Success'), status_code)

    def error(self, message, status_code=400, errors=None):
        raise ApiError(message, status_code, errors)

    # ==================== Request input ====================

    def get_request_data(self):
        """JSON body for JSON requests, otherwise query + form values."""
        if request.is_json:
            data = request.get_json(silent=True)
            return data if isinstance(data, dict) else {}
        data = request.args.to_dict()
        data.update(request.form.to_dict())
        return data

    def validate_required(self, data, required):
        errors = []
        for field in required:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()) or value == []:
                errors.append(_("Field '%(field)s' is required", field=field))
        return errors

    def require_fields(self, data, required):
        errors = self.validate_required(data, required)
        if errors:
            self.error(_('Validation failed'), 400, errors)

    def validate_email(self, email):
        return is_valid_email(email)

    def sanitize_string(self, value):
        return sanitize_string(value) if isinstance(value, str) else value

    def sanitize_dict(self, data):
        sanitized = {}
        for key, value in data.items():
            if isinstance(value, dict):
                sanitized[key] = self.sanitize_dict(value)
            elif isinstance(value, str):
                sanitized[key] = self.sanitize_string(value)
            else:
                sanitized[key] = value
        return sanitized

    def parse_id(self, value, not_found_message):
        ident = to_int(value)
        if ident is None:
            self.error(not_found_message, 404)
        return ident

    # ==================== Pagination ====================

    def page_args(self):
        page = max(1, to_int(request.args.get('page'), 1))
        per_page = to_int(request.args.get('limit'), DEFAULT_PER_PAGE)
        per_page = min(max(1, per_page), MAX_PER_PAGE)
        return page, per_page

    def paginate(self, stmt, page=1, per_page=DEFAULT_PER_PAGE):
        """Run ``stmt`` for one page; returns ``(rows, pagination)``."""
        page = max(1, page)
        rows, total = self.db.paginate(stmt, page, per_page)
        offset = (page - 1) * per_page
        pagination = {
            'current_page': page,
            'per_page': per_page,
            'total': total,
            'last_page': math.ceil(total / per_page),
            'from': offset + 1,
            'to': min(offset + per_page, total),
        }
        return rows, pagination

    # ==================== Auth ====================

    def require_auth(self):
        return self.gate.current_claims(request.headers)

    def is_admin(self, claims):
        return (claims.get('permission_level') or 0) >= self.config.get('auth.admin_permission_level', 1)

    def require_admin(self):
        claims = self.require_auth()
        if not self.is_admin(claims):
            self.error(_('Forbidden: insufficient permissions'), 403)
        return claims

    # ==================== Uploads ====================

    def handle_file_upload(self, field, allowed=None):
        """Store the uploaded file under ``storage.upload_path`` and return its path.

        Names are passed through ``secure_filename`` and get a random prefix.
        """
        upload = request.files.get(field)
        if upload is None or not upload.filename:
            self.error(_('No file uploaded'), 400)

        filename = secure_filename(upload.filename)
        extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
        if extension not in (allowed or self.config.get('storage.allowed_extensions', [])):
            self.error(_('File type not allowed'), 400)

        upload.stream.seek(0, os.SEEK_END)
        size = upload.stream.tell()
        upload.stream.seek(0)
        if size > self.config.get('storage.max_file_size', 0):
            self.error(_('File is too large'), 400)

        directory = self.config.get('storage.upload_path', 'uploads/')
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, f"{uuid.uuid4().hex}_{filename}")
        upload.save(path)
        return path

    # ==================== Activity log ====================

    def log_activity(self, action, data=None):
        if not self.config.get('logging.enabled', True):
            return
        activity_logger.info(json.dumps({
            'timestamp': utcnow().isoformat(),
            'action': action,
            'data': data or {},
            'ip': request.remote_addr or 'unknown',
            'user_agent': request.headers.get('User-Agent', 'unknown'),
        }, default=str))
