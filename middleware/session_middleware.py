# file name: middleware/session_middleware.py
import logging
from functools import wraps

from flask import session, redirect, url_for, request, jsonify, flash, g, current_app

from extensions import session_manager
from services.session_manager import RECORD_KEY

logger = logging.getLogger(__name__)


def current_record():
    """SessionRecord for this request, or None when anonymous."""
    return g.get('session_record')


def load_session_record():
    """Resolve the session record once per request and keep it on g."""
    had_record = RECORD_KEY in session
    g.session_record = session_manager.load(session)
    if had_record and g.session_record is None:
        flash('Your session has expired. Please login again.', 'warning')


def log_session_activity():
    if not current_app.debug:
        return
    record = current_record()
    logger.debug(
        "Session activity: sid=%s user=%s path=%s method=%s",
        session.get('sid'),
        record.username if record else 'Guest',
        request.path,
        request.method
    )


def _wants_json():
    return request.path.startswith('/api/') or request.path.startswith('/session/') \
        or request.is_json


def _reject_anonymous():
    if _wants_json():
        return jsonify({'success': False, 'error': 'Not authenticated'}), 401
    # Remember where the user was going so login can send them back once.
    # Auth pages (logout in particular) are never a useful destination.
    if request.method == 'GET' and request.blueprint != 'auth_bp':
        session_manager.remember_return_to(session, request.full_path.rstrip('?'))
    flash('Please log in to access this page', 'error')
    return redirect(url_for('auth_bp.login'))


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if current_record() is None:
            return _reject_anonymous()
        return view(*args, **kwargs)
    return wrapped


def guest_only(view):
    """Pages that make no sense once logged in (login, register)."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if current_record() is not None:
            return redirect(url_for('auth_bp.dashboard'))
        return view(*args, **kwargs)
    return wrapped


def admin_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        record = current_record()
        if record is None:
            return _reject_anonymous()
        if not record.is_admin:
            flash('Access denied. Admin privileges required.', 'error')
            return redirect(url_for('auth_bp.dashboard'))
        return view(*args, **kwargs)
    return wrapped


def setup_auth_middleware(bp):
    """Set up authentication middleware for a blueprint"""
    @bp.before_request
    def require_login():
        if current_record() is None:
            return _reject_anonymous()
        return None

    return bp


def init_session_middleware(app):
    app.before_request(load_session_record)
    app.before_request(log_session_activity)

    @app.context_processor
    def inject_user():
        record = current_record()
        return {'current_user': record, 'is_authenticated': record is not None}
