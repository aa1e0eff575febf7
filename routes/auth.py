# file name: routes/auth.py
import json
import logging
from datetime import datetime

from flask import (
    Blueprint, render_template, request, redirect, url_for, session, flash,
    current_app, make_response
)

from extensions import db, session_manager
from errors import ValidationError, NotFound, InventoryError
from middleware.session_middleware import login_required, guest_only, current_record
from models.user import User
from services import auth_service
from utils.helpers import remember_input, pop_old_input

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth_bp', __name__, url_prefix='/auth')

LAST_LOGIN_COOKIE = 'last_login'
PREFERENCE_COOKIE = 'user_preference'
LOGOUT_MESSAGE_COOKIE = 'logout_message'
DEFAULT_PREFERENCES = {'theme': 'default', 'language': 'en', 'timezone': 'UTC'}


def _is_checked(value):
    return str(value or '').lower() in ('on', 'true', '1', 'yes')


def set_auxiliary_cookies(response, now):
    """Demo cookies readable client-side, not used for authentication."""
    response.set_cookie(
        LAST_LOGIN_COOKIE, now.isoformat(),
        max_age=current_app.config['LAST_LOGIN_COOKIE_MAX_AGE'],
        httponly=False, samesite='Lax'
    )
    response.set_cookie(
        PREFERENCE_COOKIE, json.dumps(DEFAULT_PREFERENCES),
        max_age=current_app.config['PREFERENCE_COOKIE_MAX_AGE'],
        httponly=False, samesite='Lax'
    )


def clear_auxiliary_cookies(response):
    response.delete_cookie(LAST_LOGIN_COOKIE)
    response.delete_cookie(PREFERENCE_COOKIE)


@auth_bp.route('/register', methods=['GET'])
@guest_only
def register():
    return render_template('auth/register.html', title='Register', old_input=pop_old_input())


@auth_bp.route('/register', methods=['POST'])
@guest_only
def register_submit():
    form = request.form
    try:
        auth_service.register_user(
            username=form.get('username'),
            email=form.get('email'),
            password=form.get('password'),
            confirm_password=form.get('confirm_password'),
            full_name=form.get('full_name'),
        )
    except ValidationError as e:
        logger.info("Registration rejected: %s", e.message)
        flash(e.message, 'error')
        remember_input(form)
        return redirect(url_for('auth_bp.register'))

    flash('Registration successful! Please login.', 'success')
    return redirect(url_for('auth_bp.login'))


@auth_bp.route('/login', methods=['GET'])
@guest_only
def login():
    logout_message = request.cookies.get(LOGOUT_MESSAGE_COOKIE)
    response = make_response(render_template(
        'auth/login.html',
        title='Login',
        old_input=pop_old_input(),
        logout_message=logout_message
    ))
    if logout_message:
        response.delete_cookie(LOGOUT_MESSAGE_COOKIE)
    return response


@auth_bp.route('/login', methods=['POST'])
@guest_only
def login_submit():
    identifier = request.form.get('identifier')
    password = request.form.get('password')
    remember = _is_checked(request.form.get('remember_me'))

    try:
        user = auth_service.authenticate(identifier, password)
    except InventoryError as e:
        logger.info("Login failed for %r: %s", identifier, e.kind.value)
        flash(e.message, 'error')
        remember_input({'identifier': identifier or ''})
        return redirect(url_for('auth_bp.login'))

    now = datetime.utcnow()
    target = session_manager.pop_return_to(session, url_for('auth_bp.dashboard'))
    session_manager.establish(session, user, remember=remember, now=now)

    flash(f'Welcome back, {user.display_name}!', 'success')
    response = redirect(target)
    set_auxiliary_cookies(response, now)
    return response


@auth_bp.route('/logout', methods=['GET', 'POST'])
@login_required
def logout():
    record = current_record()
    username = record.username if record else 'User'
    session_manager.terminate(session)
    logger.info("User %s logged out", username)

    response = redirect(url_for('auth_bp.login'))
    clear_auxiliary_cookies(response)
    # The session (and its flashes) is gone, carry the goodbye in a short cookie
    response.set_cookie(
        LOGOUT_MESSAGE_COOKIE,
        f'Goodbye, {username}! You have been logged out successfully.',
        max_age=5, httponly=False, samesite='Lax'
    )
    return response


@auth_bp.route('/dashboard')
@login_required
def dashboard():
    record = current_record()
    user = db.session.get(User, record.user_id)
    if user is None:
        session_manager.terminate(session)
        flash('User not found', 'error')
        return redirect(url_for('auth_bp.login'))

    session_info = {
        'session_id': record.session_id,
        'session_data': dict(session),
        'cookies': dict(request.cookies),
        'account': user.to_dict(),
    }
    return render_template('auth/dashboard.html', title='Dashboard',
                           user=user, session_info=session_info)


@auth_bp.route('/profile', methods=['GET'])
@login_required
def profile():
    user = db.session.get(User, current_record().user_id)
    if user is None:
        session_manager.terminate(session)
        flash('User not found', 'error')
        return redirect(url_for('auth_bp.login'))
    return render_template('auth/profile.html', title='Profile',
                           user=user, old_input=pop_old_input())


@auth_bp.route('/profile', methods=['POST'])
@login_required
def profile_submit():
    record = current_record()
    try:
        user = auth_service.update_profile(
            record.user_id,
            full_name=request.form.get('full_name'),
            email=request.form.get('email'),
        )
    except NotFound:
        session_manager.terminate(session)
        flash('User not found', 'error')
        return redirect(url_for('auth_bp.login'))
    except ValidationError as e:
        flash(e.message, 'error')
        remember_input(request.form)
        return redirect(url_for('auth_bp.profile'))

    # Keep the session snapshot in step with the stored profile
    record.full_name = user.full_name
    record.email = user.email
    session_manager.update(session, record)

    flash('Profile updated successfully', 'success')
    return redirect(url_for('auth_bp.profile'))
