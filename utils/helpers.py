from datetime import datetime
from urllib.parse import urlparse

from flask import session, request, redirect, url_for

OLD_INPUT_KEY = 'old_input'
SECRET_FIELDS = ('password', 'confirm_password', 'csrf_token')


def remember_input(form):
    """Keep submitted form values (minus secrets) for the re-displayed form."""
    session[OLD_INPUT_KEY] = {
        key: value for key, value in form.items() if key not in SECRET_FIELDS
    }


def pop_old_input():
    return session.pop(OLD_INPUT_KEY, None) or {}


def redirect_back(default_endpoint='index'):
    """Redirect to the same-host referrer, else to default_endpoint."""
    referrer = request.referrer
    if referrer:
        parsed = urlparse(referrer)
        if not parsed.netloc or parsed.netloc == request.host:
            target = parsed.path or '/'
            if parsed.query:
                target = f"{target}?{parsed.query}"
            return redirect(target)
    return redirect(url_for(default_endpoint))


def utc_timestamp():
    return datetime.utcnow().isoformat()


def format_currency(value):
    """Format a price for display"""
    try:
        return f"${float(value):,.2f}"
    except (TypeError, ValueError):
        return "$0.00"
