"""
Single-admin session guard.
"""
import hmac
import logging
from datetime import datetime
from functools import wraps

from flask import jsonify, session
from werkzeug.security import check_password_hash

logger = logging.getLogger(__name__)

SESSION_KEY = 'gallery_admin'


def _equal(a, b):
    return hmac.compare_digest(a.encode('utf-8'), b.encode('utf-8'))


def check_credentials(email, password, admin_email, password_hash=None, plain_password=None):
    """
    True only for the exact configured email/password pair.

    The password is checked against a Werkzeug hash when one is configured,
    otherwise against the plaintext password. With neither configured no
    login can succeed.
    """
    if not email or not password or not admin_email:
        return False

    email_ok = _equal(email, admin_email)

    if password_hash:
        try:
            password_ok = check_password_hash(password_hash, password)
        except ValueError:
            logger.error("[AUTH] Configured admin password hash is not a valid Werkzeug hash")
            password_ok = False
    elif plain_password:
        password_ok = _equal(password, plain_password)
    else:
        logger.warning("[AUTH] No admin password configured, rejecting login")
        password_ok = False

    return email_ok and password_ok


def login_admin(email):
    # new session contents on login
    session.clear()
    session.permanent = True
    session[SESSION_KEY] = {
        'email': email,
        'login_at': datetime.now().isoformat(),
    }


def logout_admin():
    session.pop(SESSION_KEY, None)


def current_admin():
    admin = session.get(SESSION_KEY)
    if isinstance(admin, dict) and admin.get('email'):
        return admin
    return None


def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_admin() is None:
            return jsonify({"ok": False, "error": "Login required"}), 401
        return f(*args, **kwargs)
    return decorated_function
