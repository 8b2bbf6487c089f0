"""Decorators for the auth blueprint."""

from functools import wraps

from flask import jsonify, redirect, session, url_for

from proximitylink.error_handlers import wants_json


def login_required(f):
    """Only let signed-in users through.

    JSON clients get a 401 instead of being redirected to the login page.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if "user_id" not in session:
            if wants_json():
                return jsonify({"ok": False, "error": "Sign in required."}), 401
            return redirect(url_for("auth.login"))
        return f(*args, **kwargs)

    return decorated_function
