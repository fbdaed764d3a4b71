# Overview: Request decorators for API routes.

from functools import wraps
from flask import current_app, request, jsonify, g

from .services.session_service import SessionNotFound

SESSION_HEADER = "X-Session-Id"


def get_registry():
    return current_app.extensions["work_sessions"]


def require_work_session(f):
    """
    Resolve the caller's work session from the X-Session-Id header.

    Sets g.work_session. Returns 401 if the header is missing or the
    session is unknown/expired.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = request.headers.get(SESSION_HEADER)
        try:
            g.work_session = get_registry().get(token)
        except SessionNotFound as e:
            return jsonify({"error": str(e)}), 401
        return f(*args, **kwargs)

    return decorated_function


def optional_work_session(f):
    """Like require_work_session, but g.work_session is None without a header."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = request.headers.get(SESSION_HEADER)
        g.work_session = None
        if token:
            try:
                g.work_session = get_registry().get(token)
            except SessionNotFound as e:
                return jsonify({"error": str(e)}), 401
        return f(*args, **kwargs)

    return decorated_function
