from functools import wraps
from flask import session, redirect, url_for, request, jsonify, current_app

from .store import current_user


def _is_api_request():
    return "/api/" in request.path or request.is_json


def login_required(view_func):
    """Redirect to the login page (or 401 for API calls) without a live session."""
    @wraps(view_func)
    def wrapper(*args, **kwargs):
        if not session.get("user_id") or current_user() is None:
            session.clear()
            if _is_api_request():
                return jsonify({"status": "error", "message": "Sesi berakhir, silakan login kembali"}), 401
            return redirect(url_for("auth.login"))
        return view_func(*args, **kwargs)
    return wrapper


def role_required(*roles):
    """Ensure the logged-in user has one of the required roles (e.g. 'admin')."""
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(*args, **kwargs):
            user = current_user()
            role = (user or {}).get("role")
            if not role or (roles and role not in roles):
                current_app.logger.warning("role %s denied on %s", role, request.path)
                if _is_api_request():
                    return jsonify({"status": "error", "message": "Akses ditolak"}), 403
                return redirect(url_for("auth.login"))
            return view_func(*args, **kwargs)
        return wrapper
    return decorator
