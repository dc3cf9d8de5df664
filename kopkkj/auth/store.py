"""Server-side store for the signed-in user.

The session only carries the auth identity (user id, email, role); the
merged auth+profile record is re-read from ``profiles`` once per request
so balances shown and checked are never older than the current request.
"""
import time

from flask import session, g, current_app

from ..supabase_client import fetch_one, count_where


def current_user():
    if "user" in g:
        return g.user
    g.user = None
    user_id = session.get("user_id")
    if user_id:
        profile = fetch_one("profiles", "id", user_id)
        if profile:
            g.user = {**profile, "id": user_id, "email": session.get("email") or profile.get("email")}
    return g.user


def check_session():
    """Return the fresh user record, dropping the session when the profile is gone."""
    if not session.get("user_id"):
        return None
    g.pop("user", None)
    user = current_user()
    if user is None:
        current_app.logger.info("session for %s no longer has a profile, clearing", session.get("user_id"))
        session.clear()
    return user


def refresh_user():
    g.pop("user", None)
    return current_user()


def login_user(auth_user, profile, access_token=None):
    session.clear()
    session.permanent = True
    session["user_id"] = auth_user.id
    session["email"] = getattr(auth_user, "email", None) or profile.get("email")
    session["role"] = profile.get("role") or "member"
    session["name"] = profile.get("full_name") or session["email"]
    session["last_activity"] = int(time.time())
    if access_token:
        session["access_token"] = access_token
    g.user = {**profile, "id": auth_user.id, "email": session["email"]}
    return g.user


def logout_user():
    session.clear()
    g.pop("user", None)


def fetch_unread_count(user_id):
    if not user_id:
        return 0
    return count_where("notifications", user_id=user_id, is_read=False)
