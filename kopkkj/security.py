"""Request guards applied app-wide: login throttling and idle session expiry."""
import time

from flask import request, session, current_app

from .errors import PortalError

THROTTLED_ENDPOINTS = ("auth.login", "auth.register", "members.api_verify_pin")


class TooManyRequests(PortalError):
    status_code = 429


def _hits():
    return current_app.extensions.setdefault("rate_limits", {})


def throttle_sensitive_endpoints():
    if request.endpoint not in THROTTLED_ENDPOINTS or request.method != "POST":
        return
    window = current_app.config["RATE_LIMIT_WINDOW"]
    ip = request.remote_addr or "unknown"
    current_window = int(time.time()) // window
    hits = _hits()
    # only the running window is kept
    for stale in [k for k in hits if int(k.rsplit(":", 1)[1]) < current_window]:
        del hits[stale]
    key = f"{ip}:{request.endpoint}:{current_window}"
    count = hits.get(key, 0)
    if count >= current_app.config["RATE_LIMIT_MAX"]:
        current_app.logger.warning("rate limit hit on %s from %s", request.endpoint, ip)
        raise TooManyRequests("Terlalu banyak percobaan. Silakan coba lagi nanti.")
    hits[key] = count + 1


def expire_idle_session():
    if not session.get("user_id"):
        return
    now = int(time.time())
    last = session.get("last_activity")
    if last and now - int(last) > current_app.config["SESSION_IDLE_SECONDS"]:
        current_app.logger.info("session of %s expired after inactivity", session.get("user_id"))
        session.clear()
        return
    session["last_activity"] = now


def register_request_guards(app):
    app.before_request(throttle_sensitive_endpoints)
    app.before_request(expire_idle_session)
