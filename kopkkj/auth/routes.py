from . import auth_bp
from flask import request, jsonify, session, render_template, redirect, url_for, current_app
import time
import uuid
import jwt
from datetime import datetime, timedelta, timezone

from .decorators import login_required
from .store import current_user, check_session, login_user, logout_user, fetch_unread_count
from ..supabase_client import get_auth_client, fetch_one

PROFILE_COLUMNS = "id,email,full_name,phone,member_id,role,status,avatar_url"


def _jwt_secret():
    return current_app.config["JWT_SECRET"]


def create_jwt(user_id, role, expires_minutes=None):
    expires_minutes = expires_minutes or current_app.config["JWT_EXPIRES_MINUTES"]
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=expires_minutes)).timestamp()),
        "rnd": uuid.uuid4().hex,
    }
    return jwt.encode(payload, _jwt_secret(), algorithm="HS256")


def verify_jwt(token):
    try:
        data = jwt.decode(token, _jwt_secret(), algorithms=["HS256"])
        return True, data
    except jwt.PyJWTError as e:
        return False, str(e)


def public_user(user):
    """Profile as sent to the page: the PIN itself never leaves the server."""
    if not user:
        return None
    data = {k: v for k, v in user.items() if k != "pin"}
    data["has_pin"] = bool(user.get("pin"))
    return data


def _sign_out_quietly(client):
    try:
        client.auth.sign_out()
    except Exception as e:
        current_app.logger.warning("sign out after refused login failed: %s", e)


def _home_for(role):
    return url_for("admin.dashboard") if role == "admin" else url_for("members.dashboard")


@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "GET":
        if session.get("user_id"):
            return redirect(_home_for(session.get("role")))
        return render_template("auth/login.html")

    data = request.get_json(silent=True) or request.form
    email = (data.get("email") or "").strip()
    password = data.get("password") or ""
    if not email or not password:
        return jsonify({"status": "error", "message": "Email dan password wajib diisi"}), 400

    client = get_auth_client()
    try:
        auth_resp = client.auth.sign_in_with_password({"email": email, "password": password})
    except Exception as e:
        current_app.logger.warning("login failed for %s: %s", email, e)
        return jsonify({"status": "error", "message": "Email atau Password salah."}), 401

    auth_user = getattr(auth_resp, "user", None)
    if auth_user is None:
        return jsonify({"status": "error", "message": "Email atau Password salah."}), 401

    profile = fetch_one("profiles", "id", auth_user.id, PROFILE_COLUMNS)
    if not profile:
        _sign_out_quietly(client)
        return jsonify({"status": "error", "message": "Profil anggota tidak ditemukan"}), 404

    status = profile.get("status")
    if status == "pending":
        _sign_out_quietly(client)
        return jsonify({
            "status": "error",
            "message": "Akun Anda sedang diverifikasi Admin. Mohon tunggu konfirmasi.",
            "redirect": url_for("core.pending"),
        }), 403
    if status == "rejected":
        _sign_out_quietly(client)
        return jsonify({"status": "error", "message": "Maaf, pendaftaran akun Anda ditolak oleh Admin."}), 403

    auth_session = getattr(auth_resp, "session", None)
    login_user(auth_user, profile, getattr(auth_session, "access_token", None))
    role = profile.get("role") or "member"
    current_app.logger.info("user %s logged in as %s", auth_user.id, role)
    return jsonify({
        "status": "success",
        "message": f"Selamat Datang, {profile.get('full_name') or email}!",
        "role": role,
        "redirect": _home_for(role),
        "token": create_jwt(auth_user.id, role),
    }), 200


@auth_bp.route("/register", methods=["GET", "POST"])
def register():
    if request.method == "GET":
        return render_template("auth/register.html")

    data = request.get_json(silent=True) or request.form
    name = (data.get("name") or "").strip()
    email = (data.get("email") or "").strip()
    phone = (data.get("phone") or "").strip()
    password = data.get("password") or ""
    if not name or not email or not phone or not password:
        return jsonify({"status": "error", "message": "Mohon lengkapi semua data"}), 400

    try:
        resp = get_auth_client().auth.sign_up({
            "email": email,
            "password": password,
            "options": {
                # picked up by the profiles trigger on the database side
                "data": {"full_name": name, "phone_number": phone, "role": "member"},
            },
        })
    except Exception as e:
        current_app.logger.warning("register failed for %s: %s", email, e)
        message = getattr(e, "message", None) or "Gagal mendaftar, coba ganti email."
        return jsonify({"status": "error", "message": message}), 400

    if not getattr(resp, "user", None):
        return jsonify({"status": "error", "message": "Gagal mendaftar, coba ganti email."}), 400
    return jsonify({
        "status": "success",
        "message": "Pendaftaran Berhasil! Silakan Login.",
        "redirect": url_for("auth.login"),
    }), 201


@auth_bp.route("/logout", methods=["GET", "POST"])
def logout():
    user_id = session.get("user_id")
    logout_user()
    if user_id:
        current_app.logger.info("user %s logged out", user_id)
    if request.method == "POST":
        return jsonify({"status": "success", "redirect": url_for("auth.login")}), 200
    return redirect(url_for("auth.login"))


@auth_bp.route("/session", methods=["GET"])
def session_status():
    user = check_session()
    if user is None:
        return jsonify({"status": "success", "user": None, "unread_count": 0}), 200
    return jsonify({
        "status": "success",
        "user": public_user(user),
        "unread_count": fetch_unread_count(user["id"]),
    }), 200


@auth_bp.route("/unread-count", methods=["GET"])
@login_required
def unread_count():
    return jsonify({"status": "success", "count": fetch_unread_count(current_user()["id"])}), 200


@auth_bp.route("/refresh-token", methods=["POST"])
def refresh_token():
    """Issue a new token if the session is still valid; pages call this every few minutes."""
    if not session.get("user_id"):
        return jsonify({"status": "error", "message": "not logged in"}), 401
    session["last_activity"] = int(time.time())
    token = create_jwt(session["user_id"], session.get("role"))
    return jsonify({"status": "success", "token": token}), 200


@auth_bp.route("/validate-token", methods=["POST"])
def validate_token():
    data = request.get_json(silent=True) or {}
    token = data.get("token")
    if not token:
        authz = request.headers.get("Authorization", "")
        if authz.lower().startswith("bearer "):
            token = authz[7:]
    ok, info = verify_jwt(token) if token else (False, "missing token")
    if not ok:
        return jsonify({"status": "error", "message": info}), 401
    if session.get("user_id") and str(session["user_id"]) != info.get("sub"):
        return jsonify({"status": "success", "warn": "session_mismatch"}), 200
    return jsonify({"status": "success", "role": info.get("role")}), 200
