from urllib.parse import quote

from flask import render_template, request, jsonify, redirect, url_for, current_app

from . import members_bp
from .pin import verify_pin, validate_new_pin, check_pin_strength
from ..auth.decorators import login_required
from ..auth.routes import public_user
from ..auth.store import current_user, refresh_user, fetch_unread_count
from ..storage import upload_image
from ..supabase_client import get_supabase, rows
from ..utils import SAVINGS_TYPES, safe_float, parse_date


def _member_card(user):
    joined = parse_date(user.get("created_at"))
    return {
        "name": user.get("full_name") or (user.get("email") or "").split("@")[0] or "Anggota KKJ",
        "member_id": user.get("member_id") or "MENUNGGU NIAK",
        "join_year": str(joined.year) if joined else None,
        "valid_until": str(joined.year + 5) if joined else None,
        "branch": "Pusat",
    }


def savings_summary(user):
    balances = []
    for code, (label, column) in SAVINGS_TYPES.items():
        balances.append({"code": code, "name": label, "balance": safe_float(user.get(column))})
    return balances


@members_bp.route("/dashboard")
@login_required
def dashboard():
    user = current_user()
    if user.get("role") == "admin":
        return redirect(url_for("admin.dashboard"))
    return render_template("member/dashboard.html", user=user, card=_member_card(user))


@members_bp.route("/api/home", methods=["GET"])
@login_required
def api_home():
    user = current_user()
    news = rows(
        get_supabase().table("news").select("id,title,description,type,color,image_url,created_at")
        .eq("is_active", True).order("created_at", desc=True).limit(5).execute()
    )
    return jsonify({
        "status": "success",
        "card": _member_card(user),
        "tapro_balance": safe_float(user.get("tapro_balance")),
        "savings": savings_summary(user),
        "news": news,
        "unread_count": fetch_unread_count(user["id"]),
    }), 200


@members_bp.route("/api/profile", methods=["GET", "POST"])
@login_required
def api_profile():
    user = current_user()
    if request.method == "GET":
        return jsonify({"status": "success", "data": public_user(user)}), 200

    data = request.get_json(silent=True) or request.form
    full_name = (data.get("full_name") or "").strip()
    phone = (data.get("phone") or "").strip()
    if not full_name or not phone:
        return jsonify({"status": "error", "message": "Nama dan nomor HP wajib diisi"}), 400
    get_supabase().table("profiles").update({"full_name": full_name, "phone": phone}).eq("id", user["id"]).execute()
    return jsonify({"status": "success", "message": "Profil diperbarui!", "data": public_user(refresh_user())}), 200


@members_bp.route("/api/avatar", methods=["POST", "DELETE"])
@login_required
def api_avatar():
    user = current_user()
    if request.method == "DELETE":
        get_supabase().table("profiles").update({"avatar_url": None}).eq("id", user["id"]).execute()
        return jsonify({"status": "success", "message": "Foto dihapus."}), 200

    public_url = upload_image("avatars", request.files.get("avatar"), str(user["id"]))
    get_supabase().table("profiles").update({"avatar_url": public_url}).eq("id", user["id"]).execute()
    return jsonify({"status": "success", "message": "Foto profil diperbarui!", "avatar_url": public_url}), 200


@members_bp.route("/api/pin", methods=["POST"])
@login_required
def api_set_pin():
    user = current_user()
    data = request.get_json(silent=True) or request.form
    had_pin = bool(user.get("pin"))
    hashed = validate_new_pin(user, data.get("pin"), data.get("old_pin"))
    get_supabase().table("profiles").update({"pin": hashed}).eq("id", user["id"]).execute()
    current_app.logger.info("user %s %s transaction PIN", user["id"], "changed" if had_pin else "set")
    return jsonify({"status": "success", "message": "PIN Berhasil Disimpan!"}), 200


@members_bp.route("/api/pin/strength", methods=["POST"])
def api_pin_strength():
    data = request.get_json(silent=True) or request.form
    return jsonify({"status": "success", "strength": check_pin_strength(str(data.get("pin") or ""))}), 200


@members_bp.route("/api/pin/verify", methods=["POST"])
@login_required
def api_verify_pin():
    data = request.get_json(silent=True) or request.form
    verify_pin(current_user(), data.get("pin"))
    return jsonify({"status": "success", "message": "PIN Benar!"}), 200


@members_bp.route("/api/pin/forgot", methods=["GET"])
@login_required
def api_forgot_pin():
    user = current_user()
    message = (
        f"Halo Admin Koperasi KKJ, saya {user.get('full_name')} (ID: {user.get('member_id')}) "
        "lupa PIN transaksi saya. Mohon bantuannya untuk reset. Terimakasih."
    )
    url = f"https://wa.me/{current_app.config['ADMIN_WHATSAPP']}?text={quote(message)}"
    return jsonify({"status": "success", "url": url}), 200
