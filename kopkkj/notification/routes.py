from flask import jsonify

from . import notification_bp
from ..auth.decorators import login_required
from ..auth.store import current_user, fetch_unread_count
from ..supabase_client import get_supabase, rows


@notification_bp.route("/api/list", methods=["GET"])
@login_required
def api_list():
    data = rows(
        get_supabase().table("notifications").select("*")
        .eq("user_id", current_user()["id"]).order("created_at", desc=True).execute()
    )
    return jsonify({"status": "success", "data": data}), 200


@notification_bp.route("/api/<notification_id>/read", methods=["POST"])
@login_required
def api_mark_read(notification_id):
    (
        get_supabase().table("notifications").update({"is_read": True})
        .eq("id", notification_id).eq("user_id", current_user()["id"]).execute()
    )
    return jsonify({"status": "success", "unread_count": fetch_unread_count(current_user()["id"])}), 200


@notification_bp.route("/api/read-all", methods=["POST"])
@login_required
def api_mark_all_read():
    user_id = current_user()["id"]
    unread = rows(
        get_supabase().table("notifications").select("id")
        .eq("user_id", user_id).eq("is_read", False).execute()
    )
    unread_ids = [n["id"] for n in unread]
    if not unread_ids:
        return jsonify({"status": "success", "message": "Tidak ada notifikasi baru", "updated": 0}), 200

    get_supabase().table("notifications").update({"is_read": True}).in_("id", unread_ids).execute()
    return jsonify({
        "status": "success",
        "message": "Semua notifikasi ditandai sudah dibaca",
        "updated": len(unread_ids),
    }), 200


@notification_bp.route("/api/unread-count", methods=["GET"])
@login_required
def api_unread_count():
    return jsonify({"status": "success", "unread_count": fetch_unread_count(current_user()["id"])}), 200
