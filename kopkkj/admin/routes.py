from flask import render_template, jsonify, request, current_app

from . import admin_bp, admin_api_bp
from ..auth.store import current_user
from ..errors import NotFound
from ..supabase_client import get_supabase, rows, count_where, fetch_one
from ..utils import generate_member_id


def pending_counters():
    restructures = rows(get_supabase().table("loans").select("id").eq("restructure_status", "pending").execute())
    return {
        "pending_users": count_where("profiles", status="pending"),
        "pending_transactions": count_where("transactions", status="pending"),
        "pending_loans": count_where("loans", status="pending"),
        "pending_restructures": len(restructures),
        "first_restructure_id": restructures[0]["id"] if restructures else None,
        "pending_tamasa": count_where("tamasa_transactions", status="pending"),
        "pending_pawn": count_where("pawn_transactions", status="pending"),
        "pending_orders": count_where("shop_orders", status="diproses"),
        "pending_lhu": count_where("lhu_distributions", status="waiting"),
    }


@admin_bp.route("/dashboard")
def dashboard():
    return render_template("admin/dashboard.html", user=current_user(), stats=pending_counters())


@admin_api_bp.route("/dashboard", methods=["GET"])
def api_dashboard():
    return jsonify({"status": "success", "data": pending_counters()}), 200


# --- member verification ---

@admin_api_bp.route("/verification", methods=["GET"])
def api_pending_members():
    data = rows(
        get_supabase().table("profiles").select("*")
        .eq("status", "pending").order("created_at", desc=True).execute()
    )
    for profile in data:
        profile.pop("pin", None)
    return jsonify({"status": "success", "data": data}), 200


def _pending_profile(profile_id):
    profile = fetch_one("profiles", "id", profile_id)
    if not profile:
        raise NotFound("Data anggota tidak ditemukan")
    return profile


@admin_api_bp.route("/verification/<profile_id>/approve", methods=["POST"])
def api_approve_member(profile_id):
    profile = _pending_profile(profile_id)
    member_id = generate_member_id()
    get_supabase().table("profiles").update({
        "status": "active",
        "role": "member",
        "member_id": member_id,
    }).eq("id", profile_id).execute()
    current_app.logger.info("member %s verified as %s", profile_id, member_id)
    return jsonify({
        "status": "success",
        "message": f"Berhasil! {profile.get('full_name')} kini Anggota Aktif.",
        "member_id": member_id,
    }), 200


@admin_api_bp.route("/verification/<profile_id>/reject", methods=["POST"])
def api_reject_member(profile_id):
    profile = _pending_profile(profile_id)
    get_supabase().table("profiles").update({"status": "rejected"}).eq("id", profile_id).execute()
    current_app.logger.info("member registration %s rejected", profile_id)
    return jsonify({"status": "success", "message": f"Pendaftaran {profile.get('full_name')} ditolak."}), 200


@admin_api_bp.route("/members", methods=["GET"])
def api_members():
    query = get_supabase().table("profiles").select(
        "id,full_name,email,phone,member_id,role,status,tapro_balance,created_at"
    )
    status = request.args.get("status")
    if status:
        query = query.eq("status", status)
    data = rows(query.order("created_at", desc=True).execute())
    return jsonify({"status": "success", "data": data}), 200
