from datetime import date

from flask import request, jsonify, current_app

from . import admin_api_bp
from ..errors import NotFound
from ..financing.simulation import detail_badge
from ..notification.whatsapp import send_installment_reminder
from ..supabase_client import get_supabase, rows, fetch_one, call_rpc

LOAN_TABS = {
    "pending": ["pending"],
    "active": ["active"],
    "history": ["paid", "rejected"],
}


def _loan_or_404(loan_id):
    loan = fetch_one("loans", "id", loan_id)
    if not loan:
        raise NotFound("Data pinjaman tidak ditemukan")
    return loan


def installment_progress(installments):
    paid = sum(1 for i in installments if i.get("status") == "paid")
    total = len(installments)
    today = date.today().isoformat()
    overdue = sum(1 for i in installments if i.get("status") != "paid" and str(i.get("due_date") or "") < today)
    return {
        "paid": paid,
        "total": total,
        "overdue": overdue,
        "percent": round(paid / total * 100, 1) if total else 0,
    }


@admin_api_bp.route("/financing", methods=["GET"])
def api_loans():
    statuses = LOAN_TABS.get(request.args.get("tab", "pending"), LOAN_TABS["pending"])
    data = rows(
        get_supabase().table("loans").select("*, profiles(full_name, member_id, phone)")
        .in_("status", statuses).order("created_at", desc=True).execute()
    )
    for loan in data:
        loan["detail_badge"] = detail_badge(loan)
    return jsonify({"status": "success", "data": data}), 200


@admin_api_bp.route("/financing/<loan_id>/approve", methods=["POST"])
def api_approve_loan(loan_id):
    """Disburse a loan; the installment schedule is created by ``approve_loan``."""
    call_rpc("approve_loan", {"loan_id": loan_id})
    current_app.logger.info("loan %s approved", loan_id)
    return jsonify({"status": "success", "message": "Disetujui & Dicairkan"}), 200


@admin_api_bp.route("/financing/<loan_id>/reject", methods=["POST"])
def api_reject_loan(loan_id):
    data = request.get_json(silent=True) or request.form
    reason = (data.get("reason") or "").strip()
    if not reason:
        return jsonify({"status": "error", "message": "Alasan penolakan wajib diisi"}), 400
    get_supabase().table("loans").update({"status": "rejected", "admin_note": reason}).eq("id", loan_id).execute()
    current_app.logger.info("loan %s rejected: %s", loan_id, reason)
    return jsonify({"status": "success", "message": "Ditolak"}), 200


@admin_api_bp.route("/financing/loan/<loan_id>", methods=["GET"])
def api_loan_detail(loan_id):
    loan = _loan_or_404(loan_id)
    loan["user"] = fetch_one("profiles", "id", loan.get("user_id"), "full_name,member_id,phone,avatar_url")
    installments = rows(
        get_supabase().table("installments").select("*").eq("loan_id", loan_id).order("due_date").execute()
    )
    return jsonify({
        "status": "success",
        "loan": loan,
        "installments": installments,
        "progress": installment_progress(installments),
    }), 200


@admin_api_bp.route("/financing/<loan_id>/restructure/approve", methods=["POST"])
def api_approve_restructure(loan_id):
    call_rpc("approve_restructure", {"loan_id": loan_id})
    current_app.logger.info("restructure of loan %s approved", loan_id)
    return jsonify({"status": "success", "message": "Berhasil diperpanjang!"}), 200


@admin_api_bp.route("/financing/<loan_id>/restructure/reject", methods=["POST"])
def api_reject_restructure(loan_id):
    get_supabase().table("loans").update({
        "restructure_status": "rejected",
        "restructure_req_duration": None,
        "restructure_reason": None,
    }).eq("id", loan_id).execute()
    current_app.logger.info("restructure of loan %s rejected", loan_id)
    return jsonify({"status": "success", "message": "Ditolak"}), 200


@admin_api_bp.route("/financing/<loan_id>/remind", methods=["POST"])
def api_remind(loan_id):
    """WhatsApp the borrower about the nearest unpaid installment."""
    loan = _loan_or_404(loan_id)
    profile = fetch_one("profiles", "id", loan.get("user_id"))
    if not profile or not profile.get("phone"):
        return jsonify({"status": "error", "message": "No HP Nasabah tidak ada!"}), 400

    unpaid = rows(
        get_supabase().table("installments").select("*")
        .eq("loan_id", loan_id).neq("status", "paid").order("due_date").limit(1).execute()
    )
    if not unpaid:
        return jsonify({"status": "error", "message": "Tidak ada tagihan yang belum dibayar"}), 400

    if not send_installment_reminder(profile, loan, unpaid[0]):
        return jsonify({"status": "error", "message": "Gagal kirim WA"}), 502
    current_app.logger.info("installment reminder sent for loan %s", loan_id)
    return jsonify({"status": "success", "message": "Pesan WA Terkirim! 🚀"}), 200
