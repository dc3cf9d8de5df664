"""Admin screens for pawning, TAMASA, INFLIP and savings withdrawal requests."""
from datetime import datetime, timezone

from flask import request, jsonify, current_app

from . import admin_api_bp
from ..errors import NotFound
from ..programs.calculators import funding_progress
from ..storage import upload_image
from ..supabase_client import get_supabase, rows, first, fetch_one, call_rpc
from ..utils import parse_amount, safe_float

HISTORY_STATUSES = ["approved", "rejected"]
PAWN_HISTORY_STATUSES = HISTORY_STATUSES + ["completed"]


def _now():
    return datetime.now(timezone.utc).isoformat()


def _payload():
    return request.get_json(silent=True) or request.form


def _by_tab(table, tab, columns="*, profiles(full_name, member_id)", history=HISTORY_STATUSES):
    query = get_supabase().table(table).select(columns)
    if tab == "pending":
        query = query.eq("status", "pending")
    else:
        query = query.in_("status", history)
    return rows(query.order("created_at", desc=True).execute())


# --- pegadaian ---

@admin_api_bp.route("/pawn", methods=["GET"])
def api_pawns():
    data = _by_tab("pawn_transactions", request.args.get("status", "pending"), history=PAWN_HISTORY_STATUSES)
    return jsonify({"status": "success", "data": data}), 200


@admin_api_bp.route("/pawn/<pawn_id>/approve", methods=["POST"])
def api_approve_pawn(pawn_id):
    """Disburse the appraised amount to the member's Tapro."""
    loan_amount = parse_amount(_payload().get("loan_amount"))
    if loan_amount <= 0:
        return jsonify({"status": "error", "message": "Nominal taksiran harus diisi!"}), 400
    call_rpc("approve_pawn", {"pawn_id": pawn_id, "loan_amount": loan_amount})
    current_app.logger.info("pawn %s approved for %s", pawn_id, loan_amount)
    return jsonify({"status": "success", "message": "Berhasil dicairkan!"}), 200


@admin_api_bp.route("/pawn/<pawn_id>/reject", methods=["POST"])
def api_reject_pawn(pawn_id):
    note = (_payload().get("admin_note") or "").strip()
    if not note:
        return jsonify({"status": "error", "message": "Alasan penolakan wajib diisi"}), 400
    get_supabase().table("pawn_transactions").update({
        "status": "rejected",
        "approval_notes": note,
    }).eq("id", pawn_id).execute()
    return jsonify({"status": "success", "message": "Pengajuan ditolak"}), 200


# --- TAMASA ---

@admin_api_bp.route("/tamasa", methods=["GET"])
def api_tamasa():
    data = rows(
        get_supabase().table("tamasa_transactions").select("*, profiles(full_name, member_id)")
        .eq("status", "pending").order("created_at", desc=True).execute()
    )
    return jsonify({"status": "success", "data": data}), 200


def _pending_tamasa(tx_id):
    tx = fetch_one("tamasa_transactions", "id", tx_id)
    if not tx or tx.get("status") != "pending":
        raise NotFound("Transaksi TAMASA tidak ditemukan")
    return tx


@admin_api_bp.route("/tamasa/<tx_id>/approve", methods=["POST"])
def api_approve_tamasa(tx_id):
    """Credit the estimated grams to the member's gold balance.

    Two sequential writes with no rollback: the balance first, then the
    transaction status.
    """
    tx = _pending_tamasa(tx_id)
    db = get_supabase()
    grams = safe_float(tx.get("estimasi_gram"))
    balance = first(db.table("tamasa_balances").select("*").eq("user_id", tx["user_id"]).limit(1).execute())
    if balance:
        db.table("tamasa_balances").update({
            "total_gram": safe_float(balance.get("total_gram")) + grams,
        }).eq("user_id", tx["user_id"]).execute()
    else:
        db.table("tamasa_balances").insert({"user_id": tx["user_id"], "total_gram": grams}).execute()

    db.table("tamasa_transactions").update({"status": "approved", "approved_at": _now()}).eq("id", tx_id).execute()
    current_app.logger.info("tamasa %s approved, %s g credited to %s", tx_id, grams, tx["user_id"])
    return jsonify({"status": "success", "message": "Transaksi berhasil di-approve ✅"}), 200


@admin_api_bp.route("/tamasa/<tx_id>/reject", methods=["POST"])
def api_reject_tamasa(tx_id):
    _pending_tamasa(tx_id)
    get_supabase().table("tamasa_transactions").update({"status": "rejected", "approved_at": _now()}).eq("id", tx_id).execute()
    return jsonify({"status": "success", "message": "Transaksi berhasil di-reject ❌"}), 200


# --- INFLIP ---

def inflip_payload(form):
    payload = {
        "title": (form.get("title") or "").strip(),
        "description": (form.get("description") or "").strip(),
        "location": (form.get("location") or "").strip(),
        "roi_percent": safe_float(form.get("roi_percent")),
        "target_amount": parse_amount(form.get("target_amount")),
        "collected_amount": parse_amount(form.get("collected_amount")),
        "min_investment": parse_amount(form.get("min_investment")),
        "duration_months": parse_amount(form.get("duration_months")),
        "status": form.get("status") or "open",
    }
    return payload


@admin_api_bp.route("/inflip", methods=["GET"])
def api_inflip_projects():
    data = rows(get_supabase().table("inflip_projects").select("*").order("created_at", desc=True).execute())
    for project in data:
        project["progress"] = funding_progress(project)
    return jsonify({"status": "success", "data": data}), 200


@admin_api_bp.route("/inflip", methods=["POST"])
@admin_api_bp.route("/inflip/<project_id>", methods=["PUT"])
def api_save_inflip(project_id=None):
    payload = inflip_payload(request.form)
    if not payload["title"]:
        return jsonify({"status": "error", "message": "Judul proyek wajib diisi"}), 400
    image = request.files.get("image")
    if image is not None and image.filename:
        payload["image_url"] = upload_image("inflip", image, "inflip")

    table = get_supabase().table("inflip_projects")
    if project_id:
        table.update(payload).eq("id", project_id).execute()
        code = 200
    else:
        table.insert(payload).execute()
        code = 201
    current_app.logger.info("inflip project %s saved", payload["title"])
    return jsonify({"status": "success", "message": "Proyek berhasil disimpan!"}), code


@admin_api_bp.route("/inflip/<project_id>", methods=["DELETE"])
def api_delete_inflip(project_id):
    get_supabase().table("inflip_projects").delete().eq("id", project_id).execute()
    return jsonify({"status": "success", "message": "Proyek berhasil dihapus"}), 200


# --- savings withdrawals ---

@admin_api_bp.route("/savings/withdrawals", methods=["GET"])
def api_savings_withdrawals():
    data = _by_tab("savings_withdrawals", request.args.get("status", "pending"))
    return jsonify({"status": "success", "data": data}), 200


@admin_api_bp.route("/savings/withdrawals/<withdrawal_id>/approve", methods=["POST"])
def api_approve_savings_withdrawal(withdrawal_id):
    call_rpc("approve_savings_withdrawal", {"withdrawal_id": withdrawal_id})
    current_app.logger.info("savings withdrawal %s approved", withdrawal_id)
    return jsonify({"status": "success", "message": "Penarikan disetujui!"}), 200


@admin_api_bp.route("/savings/withdrawals/<withdrawal_id>/reject", methods=["POST"])
def api_reject_savings_withdrawal(withdrawal_id):
    reason = (_payload().get("reason") or "").strip()
    if not reason:
        return jsonify({"status": "error", "message": "Alasan penolakan wajib diisi"}), 400
    get_supabase().table("savings_withdrawals").update({
        "status": "rejected",
        "admin_note": reason,
    }).eq("id", withdrawal_id).execute()
    return jsonify({"status": "success", "message": "Request ditolak"}), 200
