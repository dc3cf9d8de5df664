from flask import request, jsonify, current_app, url_for

from . import financing_bp
from .simulation import FINANCING_TYPES, simulate, build_details
from ..auth.decorators import login_required
from ..auth.store import current_user
from ..errors import NotFound
from ..supabase_client import get_supabase, rows, fetch_one, call_rpc
from ..utils import parse_amount, format_thousands


def _catalog_product(product_id):
    if not product_id:
        return None
    return fetch_one("financing_catalog", "id", product_id)


def _own_loan(loan_id):
    resp = (
        get_supabase().table("loans").select("*")
        .eq("id", loan_id).eq("user_id", current_user()["id"]).limit(1).execute()
    )
    loan = rows(resp)
    if not loan:
        raise NotFound("Data pinjaman tidak ditemukan")
    return loan[0]


@financing_bp.route("/api/catalog", methods=["GET"])
@login_required
def api_catalog():
    data = rows(get_supabase().table("financing_catalog").select("*").order("name").execute())
    return jsonify({"status": "success", "data": data}), 200


@financing_bp.route("/api/simulate", methods=["POST"])
@login_required
def api_simulate():
    data = request.get_json(silent=True) or request.form
    financing_type = data.get("type")
    if financing_type not in FINANCING_TYPES:
        return jsonify({"status": "error", "message": "Jenis pembiayaan tidak dikenal"}), 400
    product = _catalog_product(data.get("product_id")) if financing_type == "Kredit Barang" else None
    return jsonify({"status": "success", "data": simulate(financing_type, data.get("tenor"), data, product)}), 200


@financing_bp.route("/api/apply", methods=["POST"])
@login_required
def api_apply():
    """Send a financing request; the schedule is only created when an admin approves it."""
    user = current_user()
    data = request.get_json(silent=True) or request.form
    financing_type = data.get("type")
    if financing_type not in FINANCING_TYPES:
        return jsonify({"status": "error", "message": "Jenis pembiayaan tidak dikenal"}), 400

    product = None
    if financing_type == "Kredit Barang":
        product = _catalog_product(data.get("product_id"))
        if not product:
            return jsonify({"status": "error", "message": "Pilih barang terlebih dahulu"}), 400

    result = simulate(financing_type, data.get("tenor"), data, product)
    if result["principal"] < current_app.config["MIN_FINANCING"]:
        return jsonify({"status": "error", "message": "Nominal pembiayaan tidak valid."}), 400

    resp = get_supabase().table("loans").insert({
        "user_id": user["id"],
        "type": financing_type,
        "amount": result["principal"] + result["tax"],
        "duration": result["tenor"],
        "margin_rate": 10,
        "monthly_payment": result["installment"],
        "status": "pending",
        "details": build_details(financing_type, data, product),
    }).execute()
    current_app.logger.info("financing %s of %s requested by %s", financing_type, result["principal"], user["id"])
    return jsonify({
        "status": "success",
        "message": "Pengajuan berhasil!",
        "data": rows(resp),
        "redirect": url_for("financing.api_loans"),
    }), 201


@financing_bp.route("/api/loans", methods=["GET"])
@login_required
def api_loans():
    data = rows(
        get_supabase().table("loans").select("*")
        .eq("user_id", current_user()["id"]).order("created_at", desc=True).execute()
    )
    return jsonify({"status": "success", "data": data}), 200


@financing_bp.route("/api/loans/<loan_id>", methods=["GET"])
@login_required
def api_loan_detail(loan_id):
    loan = _own_loan(loan_id)
    installments = rows(
        get_supabase().table("installments").select("*")
        .eq("loan_id", loan_id).order("due_date").execute()
    )
    return jsonify({"status": "success", "loan": loan, "installments": installments}), 200


@financing_bp.route("/api/installments/<installment_id>/pay", methods=["POST"])
@login_required
def api_pay_installment(installment_id):
    call_rpc("pay_installment", {"installment_id": installment_id})
    current_app.logger.info("installment %s paid by %s", installment_id, current_user()["id"])
    return jsonify({"status": "success", "message": "Pembayaran Berhasil!"}), 200


@financing_bp.route("/api/loans/<loan_id>/restructure", methods=["POST"])
@login_required
def api_restructure(loan_id):
    loan = _own_loan(loan_id)
    data = request.get_json(silent=True) or request.form
    new_duration = parse_amount(data.get("new_duration"))
    reason = (data.get("reason") or "").strip()
    if new_duration <= parse_amount(loan.get("duration")):
        return jsonify({"status": "error", "message": "Tenor baru harus lebih besar dari tenor saat ini."}), 400
    if not reason:
        return jsonify({"status": "error", "message": "Alasan wajib diisi."}), 400

    get_supabase().table("loans").update({
        "restructure_status": "pending",
        "restructure_req_duration": new_duration,
        "restructure_reason": reason,
    }).eq("id", loan_id).execute()
    current_app.logger.info(
        "restructure of loan %s to %s months requested (monthly %s)",
        loan_id, new_duration, format_thousands(loan.get("monthly_payment")),
    )
    return jsonify({"status": "success", "message": "Pengajuan dikirim ke Admin"}), 200
