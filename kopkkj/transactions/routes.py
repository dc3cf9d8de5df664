from flask import request, jsonify, current_app, url_for

from . import transactions_bp
from ..auth.decorators import login_required
from ..auth.store import current_user, refresh_user
from ..members.pin import verify_pin
from ..storage import upload_image
from ..supabase_client import get_supabase, rows, first, call_rpc
from ..utils import SAVINGS_TYPES, parse_amount, balance_of, format_thousands, transaction_label


def _min_message(prefix, minimum):
    return f"{prefix} Rp {format_thousands(minimum)}"


@transactions_bp.route("/api/bank-accounts", methods=["GET"])
def api_bank_accounts():
    return jsonify({"status": "success", "data": current_app.config["BANK_ACCOUNTS"]}), 200


@transactions_bp.route("/api/topup", methods=["POST"])
@login_required
def api_topup():
    """Top up Tapro: upload the transfer receipt and queue a pending transaction for the admin."""
    user = current_user()
    amount = parse_amount(request.form.get("amount"))
    minimum = current_app.config["MIN_TOPUP"]
    if not amount or amount < minimum:
        return jsonify({"status": "error", "message": _min_message("Minimal Top Up", minimum)}), 400
    proof = request.files.get("proof")
    if proof is None or not proof.filename:
        return jsonify({"status": "error", "message": "Wajib upload bukti transfer!"}), 400

    proof_url = upload_image("transaction-proofs", proof, f"topup-{user['id']}")
    get_supabase().table("transactions").insert({
        "user_id": user["id"],
        "type": "topup",
        "amount": amount,
        "status": "pending",
        "description": "Top Up Saldo Tapro",
        "proof_url": proof_url,
    }).execute()
    current_app.logger.info("top up %s requested by %s", amount, user["id"])
    return jsonify({
        "status": "success",
        "message": "Top Up Berhasil Diajukan!",
        "redirect": url_for("transactions.api_history"),
    }), 201


@transactions_bp.route("/api/withdraw", methods=["POST"])
@login_required
def api_withdraw():
    user = current_user()
    data = request.get_json(silent=True) or request.form
    source = data.get("source") or "tapro"
    savings_code = "tapro" if source == "tapro" else data.get("savings_type")
    if source != "tapro" and savings_code not in SAVINGS_TYPES:
        return jsonify({"status": "error", "message": "Pilih jenis simpanan dulu!"}), 400

    amount = parse_amount(data.get("amount"))
    minimum = current_app.config["MIN_WITHDRAW"]
    if not amount or amount < minimum:
        return jsonify({"status": "error", "message": _min_message("Minimal penarikan", minimum)}), 400
    if amount > balance_of(user, savings_code):
        return jsonify({"status": "error", "message": "Saldo tidak mencukupi!"}), 400
    bank_name = (data.get("bank_name") or "").strip()
    account_number = (data.get("account_number") or "").strip()
    if not bank_name or not account_number:
        return jsonify({"status": "error", "message": "Info rekening wajib diisi!"}), 400

    verify_pin(user, data.get("pin"))
    get_supabase().table("savings_withdrawals").insert({
        "user_id": user["id"],
        "type": savings_code,
        "amount": amount,
        "bank_name": bank_name,
        "account_number": account_number,
        "status": "pending",
    }).execute()
    current_app.logger.info("withdrawal %s from %s requested by %s", amount, savings_code, user["id"])
    return jsonify({"status": "success", "message": "Permintaan penarikan berhasil dikirim"}), 201


@transactions_bp.route("/api/withdrawals", methods=["GET"])
@login_required
def api_withdrawals():
    data = rows(
        get_supabase().table("savings_withdrawals").select("*")
        .eq("user_id", current_user()["id"]).order("created_at", desc=True).execute()
    )
    return jsonify({"status": "success", "data": data}), 200


def _find_recipient(phone):
    if len(phone) < 10:
        return None
    resp = get_supabase().table("profiles").select("id,full_name").eq("phone", phone).limit(1).execute()
    return first(resp)


@transactions_bp.route("/api/recipient", methods=["GET"])
@login_required
def api_recipient():
    phone = (request.args.get("phone") or "").strip()
    recipient = _find_recipient(phone)
    if not recipient:
        return jsonify({"status": "error", "message": "Nomor belum terdaftar di aplikasi."}), 404
    return jsonify({
        "status": "success",
        "message": f"Penerima ditemukan: {recipient.get('full_name')}",
        "full_name": recipient.get("full_name"),
    }), 200


@transactions_bp.route("/api/transfer", methods=["POST"])
@login_required
def api_transfer():
    user = current_user()
    data = request.get_json(silent=True) or request.form
    phone = (data.get("phone") or "").strip()
    amount = parse_amount(data.get("amount"))

    if not _find_recipient(phone):
        return jsonify({"status": "error", "message": "Pastikan nomor tujuan benar."}), 400
    minimum = current_app.config["MIN_TRANSFER"]
    if not amount or amount < minimum:
        return jsonify({"status": "error", "message": _min_message("Minimal transfer", minimum)}), 400
    if amount > balance_of(user, "tapro"):
        return jsonify({"status": "error", "message": "Saldo tidak mencukupi."}), 400

    verify_pin(user, data.get("pin"))
    call_rpc("transfer_balance", {"recipient_phone": phone, "amount": amount})
    current_app.logger.info("transfer %s from %s to %s", amount, user["id"], phone)
    return jsonify({
        "status": "success",
        "message": "Transfer Berhasil!",
        "tapro_balance": balance_of(refresh_user(), "tapro"),
    }), 200


@transactions_bp.route("/api/setor-simpanan", methods=["POST"])
@login_required
def api_deposit_savings():
    """Move Tapro into one of the named savings balances."""
    user = current_user()
    data = request.get_json(silent=True) or request.form
    target = data.get("target_type")
    amount = parse_amount(data.get("amount"))
    if target not in SAVINGS_TYPES or target == "tapro":
        return jsonify({"status": "error", "message": "Pilih jenis simpanan tujuan dulu"}), 400
    minimum = current_app.config["MIN_SAVINGS_DEPOSIT"]
    if amount < minimum:
        return jsonify({"status": "error", "message": _min_message("Minimal setor", minimum)}), 400
    if amount > balance_of(user, "tapro"):
        return jsonify({"status": "error", "message": "Saldo Tapro tidak mencukupi!"}), 400

    verify_pin(user, data.get("pin"))
    label = SAVINGS_TYPES[target][0]
    call_rpc("deposit_savings", {
        "target_type": target,
        "amount": amount,
        "description": f"Setor ke {label}",
    })
    return jsonify({
        "status": "success",
        "message": "Saldo berhasil dipindahkan!",
        "tapro_balance": balance_of(refresh_user(), "tapro"),
    }), 200


@transactions_bp.route("/api/history", methods=["GET"])
@login_required
def api_history():
    query = get_supabase().table("transactions").select("*").eq("user_id", current_user()["id"])
    tx_type = request.args.get("type")
    if tx_type:
        query = query.eq("type", tx_type)
    data = rows(query.order("created_at", desc=True).limit(100).execute())
    for tx in data:
        tx["label"] = transaction_label(tx.get("type"))
    return jsonify({"status": "success", "data": data}), 200
