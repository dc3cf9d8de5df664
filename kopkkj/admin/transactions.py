from datetime import datetime
from io import BytesIO

import pandas as pd
from flask import request, jsonify, make_response, current_app

from . import admin_api_bp
from ..errors import NotFound
from ..supabase_client import get_supabase, rows, fetch_one, call_rpc
from ..utils import parse_date, transaction_label

APPROVAL_RPCS = {"topup": "approve_topup", "withdraw": "approve_withdraw"}
EXPORT_COLUMNS = ["Tanggal", "ID Anggota", "Nama Anggota", "Tipe", "Nominal", "Status", "Keterangan"]


def fetch_transactions(tab):
    query = get_supabase().table("transactions").select("*, profiles(full_name, member_id)")
    if tab == "pending":
        query = query.eq("status", "pending")
    else:
        query = query.neq("status", "pending")
    return rows(query.order("created_at", desc=True).execute())


def transactions_frame(transactions):
    records = []
    for tx in transactions:
        profile = tx.get("profiles") or {}
        created = parse_date(tx.get("created_at"))
        records.append({
            "Tanggal": created.strftime("%d/%m/%Y %H:%M") if created else "-",
            "ID Anggota": profile.get("member_id") or "-",
            "Nama Anggota": profile.get("full_name") or "System",
            "Tipe": transaction_label(tx.get("type")),
            "Nominal": tx.get("amount"),
            "Status": (tx.get("status") or "").upper(),
            "Keterangan": tx.get("description") or "-",
        })
    return pd.DataFrame(records, columns=EXPORT_COLUMNS)


@admin_api_bp.route("/transactions", methods=["GET"])
def api_transactions():
    tab = request.args.get("tab", "pending")
    return jsonify({"status": "success", "data": fetch_transactions(tab)}), 200


@admin_api_bp.route("/transactions/<tx_id>/approve", methods=["POST"])
def api_approve_transaction(tx_id):
    tx = fetch_one("transactions", "id", tx_id)
    if not tx:
        raise NotFound("Transaksi tidak ditemukan")
    rpc_name = APPROVAL_RPCS.get(tx.get("type"))
    if rpc_name is None:
        return jsonify({"status": "error", "message": "Transaksi ini tidak bisa disetujui dari sini"}), 400
    call_rpc(rpc_name, {"transaction_id": tx_id})
    current_app.logger.info("transaction %s (%s) approved", tx_id, tx.get("type"))
    return jsonify({"status": "success", "message": "Berhasil disetujui!"}), 200


@admin_api_bp.route("/transactions/<tx_id>/reject", methods=["POST"])
def api_reject_transaction(tx_id):
    data = request.get_json(silent=True) or request.form
    reason = (data.get("reason") or "").strip()
    if not reason:
        return jsonify({"status": "error", "message": "Alasan penolakan wajib diisi"}), 400
    get_supabase().table("transactions").update({"status": "rejected", "description": reason}).eq("id", tx_id).execute()
    current_app.logger.info("transaction %s rejected: %s", tx_id, reason)
    return jsonify({"status": "success", "message": "Transaksi ditolak."}), 200


@admin_api_bp.route("/transactions/export", methods=["GET"])
def api_export_transactions():
    """Excel export of the current tab."""
    tab = request.args.get("tab", "pending")
    transactions = fetch_transactions(tab)
    if not transactions:
        return jsonify({"status": "error", "message": "Tidak ada data untuk di-export"}), 404

    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        transactions_frame(transactions).to_excel(writer, index=False, sheet_name="Transaksi")
    output.seek(0)
    filename = f"Laporan_Transaksi_{tab}_{datetime.now():%Y-%m-%d}.xlsx"
    response = make_response(output.read())
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"
    response.headers["Content-Type"] = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    return response
