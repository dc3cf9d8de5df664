from datetime import date

from flask import request, jsonify, current_app

from . import admin_api_bp
from ..supabase_client import get_supabase, rows, call_rpc
from ..utils import parse_amount


@admin_api_bp.route("/lhu", methods=["GET"])
def api_lhu_distributions():
    data = rows(get_supabase().table("lhu_distributions").select("*").order("created_at", desc=True).execute())
    return jsonify({"status": "success", "data": data}), 200


@admin_api_bp.route("/lhu/generate", methods=["POST"])
def api_generate_lhu():
    """Ask the database to estimate each member's share for a period."""
    data = request.get_json(silent=True) or request.form
    today = date.today()
    month = parse_amount(data.get("month")) or today.month
    year = parse_amount(data.get("year")) or today.year
    gross_profit = parse_amount(data.get("gross_profit"))
    if gross_profit <= 0:
        return jsonify({"status": "error", "message": "Laba kotor wajib diisi"}), 400
    if not 1 <= month <= 12:
        return jsonify({"status": "error", "message": "Bulan tidak valid"}), 400

    result = call_rpc("generate_lhu_estimate", {
        "gross_profit": gross_profit,
        "operational_cost": parse_amount(data.get("operational_cost")),
        "month": month,
        "year": year,
    })
    current_app.logger.info("lhu estimate generated for %s/%s", month, year)
    return jsonify({"status": "success", "message": "Estimasi berhasil dibuat!", "data": result}), 201


@admin_api_bp.route("/lhu/<distribution_id>/execute", methods=["POST"])
def api_execute_lhu(distribution_id):
    call_rpc("execute_lhu", {"distribution_id": distribution_id})
    current_app.logger.info("lhu distribution %s executed", distribution_id)
    return jsonify({"status": "success", "message": "LHU Berhasil Dibagikan!"}), 200
