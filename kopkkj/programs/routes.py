from flask import request, jsonify, current_app

from . import programs_bp
from .calculators import tamasa_simulation, gram_estimate, inflip_roi, funding_progress, pawn_simulation
from ..auth.decorators import login_required
from ..auth.store import current_user
from ..errors import NotFound
from ..members.pin import verify_pin
from ..storage import upload_image
from ..supabase_client import get_supabase, rows, first, fetch_one
from ..utils import parse_amount, balance_of, format_thousands, safe_float


def _payload():
    return request.get_json(silent=True) or request.form


# --- TAMASA (gold savings) ---

@programs_bp.route("/tamasa/api/simulate", methods=["POST"])
def api_tamasa_simulate():
    data = _payload()
    gold_price = data.get("gold_price") or current_app.config["GOLD_PRICE_PER_GRAM"]
    result = tamasa_simulation(data.get("monthly_amount"), data.get("months"), gold_price)
    return jsonify({"status": "success", "data": result}), 200


@programs_bp.route("/tamasa/api/balance", methods=["GET"])
@login_required
def api_tamasa_balance():
    user_id = current_user()["id"]
    gold_price = current_app.config["GOLD_PRICE_PER_GRAM"]
    balance = first(get_supabase().table("tamasa_balances").select("*").eq("user_id", user_id).limit(1).execute())
    total_gram = safe_float((balance or {}).get("total_gram"))
    history = rows(
        get_supabase().table("tamasa_transactions").select("*")
        .eq("user_id", user_id).order("created_at", desc=True).execute()
    )
    return jsonify({
        "status": "success",
        "total_gram": total_gram,
        "estimated_value": total_gram * gold_price,
        "gold_price": gold_price,
        "history": history,
    }), 200


@programs_bp.route("/tamasa/api/buy", methods=["POST"])
@login_required
def api_tamasa_buy():
    """Queue a gold purchase; grams are credited only after admin approval."""
    user = current_user()
    data = _payload()
    amount = parse_amount(data.get("amount"))
    minimum = current_app.config["MIN_TAMASA"]
    if amount < minimum:
        return jsonify({"status": "error", "message": f"Minimal pembelian Rp {format_thousands(minimum)}"}), 400
    if amount > balance_of(user, "tapro"):
        return jsonify({"status": "error", "message": "Saldo Tapro tidak mencukupi!"}), 400

    verify_pin(user, data.get("pin"))
    gold_price = current_app.config["GOLD_PRICE_PER_GRAM"]
    grams = gram_estimate(amount, gold_price)
    get_supabase().table("tamasa_transactions").insert({
        "user_id": user["id"],
        "amount": amount,
        "gold_price": gold_price,
        "estimasi_gram": grams,
        "status": "pending",
    }).execute()
    current_app.logger.info("tamasa purchase %s (%s g) requested by %s", amount, grams, user["id"])
    return jsonify({
        "status": "success",
        "message": "Pembelian emas diajukan, menunggu persetujuan Admin.",
        "estimasi_gram": grams,
    }), 201


# --- INFLIP (property investment) ---

@programs_bp.route("/inflip/api/projects", methods=["GET"])
@login_required
def api_inflip_projects():
    data = rows(
        get_supabase().table("inflip_projects").select("*")
        .eq("status", "open").order("created_at", desc=True).execute()
    )
    for project in data:
        project["progress"] = funding_progress(project)
    return jsonify({"status": "success", "data": data}), 200


@programs_bp.route("/inflip/api/simulate", methods=["POST"])
def api_inflip_simulate():
    data = _payload()
    result = inflip_roi(
        parse_amount(data.get("capital")),
        parse_amount(data.get("renovation")),
        parse_amount(data.get("sell_price")),
    )
    return jsonify({"status": "success", "data": result}), 200


@programs_bp.route("/inflip/api/invest", methods=["POST"])
@login_required
def api_inflip_invest():
    user = current_user()
    data = _payload()
    project = fetch_one("inflip_projects", "id", data.get("project_id"))
    if not project or project.get("status") != "open":
        raise NotFound("Proyek tidak ditemukan atau sudah ditutup")

    amount = parse_amount(data.get("amount"))
    minimum = safe_float(project.get("min_investment"))
    if not amount or amount < minimum:
        return jsonify({"status": "error", "message": f"Minimal investasi Rp {format_thousands(minimum)}"}), 400
    if amount > balance_of(user, "tapro"):
        return jsonify({"status": "error", "message": "Saldo Tapro tidak mencukupi!"}), 400

    verify_pin(user, data.get("pin"))
    get_supabase().table("inflip_investments").insert({
        "user_id": user["id"],
        "project_id": project["id"],
        "amount": amount,
        "status": "pending",
    }).execute()
    current_app.logger.info("inflip investment %s in %s by %s", amount, project["id"], user["id"])
    return jsonify({"status": "success", "message": "Investasi berhasil diajukan!"}), 201


@programs_bp.route("/inflip/api/investments", methods=["GET"])
@login_required
def api_inflip_investments():
    data = rows(
        get_supabase().table("inflip_investments").select("*, inflip_projects(title, roi_percent, duration_months)")
        .eq("user_id", current_user()["id"]).order("created_at", desc=True).execute()
    )
    return jsonify({"status": "success", "data": data}), 200


# --- Pegadaian (gold pawning) ---

@programs_bp.route("/pegadaian/api/simulate", methods=["POST"])
def api_pawn_simulate():
    data = _payload()
    result = pawn_simulation(
        data.get("weight", 10),
        data.get("price_per_gram", 1_000_000),
        data.get("appraisal_percent", 85),
        data.get("tenor", 3),
        data.get("ujrah_percent", 1.2),
    )
    return jsonify({"status": "success", "data": result}), 200


@programs_bp.route("/pegadaian/api/apply", methods=["POST"])
@login_required
def api_pawn_apply():
    user = current_user()
    item_name = (request.form.get("item_name") or "").strip()
    weight = safe_float(request.form.get("weight"))
    if not item_name or weight <= 0:
        return jsonify({"status": "error", "message": "Nama barang dan berat wajib diisi!"}), 400

    photo = request.files.get("photo")
    image_url = None
    if photo is not None and photo.filename:
        image_url = upload_image("pawn-items", photo, f"pawn-{user['id']}")

    get_supabase().table("pawn_transactions").insert({
        "user_id": user["id"],
        "item_name": item_name,
        "weight": weight,
        "description": (request.form.get("description") or "").strip() or None,
        "image_url": image_url,
        "status": "pending",
    }).execute()
    current_app.logger.info("pawn request for %s (%s g) by %s", item_name, weight, user["id"])
    return jsonify({"status": "success", "message": "Pengajuan gadai berhasil dikirim"}), 201


@programs_bp.route("/pegadaian/api/history", methods=["GET"])
@login_required
def api_pawn_history():
    data = rows(
        get_supabase().table("pawn_transactions").select("*")
        .eq("user_id", current_user()["id"]).order("created_at", desc=True).execute()
    )
    return jsonify({"status": "success", "data": data}), 200


@programs_bp.route("/pegadaian/api/<pawn_id>", methods=["DELETE"])
@login_required
def api_pawn_cancel(pawn_id):
    pawn = fetch_one("pawn_transactions", "id", pawn_id)
    if not pawn or pawn.get("user_id") != current_user()["id"]:
        raise NotFound("Data gadai tidak ditemukan")
    if pawn.get("status") != "pending":
        return jsonify({"status": "error", "message": "Hanya pengajuan dengan status pending yang bisa dihapus"}), 400
    get_supabase().table("pawn_transactions").delete().eq("id", pawn_id).execute()
    return jsonify({"status": "success", "message": "Pengajuan gadai berhasil dihapus"}), 200
