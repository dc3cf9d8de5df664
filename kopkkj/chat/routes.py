from flask import request, jsonify, current_app

from . import chat_bp
from .sila import ask_sila, build_context
from ..auth.decorators import login_required
from ..auth.store import current_user
from ..supabase_client import get_supabase, rows, first
from ..utils import safe_float


def _snapshot(user):
    db = get_supabase()
    user_id = user["id"]
    loans = rows(
        db.table("loans").select("*").eq("user_id", user_id).in_("status", ["active", "approved"]).execute()
    )
    installments = []
    if loans:
        installments = rows(
            db.table("installments").select("*")
            .in_("loan_id", [loan["id"] for loan in loans]).order("due_date").execute()
        )
    transactions = rows(
        db.table("transactions").select("type,amount,status,created_at")
        .eq("user_id", user_id).order("created_at", desc=True).limit(5).execute()
    )
    tamasa = first(db.table("tamasa_balances").select("total_gram").eq("user_id", user_id).limit(1).execute())
    investments = rows(
        db.table("inflip_investments").select("amount").eq("user_id", user_id).eq("status", "approved").execute()
    )
    return build_context(
        user,
        loans=loans,
        installments=installments,
        transactions=transactions,
        tamasa=tamasa,
        inflip_total=sum(safe_float(i.get("amount")) for i in investments),
        gold_price=current_app.config["GOLD_PRICE_PER_GRAM"],
    )


@chat_bp.route("/api/chat", methods=["POST"])
@login_required
def api_chat():
    user = current_user()
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    message = str(data.get("message") or "").strip()
    if not message:
        return jsonify({"status": "error", "message": "Pesan tidak boleh kosong"}), 400
    history = data.get("history") or []
    if not isinstance(history, list) or not all(isinstance(turn, dict) for turn in history):
        return jsonify({"status": "error", "message": "Riwayat percakapan tidak valid"}), 400

    reply = ask_sila(message, history, _snapshot(user), user.get("full_name") or "Anggota")
    return jsonify({"status": "success", "reply": reply}), 200
