"""Financial report screens: balance summary, cash mutations and profit/loss."""
from datetime import datetime
from io import StringIO

import pandas as pd
from flask import jsonify, make_response, current_app

from . import admin_api_bp
from ..supabase_client import get_supabase, rows, first, call_rpc
from ..utils import SAVINGS_TYPES, safe_float, parse_date

INCOME_TYPES = ("topup", "payment", "shop")
OUTFLOW_TYPES = ("withdraw",)
TAMASA_MARGIN = 0.05
PAWN_FEE = 10000
CSV_COLUMNS = ["TANGGAL", "JAM", "NAMA MEMBER", "TIPE TRANSAKSI", "ARUS KAS", "NOMINAL"]


def financial_summary():
    db = get_supabase()
    balance_columns = [column for _, column in SAVINGS_TYPES.values()]
    profiles = rows(db.table("profiles").select(",".join(balance_columns)).execute())
    total_savings = sum(safe_float(p.get(column)) for p in profiles for column in balance_columns)

    loans = rows(db.table("loans").select("amount,remaining_amount").eq("status", "active").execute())
    total_loans = sum(
        safe_float(loan.get("remaining_amount") if loan.get("remaining_amount") is not None else loan.get("amount"))
        for loan in loans
    )
    installments = rows(db.table("installments").select("late_fee").gt("late_fee", 0).execute())
    total_late_fees = sum(safe_float(i.get("late_fee")) for i in installments)
    return {
        "total_savings": total_savings,
        "total_loans": total_loans,
        "total_late_fees": total_late_fees,
        "total_assets": total_savings + total_late_fees,
    }


def merged_mutations(limit=100):
    """Settled transactions and disbursed loans as one cash-flow list, newest first."""
    db = get_supabase()
    transactions = rows(
        db.table("transactions").select("*, profiles(full_name)")
        .in_("type", list(INCOME_TYPES + OUTFLOW_TYPES)).in_("status", ["success", "approved"])
        .order("created_at", desc=True).limit(limit).execute()
    )
    loans = rows(
        db.table("loans").select("*, profiles(full_name)")
        .in_("status", ["active", "paid"]).order("created_at", desc=True).limit(limit).execute()
    )

    mutations = []
    for tx in transactions:
        mutations.append({
            "date": tx.get("created_at"),
            "user": (tx.get("profiles") or {}).get("full_name") or "System",
            "type": tx.get("type"),
            "amount": safe_float(tx.get("amount")),
            "is_income": tx.get("type") in INCOME_TYPES,
        })
    for loan in loans:
        mutations.append({
            "date": loan.get("approved_at") or loan.get("created_at"),
            "user": (loan.get("profiles") or {}).get("full_name") or "System",
            "type": f"pencairan {loan.get('type') or 'pinjaman'}",
            "amount": safe_float(loan.get("amount")),
            "is_income": False,
        })
    mutations.sort(key=lambda m: str(m["date"] or ""), reverse=True)
    return mutations[:limit]


def mutations_frame(mutations):
    records = []
    for m in mutations:
        when = parse_date(m["date"])
        records.append({
            "TANGGAL": when.strftime("%d/%m/%Y") if when else "-",
            "JAM": when.strftime("%H:%M") if when else "-",
            "NAMA MEMBER": m["user"],
            "TIPE TRANSAKSI": (m["type"] or "").upper(),
            "ARUS KAS": "MASUK (+)" if m["is_income"] else "KELUAR (-)",
            "NOMINAL": m["amount"] if m["is_income"] else -m["amount"],
        })
    return pd.DataFrame(records, columns=CSV_COLUMNS)


def profit_loss():
    db = get_supabase()
    orders = rows(db.table("shop_orders").select("total_amount").in_("status", ["siap_diambil", "selesai"]).execute())
    shop_income = sum(safe_float(o.get("total_amount")) for o in orders)

    tamasa = rows(db.table("tamasa_transactions").select("amount").eq("status", "approved").execute())
    tamasa_margin = sum(safe_float(t.get("amount")) for t in tamasa) * TAMASA_MARGIN

    pawns = rows(db.table("pawn_transactions").select("id").eq("status", "approved").execute())
    pawn_fees = len(pawns) * PAWN_FEE

    last_lhu = first(
        db.table("lhu_distributions").select("operational_cost")
        .order("created_at", desc=True).limit(1).execute()
    )
    operational_costs = safe_float((last_lhu or {}).get("operational_cost"))
    total_income = shop_income + tamasa_margin + pawn_fees
    return {
        "shop_income": shop_income,
        "tamasa_margin": tamasa_margin,
        "pawn_fees": pawn_fees,
        "total_income": total_income,
        "operational_costs": operational_costs,
        "net_profit": total_income - operational_costs,
    }


@admin_api_bp.route("/financial/summary", methods=["GET"])
def api_summary():
    return jsonify({"status": "success", "data": financial_summary()}), 200


@admin_api_bp.route("/financial/mutations", methods=["GET"])
def api_mutations():
    return jsonify({"status": "success", "data": merged_mutations()}), 200


@admin_api_bp.route("/financial/mutations/csv", methods=["GET"])
def api_mutations_csv():
    mutations = merged_mutations()
    if not mutations:
        return jsonify({"status": "error", "message": "Tidak ada data"}), 404
    output = StringIO()
    mutations_frame(mutations).to_csv(output, index=False)
    response = make_response(output.getvalue())
    response.headers["Content-Disposition"] = f"attachment; filename=Laporan_Keuangan_KKJ_{datetime.now():%d-%m-%Y}.csv"
    response.headers["Content-Type"] = "text/csv; charset=utf-8"
    return response


@admin_api_bp.route("/financial/profit-loss", methods=["GET"])
def api_profit_loss():
    return jsonify({"status": "success", "data": profit_loss()}), 200


@admin_api_bp.route("/financial/apply-late-fees", methods=["POST"])
def api_apply_late_fees():
    result = call_rpc("apply_late_fees")
    current_app.logger.info("late fees applied: %s", result)
    message = result.get("message") if isinstance(result, dict) else None
    return jsonify({"status": "success", "message": message or "Denda berhasil diterapkan", "data": result}), 200
