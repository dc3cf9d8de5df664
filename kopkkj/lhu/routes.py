from flask import jsonify

from . import lhu_bp
from ..auth.decorators import login_required
from ..auth.store import current_user
from ..supabase_client import get_supabase, rows
from ..utils import safe_float


def total_received(details):
    return sum(safe_float(d.get("total_received")) for d in details)


@lhu_bp.route("/api/history", methods=["GET"])
@login_required
def api_history():
    """Profit-share payouts received by the member, with their period."""
    details = rows(
        get_supabase().table("lhu_member_details")
        .select("*, lhu_distributions(period_month, period_year, status)")
        .eq("user_id", current_user()["id"]).order("created_at", desc=True).execute()
    )
    return jsonify({"status": "success", "data": details, "total_received": total_received(details)}), 200
