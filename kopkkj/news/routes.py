from flask import jsonify

from . import news_bp
from ..errors import NotFound
from ..supabase_client import get_supabase, rows, first


@news_bp.route("/api/list", methods=["GET"])
def api_list():
    data = rows(
        get_supabase().table("news").select("*")
        .eq("is_active", True).order("created_at", desc=True).execute()
    )
    return jsonify({"status": "success", "data": data}), 200


@news_bp.route("/api/<news_id>", methods=["GET"])
def api_detail(news_id):
    item = first(
        get_supabase().table("news").select("*")
        .eq("id", news_id).eq("is_active", True).limit(1).execute()
    )
    if not item:
        raise NotFound("Berita tidak ditemukan")
    return jsonify({"status": "success", "data": item}), 200
