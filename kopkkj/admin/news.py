from flask import request, jsonify, current_app

from . import admin_api_bp
from ..errors import NotFound
from ..storage import upload_image
from ..supabase_client import get_supabase, rows, first, fetch_one

NEWS_TYPES = ("PROMO", "INFO", "EVENT")
NEWS_COLORS = ("blue", "biru_tua", "yellow", "green", "red")


def _truthy(value):
    return str(value).lower() in ("1", "true", "on", "yes")


def news_payload(form):
    news_type = (form.get("type") or "PROMO").upper()
    color = form.get("color") or "blue"
    return {
        "title": (form.get("title") or "").strip(),
        "description": (form.get("description") or "").strip(),
        "type": news_type if news_type in NEWS_TYPES else "INFO",
        "color": color if color in NEWS_COLORS else "blue",
        "is_active": _truthy(form.get("is_active", "1")),
    }


@admin_api_bp.route("/news", methods=["GET"])
def api_news():
    data = rows(get_supabase().table("news").select("*").order("created_at", desc=True).execute())
    return jsonify({"status": "success", "data": data}), 200


@admin_api_bp.route("/news/<news_id>", methods=["GET"])
def api_news_detail(news_id):
    item = fetch_one("news", "id", news_id)
    if not item:
        raise NotFound("Kabar tidak ditemukan")
    return jsonify({"status": "success", "data": item}), 200


@admin_api_bp.route("/news", methods=["POST"])
@admin_api_bp.route("/news/<news_id>", methods=["PUT"])
def api_save_news(news_id=None):
    payload = news_payload(request.form)
    if not payload["title"]:
        return jsonify({"status": "error", "message": "Judul kabar wajib diisi"}), 400
    image = request.files.get("image")
    if image is not None and image.filename:
        payload["image_url"] = upload_image("news", image, "news")
    elif _truthy(request.form.get("remove_image", "0")):
        payload["image_url"] = None

    table = get_supabase().table("news")
    if news_id:
        table.update(payload).eq("id", news_id).execute()
        return jsonify({"status": "success", "message": "Kabar berhasil disimpan!"}), 200
    item = first(table.insert(payload).execute())
    current_app.logger.info("news %s published", payload["title"])
    return jsonify({"status": "success", "message": "Kabar berhasil disimpan!", "data": item}), 201


@admin_api_bp.route("/news/<news_id>/toggle", methods=["PATCH", "POST"])
def api_toggle_news(news_id):
    item = fetch_one("news", "id", news_id)
    if not item:
        raise NotFound("Kabar tidak ditemukan")
    get_supabase().table("news").update({"is_active": not item.get("is_active")}).eq("id", news_id).execute()
    return jsonify({"status": "success", "message": "Status diperbarui"}), 200


@admin_api_bp.route("/news/<news_id>", methods=["DELETE"])
def api_delete_news(news_id):
    get_supabase().table("news").delete().eq("id", news_id).execute()
    return jsonify({"status": "success", "message": "Kabar berhasil dihapus"}), 200
