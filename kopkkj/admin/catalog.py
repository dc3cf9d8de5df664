from flask import request, jsonify, current_app

from . import admin_api_bp
from ..errors import PortalError
from ..supabase_client import get_supabase, rows, first
from ..utils import parse_amount


def catalog_payload(data):
    name = (data.get("name") or "").strip()
    tenors = sorted({parse_amount(t) for t in (data.get("tenors") or []) if parse_amount(t) > 0})
    if not name:
        raise PortalError("Nama barang wajib diisi")
    if not tenors:
        raise PortalError("Pilih minimal satu tenor")
    return {
        "name": name,
        "price": parse_amount(data.get("price")),
        "dp": parse_amount(data.get("dp")),
        "tax": parse_amount(data.get("tax")),
        "tenors": tenors,
    }


@admin_api_bp.route("/catalog", methods=["GET"])
def api_catalog():
    query = get_supabase().table("financing_catalog").select("*")
    search = (request.args.get("q") or "").strip()
    if search:
        query = query.ilike("name", f"%{search}%")
    return jsonify({"status": "success", "data": rows(query.order("name").execute())}), 200


@admin_api_bp.route("/catalog", methods=["POST"])
def api_create_catalog_item():
    payload = catalog_payload(request.get_json(silent=True) or {})
    item = first(get_supabase().table("financing_catalog").insert(payload).execute())
    current_app.logger.info("catalog item %s added", payload["name"])
    return jsonify({"status": "success", "message": "Barang baru ditambahkan!", "data": item}), 201


@admin_api_bp.route("/catalog/<item_id>", methods=["PUT"])
def api_update_catalog_item(item_id):
    payload = catalog_payload(request.get_json(silent=True) or {})
    get_supabase().table("financing_catalog").update(payload).eq("id", item_id).execute()
    return jsonify({"status": "success", "message": "Barang berhasil diperbarui!"}), 200


@admin_api_bp.route("/catalog/<item_id>", methods=["DELETE"])
def api_delete_catalog_item(item_id):
    get_supabase().table("financing_catalog").delete().eq("id", item_id).execute()
    current_app.logger.info("catalog item %s deleted", item_id)
    return jsonify({"status": "success", "message": "Barang dihapus"}), 200
