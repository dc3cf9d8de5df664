from flask import request, jsonify, current_app

from . import admin_api_bp
from ..errors import NotFound, PortalError
from ..shop.routes import CATEGORIES, order_reference
from ..storage import upload_image
from ..supabase_client import get_supabase, rows, first, fetch_one
from ..utils import parse_amount, safe_float, short_id

ORDER_STATUSES = ("diproses", "siap_diambil", "selesai", "ditolak")
# ditolak and selesai are final; the buyer is debited on diproses -> siap_diambil only
ORDER_TRANSITIONS = {
    "diproses": ("siap_diambil", "ditolak"),
    "siap_diambil": ("selesai",),
}


def product_payload(data):
    name = (data.get("name") or "").strip()
    if not name:
        raise PortalError("Nama produk wajib diisi")
    category = data.get("category") or "Sembako"
    if category not in CATEGORIES[1:]:
        raise PortalError("Kategori tidak dikenal")
    payload = {
        "name": name,
        "price": parse_amount(data.get("price")),
        "stock": parse_amount(data.get("stock")),
        "category": category,
        "description": (data.get("description") or "").strip() or None,
    }
    if data.get("image_url"):
        payload["image_url"] = data.get("image_url")
    return payload


@admin_api_bp.route("/shop/products", methods=["GET"])
def api_shop_products():
    data = rows(get_supabase().table("shop_products").select("*").order("name").execute())
    return jsonify({"status": "success", "data": data}), 200


@admin_api_bp.route("/shop/products", methods=["POST"])
@admin_api_bp.route("/shop/products/<product_id>", methods=["PUT"])
def api_save_product(product_id=None):
    payload = product_payload(request.get_json(silent=True) or request.form)
    table = get_supabase().table("shop_products")
    if product_id:
        table.update(payload).eq("id", product_id).execute()
        return jsonify({"status": "success", "message": "Katalog diperbarui"}), 200
    payload["is_active"] = True
    product = first(table.insert(payload).execute())
    current_app.logger.info("shop product %s added", payload["name"])
    return jsonify({"status": "success", "message": "Katalog diperbarui", "data": product}), 201


@admin_api_bp.route("/shop/products/<product_id>/toggle", methods=["POST"])
def api_toggle_product(product_id):
    product = fetch_one("shop_products", "id", product_id)
    if not product:
        raise NotFound("Produk tidak ditemukan")
    active = not product.get("is_active")
    get_supabase().table("shop_products").update({"is_active": active}).eq("id", product_id).execute()
    return jsonify({
        "status": "success",
        "message": f"Produk berhasil {'diaktifkan' if active else 'dinonaktifkan'}",
        "is_active": active,
    }), 200


@admin_api_bp.route("/shop/products/image", methods=["POST"])
def api_upload_product_image():
    public_url = upload_image("shop_products", request.files.get("image"), "product")
    return jsonify({"status": "success", "image_url": public_url}), 200


@admin_api_bp.route("/shop/orders", methods=["GET"])
def api_shop_orders():
    db = get_supabase()
    orders = rows(db.table("shop_orders").select("*, shop_order_items(*)").order("created_at", desc=True).execute())
    user_ids = list({o.get("user_id") for o in orders if o.get("user_id")})
    profiles = {}
    if user_ids:
        profiles = {
            p["id"]: p
            for p in rows(db.table("profiles").select("id,full_name,member_id,tapro_balance").in_("id", user_ids).execute())
        }
    for order in orders:
        order["profiles"] = profiles.get(order.get("user_id"))
    return jsonify({"status": "success", "data": orders}), 200


def _mark_order_payment(order, status):
    (
        get_supabase().table("transactions").update({"status": status})
        .eq("user_id", order["user_id"]).ilike("description", f"%{short_id(order['id'])}%").execute()
    )


def release_order(order):
    """Debit the buyer, take the items out of stock and settle the payment row.

    Sequential writes with no rollback.
    """
    db = get_supabase()
    buyer = fetch_one("profiles", "id", order["user_id"], "id,tapro_balance")
    balance = safe_float((buyer or {}).get("tapro_balance"))
    total = safe_float(order.get("total_amount"))
    if balance < total:
        raise PortalError("Saldo anggota tidak cukup")
    db.table("profiles").update({"tapro_balance": balance - total}).eq("id", order["user_id"]).execute()

    items = rows(db.table("shop_order_items").select("product_id,quantity").eq("order_id", order["id"]).execute())
    for item in items:
        product = fetch_one("shop_products", "id", item["product_id"], "id,stock")
        if product:
            stock = max(0, int(safe_float(product.get("stock"))) - parse_amount(item.get("quantity")))
            db.table("shop_products").update({"stock": stock}).eq("id", item["product_id"]).execute()
    _mark_order_payment(order, "success")


@admin_api_bp.route("/shop/orders/<order_id>/status", methods=["POST"])
def api_update_order_status(order_id):
    new_status = (request.get_json(silent=True) or request.form).get("status")
    if new_status not in ORDER_STATUSES:
        return jsonify({"status": "error", "message": "Status pesanan tidak dikenal"}), 400
    order = fetch_one("shop_orders", "id", order_id)
    if not order:
        raise NotFound("Pesanan tidak ditemukan")
    current = order.get("status") or "diproses"
    if new_status not in ORDER_TRANSITIONS.get(current, ()):
        return jsonify({
            "status": "error",
            "message": f"Pesanan berstatus {current} tidak bisa diubah ke {new_status}",
        }), 400

    if new_status == "siap_diambil":
        release_order(order)
    elif new_status == "ditolak":
        _mark_order_payment(order, "failed")

    get_supabase().table("shop_orders").update({"status": new_status}).eq("id", order_id).execute()
    current_app.logger.info("shop order %s (%s) %s -> %s", order_id, order_reference(order_id), current, new_status)
    return jsonify({"status": "success", "message": "Pesanan diperbarui"}), 200
