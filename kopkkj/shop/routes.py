from flask import request, jsonify, current_app, url_for

from . import shop_bp
from ..auth.decorators import login_required
from ..auth.store import current_user
from ..members.pin import verify_pin
from ..supabase_client import get_supabase, rows, first
from ..utils import parse_amount, balance_of, safe_float, short_id

CATEGORIES = ["Semua", "Sembako", "Elektronik", "Atribut", "Lainnya"]


def order_reference(order_id):
    """Text embedded in the payment transaction so the admin can find it again."""
    return f"Belanja Toko #{short_id(order_id)}"


def _active_products(category=None, search=None):
    query = get_supabase().table("shop_products").select("*").eq("is_active", True)
    if category and category != "Semua":
        query = query.eq("category", category)
    products = rows(query.order("name").execute())
    if search:
        needle = search.lower()
        products = [p for p in products if needle in (p.get("name") or "").lower()]
    return products


def build_cart(items):
    """Resolve cart items against current stock and price; returns (lines, error).

    Lines for the same product are merged so the stock check sees the
    whole quantity ordered.
    """
    if not items:
        return None, "Keranjang belanja kosong"
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        return None, "Isi keranjang tidak valid"

    quantities = {}
    for item in items:
        quantity = parse_amount(item.get("quantity"))
        if quantity <= 0:
            return None, "Jumlah barang tidak valid"
        product_id = item.get("product_id")
        quantities[product_id] = quantities.get(product_id, 0) + quantity

    products = {
        p["id"]: p
        for p in rows(get_supabase().table("shop_products").select("*").in_("id", list(quantities)).execute())
    }
    lines = []
    for product_id, quantity in quantities.items():
        product = products.get(product_id)
        if not product or not product.get("is_active", True):
            return None, "Produk tidak tersedia"
        if quantity > int(safe_float(product.get("stock"))):
            return None, f"Stok {product.get('name')} tidak mencukupi"
        lines.append({
            "product_id": product["id"],
            "name": product.get("name"),
            "quantity": quantity,
            "price": safe_float(product.get("price")),
        })
    return lines, None


@shop_bp.route("/api/categories", methods=["GET"])
def api_categories():
    return jsonify({"status": "success", "data": CATEGORIES}), 200


@shop_bp.route("/api/products", methods=["GET"])
@login_required
def api_products():
    products = _active_products(request.args.get("category"), (request.args.get("q") or "").strip())
    return jsonify({"status": "success", "data": products}), 200


@shop_bp.route("/api/checkout", methods=["POST"])
@login_required
def api_checkout():
    """Place an order paid from Tapro.

    The balance is only debited when the admin marks the order ready for
    pickup; until then the order and its payment row stay pending.
    """
    user = current_user()
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    lines, error = build_cart(data.get("cart_items") or [])
    if error:
        return jsonify({"status": "error", "message": error}), 400

    verify_pin(user, data.get("pin"))
    total = sum(line["price"] * line["quantity"] for line in lines)
    if balance_of(user, "tapro") < total:
        return jsonify({"status": "error", "message": "Saldo TAPRO tidak cukup"}), 400

    db = get_supabase()
    order = first(db.table("shop_orders").insert({
        "user_id": user["id"],
        "total_amount": total,
        "status": "diproses",
    }).execute())
    db.table("shop_order_items").insert([
        {
            "order_id": order["id"],
            "product_id": line["product_id"],
            "quantity": line["quantity"],
            "price": line["price"],
        }
        for line in lines
    ]).execute()
    db.table("transactions").insert({
        "user_id": user["id"],
        "type": "shop",
        "amount": total,
        "status": "pending",
        "description": order_reference(order["id"]),
    }).execute()

    current_app.logger.info("shop order %s of %s placed by %s", order["id"], total, user["id"])
    return jsonify({
        "status": "success",
        "message": "Pesanan Terkirim! Menunggu Konfirmasi Admin.",
        "order_id": order["id"],
        "redirect": url_for("transactions.api_history"),
    }), 201


@shop_bp.route("/api/orders", methods=["GET"])
@login_required
def api_orders():
    data = rows(
        get_supabase().table("shop_orders").select("*, shop_order_items(*, shop_products(name, image_url))")
        .eq("user_id", current_user()["id"]).order("created_at", desc=True).execute()
    )
    return jsonify({"status": "success", "data": data}), 200
