from flask import render_template, jsonify, redirect, url_for

from . import core_bp
from ..auth.store import current_user

PPOB_SERVICES = ["Pulsa & Data", "Token Listrik", "Internet", "PDAM", "Voucher Game", "E-Money"]


@core_bp.route("/")
def home():
    user = current_user()
    if user is not None:
        if user.get("role") == "admin":
            return redirect(url_for("admin.dashboard"))
        return redirect(url_for("members.dashboard"))
    return redirect(url_for("core.welcome"))


@core_bp.route("/welcome")
def welcome():
    return render_template("welcome.html")


@core_bp.route("/pending")
def pending():
    return render_template("pending.html")


@core_bp.route("/ppob/api/services")
def ppob_services():
    data = [{"name": name, "available": False} for name in PPOB_SERVICES]
    return jsonify({"status": "success", "message": "Layanan PPOB segera hadir", "data": data}), 200
