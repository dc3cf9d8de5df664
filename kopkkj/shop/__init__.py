from flask import Blueprint

shop_bp = Blueprint("shop", __name__, url_prefix="/belanja")

from . import routes  # noqa: E402,F401
