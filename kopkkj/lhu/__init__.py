from flask import Blueprint

lhu_bp = Blueprint("lhu", __name__, url_prefix="/lhu")

from . import routes  # noqa: E402,F401
