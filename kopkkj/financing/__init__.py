from flask import Blueprint

financing_bp = Blueprint("financing", __name__, url_prefix="/pembiayaan")

from . import routes  # noqa: E402,F401
