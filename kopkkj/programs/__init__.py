from flask import Blueprint

programs_bp = Blueprint("programs", __name__, url_prefix="/program")

from . import routes  # noqa: E402,F401
