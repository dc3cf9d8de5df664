from flask import Blueprint

notification_bp = Blueprint("notification", __name__, url_prefix="/notifikasi")

from . import routes  # noqa: E402,F401
