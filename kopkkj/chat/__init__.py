from flask import Blueprint

chat_bp = Blueprint("chat", __name__, url_prefix="/sila")

from . import routes  # noqa: E402,F401
