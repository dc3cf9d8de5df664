import logging
import os
import urllib.parse

from flask import Flask

from .config import Config


def create_app(config_class=Config):
    # static and templates live at the project root, one level up from this package
    root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
    app = Flask(
        __name__,
        static_folder=os.path.join(root_dir, "static"),
        static_url_path="/static",
        template_folder=os.path.join(root_dir, "templates"),
    )
    app.config.from_object(config_class)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    from .core import core_bp
    from .auth import auth_bp
    from .members import members_bp
    from .transactions import transactions_bp
    from .financing import financing_bp
    from .programs import programs_bp
    from .shop import shop_bp
    from .notification import notification_bp
    from .news import news_bp
    from .lhu import lhu_bp
    from .chat import chat_bp
    from .admin import admin_bp, admin_api_bp

    for blueprint in (
        core_bp, auth_bp, members_bp, transactions_bp, financing_bp, programs_bp,
        shop_bp, notification_bp, news_bp, lhu_bp, chat_bp, admin_bp, admin_api_bp,
    ):
        app.register_blueprint(blueprint)

    from .errors import register_error_handlers
    from .security import register_request_guards
    from .cli import register_cli

    register_error_handlers(app)
    register_request_guards(app)
    register_cli(app)

    from .utils import format_rupiah, format_gram, format_date_id

    app.jinja_env.filters["rupiah"] = format_rupiah
    app.jinja_env.filters["gram"] = format_gram
    app.jinja_env.filters["tanggal"] = format_date_id
    return app


def list_routes(app):
    """Registered routes with their endpoint and methods, sorted."""
    output = []
    for rule in app.url_map.iter_rules():
        methods = ",".join(sorted(rule.methods - {"HEAD", "OPTIONS"}))
        output.append(urllib.parse.unquote(f"{rule.endpoint:40s} {methods:20s} {rule}"))
    return sorted(output)
