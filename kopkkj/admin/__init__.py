from flask import Blueprint

from ..auth.decorators import login_required, role_required

# HTML pages
admin_bp = Blueprint("admin", __name__, url_prefix="/admin")
# JSON endpoints behind the admin screens
admin_api_bp = Blueprint("admin_api", __name__, url_prefix="/admin/api")


@admin_bp.before_request
@admin_api_bp.before_request
@login_required
@role_required("admin")
def require_admin():
    return None


from . import routes, transactions, financing, reports, catalog, programs, shop, lhu, news  # noqa: E402,F401
