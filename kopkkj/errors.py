from flask import jsonify, request, redirect, url_for, current_app
from postgrest.exceptions import APIError
from werkzeug.exceptions import HTTPException


class PortalError(Exception):
    """Error shown to the user as-is in the toast envelope."""
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class Unauthorized(PortalError):
    status_code = 401


class Forbidden(PortalError):
    status_code = 403


class NotFound(PortalError):
    status_code = 404


def error_response(message, status_code=400):
    return jsonify({"status": "error", "message": message}), status_code


def remote_message(err):
    """Best effort text of a Supabase/PostgREST error."""
    message = getattr(err, "message", None)
    if message:
        return str(message)
    return str(err) or "Terjadi kesalahan"


def _wants_json():
    if "/api/" in request.path or request.is_json:
        return True
    best = request.accept_mimetypes.best_match(["application/json", "text/html"])
    return best == "application/json"


def register_error_handlers(app):
    @app.errorhandler(PortalError)
    def handle_portal_error(err):
        return error_response(err.message, err.status_code)

    @app.errorhandler(APIError)
    def handle_remote_error(err):
        current_app.logger.warning("Supabase rejected %s %s: %s", request.method, request.path, remote_message(err))
        return error_response(f"Gagal: {remote_message(err)}", 400)

    @app.errorhandler(404)
    def handle_not_found(err):
        if _wants_json():
            return error_response("Halaman tidak ditemukan", 404)
        return redirect(url_for("core.welcome"))

    @app.errorhandler(413)
    def handle_too_large(err):
        return error_response("Ukuran file terlalu besar", 413)

    @app.errorhandler(Exception)
    def handle_unexpected(err):
        if isinstance(err, HTTPException):
            return err
        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return error_response(f"Gagal: {err}", 500)
