"""App factory and runtime wiring entrypoint."""

from pathlib import Path

from flask import Flask, has_request_context, request
from werkzeug.exceptions import HTTPException

from mccontrol.core.response_helpers import internal_error_response
from mccontrol.routes.dashboard_routes import register_routes

PACKAGE_DIR = Path(__file__).resolve().parent


def build_flask_app(ctx):
    """Build a Flask app serving the panel page and API for ``ctx``."""
    app = Flask(__name__, template_folder=str(PACKAGE_DIR / "templates"))

    @app.errorhandler(Exception)
    def _unhandled_exception_handler(exc):
        if isinstance(exc, HTTPException):
            return exc
        # Log uncaught request exceptions to the panel action log.
        path = request.path if has_request_context() else "unknown-path"
        ctx.log_exception(f"unhandled_exception path={path}", exc)
        return internal_error_response()

    register_routes(app, ctx)
    return app


def create_app():
    """Return the Flask app instance used by WSGI entrypoints."""
    from mccontrol.main import app

    return app
