"""Mods/plugins and server jar download route registration."""

from flask import jsonify, request

from mccontrol.core.errors import PanelError
from mccontrol.core.response_helpers import error_response, ok_response
from mccontrol.services import addons as addons_service
from mccontrol.services import downloads as downloads_service


def register_file_routes(app, ctx):
    """Register add-on folder, version list and download routes."""

    def _register_addon_folder(folder):
        def list_files():
            try:
                files = addons_service.list_addons(ctx, folder)
            except PanelError as exc:
                return error_response(exc)
            return jsonify(files)

        def upload_file():
            body = request.get_json(silent=True) or {}
            filename = str(body.get("filename") or "")
            try:
                saved = addons_service.upload_addon(ctx, folder, filename, body.get("data"))
            except PanelError as exc:
                ctx.log_action(f"{folder}-upload", command=filename, rejection_message=exc.message)
                return error_response(exc)
            return ok_response(name=saved)

        def delete_file(name):
            try:
                addons_service.delete_addon(ctx, folder, name)
            except PanelError as exc:
                ctx.log_action(f"{folder}-delete", command=name, rejection_message=exc.message)
                return error_response(exc)
            return ok_response()

        # Route: /api/<folder>
        app.add_url_rule(f"/api/{folder}", f"{folder}_list", list_files, methods=["GET"])
        app.add_url_rule(f"/api/{folder}/upload", f"{folder}_upload", upload_file, methods=["POST"])
        app.add_url_rule(f"/api/{folder}/<path:name>", f"{folder}_delete", delete_file, methods=["DELETE"])

    for folder in addons_service.ADDON_FOLDERS:
        _register_addon_folder(folder)

    # Route: /api/versions/<server_type>
    @app.route("/api/versions/<server_type>")
    def versions(server_type):
        try:
            result = downloads_service.list_versions(ctx, server_type)
        except PanelError as exc:
            ctx.log_action("versions", command=server_type, rejection_message=exc.message)
            return error_response(exc)
        return jsonify(result)

    # Route: /api/download
    @app.route("/api/download", methods=["POST"])
    def download():
        body = request.get_json(silent=True) or {}
        server_type = str(body.get("type") or "")
        version = str(body.get("version") or "")
        try:
            state = downloads_service.start_download(ctx, server_type, version)
        except PanelError as exc:
            ctx.log_action("download", command=f"{server_type} {version}", rejection_message=exc.message)
            return error_response(exc)
        return ok_response(download=state)
