"""Flask route registration for the MC control panel."""

from flask import Response, jsonify, render_template, request, stream_with_context

from mccontrol.core.errors import PanelError
from mccontrol.core.properties_file import read_properties, write_properties
from mccontrol.core.response_helpers import bad_request_response, error_response, ok_response
from mccontrol.routes.dashboard_control_routes import register_control_routes
from mccontrol.routes.dashboard_file_routes import register_file_routes
from mccontrol.services import broadcast_hub as broadcast_hub_service
from mccontrol.services import downloads as downloads_service
from mccontrol.services import supervisor as supervisor_service

# request JSON key -> PanelConfig attribute editable from the page
EDITABLE_CONFIG_KEYS = {
    "memory": "memory",
    "serverDir": "server_dir",
    "serverJar": "server_jar",
    "javaPath": "java_path",
}


def register_routes(app, ctx):
    """Register every panel route on ``app``."""

    # Route: /
    @app.route("/")
    def index():
        return render_template("index.html")

    # Route: /api/status
    @app.route("/api/status")
    def status():
        config = ctx.config_store.get()
        snapshot = supervisor_service.status_snapshot(ctx)
        return jsonify({
            "running": snapshot["running"],
            "config": config.to_json(),
            "uptime": snapshot["uptime"],
            "players": snapshot["players"],
            "jarExists": config.jar_path.is_file(),
            "download": downloads_service.get_download_snapshot(ctx),
        })

    # Route: /api/events
    @app.route("/api/events")
    def events():
        channel = broadcast_hub_service.attach_viewer(ctx)
        return Response(
            stream_with_context(broadcast_hub_service.event_stream(ctx, channel)),
            mimetype="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "X-Accel-Buffering": "no",
            },
        )

    # Route: /api/config
    @app.route("/api/config", methods=["GET", "POST"])
    def config():
        if request.method == "GET":
            return jsonify(ctx.config_store.get().to_json())
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return bad_request_response("Expected a JSON object.")
        changes = {}
        for key, attr in EDITABLE_CONFIG_KEYS.items():
            value = str(body.get(key) or "").strip()
            if value:
                changes[attr] = value
        saved = ctx.config_store.save(**changes)
        ctx.hub.broadcast({"type": "config", "config": saved.to_json()})
        ctx.log_action("config", command=" ".join(f"{k}={v}" for k, v in sorted(changes.items())))
        return ok_response(config=saved.to_json())

    # Route: /api/properties
    @app.route("/api/properties", methods=["GET", "POST"])
    def properties():
        server_dir = ctx.config_store.get().server_dir
        if request.method == "GET":
            return jsonify(read_properties(server_dir))
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return bad_request_response("Expected a JSON object.")
        try:
            write_properties(server_dir, body)
        except OSError as exc:
            ctx.log_exception("properties_write", exc)
            ctx.log_action("properties", rejection_message=str(exc))
            return error_response(PanelError(f"Could not write server.properties: {exc}"))
        ctx.log_action("properties", command=",".join(sorted(str(k) for k in body)))
        return ok_response()

    register_control_routes(app, ctx)
    register_file_routes(app, ctx)
