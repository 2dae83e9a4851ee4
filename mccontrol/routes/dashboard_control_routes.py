"""Server lifecycle and console route registration."""

from flask import request

from mccontrol.core.errors import PanelError
from mccontrol.core.response_helpers import error_response, ok_response
from mccontrol.services import player_actions as player_actions_service
from mccontrol.services import supervisor as supervisor_service


def _json_body():
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def register_control_routes(app, ctx):
    """Register start/stop/kill/command/player routes."""

    # Route: /api/start
    @app.route("/api/start", methods=["POST"])
    def start():
        try:
            supervisor_service.start_server(ctx)
        except PanelError as exc:
            ctx.log_action("start", rejection_message=exc.message)
            return error_response(exc)
        return ok_response()

    # Route: /api/stop
    @app.route("/api/stop", methods=["POST"])
    def stop():
        try:
            supervisor_service.stop_server(ctx)
        except PanelError as exc:
            ctx.log_action("stop", rejection_message=exc.message)
            return error_response(exc)
        return ok_response()

    # Route: /api/kill
    @app.route("/api/kill", methods=["POST"])
    def kill():
        try:
            supervisor_service.kill_server(ctx)
        except PanelError as exc:
            ctx.log_action("kill", rejection_message=exc.message)
            return error_response(exc)
        return ok_response()

    # Route: /api/command
    @app.route("/api/command", methods=["POST"])
    def command():
        text = str(_json_body().get("command") or "")
        try:
            sent = supervisor_service.send_command(ctx, text)
        except PanelError as exc:
            ctx.log_action("command", command=text, rejection_message=exc.message)
            return error_response(exc)
        return ok_response(command=sent)

    # Route: /api/player/<action>
    @app.route("/api/player/<action>", methods=["POST"])
    def player_action(action):
        body = _json_body()
        name = str(body.get("name") or "")
        extra = body.get("extra")
        try:
            sent = player_actions_service.run_player_action(ctx, action, name, None if extra is None else str(extra))
        except PanelError as exc:
            ctx.log_action(f"player/{action}", command=name, rejection_message=exc.message)
            return error_response(exc)
        return ok_response(command=sent)

    # Route: /api/list
    @app.route("/api/list", methods=["POST"])
    def player_list():
        return ok_response(sent=supervisor_service.request_player_list(ctx))
